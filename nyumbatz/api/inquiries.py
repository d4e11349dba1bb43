from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from nyumbatz.dependencies import Services, get_services, require_user
from nyumbatz.schemas import AuthSession, Inquiry, InquiryCreate, InquiryStatusUpdate

router = APIRouter(prefix="/api/inquiries", tags=["inquiries"])


@router.post("", response_model=Inquiry, status_code=201)
async def send_inquiry(
    body: InquiryCreate,
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    return await services.inquiries.create_inquiry(user.user_id, body, user.access_token)


@router.get("", response_model=list[Inquiry])
async def landlord_inbox(
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    return await services.inquiries.list_for_landlord(user.user_id, user.access_token)


@router.patch("/{inquiry_id}", response_model=Inquiry)
async def set_status(
    inquiry_id: str,
    body: InquiryStatusUpdate,
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    inquiry = await services.inquiries.update_status(user.user_id, inquiry_id, body.status, user.access_token)
    if inquiry is None:
        raise HTTPException(404, "Inquiry not found")
    return inquiry
