from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from nyumbatz.dependencies import Services, get_services, require_user
from nyumbatz.schemas import AuthSession, Profile, ProfileUpdate
from nyumbatz.services.storage import ImageUpload

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("/me", response_model=Profile)
async def my_profile(
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    profile = await services.profiles.get_profile(user.user_id)
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return profile


@router.patch("/me", response_model=Profile)
async def update_my_profile(
    body: ProfileUpdate,
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    profile = await services.profiles.update_profile(user.user_id, body, user.access_token)
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return profile


@router.post("/me/avatar", response_model=Profile)
async def upload_avatar(
    file: UploadFile = File(...),
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    upload = ImageUpload(filename=file.filename or "avatar", content_type=file.content_type or "",
                         data=await file.read())
    profile = await services.profiles.update_avatar(user.user_id, upload, user.access_token)
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return profile


@router.get("/{profile_id}", response_model=Profile)
async def get_profile(profile_id: str, services: Services = Depends(get_services)):
    profile = await services.profiles.get_profile(profile_id)
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return profile
