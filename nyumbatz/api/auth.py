from __future__ import annotations

from fastapi import APIRouter, Depends

from nyumbatz.dependencies import Services, get_services, require_user
from nyumbatz.schemas import AuthSession, PasswordResetRequest, SignInRequest, SignUpRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=AuthSession, status_code=201)
async def sign_up(body: SignUpRequest, services: Services = Depends(get_services)):
    return await services.auth.sign_up(body)


@router.post("/signin", response_model=AuthSession)
async def sign_in(body: SignInRequest, services: Services = Depends(get_services)):
    return await services.auth.sign_in(body)


@router.post("/signout", status_code=204)
async def sign_out(
    user: AuthSession = Depends(require_user),
    services: Services = Depends(get_services),
):
    await services.auth.sign_out(user.access_token)


@router.post("/reset-password", status_code=202)
async def reset_password(body: PasswordResetRequest, services: Services = Depends(get_services)):
    await services.auth.reset_password(body)
    return {"sent": True}


@router.get("/me", response_model=AuthSession)
async def whoami(user: AuthSession = Depends(require_user)):
    return user
