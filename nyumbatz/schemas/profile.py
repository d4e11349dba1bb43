from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from nyumbatz.services.validators import (
    clean_phone, validate_email, validate_password, validate_phone,
)

UserRole = Literal["tenant", "landlord"]


class Profile(BaseModel):
    id: str
    full_name: str
    phone_number: str = ""
    user_role: UserRole = "tenant"
    avatar_url: str | None = None
    bio: str | None = None
    location: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=2, max_length=50)
    phone_number: str | None = None
    bio: str | None = None
    location: str | None = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        error = validate_phone(v)
        if error:
            raise ValueError(error)
        return clean_phone(v)


class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: str = Field(min_length=2, max_length=50)
    phone_number: str
    user_role: UserRole

    model_config = {"str_strip_whitespace": True}

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        error = validate_email(v)
        if error:
            raise ValueError(error)
        return v.lower()

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        error = validate_password(v)
        if error:
            raise ValueError(error)
        return v

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v: str) -> str:
        error = validate_phone(v)
        if error:
            raise ValueError(error)
        return clean_phone(v)


class SignInRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        error = validate_email(v)
        if error:
            raise ValueError(error)
        return v


class AuthSession(BaseModel):
    user_id: str
    email: str = ""
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None
