from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from nyumbatz.services.validators import clean_phone, validate_email, validate_phone

InquiryStatus = Literal["new", "contacted", "viewed", "closed"]


class Inquiry(BaseModel):
    id: str
    property_id: str
    tenant_id: str
    landlord_id: str
    tenant_name: str
    tenant_phone: str
    tenant_email: str = ""
    message: str
    status: InquiryStatus = "new"
    created_at: datetime | None = None


class InquiryCreate(BaseModel):
    property_id: str
    tenant_name: str = Field(min_length=2, max_length=50)
    tenant_phone: str
    tenant_email: str
    message: str = Field(min_length=1, max_length=1000)

    model_config = {"str_strip_whitespace": True}

    @field_validator("tenant_phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        error = validate_phone(v)
        if error:
            raise ValueError(error)
        return clean_phone(v)

    @field_validator("tenant_email")
    @classmethod
    def _email(cls, v: str) -> str:
        error = validate_email(v)
        if error:
            raise ValueError(error)
        return v


class InquiryStatusUpdate(BaseModel):
    status: InquiryStatus
