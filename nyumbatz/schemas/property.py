from __future__ import annotations

import json
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from nyumbatz.services.validators import validate_phone, clean_phone

PropertyType = Literal["house", "apartment", "studio", "villa", "room"]
PropertyStatus = Literal["available", "rented", "maintenance"]

PROPERTY_TYPES: tuple[str, ...] = ("house", "apartment", "studio", "villa", "room")
PROPERTY_STATUSES: tuple[str, ...] = ("available", "rented", "maintenance")


class Location(BaseModel):
    address: str = ""
    city: str = ""
    district: str = ""
    neighborhood: str = ""


class Property(BaseModel):
    """Canonical listing, whichever source produced it."""

    id: str
    owner_id: str
    title: str
    description: str = ""
    price_monthly: int = Field(gt=0)  # whole TSh
    location: Location
    bedrooms: int = Field(ge=0)
    bathrooms: int = Field(ge=0)
    property_type: PropertyType
    amenities: set[str] = Field(default_factory=set)
    images: list[str] = Field(min_length=1)
    status: PropertyStatus = "available"
    created_date: datetime
    updated_date: datetime
    featured: bool = False
    views: int | None = None
    contact_phone: str = ""


class SearchFilters(BaseModel):
    """Search criteria. Every field is optional; set fields combine with AND."""

    location: str | None = None
    price_min: int | None = Field(default=None, ge=0)
    price_max: int | None = Field(default=None, ge=0)
    property_type: PropertyType | None = None
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    query: str | None = None
    limit: int | None = Field(default=None, ge=1, le=100)
    offset: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        # "" from a cleared form field means no constraint, not match-nothing
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @model_validator(mode="after")
    def _check_price_range(self):
        if self.price_min is not None and self.price_max is not None and self.price_min > self.price_max:
            raise ValueError("price_min must not exceed price_max")
        return self

    def constraints(self) -> dict:
        return self.model_dump(exclude_none=True, mode="json")

    def is_empty(self) -> bool:
        return not self.constraints()

    def signature(self) -> str:
        """Stable text form used as a cache qualifier."""
        return json.dumps(self.constraints(), sort_keys=True, separators=(",", ":"))


class PropertyCreate(BaseModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=20, max_length=1000)
    price_monthly: int = Field(ge=50_000, le=10_000_000)
    property_type: PropertyType
    bedrooms: int = Field(ge=0, le=10)
    bathrooms: int = Field(ge=0, le=10)
    city: str = Field(min_length=1)
    area: str = Field(min_length=1)
    address: str = ""
    contact_phone: str
    amenities: list[str] = []
    images: list[str] = []
    featured: bool = False

    model_config = {"str_strip_whitespace": True}

    @field_validator("contact_phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        error = validate_phone(v)
        if error:
            raise ValueError(error)
        return clean_phone(v)


class PropertyUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=5, max_length=100)
    description: str | None = Field(default=None, min_length=20, max_length=1000)
    price_monthly: int | None = Field(default=None, ge=50_000, le=10_000_000)
    property_type: PropertyType | None = None
    bedrooms: int | None = Field(default=None, ge=0, le=10)
    bathrooms: int | None = Field(default=None, ge=0, le=10)
    city: str | None = Field(default=None, min_length=1)
    area: str | None = Field(default=None, min_length=1)
    address: str | None = None
    contact_phone: str | None = None
    amenities: list[str] | None = None
    images: list[str] | None = None
    status: PropertyStatus | None = None
    featured: bool | None = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("contact_phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        error = validate_phone(v)
        if error:
            raise ValueError(error)
        return clean_phone(v)
