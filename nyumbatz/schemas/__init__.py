"""Pydantic models for listings, profiles, inquiries and API messages."""

from nyumbatz.schemas.property import (
    Location, Property, PropertyCreate, PropertyUpdate, SearchFilters,
    PropertyType, PropertyStatus, PROPERTY_TYPES, PROPERTY_STATUSES,
)
from nyumbatz.schemas.profile import (
    Profile, ProfileUpdate, SignUpRequest, SignInRequest, PasswordResetRequest,
    AuthSession, UserRole,
)
from nyumbatz.schemas.inquiry import Inquiry, InquiryCreate, InquiryStatusUpdate, InquiryStatus
from nyumbatz.schemas.ws_messages import NotifierEvent, WSMessage

__all__ = [
    "Location", "Property", "PropertyCreate", "PropertyUpdate", "SearchFilters",
    "PropertyType", "PropertyStatus", "PROPERTY_TYPES", "PROPERTY_STATUSES",
    "Profile", "ProfileUpdate", "SignUpRequest", "SignInRequest", "PasswordResetRequest",
    "AuthSession", "UserRole",
    "Inquiry", "InquiryCreate", "InquiryStatusUpdate", "InquiryStatus",
    "NotifierEvent", "WSMessage",
]
