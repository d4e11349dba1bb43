"""Field validators shared by the request schemas."""

from __future__ import annotations

import re

from pydantic import ValidationError

from nyumbatz.exceptions import ValidationFailed

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^(\+255|0)[67]\d{8}$")
PASSWORD_MIN_LENGTH = 6


def clean_phone(phone: str) -> str:
    return re.sub(r"\s", "", phone or "")


def validate_email(email: str) -> str | None:
    if not email:
        return "Email is required"
    if not EMAIL_RE.match(email):
        return "Please enter a valid email address"
    return None


def validate_phone(phone: str) -> str | None:
    """Tanzanian mobile numbers, local (07..) or international (+2557..)."""
    if not phone:
        return "Phone number is required"
    if not PHONE_RE.match(clean_phone(phone)):
        return "Please enter a valid Tanzanian phone number (e.g., 0712345678)"
    return None


def validate_password(password: str) -> str | None:
    if not password:
        return "Password is required"
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    return None


def parse_model(model_cls, data):
    """Validate ``data`` into ``model_cls`` or raise ValidationFailed.

    Pydantic's error list is flattened to ``{field: message}``.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        errors = {}
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"]) or "__root__"
            errors.setdefault(field, err["msg"])
        raise ValidationFailed("Please check your input and try again.", errors) from e
