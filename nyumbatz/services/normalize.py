"""Conversion between backend rows and the canonical Property model.

Two record shapes reach this module:

* Supabase rows: ``monthly_rent`` (older rows: ``price_monthly``), flat
  ``city``/``area``/``address``, ``is_available``, ``is_featured``,
  ``views_count``, ``created_at``/``updated_at``.
* Application records (the sample dataset, cached dumps): nested
  ``location``, explicit ``status``, ``price_monthly``, ``created_date``.

camelCase spellings of either are accepted as well.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from nyumbatz.exceptions import ValidationFailed
from nyumbatz.schemas import Property, PropertyCreate, PropertyUpdate
from nyumbatz.services.validators import parse_model

PLACEHOLDER_IMAGE = "https://images.pexels.com/photos/106399/pexels-photo-106399.jpeg"


def _pick(raw: Mapping, *names: str, default: Any = None) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return default


def _whole_units(value: Any) -> int:
    """Postgres ``numeric`` arrives as int, float or string."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationFailed("Invalid monthly price", {"price_monthly": f"not a number: {value!r}"})
    return int(amount)


def _location(raw: Mapping) -> dict:
    nested = raw.get("location")
    if isinstance(nested, Mapping):
        district = _pick(nested, "district", "area", default="")
        return {
            "address": _pick(nested, "address", default=""),
            "city": _pick(nested, "city", default=""),
            "district": district,
            "neighborhood": _pick(nested, "neighborhood", default=district),
        }
    area = _pick(raw, "area", "district", default="")
    return {
        "address": _pick(raw, "address", default=""),
        "city": _pick(raw, "city", default=""),
        "district": area,
        "neighborhood": _pick(raw, "neighborhood", default=area),
    }


def _status(raw: Mapping) -> str:
    status = _pick(raw, "status")
    if status:
        return status
    available = _pick(raw, "is_available", "isAvailable")
    if available is None:
        # Column default in the properties table
        return "available"
    return "available" if available else "rented"


def normalize_property(raw: Mapping, placeholder_image: str = PLACEHOLDER_IMAGE) -> Property:
    """Build the canonical Property from either record shape.

    Raises ValidationFailed when the record cannot satisfy the model's
    invariants (no id, non-positive price, unknown property type...).
    """
    if isinstance(raw, Property):
        return raw

    price = _pick(raw, "price_monthly", "priceMonthly", "monthly_rent", "monthlyRent")
    images = [url for url in (_pick(raw, "images", default=[]) or []) if url]
    created = _pick(raw, "created_date", "createdDate", "created_at", "createdAt")
    updated = _pick(raw, "updated_date", "updatedDate", "updated_at", "updatedAt", default=created)

    data = {
        "id": _pick(raw, "id"),
        "owner_id": _pick(raw, "owner_id", "ownerId"),
        "title": _pick(raw, "title", default=""),
        "description": _pick(raw, "description", default=""),
        "price_monthly": _whole_units(price) if price is not None else None,
        "location": _location(raw),
        "bedrooms": _pick(raw, "bedrooms", default=0),
        "bathrooms": _pick(raw, "bathrooms", default=0),
        "property_type": _pick(raw, "property_type", "propertyType"),
        "amenities": set(_pick(raw, "amenities", default=[]) or []),
        "images": images or [placeholder_image],
        "status": _status(raw),
        "created_date": created,
        "updated_date": updated,
        "featured": bool(_pick(raw, "featured", "is_featured", "isFeatured", default=False)),
        "views": _pick(raw, "views", "views_count", "viewsCount"),
        "contact_phone": _pick(raw, "contact_phone", "contactPhone", default=""),
    }
    return parse_model(Property, data)


def to_canonical_dict(prop: Property) -> dict:
    """JSON-safe application record; ``normalize_property`` maps it back to ``prop``."""
    data = prop.model_dump(mode="json")
    data["amenities"] = sorted(prop.amenities)
    return data


def property_to_row(prop: Property) -> dict:
    """Full ``properties`` table row for a canonical Property."""
    return {
        "id": prop.id,
        "owner_id": prop.owner_id,
        "title": prop.title,
        "description": prop.description,
        "property_type": prop.property_type,
        "bedrooms": prop.bedrooms,
        "bathrooms": prop.bathrooms,
        "monthly_rent": prop.price_monthly,
        "city": prop.location.city,
        "area": prop.location.district,
        "address": prop.location.address,
        "contact_phone": prop.contact_phone,
        "images": list(prop.images),
        "amenities": sorted(prop.amenities),
        "is_available": prop.status == "available",
        "is_featured": prop.featured,
        "views_count": prop.views or 0,
        "created_at": prop.created_date.isoformat(),
        "updated_at": prop.updated_date.isoformat(),
    }


def payload_to_row(payload: PropertyCreate | PropertyUpdate) -> dict:
    """Column values for an insert or a partial update.

    Only fields the caller actually set are written on update.
    """
    data = payload.model_dump(exclude_unset=isinstance(payload, PropertyUpdate), exclude_none=True)
    row = {}
    for key, value in data.items():
        if key == "price_monthly":
            row["monthly_rent"] = value
        elif key == "status":
            row["is_available"] = value == "available"
        elif key == "featured":
            row["is_featured"] = value
        elif key == "amenities":
            row["amenities"] = sorted(set(value))
        else:
            row[key] = value
    return row
