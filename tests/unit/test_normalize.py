from datetime import datetime, timezone

import pytest

from nyumbatz.data.sample import SAMPLE_PROPERTIES
from nyumbatz.exceptions import ValidationFailed
from nyumbatz.schemas import PropertyCreate, PropertyUpdate
from nyumbatz.services.normalize import (
    PLACEHOLDER_IMAGE, normalize_property, payload_to_row, property_to_row, to_canonical_dict,
)


def _row(**overrides):
    row = {
        "id": "9f1c",
        "owner_id": "owner-7",
        "title": "Bright flat in Sinza",
        "description": "Second floor flat close to the market.",
        "property_type": "apartment",
        "bedrooms": 2,
        "bathrooms": 1,
        "monthly_rent": 800000,
        "city": "Dar es Salaam",
        "area": "Sinza",
        "address": "Sinza Mori",
        "is_available": True,
        "images": None,
        "amenities": None,
        "created_at": "2025-06-24T10:00:00+00:00",
        "updated_at": "2025-06-25T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def test_database_row_defaults():
    prop = normalize_property(_row())
    assert prop.status == "available"
    assert prop.images == [PLACEHOLDER_IMAGE]
    assert prop.amenities == set()
    assert prop.price_monthly == 800000
    assert prop.location.city == "Dar es Salaam"
    assert prop.location.district == "Sinza"
    assert prop.location.neighborhood == "Sinza"


def test_unavailable_row_is_rented():
    assert normalize_property(_row(is_available=False)).status == "rented"


def test_numeric_string_price_truncates_to_whole_shillings():
    assert normalize_property(_row(monthly_rent="750000.00")).price_monthly == 750000


def test_missing_availability_defaults_to_available():
    row = _row()
    del row["is_available"]
    assert normalize_property(row).status == "available"


def test_created_date_parsed():
    prop = normalize_property(_row())
    assert prop.created_date == datetime(2025, 6, 24, 10, tzinfo=timezone.utc)
    assert prop.updated_date > prop.created_date


def test_application_record_passes_through():
    record = SAMPLE_PROPERTIES[0]
    prop = normalize_property(record)
    assert prop.id == "1"
    assert prop.price_monthly == 1_200_000
    assert prop.location.district == "Masaki"
    assert prop.featured is True
    assert "Generator" in prop.amenities


def test_camel_case_record():
    prop = normalize_property({
        "id": "c1", "ownerId": "o1", "title": "Room in Kariakoo",
        "priceMonthly": 150000, "city": "Dar es Salaam", "area": "Kariakoo",
        "bedrooms": 1, "bathrooms": 0, "propertyType": "room",
        "isAvailable": False, "createdAt": "2025-01-01T00:00:00+00:00",
    })
    assert prop.owner_id == "o1"
    assert prop.price_monthly == 150000
    assert prop.status == "rented"


def test_duplicate_amenities_collapse():
    prop = normalize_property(_row(amenities=["Parking", "Parking", "Security"]))
    assert prop.amenities == {"Parking", "Security"}


def test_empty_image_urls_dropped():
    prop = normalize_property(_row(images=["", "https://img/1.jpg"]))
    assert prop.images == ["https://img/1.jpg"]


@pytest.mark.parametrize("price", [0, -5])
def test_non_positive_price_rejected(price):
    with pytest.raises(ValidationFailed):
        normalize_property(_row(monthly_rent=price))


def test_unparseable_price_rejected():
    with pytest.raises(ValidationFailed) as exc:
        normalize_property(_row(monthly_rent="a lot"))
    assert "price_monthly" in exc.value.errors


def test_missing_id_rejected():
    with pytest.raises(ValidationFailed) as exc:
        normalize_property(_row(id=None))
    assert "id" in exc.value.errors


def test_unknown_property_type_rejected():
    with pytest.raises(ValidationFailed):
        normalize_property(_row(property_type="castle"))


def test_normalizing_a_property_is_identity():
    prop = normalize_property(_row())
    assert normalize_property(prop) is prop


def test_canonical_dict_normalizes_back():
    prop = normalize_property(SAMPLE_PROPERTIES[2])
    data = to_canonical_dict(prop)
    assert data["amenities"] == sorted(prop.amenities)
    assert normalize_property(data) == prop


def test_property_to_row_columns():
    prop = normalize_property(SAMPLE_PROPERTIES[1]).model_copy(update={"status": "maintenance"})
    row = property_to_row(prop)
    assert row["monthly_rent"] == 550_000
    assert row["area"] == "Mikocheni"
    assert row["is_available"] is False
    assert row["views_count"] == 0


def test_update_payload_writes_only_set_fields():
    row = payload_to_row(PropertyUpdate(price_monthly=600000, status="rented"))
    assert row == {"monthly_rent": 600000, "is_available": False}


def test_create_payload_row():
    payload = PropertyCreate(
        title="Two bedroom in Kijitonyama",
        description="Quiet compound with parking and water tank.",
        price_monthly=450000, property_type="apartment", bedrooms=2, bathrooms=1,
        city="Dar es Salaam", area="Kijitonyama", contact_phone="0712 345 678",
        amenities=["Parking", "Parking"],
    )
    row = payload_to_row(payload)
    assert row["monthly_rent"] == 450000
    assert row["is_featured"] is False
    assert row["amenities"] == ["Parking"]
    assert row["contact_phone"] == "0712345678"
    assert "price_monthly" not in row
