"""Built-in sample listings served when Supabase is not configured.

Records use the application field names (nested ``location``, explicit
``status``), the second of the two shapes ``normalize_property`` accepts.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_IMG = "https://images.pexels.com/photos/{}/pexels-photo-{}.jpeg?auto=compress&cs=tinysrgb&w=800"


def _img(photo_id: int) -> str:
    return _IMG.format(photo_id, photo_id)


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def _listing(id, title, description, price, address, city, district, bedrooms, bathrooms,
             property_type, amenities, photos, age_days, featured=False):
    return {
        "id": id,
        "owner_id": "owner-1",
        "title": title,
        "description": description,
        "price_monthly": price,
        "location": {
            "address": address,
            "city": city,
            "district": district,
            "neighborhood": district,
        },
        "bedrooms": bedrooms,
        "bathrooms": bathrooms,
        "property_type": property_type,
        "amenities": amenities,
        "images": [_img(p) for p in photos],
        "status": "available",
        "created_date": _days_ago(age_days),
        "updated_date": _days_ago(age_days),
        "featured": featured,
    }


SAMPLE_PROPERTIES: list[dict] = [
    _listing(
        "1", "Modern 3BR House in Masaki",
        "Beautiful modern house in the prestigious Masaki area with sea views. Perfect for "
        "professionals and families. Fully furnished with modern amenities including air "
        "conditioning, generator backup, and 24/7 security.",
        1_200_000, "Masaki Peninsula", "Dar es Salaam", "Masaki", 3, 2, "house",
        ["Parking", "Security", "Generator", "Water Tank", "Garden", "Air Conditioning",
         "Internet", "Furnished"],
        [106399, 1643383, 1571460], 2, featured=True,
    ),
    _listing(
        "2", "Cozy 2BR Apartment in Mikocheni",
        "Well-maintained 2-bedroom apartment in Mikocheni. Close to shopping centers and "
        "public transport. Features include parking space, water tank, and reliable internet "
        "connection.",
        550_000, "Mikocheni B", "Dar es Salaam", "Mikocheni", 2, 1, "apartment",
        ["Parking", "Security", "Water Tank", "Internet", "Balcony"],
        [1571453, 1643383], 1,
    ),
    _listing(
        "3", "Luxury Villa in Oyster Bay",
        "Stunning luxury villa with ocean views in Oyster Bay. Features spacious rooms, private "
        "garden, swimming pool, and top-notch security. Perfect for executives and diplomats.",
        2_500_000, "Oyster Bay Road", "Dar es Salaam", "Oyster Bay", 4, 3, "villa",
        ["Parking", "Security", "Generator", "Water Tank", "Garden", "Swimming Pool",
         "Air Conditioning", "Internet", "Furnished"],
        [1396122, 1732414, 259588], 3, featured=True,
    ),
    _listing(
        "4", "Executive House in Mwanza City",
        "Executive 4-bedroom house near Lake Victoria. Perfect for business executives with "
        "family. Features include large compound, parking for 3 cars, generator, and beautiful "
        "lake views.",
        800_000, "Ilemela District", "Mwanza", "Ilemela", 4, 3, "house",
        ["Parking", "Security", "Generator", "Water Tank", "Garden", "Internet"],
        [323780, 1396122], 4,
    ),
    _listing(
        "5", "Modern Studio in Mbeya",
        "Compact modern studio apartment perfect for students and young professionals in Mbeya. "
        "Features include kitchenette, private bathroom, and reliable internet.",
        280_000, "Mbeya Urban", "Mbeya", "Mbeya Urban", 1, 1, "studio",
        ["Security", "Internet"],
        [1571460], 5,
    ),
    _listing(
        "6", "Safari Lodge Style House in Arusha",
        "Unique safari lodge style house in Arusha, perfect for tourists and expatriates. Close "
        "to Mount Meru with stunning mountain views. Features include fireplace, large garden, "
        "and traditional Tanzanian architecture.",
        950_000, "Arusha Central", "Arusha", "Arusha Central", 3, 2, "house",
        ["Parking", "Security", "Water Tank", "Garden", "Internet"],
        [259588, 1396122], 6,
    ),
    _listing(
        "7", "Family Apartment in Mbeya Highlands",
        "Spacious 3-bedroom apartment in the cool highlands of Mbeya. Perfect for families with "
        "children. Features include balcony with mountain views, parking, and proximity to "
        "schools.",
        450_000, "Mbeya Highlands", "Mbeya", "Mbeya Highlands", 3, 2, "apartment",
        ["Security", "Water Tank", "Internet"],
        [323780, 1643383], 7,
    ),
    _listing(
        "8", "Single Room in Temeke",
        "Affordable single room in Temeke area. Perfect for students and young professionals. "
        "Shared bathroom and kitchen facilities. Close to public transport and markets.",
        180_000, "Temeke District", "Dar es Salaam", "Temeke", 1, 1, "room",
        ["Security"],
        [1571460], 8,
    ),
    _listing(
        "9", "University Area House in Morogoro",
        "Perfect for university staff and families. 3-bedroom house near Sokoine University of "
        "Agriculture. Features include large compound, fruit trees, and quiet neighborhood.",
        600_000, "University Area", "Morogoro", "University Area", 3, 2, "house",
        ["Parking", "Security", "Water Tank", "Garden", "Internet"],
        [106399, 323780], 9,
    ),
]

SAMPLE_PROFILES: list[dict] = [
    {
        "id": "owner-1",
        "full_name": "Demo Landlord",
        "phone_number": "0712345678",
        "user_role": "landlord",
        "avatar_url": None,
        "bio": None,
        "location": "Dar es Salaam",
        "created_at": _days_ago(30),
        "updated_at": _days_ago(30),
    },
    {
        "id": "tenant-1",
        "full_name": "Demo Tenant",
        "phone_number": "0755123456",
        "user_role": "tenant",
        "avatar_url": None,
        "bio": None,
        "location": "Dar es Salaam",
        "created_at": _days_ago(10),
        "updated_at": _days_ago(10),
    },
]

TANZANIAN_CITIES = [
    "Dar es Salaam", "Mwanza", "Arusha", "Mbeya", "Morogoro",
    "Tanga", "Dodoma", "Moshi", "Iringa", "Mtwara",
]

COMMON_AMENITIES = [
    "Parking", "Security", "Generator", "Water Tank", "Garden", "Balcony",
    "Air Conditioning", "Internet", "Swimming Pool", "Gym", "Elevator",
    "Furnished", "CCTV", "Kitchen", "Dining Room",
]

# (label, min, max); max None means open-ended
PRICE_RANGES = [
    ("200K - 500K", 200_000, 500_000),
    ("500K - 1M", 500_000, 1_000_000),
    ("1M - 2M", 1_000_000, 2_000_000),
    ("2M+", 2_000_000, None),
]
