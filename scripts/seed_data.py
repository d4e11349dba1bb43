"""Copy the built-in sample listings into a configured Supabase project.

The listings are written as the given landlord account, so row level
security sees the landlord as their owner.
"""

import argparse
import asyncio
import getpass
import sys

from nyumbatz.data.sample import SAMPLE_PROPERTIES
from nyumbatz.exceptions import NyumbaError
from nyumbatz.services.auth import AuthService
from nyumbatz.services.normalize import normalize_property, property_to_row
from nyumbatz.sources.selector import DataSourceSelector


async def seed(email: str, password: str):
    selector = DataSourceSelector()
    session = await AuthService(selector).sign_in({"email": email, "password": password})
    owner_id, token = session.user_id, session.access_token

    owned = await selector.run(
        "list_properties_by_owner", lambda src: src.list_properties_by_owner(owner_id), token
    )
    existing = {p["title"] for p in owned}
    for record in SAMPLE_PROPERTIES:
        row = property_to_row(normalize_property(record))
        if row["title"] in existing:
            print(f"Skipping existing listing: {row['title']}")
            continue
        # Supabase assigns ids and timestamps
        for column in ("id", "created_at", "updated_at", "views_count"):
            row.pop(column)
        row["owner_id"] = owner_id
        created = await selector.run("create_property", lambda src: src.create_property(row), token)
        print(f"Created property: {created['title']} (id: {created['id']})")

    print("\nSeed complete. Start the server with: uvicorn nyumbatz.main:app --reload")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", required=True, help="email of the landlord account that will own the listings")
    args = parser.parse_args()
    password = getpass.getpass(f"Password for {args.email}: ")
    try:
        asyncio.run(seed(args.email, password))
    except NyumbaError as e:
        print(f"Seed failed: {e.message}", file=sys.stderr)
        sys.exit(1)
