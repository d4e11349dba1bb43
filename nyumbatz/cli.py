"""CLI for NyumbaTZ: search listings and inspect the data layer."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from nyumbatz.config import get_settings
from nyumbatz.dependencies import build_services
from nyumbatz.exceptions import NyumbaError
from nyumbatz.logging_config import setup_logging
from nyumbatz.services.normalize import to_canonical_dict


def _format_price(amount: int) -> str:
    return f"TSh {amount:,}"


async def cmd_search(args):
    services = build_services()
    filters = {
        "location": args.location,
        "price_min": args.price_min,
        "price_max": args.price_max,
        "property_type": args.type,
        "bedrooms": args.bedrooms,
        "bathrooms": args.bathrooms,
        "query": args.query,
        "limit": args.limit,
        "offset": args.offset,
    }
    results = await services.properties.list_properties(filters)
    if args.json:
        print(json.dumps([to_canonical_dict(p) for p in results], indent=2))
        return
    if not results:
        print("No properties match these filters.")
        return
    for prop in results:
        print(f"{prop.id:<12} {_format_price(prop.price_monthly):>14}  "
              f"{prop.bedrooms}bd/{prop.bathrooms}ba  {prop.location.city}, {prop.location.district}  "
              f"{prop.title}")
    print(f"\n{len(results)} propert{'y' if len(results) == 1 else 'ies'} ({await services.selector.mode()})")


async def cmd_show(args):
    services = build_services()
    prop = await services.properties.get_property(args.property_id)
    if prop is None:
        print(f"Property {args.property_id} not found")
        sys.exit(1)
    print(json.dumps(to_canonical_dict(prop), indent=2))


async def cmd_status(args):
    services = build_services()
    info = {"mode": await services.selector.mode(), **services.selector.describe()}
    for key, value in info.items():
        print(f"{key}: {value}")


def main():
    parser = argparse.ArgumentParser(description="NyumbaTZ CLI")
    subparsers = parser.add_subparsers(dest="command")

    # search
    sr = subparsers.add_parser("search", help="Search available listings")
    sr.add_argument("--location", help="City (substring, case-insensitive)")
    sr.add_argument("--price-min", type=int, help="Minimum monthly rent in TSh")
    sr.add_argument("--price-max", type=int, help="Maximum monthly rent in TSh")
    sr.add_argument("--type", help="house, apartment, studio, villa or room")
    sr.add_argument("--bedrooms", type=int, help="Minimum bedrooms")
    sr.add_argument("--bathrooms", type=int, help="Minimum bathrooms")
    sr.add_argument("--query", "-q", help="Free text over title, description, city and area")
    sr.add_argument("--limit", type=int)
    sr.add_argument("--offset", type=int)
    sr.add_argument("--json", action="store_true", help="Print canonical records as JSON")

    # show
    sh = subparsers.add_parser("show", help="Show one listing")
    sh.add_argument("property_id")

    # status
    subparsers.add_parser("status", help="Report which data source is active")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(get_settings().log_level)
    try:
        if args.command == "search":
            asyncio.run(cmd_search(args))
        elif args.command == "show":
            asyncio.run(cmd_show(args))
        elif args.command == "status":
            asyncio.run(cmd_status(args))
    except NyumbaError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
