"""Search filter evaluation over canonical properties.

The same predicates run against the sample dataset and against rows
returned by Supabase, so both sources answer a search identically.
"""

from __future__ import annotations

from collections.abc import Iterable

from nyumbatz.schemas import Property, SearchFilters
from nyumbatz.services.validators import parse_model

# Page length used when a search gives an offset without a limit
DEFAULT_PAGE_SIZE = 9


def build_filters(params: dict | SearchFilters | None = None, **kwargs) -> SearchFilters:
    """Validate raw search parameters; ValidationFailed on malformed input."""
    if isinstance(params, SearchFilters) and not kwargs:
        return params
    data = dict(params or {})
    data.update(kwargs)
    return parse_model(SearchFilters, data)


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def matches(prop: Property, filters: SearchFilters) -> bool:
    if filters.location is not None and not _contains(prop.location.city, filters.location):
        return False
    if filters.price_min is not None and prop.price_monthly < filters.price_min:
        return False
    if filters.price_max is not None and prop.price_monthly > filters.price_max:
        return False
    if filters.property_type is not None and prop.property_type != filters.property_type:
        return False
    if filters.bedrooms is not None and prop.bedrooms < filters.bedrooms:
        return False
    if filters.bathrooms is not None and prop.bathrooms < filters.bathrooms:
        return False
    if filters.query is not None:
        fields = (prop.title, prop.description, prop.location.city, prop.location.district)
        if not any(_contains(f, filters.query) for f in fields):
            return False
    return True


def apply_filters(properties: Iterable[Property], filters: SearchFilters) -> list[Property]:
    """Subsequence of ``properties`` matching every set criterion, order kept."""
    return [p for p in properties if matches(p, filters)]


def page_bounds(filters: SearchFilters, page_size: int = DEFAULT_PAGE_SIZE) -> tuple[int, int | None]:
    """Start index and row count for ``filters``; count is None when unpaginated."""
    start = filters.offset or 0
    if filters.limit is not None:
        return start, filters.limit
    if start:
        return start, page_size
    return 0, None


def paginate(items: list, filters: SearchFilters) -> list:
    start, count = page_bounds(filters)
    if count is None:
        return items[start:]
    return items[start:start + count]
