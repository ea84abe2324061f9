"""Compatible-parts resolver.

Given a vehicle that may not be in the catalog verbatim (typically one just
decoded from a VIN), pick a parts list with a fixed fallback order. The
first tier that yields anything wins:

1. Exact make/model/year with parts: that vehicle's list, untouched.
2. Same make/model within NEARBY_YEAR_WINDOW years: first 15 distinct names.
3. Same make, any model: first 10 distinct names.
4. Whole catalog: first 5 distinct names.

Make/model comparisons ignore case everywhere. Catalog order is preserved;
nothing is re-sorted. The resolver works on an already-fetched catalog and
does no I/O.
"""

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from partfinder.core.enums import (
    NEARBY_YEAR_LIMIT,
    NEARBY_YEAR_WINDOW,
    SAME_MAKE_LIMIT,
    UNIVERSAL_LIMIT,
    MatchTier,
)
from partfinder.models.vehicle import Part, Vehicle


@dataclass
class CompatibleParts:
    """Parts chosen for a vehicle and the tier that supplied them."""

    tier: MatchTier
    parts: list[Part] = field(default_factory=list)


def _same_text(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def _distinct_by_name(parts: Iterable[Part], limit: int) -> list[Part]:
    """First occurrence of each name wins, in encounter order."""
    seen: set[str] = set()
    result: list[Part] = []
    for part in parts:
        if part.name in seen:
            continue
        seen.add(part.name)
        result.append(part)
        if len(result) >= limit:
            break
    return result


def _flatten(vehicles: Iterable[Vehicle]) -> Iterable[Part]:
    for vehicle in vehicles:
        yield from vehicle.parts


def resolve_with_tier(
    make: str, model: str, year: int, catalog: Sequence[Vehicle]
) -> CompatibleParts:
    """Resolve compatible parts and report which tier matched."""
    # Tier 1: exact match
    exact = next(
        (
            v
            for v in catalog
            if _same_text(v.make, make) and _same_text(v.model, model) and v.year == year
        ),
        None,
    )
    if exact is not None and exact.parts:
        return CompatibleParts(MatchTier.EXACT, list(exact.parts))

    # Tier 2: same model, nearby year
    nearby = [
        v
        for v in catalog
        if _same_text(v.make, make)
        and _same_text(v.model, model)
        and abs(v.year - year) <= NEARBY_YEAR_WINDOW
    ]
    parts = _distinct_by_name(_flatten(nearby), NEARBY_YEAR_LIMIT)
    if parts:
        return CompatibleParts(MatchTier.NEARBY_YEAR, parts)

    # Tier 3: same make, any model
    same_make = [v for v in catalog if _same_text(v.make, make)]
    parts = _distinct_by_name(_flatten(same_make), SAME_MAKE_LIMIT)
    if parts:
        return CompatibleParts(MatchTier.SAME_MAKE, parts)

    # Tier 4: universal
    parts = _distinct_by_name(_flatten(catalog), UNIVERSAL_LIMIT)
    if parts:
        return CompatibleParts(MatchTier.UNIVERSAL, parts)
    return CompatibleParts(MatchTier.NONE, [])


def resolve_compatible_parts(
    make: str, model: str, year: int, catalog: Sequence[Vehicle]
) -> list[Part]:
    """Return a best-effort parts list; empty only when the catalog has no parts."""
    return resolve_with_tier(make, model, year, catalog).parts
