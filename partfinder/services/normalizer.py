"""Catalog normalizer.

Turns raw records from the bundled catalog, the document store and the VIN
decoder into canonical ``Vehicle``/``Part`` values. Malformed input never
raises: a bad field falls back to its default, or the single part or vehicle
carrying it is dropped.

Rules:
- make/model missing or blank -> vehicle rejected
- year not an integer (or numeric string) -> vehicle rejected
- id not a well-formed integer -> FNV-1a of "make_model_year" (lowercased)
- part name missing -> part dropped
- part category missing -> part dropped; unknown label -> ENGINE
- part price not numeric or negative -> part dropped
- in-stock flag anything but a bool or "true"/"false" -> False
"""

import logging
from typing import Any, Iterable

from partfinder.core.enums import PartCategory
from partfinder.models.records import (
    DecodedVinResult,
    RawRecord,
    RemoteDocument,
    StaticCatalogRecord,
    StaticPartRecord,
)
from partfinder.models.vehicle import Part, Vehicle
from partfinder.utils.converters import (
    clean_text,
    parse_in_stock,
    parse_int,
    parse_price,
)
from partfinder.utils.hashing import vehicle_id

logger = logging.getLogger(__name__)

# Remote documents have used several spellings over time
_IMAGE_KEY_FIELDS = ("imageKey", "image_key", "imageUrl")
_IN_STOCK_FIELDS = ("inStock", "in_stock")


def derive_image_key(make: str, model: str) -> str:
    return f"{make.lower()}_{model.lower()}"


# =============================================================================
# Parts
# =============================================================================


def normalize_part(raw: Any) -> Part | None:
    """Normalize a part-like mapping (or a ``StaticPartRecord``).

    Returns None when the part is unusable.
    """
    if isinstance(raw, StaticPartRecord):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, dict):
        logger.debug(f"Dropping part: not a mapping ({type(raw).__name__})")
        return None

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        logger.debug("Dropping part: missing name")
        return None
    name = name.strip()

    category_label = raw.get("category")
    if not isinstance(category_label, str) or not category_label.strip():
        logger.debug(f"Dropping part {name!r}: missing category")
        return None
    if not PartCategory.is_known(category_label):
        logger.debug(f"Part {name!r}: unknown category {category_label!r}, using ENGINE")
    category = PartCategory.from_string(category_label)

    price = parse_price(raw.get("price"))
    if price is None:
        logger.debug(f"Dropping part {name!r}: bad price {raw.get('price')!r}")
        return None

    in_stock_raw = next((raw[k] for k in _IN_STOCK_FIELDS if k in raw), None)

    return Part(
        name=name,
        category=category,
        price=price,
        in_stock=parse_in_stock(in_stock_raw),
    )


def normalize_parts(raw_parts: Any) -> list[Part]:
    """Normalize a list of raw parts, silently skipping the bad ones."""
    if not isinstance(raw_parts, (list, tuple)):
        return []
    parts: list[Part] = []
    for raw in raw_parts:
        part = normalize_part(raw)
        if part is not None:
            parts.append(part)
    return parts


# =============================================================================
# Vehicles
# =============================================================================


def _build_vehicle(
    raw_id: Any,
    make: Any,
    model: Any,
    year: Any,
    image_key: Any = None,
    raw_parts: Any = None,
) -> Vehicle | None:
    """Shared path all record types converge on."""
    make_text = clean_text(make)
    model_text = clean_text(model)
    if make_text is None or model_text is None:
        logger.debug(f"Rejecting vehicle: missing make/model ({make!r}, {model!r})")
        return None

    year_value = parse_int(year)
    if year_value is None:
        logger.debug(f"Rejecting vehicle {make_text} {model_text}: invalid year {year!r}")
        return None

    id_value = parse_int(raw_id)
    if id_value is None:
        id_value = vehicle_id(make_text, model_text, year_value)

    image_text = image_key.strip() if isinstance(image_key, str) else ""

    return Vehicle(
        id=id_value,
        make=make_text,
        model=model_text,
        year=year_value,
        image_key=image_text or derive_image_key(make_text, model_text),
        parts=normalize_parts(raw_parts),
    )


def _from_static(record: StaticCatalogRecord) -> Vehicle | None:
    return _build_vehicle(
        record.id,
        record.make,
        record.model,
        record.year,
        record.image_key,
        list(record.parts),
    )


def _from_remote(record: RemoteDocument) -> Vehicle | None:
    data = record.data
    # Prefer the id field, then fall back to a numeric document id
    raw_id = data.get("id")
    if parse_int(raw_id) is None:
        raw_id = record.doc_id
    image_key = next(
        (data[k] for k in _IMAGE_KEY_FIELDS if isinstance(data.get(k), str) and data[k]),
        None,
    )
    return _build_vehicle(
        raw_id,
        data.get("make"),
        data.get("model"),
        data.get("year"),
        image_key,
        data.get("parts"),
    )


def _from_vin(record: DecodedVinResult) -> Vehicle | None:
    return _build_vehicle(None, record.make, record.model, record.year)


def normalize_vehicle(raw: RawRecord) -> Vehicle | None:
    """Normalize any raw record into a ``Vehicle``, or None if unusable."""
    if isinstance(raw, StaticCatalogRecord):
        return _from_static(raw)
    if isinstance(raw, RemoteDocument):
        return _from_remote(raw)
    if isinstance(raw, DecodedVinResult):
        return _from_vin(raw)
    logger.debug(f"Rejecting vehicle: unsupported record type {type(raw).__name__}")
    return None


def normalize_catalog(
    records: Iterable[RawRecord],
) -> list[Vehicle]:
    """Normalize a batch of records, keeping source order and dropping rejects."""
    vehicles: list[Vehicle] = []
    rejected = 0
    for record in records:
        vehicle = normalize_vehicle(record)
        if vehicle is None:
            rejected += 1
            continue
        vehicles.append(vehicle)
    if rejected:
        logger.info(f"Normalized catalog: kept={len(vehicles)} rejected={rejected}")
    return vehicles
