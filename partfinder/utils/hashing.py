"""Stable hashing for synthesized identifiers.

Python's built-in ``hash()`` is salted per process, so every id that has to
survive a restart (catalog ids, saved-part document ids) goes through
32-bit FNV-1a instead.
"""

FNV_OFFSET_BASIS_32 = 2166136261
FNV_PRIME_32 = 16777619
_MASK_32 = 0xFFFFFFFF


def fnv1a_32(text: str) -> int:
    """Return the unsigned 32-bit FNV-1a hash of ``text`` (UTF-8 encoded).

    Examples:
        >>> fnv1a_32("")
        2166136261
        >>> fnv1a_32("a")
        3826002220
    """
    value = FNV_OFFSET_BASIS_32
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME_32) & _MASK_32
    return value


def vehicle_id(make: str, model: str, year: int) -> int:
    """Derive a catalog id from a (make, model, year) triple."""
    return fnv1a_32(f"{make.strip()}_{model.strip()}_{year}".lower())


def vin_id(vin: str) -> int:
    """Derive a vehicle id from a VIN."""
    return fnv1a_32(vin.strip().upper())


def saved_part_id(car_id: int, category: str, name: str) -> str:
    """Document id for a part saved against a specific car."""
    return str(fnv1a_32(f"{car_id}|{category}|{name}".lower()))
