"""Enums and tuning constants for the parts catalog."""

from enum import Enum


class PartCategory(str, Enum):
    """Fixed set of part categories."""

    ENGINE = "engine"
    TRANSMISSION = "transmission"
    BRAKES = "brakes"
    WHEELS = "wheels"
    DRIVE_TRAIN = "drive_train"
    EXTERIOR = "exterior"
    INTERIOR = "interior"

    @classmethod
    def from_string(cls, value: str) -> "PartCategory":
        """Map a category label onto the enum, case-insensitively.

        "-" and spaces count as "_", so "Drive-Train" is DRIVE_TRAIN.
        Unrecognized labels become ENGINE. Product has not confirmed that
        fallback; it matches what the mobile client has always shown.
        """
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            return cls.ENGINE

    @classmethod
    def is_known(cls, value: str) -> bool:
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        return key in cls._value2member_map_


class MatchTier(str, Enum):
    """Which fallback tier produced a compatible-parts list."""

    EXACT = "exact"
    NEARBY_YEAR = "nearby_year"
    SAME_MAKE = "same_make"
    UNIVERSAL = "universal"
    NONE = "none"


class VehicleSource(str, Enum):
    """Where a saved vehicle came from."""

    CATALOG = "CATALOG"
    VIN = "VIN"


class ContributionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Compatible-parts fallback window and per-tier caps
NEARBY_YEAR_WINDOW = 5
NEARBY_YEAR_LIMIT = 15
SAME_MAKE_LIMIT = 10
UNIVERSAL_LIMIT = 5

# Shortest VIN fragment the decoder will accept
MIN_VIN_LENGTH = 11

# Marker row seeded into each per-user saved table
PLACEHOLDER_DOC = "_meta"
