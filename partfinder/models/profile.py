from typing import Optional

from pydantic import BaseModel, Field

from partfinder.core.enums import ContributionStatus, VehicleSource


class SavedVehicle(BaseModel):
    """A vehicle on a user's profile, saved from the catalog or from a VIN."""

    doc_id: str
    source: VehicleSource
    vin: str = ""
    car_id: int = 0
    make: str = "Unknown"
    model: str = "Unknown"
    year: int = 0
    image_key: str = ""
    vehicle_type: str = ""
    manufacturer: str = ""
    plant_country: str = ""
    engine_info: str = ""


class SavedPart(BaseModel):
    """A part saved against a specific car on a user's profile."""

    doc_id: str
    car_id: int = 0
    car_make: str = "Unknown"
    car_model: str = "Unknown"
    car_year: int = 0
    name: str = "Unknown"
    category: str = ""
    price: float = 0.0
    in_stock: bool = False


class Contribution(BaseModel):
    """User-submitted corrections for a decoded vehicle."""

    vin: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    updates: dict[str, str] = Field(default_factory=dict)
    submitted_by: str
    status: ContributionStatus = ContributionStatus.PENDING
