"""Raw inputs to the catalog normalizer.

Each upstream source has its own record type, tagged by ``source``:

- ``StaticCatalogRecord``: rows from the bundled ``cars_data.json``. Typed and trusted.
- ``RemoteDocument``: rows from the document store. Any field may be missing,
  mistyped, or numerically encoded.
- ``DecodedVinResult``: NHTSA vPIC output. Every field is an optional string.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class StaticPartRecord(BaseModel):
    name: str
    category: str
    price: float
    in_stock: bool = Field(default=False, alias="inStock")

    model_config = ConfigDict(populate_by_name=True)


class StaticCatalogRecord(BaseModel):
    source: Literal["static"] = "static"
    id: int
    make: str
    model: str
    year: int
    image_key: str = Field(default="", alias="imageUrl")
    parts: list[StaticPartRecord] = []

    model_config = ConfigDict(populate_by_name=True)


class StaticCatalogFile(BaseModel):
    """Shape of the bundled catalog file: ``{"cars": [...]}``."""

    cars: list[StaticCatalogRecord]


class RemoteDocument(BaseModel):
    source: Literal["remote"] = "remote"
    doc_id: Optional[str] = None
    data: dict[str, Any] = {}


class DecodedVinResult(BaseModel):
    source: Literal["vin"] = "vin"
    vin: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    vehicle_type: Optional[str] = None
    manufacturer: Optional[str] = None
    plant_country: Optional[str] = None
    engine_info: Optional[str] = None


RawRecord = Annotated[
    Union[StaticCatalogRecord, RemoteDocument, DecodedVinResult],
    Field(discriminator="source"),
]
