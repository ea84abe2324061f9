from pydantic import BaseModel, ConfigDict, Field

from partfinder.core.enums import PartCategory


class Part(BaseModel):
    """A catalog part in canonical form."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: PartCategory
    price: float = Field(ge=0)
    in_stock: bool = False


class Vehicle(BaseModel):
    """A catalog vehicle in canonical form.

    ``id`` is either the catalog's own id or a stable hash of
    (make, model, year), so a triple always maps to the same id.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    make: str
    model: str
    year: int
    image_key: str
    parts: list[Part] = []

    @property
    def label(self) -> str:
        return f"{self.year} {self.make} {self.model}"
