"""VIN decoding and the user's garage (saved vehicles and parts).

Async orchestration over the sync repositories and the async NHTSA client.
Session lists live in ``SavedItemsStore`` instances keyed by user id, so
nothing here is process-global.
"""

import asyncio
import logging

import httpx

from partfinder.core.enums import MIN_VIN_LENGTH
from partfinder.core.logging import log_error
from partfinder.models.profile import SavedPart
from partfinder.models.records import DecodedVinResult
from partfinder.models.vehicle import Part, Vehicle
from partfinder.services.catalog import CatalogRepository
from partfinder.services.nhtsa import NHTSAClient
from partfinder.services.normalizer import derive_image_key
from partfinder.services.profiles import SavedCarsRepository, SavedPartsRepository
from partfinder.services.saved_items import (
    ANONYMOUS,
    InMemorySavedItems,
    SavedItemsStore,
)
from partfinder.utils.converters import parse_int
from partfinder.utils.hashing import vin_id

logger = logging.getLogger(__name__)


class GarageService:
    def __init__(
        self,
        catalog: CatalogRepository,
        nhtsa: NHTSAClient,
        saved_cars: SavedCarsRepository,
        saved_parts: SavedPartsRepository,
        vehicle_store: SavedItemsStore[DecodedVinResult] | None = None,
        part_store: SavedItemsStore[SavedPart] | None = None,
    ) -> None:
        self.catalog = catalog
        self.nhtsa = nhtsa
        self.saved_cars = saved_cars
        self.saved_parts = saved_parts
        self.vehicle_store = vehicle_store or InMemorySavedItems[DecodedVinResult]()
        self.part_store = part_store or InMemorySavedItems[SavedPart]()

    # -------------------------------------------------------------------------
    # VIN decoding
    # -------------------------------------------------------------------------

    async def decode_vin(self, vin: str) -> DecodedVinResult | None:
        """Decode a VIN and add the vehicle to the catalog.

        Raises ValueError for VINs that are too short to decode. Returns
        None when the decoder fails or has nothing for the VIN.
        """
        vin = vin.strip().upper()
        if len(vin) < MIN_VIN_LENGTH:
            raise ValueError(f"VIN must be at least {MIN_VIN_LENGTH} characters")

        try:
            decoded = await self.nhtsa.decode_vin(vin)
        except httpx.HTTPError as e:
            log_error("VIN decode failed", e, vin=vin)
            return None
        if decoded is None:
            return None

        await asyncio.to_thread(self.catalog.add_car_from_vin_decoder, decoded)
        return decoded

    async def get_car_from_vehicle(self, decoded: DecodedVinResult) -> Vehicle:
        """Vehicle for a decoded VIN, carrying compatible parts.

        A catalog car with parts is returned as is. A catalog car without
        parts (typically one added by ``decode_vin``) keeps its identity but
        gets resolver parts. Otherwise a vehicle is synthesized from the VIN.
        """
        make = decoded.make or "Unknown"
        model = decoded.model or "Unknown"
        year = parse_int(decoded.year) or 0

        catalog_car = await asyncio.to_thread(
            self.catalog.find_car_by_specs, make, model, year
        )
        if catalog_car is not None and catalog_car.parts:
            return catalog_car

        parts = await asyncio.to_thread(
            self.catalog.get_compatible_parts, make, model, year
        )
        if catalog_car is not None:
            return catalog_car.model_copy(update={"parts": parts})
        return Vehicle(
            id=vin_id(decoded.vin),
            make=make,
            model=model,
            year=year,
            image_key=derive_image_key(make, model),
            parts=parts,
        )

    # -------------------------------------------------------------------------
    # Saved vehicles
    # -------------------------------------------------------------------------

    async def save_vehicle_to_profile(
        self, decoded: DecodedVinResult, user_id: str | None
    ) -> None:
        owner = user_id or ANONYMOUS
        vehicles = self.vehicle_store.get(owner)
        if not any(v.vin == decoded.vin for v in vehicles):
            self.vehicle_store.set(owner, [*vehicles, decoded])

        if user_id is None:
            logger.warning("Not signed in; vehicle saved only in memory.")
            return

        try:
            linked = await asyncio.to_thread(
                self.catalog.find_car_by_specs,
                decoded.make or "Unknown",
                decoded.model or "Unknown",
                parse_int(decoded.year) or 0,
            )
            await asyncio.to_thread(
                self.saved_cars.save_vin_vehicle, user_id, decoded, linked
            )
            logger.debug(f"Saved vehicle {decoded.vin} to user profile")
        except Exception as e:
            log_error("Error saving vehicle", e, user_id=user_id, vin=decoded.vin)

    async def save_catalog_car(self, user_id: str, vehicle: Vehicle) -> None:
        await asyncio.to_thread(self.saved_cars.save_car, user_id, vehicle)

    async def load_saved_vehicles(self, user_id: str) -> list[DecodedVinResult]:
        saved = await asyncio.to_thread(self.saved_cars.load_saved_vehicles, user_id)
        vehicles = [
            DecodedVinResult(
                vin=v.vin,
                make=v.make,
                model=v.model,
                year=str(v.year),
                vehicle_type=v.vehicle_type,
                manufacturer=v.manufacturer,
                plant_country=v.plant_country,
                engine_info=v.engine_info,
            )
            for v in saved
        ]
        self.vehicle_store.set(user_id, vehicles)
        return vehicles

    def session_vehicles(self, user_id: str | None) -> list[DecodedVinResult]:
        return self.vehicle_store.get(user_id or ANONYMOUS)

    # -------------------------------------------------------------------------
    # Saved parts
    # -------------------------------------------------------------------------

    async def load_saved_parts(self, user_id: str) -> list[SavedPart]:
        parts = await asyncio.to_thread(self.saved_parts.load_saved_parts, user_id)
        self.part_store.set(user_id, parts)
        return parts

    async def save_part(self, user_id: str, vehicle: Vehicle, part: Part) -> list[SavedPart]:
        """Save a part and return the refreshed list."""
        await asyncio.to_thread(self.saved_parts.save_part, user_id, vehicle, part)
        return await self.load_saved_parts(user_id)

    async def remove_saved_part(self, user_id: str | None, doc_id: str) -> None:
        if user_id is None:
            return
        try:
            await asyncio.to_thread(self.saved_parts.remove_part, user_id, doc_id)
        except Exception as e:
            log_error("Error removing part", e, user_id=user_id, doc_id=doc_id)
            return
        self.part_store.set(
            user_id, [p for p in self.part_store.get(user_id) if p.doc_id != doc_id]
        )

    # -------------------------------------------------------------------------
    # Contributions / session
    # -------------------------------------------------------------------------

    async def submit_missing_info(
        self,
        decoded: DecodedVinResult,
        updates: dict[str, str],
        user_id: str | None,
    ) -> bool:
        """Submit corrections for a decoded vehicle. Anonymous users can't contribute."""
        if user_id is None:
            return False
        try:
            await asyncio.to_thread(
                self.saved_cars.submit_contribution, decoded, updates, user_id
            )
        except Exception as e:
            log_error("Error submitting contribution", e, user_id=user_id)
            return False
        return True

    def clear_session(self, user_id: str | None) -> None:
        """Forget session lists (on sign out)."""
        owner = user_id or ANONYMOUS
        self.vehicle_store.clear(owner)
        self.part_store.clear(owner)
