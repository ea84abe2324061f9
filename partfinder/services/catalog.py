"""Catalog access: document store first, bundled JSON as the fallback.

All public methods are synchronous; async callers wrap them with
``asyncio.to_thread``. Everything returned has been through the normalizer.
"""

import time
from pathlib import Path
from typing import Any

from supabase import Client

from partfinder.core.enums import MatchTier, PartCategory
from partfinder.core.logging import log_db_query, log_error, logger
from partfinder.models.records import (
    DecodedVinResult,
    RemoteDocument,
    StaticCatalogFile,
)
from partfinder.models.vehicle import Part, Vehicle
from partfinder.services.catalog_cache import CatalogCache
from partfinder.services.db import utc_timestamp
from partfinder.services.normalizer import normalize_catalog, normalize_vehicle
from partfinder.services.resolver import CompatibleParts, resolve_with_tier

CARS_TABLE = "cars"


class CatalogUnavailableError(RuntimeError):
    """Neither the document store nor the bundled catalog could be read."""


def _triple(car: Vehicle) -> tuple[str, str, int]:
    return car.make.casefold(), car.model.casefold(), car.year


def _like_literal(value: str) -> str:
    """Escape LIKE wildcards so ``ilike`` does an exact, case-insensitive match."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_document(row: dict[str, Any]) -> RemoteDocument:
    doc_id = row.get("doc_id") or row.get("id")
    return RemoteDocument(doc_id=str(doc_id) if doc_id is not None else None, data=row)


class CatalogRepository:
    """Read/write access to the vehicle catalog."""

    def __init__(
        self,
        client: Client,
        static_path: Path,
        cache: CatalogCache | None = None,
    ) -> None:
        self.client = client
        self.static_path = Path(static_path)
        self.cache = cache or CatalogCache()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def get_cars(self) -> list[Vehicle]:
        """Return the full catalog, preferring the document store.

        A store with no parts at all (unseeded, holding only VIN-added rows)
        is merged behind the bundled catalog: bundled cars first, then remote
        cars whose make/model/year the bundle does not already have.
        """
        cached = self.cache.get()
        if cached is not None:
            return cached

        try:
            cars = self._fetch_remote()
        except Exception as e:
            log_error("Remote catalog fetch failed, using bundled catalog", e)
            cars = []
        if not any(car.parts for car in cars):
            cars = self._merge_with_static(cars)

        self.cache.set(cars)
        return cars

    def _merge_with_static(self, remote: list[Vehicle]) -> list[Vehicle]:
        try:
            static = self._load_static()
        except CatalogUnavailableError as e:
            if not remote:
                raise
            log_error("Bundled catalog unavailable, serving remote rows only", e)
            return remote
        known = {_triple(car) for car in static}
        extras = [car for car in remote if _triple(car) not in known]
        if remote:
            logger.info(
                f"Remote catalog has no parts; merged {len(extras)} remote cars "
                f"behind {len(static)} bundled cars"
            )
        return static + extras

    def _fetch_remote(self) -> list[Vehicle]:
        start = time.time()
        result = self.client.table(CARS_TABLE).select("*").execute()
        log_db_query(
            "select", CARS_TABLE, (time.time() - start) * 1000, rows=len(result.data or [])
        )

        records: list[RemoteDocument] = []
        if result.data and isinstance(result.data, list):
            for row in result.data:
                if isinstance(row, dict):
                    records.append(_to_document(row))
        return normalize_catalog(records)

    def _load_static(self) -> list[Vehicle]:
        try:
            raw = self.static_path.read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogUnavailableError(
                f"Failed to read bundled catalog: {self.static_path}"
            ) from e
        catalog = StaticCatalogFile.model_validate_json(raw)
        logger.info(f"Loaded {len(catalog.cars)} cars from bundled catalog")
        return normalize_catalog(catalog.cars)

    def refresh(self) -> list[Vehicle]:
        """Drop the cached catalog and load it again."""
        self.cache.invalidate()
        return self.get_cars()

    # -------------------------------------------------------------------------
    # Browsing
    # -------------------------------------------------------------------------

    def search_cars(self, query: str) -> list[Vehicle]:
        """Case-insensitive substring match on make or model; blank returns all."""
        cars = self.get_cars()
        needle = query.strip().casefold()
        if not needle:
            return cars
        return [
            car
            for car in cars
            if needle in car.make.casefold() or needle in car.model.casefold()
        ]

    def get_car_by_id(self, car_id: int) -> Vehicle | None:
        return next((car for car in self.get_cars() if car.id == car_id), None)

    def get_cars_by_make(self, make: str) -> list[Vehicle]:
        return [car for car in self.get_cars() if car.make.casefold() == make.casefold()]

    def get_cars_by_year(self, year: int) -> list[Vehicle]:
        return [car for car in self.get_cars() if car.year == year]

    def get_parts_by_category(
        self, car_id: int, category: PartCategory
    ) -> list[Part] | None:
        car = self.get_car_by_id(car_id)
        if car is None:
            return None
        return [part for part in car.parts if part.category == category]

    def get_in_stock_parts(self, car_id: int) -> list[Part] | None:
        car = self.get_car_by_id(car_id)
        if car is None:
            return None
        return [part for part in car.parts if part.in_stock]

    # -------------------------------------------------------------------------
    # Exact lookups against the document store
    # -------------------------------------------------------------------------

    def _query_by_specs(self, make: str, model: str, year: int) -> list[dict[str, Any]]:
        start = time.time()
        result = (
            self.client.table(CARS_TABLE)
            .select("*")
            .ilike("make", _like_literal(make.strip()))
            .ilike("model", _like_literal(model.strip()))
            .eq("year", year)
            .limit(1)
            .execute()
        )
        log_db_query("select_by_specs", CARS_TABLE, (time.time() - start) * 1000)
        if result.data and isinstance(result.data, list):
            return [row for row in result.data if isinstance(row, dict)]
        return []

    def car_exists_in_catalog(self, make: str, model: str, year: int) -> bool:
        try:
            return bool(self._query_by_specs(make, model, year))
        except Exception as e:
            log_error("Error checking if car exists", e, make=make, model=model, year=year)
            return False

    def find_car_by_specs(self, make: str, model: str, year: int) -> Vehicle | None:
        try:
            rows = self._query_by_specs(make, model, year)
        except Exception as e:
            log_error("Error finding car", e, make=make, model=model, year=year)
            return None
        if not rows:
            return None
        return normalize_vehicle(_to_document(rows[0]))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add_car_from_vin_decoder(self, decoded: DecodedVinResult) -> bool:
        """Add a VIN-decoded vehicle to the catalog (with no parts yet).

        Returns True when the car is in the catalog afterwards.
        """
        vehicle = normalize_vehicle(decoded)
        if vehicle is None:
            logger.info(f"Not adding VIN {decoded.vin} to catalog: incomplete decode")
            return False

        try:
            if self.car_exists_in_catalog(vehicle.make, vehicle.model, vehicle.year):
                logger.debug(f"{vehicle.label} already in catalog, skipping")
                return True

            row = {
                "id": vehicle.id,
                "make": vehicle.make,
                "model": vehicle.model,
                "year": vehicle.year,
                "image_key": vehicle.image_key,
                "parts": [],
                "added_from_vin": True,
                "vin": decoded.vin,
                "vehicle_type": decoded.vehicle_type or "",
                "manufacturer": decoded.manufacturer or "",
                "updated_at": utc_timestamp(),
            }
            start = time.time()
            self.client.table(CARS_TABLE).upsert(row).execute()
            log_db_query("upsert", CARS_TABLE, (time.time() - start) * 1000)
        except Exception as e:
            log_error("Error adding car to catalog", e, vin=decoded.vin)
            return False

        self.cache.invalidate()
        logger.info(f"Added {vehicle.label} to catalog from VIN decoder")
        return True

    # -------------------------------------------------------------------------
    # Compatible parts
    # -------------------------------------------------------------------------

    def resolve_parts(self, make: str, model: str, year: int) -> CompatibleParts:
        """Compatible parts plus the tier that produced them.

        Catalog read failures end up as an empty result, never an error.
        """
        try:
            catalog = self.get_cars()
        except Exception as e:
            log_error("Error getting compatible parts", e, make=make, model=model)
            return CompatibleParts(MatchTier.NONE, [])
        return resolve_with_tier(make, model, year, catalog)

    def get_compatible_parts(self, make: str, model: str, year: int) -> list[Part]:
        return self.resolve_parts(make, model, year).parts
