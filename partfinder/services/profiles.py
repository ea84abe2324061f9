"""Per-user profile persistence: saved cars, saved parts, contributions.

Tables (all keyed by ``user_id`` + ``doc_id`` where applicable):

- ``users``: profile row per uid
- ``saved_cars``: vehicles saved from the catalog or from a VIN decode
- ``saved_parts``: parts saved against a car
- ``user_contributions``: free-text corrections awaiting review

Writes propagate errors to the caller; loads log and return what they can.
"""

import logging
import time
from typing import Any

from supabase import Client

from partfinder.core.enums import PLACEHOLDER_DOC, ContributionStatus, VehicleSource
from partfinder.core.logging import log_db_query, log_error
from partfinder.models.profile import Contribution, SavedPart, SavedVehicle
from partfinder.models.records import DecodedVinResult
from partfinder.models.vehicle import Part, Vehicle
from partfinder.services.db import utc_timestamp
from partfinder.utils.converters import parse_int, safe_float, safe_int
from partfinder.utils.hashing import saved_part_id, vin_id

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
SAVED_CARS_TABLE = "saved_cars"
SAVED_PARTS_TABLE = "saved_parts"
CONTRIBUTIONS_TABLE = "user_contributions"
CARS_TABLE = "cars"


def _rows(result: Any) -> list[dict[str, Any]]:
    if result.data and isinstance(result.data, list):
        return [row for row in result.data if isinstance(row, dict)]
    return []


def _text(row: dict[str, Any], key: str, default: str = "") -> str:
    value = row.get(key)
    return value if isinstance(value, str) and value else default


class SavedCarsRepository:
    """Vehicles saved on a user's profile."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def _write(self, user_id: str, data: dict[str, Any]) -> None:
        start = time.time()
        self.client.table(SAVED_CARS_TABLE).upsert(
            {"user_id": user_id, **data, "saved_at": utc_timestamp()},
            on_conflict="user_id,doc_id",
        ).execute()
        log_db_query("upsert", SAVED_CARS_TABLE, (time.time() - start) * 1000)

        # Mirror into the shared catalog so other users see the vehicle
        catalog_row = {k: v for k, v in data.items() if k != "doc_id"}
        catalog_row["id"] = data["car_id"]
        catalog_row["updated_at"] = utc_timestamp()
        start = time.time()
        self.client.table(CARS_TABLE).upsert(catalog_row).execute()
        log_db_query("upsert", CARS_TABLE, (time.time() - start) * 1000)

    def save_car(self, user_id: str, vehicle: Vehicle) -> SavedVehicle:
        """Save a catalog vehicle. The document id is the catalog id."""
        saved = SavedVehicle(
            doc_id=str(vehicle.id),
            source=VehicleSource.CATALOG,
            car_id=vehicle.id,
            make=vehicle.make,
            model=vehicle.model,
            year=vehicle.year,
            image_key=vehicle.image_key,
        )
        self._write(user_id, saved.model_dump(mode="json"))
        return saved

    def save_vin_vehicle(
        self,
        user_id: str,
        decoded: DecodedVinResult,
        linked_car: Vehicle | None = None,
    ) -> SavedVehicle:
        """Save a VIN-decoded vehicle. The document id is the VIN."""
        saved = SavedVehicle(
            doc_id=decoded.vin,
            source=VehicleSource.VIN,
            vin=decoded.vin,
            car_id=linked_car.id if linked_car else vin_id(decoded.vin),
            make=decoded.make or "Unknown",
            model=decoded.model or "Unknown",
            year=parse_int(decoded.year) or 0,
            image_key=linked_car.image_key if linked_car else "",
            vehicle_type=decoded.vehicle_type or "",
            manufacturer=decoded.manufacturer or "",
            plant_country=decoded.plant_country or "",
            engine_info=decoded.engine_info or "",
        )
        self._write(user_id, saved.model_dump(mode="json"))
        return saved

    def load_saved_vehicles(self, user_id: str) -> list[SavedVehicle]:
        try:
            start = time.time()
            result = (
                self.client.table(SAVED_CARS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
            log_db_query("select", SAVED_CARS_TABLE, (time.time() - start) * 1000)
        except Exception as e:
            log_error("Error loading saved vehicles", e, user_id=user_id)
            return []

        vehicles: list[SavedVehicle] = []
        for row in _rows(result):
            doc_id = _text(row, "doc_id")
            if doc_id == PLACEHOLDER_DOC:
                continue
            try:
                vin = _text(row, "vin")
                vehicles.append(
                    SavedVehicle(
                        doc_id=doc_id or vin,
                        source=row.get("source") or VehicleSource.VIN,
                        vin=vin or doc_id,
                        car_id=safe_int(row.get("car_id")),
                        make=_text(row, "make", "Unknown"),
                        model=_text(row, "model", "Unknown"),
                        year=safe_int(row.get("year")),
                        image_key=_text(row, "image_key"),
                        vehicle_type=_text(row, "vehicle_type"),
                        manufacturer=_text(row, "manufacturer"),
                        plant_country=_text(row, "plant_country"),
                        engine_info=_text(row, "engine_info"),
                    )
                )
            except ValueError as e:
                log_error("Error parsing saved vehicle", e, doc_id=doc_id)
        return vehicles

    def submit_contribution(
        self, decoded: DecodedVinResult, updates: dict[str, str], user_id: str
    ) -> Contribution:
        """Record missing-info corrections for review."""
        contribution = Contribution(
            vin=decoded.vin,
            make=decoded.make,
            model=decoded.model,
            year=decoded.year,
            updates=updates,
            submitted_by=user_id,
            status=ContributionStatus.PENDING,
        )
        try:
            self.client.table(CONTRIBUTIONS_TABLE).insert(
                {**contribution.model_dump(mode="json"), "submitted_at": utc_timestamp()}
            ).execute()
        except Exception as e:
            log_error("Error submitting contribution", e, vin=decoded.vin)
            raise
        logger.info(f"Contribution submitted for VIN {decoded.vin}")
        return contribution


class SavedPartsRepository:
    """Parts saved on a user's profile."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def save_part(self, user_id: str, vehicle: Vehicle, part: Part) -> SavedPart:
        saved = SavedPart(
            doc_id=saved_part_id(vehicle.id, part.category.value, part.name),
            car_id=vehicle.id,
            car_make=vehicle.make,
            car_model=vehicle.model,
            car_year=vehicle.year,
            name=part.name,
            category=part.category.value,
            price=part.price,
            in_stock=part.in_stock,
        )
        start = time.time()
        self.client.table(SAVED_PARTS_TABLE).upsert(
            {"user_id": user_id, **saved.model_dump(mode="json"), "saved_at": utc_timestamp()},
            on_conflict="user_id,doc_id",
        ).execute()
        log_db_query("upsert", SAVED_PARTS_TABLE, (time.time() - start) * 1000)
        return saved

    def remove_part(self, user_id: str, doc_id: str) -> None:
        start = time.time()
        (
            self.client.table(SAVED_PARTS_TABLE)
            .delete()
            .eq("user_id", user_id)
            .eq("doc_id", doc_id)
            .execute()
        )
        log_db_query("delete", SAVED_PARTS_TABLE, (time.time() - start) * 1000)

    def load_saved_parts(self, user_id: str) -> list[SavedPart]:
        try:
            start = time.time()
            result = (
                self.client.table(SAVED_PARTS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
            log_db_query("select", SAVED_PARTS_TABLE, (time.time() - start) * 1000)
        except Exception as e:
            log_error("Error loading saved parts", e, user_id=user_id)
            return []

        parts: list[SavedPart] = []
        for row in _rows(result):
            doc_id = _text(row, "doc_id")
            if not doc_id or doc_id == PLACEHOLDER_DOC:
                continue
            try:
                parts.append(
                    SavedPart(
                        doc_id=doc_id,
                        car_id=safe_int(row.get("car_id")),
                        car_make=_text(row, "car_make", "Unknown"),
                        car_model=_text(row, "car_model", "Unknown"),
                        car_year=safe_int(row.get("car_year")),
                        name=_text(row, "name", "Unknown"),
                        category=_text(row, "category"),
                        price=safe_float(row.get("price")),
                        in_stock=row.get("in_stock") is True,
                    )
                )
            except ValueError as e:
                log_error("Error parsing saved part", e, doc_id=doc_id)
        return parts


class UserProfileRepository:
    """Creates the per-user scaffolding on first sign-in."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def initialize_user_structure(self, uid: str, email: str) -> None:
        timestamp = utc_timestamp()
        self.client.table(USERS_TABLE).upsert(
            {"id": uid, "email": email, "created_at": timestamp, "updated_at": timestamp}
        ).execute()
        for table in (SAVED_CARS_TABLE, SAVED_PARTS_TABLE):
            self.client.table(table).upsert(
                {"user_id": uid, "doc_id": PLACEHOLDER_DOC, "seeded_at": timestamp},
                on_conflict="user_id,doc_id",
            ).execute()
        log_db_query("initialize_user", USERS_TABLE)
