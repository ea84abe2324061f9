"""Tests for the garage service: VIN decoding, saved vehicles and parts."""

import asyncio

import httpx
import pytest

from conftest import make_part

from partfinder.core.enums import PartCategory
from partfinder.models.records import DecodedVinResult
from partfinder.services.garage import GarageService
from partfinder.services.profiles import SavedCarsRepository, SavedPartsRepository
from partfinder.services.saved_items import ANONYMOUS
from partfinder.utils.hashing import vehicle_id, vin_id

CIVIC = DecodedVinResult(
    vin="2HGFE2F59NH000001", make="HONDA", model="Civic", year="2022", vehicle_type="PASSENGER CAR"
)
WRX = DecodedVinResult(vin="JF1VA1C60M9800001", make="SUBARU", model="WRX", year="2021")


class FakeNHTSA:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[str] = []

    async def decode_vin(self, vin: str):
        self.calls.append(vin)
        if self.error is not None:
            raise self.error
        return self.result


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def garage(fake_db, catalog_repo) -> GarageService:
    return GarageService(
        catalog=catalog_repo,
        nhtsa=FakeNHTSA(result=WRX),  # type: ignore[arg-type]
        saved_cars=SavedCarsRepository(fake_db),  # type: ignore[arg-type]
        saved_parts=SavedPartsRepository(fake_db),  # type: ignore[arg-type]
    )


class TestDecodeVin:
    @pytest.mark.parametrize("vin", ["", "   ", "1HGCM8263"])
    def test_short_vin_rejected(self, garage, vin):
        with pytest.raises(ValueError):
            run(garage.decode_vin(vin))
        assert garage.nhtsa.calls == []

    def test_vin_is_normalized_before_decoding(self, garage):
        run(garage.decode_vin(" jf1va1c60m9800001 "))
        assert garage.nhtsa.calls == ["JF1VA1C60M9800001"]

    def test_decoded_vehicle_added_to_catalog(self, garage, fake_db):
        decoded = run(garage.decode_vin(WRX.vin))
        assert decoded == WRX
        assert fake_db.tables["cars"][0]["id"] == vehicle_id("SUBARU", "WRX", 2021)

    def test_decoder_error_returns_none(self, garage, fake_db):
        garage.nhtsa = FakeNHTSA(error=httpx.ConnectError("offline"))
        assert run(garage.decode_vin(WRX.vin)) is None
        assert "cars" not in fake_db.tables

    def test_no_result_returns_none(self, garage):
        garage.nhtsa = FakeNHTSA(result=None)
        assert run(garage.decode_vin(WRX.vin)) is None


class TestCarFromVehicle:
    SHIFTER = {"name": "Short Shifter", "category": "TRANSMISSION", "price": 180, "inStock": True}

    def test_catalog_car_with_parts_returned_as_is(self, garage, fake_db):
        fake_db.tables["cars"] = [
            {"id": 77, "make": "Subaru", "model": "WRX", "year": 2021, "parts": [self.SHIFTER]}
        ]
        car = run(garage.get_car_from_vehicle(WRX))
        assert car.id == 77
        assert [p.name for p in car.parts] == ["Short Shifter"]

    def test_partless_catalog_car_gets_compatible_parts(self, garage, fake_db):
        fake_db.tables["cars"] = [
            {"id": 77, "make": "SUBARU", "model": "WRX", "year": 2021, "image_key": "wrx_img", "parts": []}
        ]
        car = run(garage.get_car_from_vehicle(WRX))
        assert car.id == 77
        assert car.image_key == "wrx_img"
        # No Subaru in the bundled catalog, so the universal tier applies
        assert len(car.parts) == 5

    def test_decoded_vin_resolves_against_bundled_catalog(self, garage):
        garage.nhtsa = FakeNHTSA(result=CIVIC)
        decoded = run(garage.decode_vin(CIVIC.vin))
        car = run(garage.get_car_from_vehicle(decoded))

        assert car.id == vehicle_id("HONDA", "Civic", 2022)
        assert car.parts
        assert car.parts[0].name == "Engine Block"
        assert [p.name for p in car.parts] == [
            p.name for p in garage.catalog.get_car_by_id(1).parts
        ]

    def test_synthesized_car_uses_compatible_parts(self, garage):
        car = run(garage.get_car_from_vehicle(CIVIC))
        assert car.id == vin_id(CIVIC.vin)
        assert car.make == "HONDA"
        assert car.year == 2022
        assert car.image_key == "honda_civic"
        # Exact match against the bundled Civic 2022
        assert car.parts and car.parts[0].name == "Engine Block"

    def test_incomplete_decode_gets_universal_parts(self, garage):
        decoded = DecodedVinResult(vin="XXXXXXXXXXX")
        car = run(garage.get_car_from_vehicle(decoded))
        assert car.make == "Unknown"
        assert car.year == 0
        assert len(car.parts) == 5


class TestSavedVehicles:
    def test_anonymous_save_stays_in_session(self, garage, fake_db):
        run(garage.save_vehicle_to_profile(CIVIC, None))
        assert garage.session_vehicles(None) == [CIVIC]
        assert garage.vehicle_store.get(ANONYMOUS) == [CIVIC]
        assert "saved_cars" not in fake_db.tables

    def test_same_vin_not_duplicated_in_session(self, garage):
        run(garage.save_vehicle_to_profile(CIVIC, None))
        run(garage.save_vehicle_to_profile(CIVIC, None))
        assert len(garage.session_vehicles(None)) == 1

    def test_signed_in_save_persists(self, garage, fake_db):
        run(garage.save_vehicle_to_profile(WRX, "user-1"))
        rows = fake_db.tables["saved_cars"]
        assert rows[0]["doc_id"] == WRX.vin
        assert rows[0]["car_id"] == vin_id(WRX.vin)

    def test_save_links_catalog_car(self, garage, fake_db):
        fake_db.tables["cars"] = [
            {"id": 77, "make": "SUBARU", "model": "WRX", "year": 2021, "image_key": "wrx_img"}
        ]
        run(garage.save_vehicle_to_profile(WRX, "user-1"))
        row = fake_db.tables["saved_cars"][0]
        assert row["car_id"] == 77
        assert row["image_key"] == "wrx_img"

    def test_persist_failure_is_contained(self, garage, fake_db):
        fake_db.failing_tables.add("saved_cars")
        run(garage.save_vehicle_to_profile(WRX, "user-1"))
        assert garage.session_vehicles("user-1") == [WRX]

    def test_load_saved_vehicles_replaces_session(self, garage, fake_db):
        fake_db.tables["saved_cars"] = [
            {"user_id": "user-1", "doc_id": WRX.vin, "vin": WRX.vin, "source": "VIN",
             "make": "SUBARU", "model": "WRX", "year": 2021},
        ]
        vehicles = run(garage.load_saved_vehicles("user-1"))
        assert [v.vin for v in vehicles] == [WRX.vin]
        assert vehicles[0].year == "2021"
        assert garage.session_vehicles("user-1") == vehicles

    def test_save_catalog_car(self, garage, fake_db, catalog_repo):
        car = catalog_repo.get_car_by_id(1)
        run(garage.save_catalog_car("user-1", car))
        assert fake_db.tables["saved_cars"][0]["doc_id"] == "1"


class TestSavedParts:
    def test_save_part_returns_refreshed_list(self, garage, catalog_repo):
        car = catalog_repo.get_car_by_id(1)
        parts = run(garage.save_part("user-1", car, car.parts[0]))
        assert [p.name for p in parts] == [car.parts[0].name]
        assert garage.part_store.get("user-1") == parts

    def test_remove_saved_part(self, garage, catalog_repo):
        car = catalog_repo.get_car_by_id(1)
        part = make_part("Cold Air Intake", PartCategory.ENGINE, 199.0)
        saved = run(garage.save_part("user-1", car, part))
        run(garage.remove_saved_part("user-1", saved[0].doc_id))
        assert garage.part_store.get("user-1") == []
        assert run(garage.load_saved_parts("user-1")) == []

    def test_remove_without_user_is_noop(self, garage, fake_db):
        run(garage.remove_saved_part(None, "123"))
        assert ("saved_parts", "delete") not in fake_db.calls


class TestContributionsAndSession:
    def test_anonymous_cannot_contribute(self, garage, fake_db):
        assert run(garage.submit_missing_info(WRX, {"engine_info": "H4"}, None)) is False
        assert "user_contributions" not in fake_db.tables

    def test_contribution_submitted(self, garage, fake_db):
        assert run(garage.submit_missing_info(WRX, {"engine_info": "H4"}, "user-1")) is True
        assert fake_db.tables["user_contributions"][0]["updates"] == {"engine_info": "H4"}

    def test_contribution_failure_returns_false(self, garage, fake_db):
        fake_db.failing_tables.add("user_contributions")
        assert run(garage.submit_missing_info(WRX, {}, "user-1")) is False

    def test_clear_session(self, garage, catalog_repo):
        car = catalog_repo.get_car_by_id(1)
        run(garage.save_vehicle_to_profile(WRX, None))
        run(garage.save_part("user-1", car, car.parts[0]))
        garage.clear_session(None)
        garage.clear_session("user-1")
        assert garage.session_vehicles(None) == []
        assert garage.part_store.get("user-1") == []
