"""FastAPI route definitions for the parts catalog API."""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from partfinder.api.deps import (
    external_rate_limit,
    get_catalog,
    get_diagnose,
    get_garage,
    get_nhtsa,
    get_user_profiles,
    limiter,
)
from partfinder.core.enums import MatchTier, PartCategory
from partfinder.core.logging import log_error
from partfinder.models.profile import SavedPart
from partfinder.models.records import DecodedVinResult
from partfinder.models.vehicle import Part, Vehicle
from partfinder.services.catalog import CatalogRepository
from partfinder.services.diagnose import (
    DiagnoseService,
    DiagnosisUnavailableError,
    Exchange,
)
from partfinder.services.garage import GarageService
from partfinder.services.nhtsa import NHTSAClient
from partfinder.services.profiles import UserProfileRepository

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / Response Models
# ---------------------------------------------------------------------------


class VINDecodeRequest(BaseModel):
    vin: str


class CompatiblePartsResponse(BaseModel):
    make: str
    model: str
    year: int
    tier: MatchTier
    parts: list[Part]


class CreateUserRequest(BaseModel):
    uid: str
    email: str


class SaveCatalogCarRequest(BaseModel):
    car_id: int


class SavePartRequest(BaseModel):
    car_id: int
    part_name: str


class ContributionRequest(BaseModel):
    user_id: str
    vehicle: DecodedVinResult
    updates: dict[str, str]


class DiagnoseRequest(BaseModel):
    prompt: str
    history: list[Exchange] = []


def _require_car(catalog: CatalogRepository, car_id: int) -> Vehicle:
    car = catalog.get_car_by_id(car_id)
    if car is None:
        raise HTTPException(status_code=404, detail=f"Car {car_id} not found")
    return car


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@router.get("/cars", response_model=list[Vehicle])
def list_cars(
    q: str = "",
    make: Optional[str] = None,
    year: Optional[int] = None,
    catalog: CatalogRepository = Depends(get_catalog),
):
    """Browse the catalog; ``q`` matches make or model."""
    cars = catalog.search_cars(q)
    if make:
        cars = [c for c in cars if c.make.casefold() == make.casefold()]
    if year is not None:
        cars = [c for c in cars if c.year == year]
    return cars


@router.get("/cars/{car_id}", response_model=Vehicle)
def get_car(car_id: int, catalog: CatalogRepository = Depends(get_catalog)):
    return _require_car(catalog, car_id)


@router.get("/cars/{car_id}/parts", response_model=list[Part])
def get_car_parts(
    car_id: int,
    category: Optional[str] = None,
    in_stock: bool = False,
    catalog: CatalogRepository = Depends(get_catalog),
):
    """Parts for one car, optionally filtered by category and stock."""
    car = _require_car(catalog, car_id)
    parts = list(car.parts)
    if category:
        if not PartCategory.is_known(category):
            raise HTTPException(status_code=422, detail=f"Unknown category: {category}")
        wanted = PartCategory.from_string(category)
        parts = [p for p in parts if p.category == wanted]
    if in_stock:
        parts = [p for p in parts if p.in_stock]
    return parts


@router.get("/parts/compatible", response_model=CompatiblePartsResponse)
def compatible_parts(
    make: str,
    model: str,
    year: int,
    catalog: CatalogRepository = Depends(get_catalog),
):
    """Best-effort parts for a vehicle that may not be in the catalog.

    An empty ``parts`` list with tier ``none`` is a normal answer, not an error.
    """
    result = catalog.resolve_parts(make, model, year)
    return CompatiblePartsResponse(
        make=make, model=model, year=year, tier=result.tier, parts=result.parts
    )


# ---------------------------------------------------------------------------
# VIN Decode
# ---------------------------------------------------------------------------


async def _decode_or_fail(garage: GarageService, vin: str) -> DecodedVinResult:
    try:
        decoded = await garage.decode_vin(vin)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if decoded is None:
        raise HTTPException(
            status_code=502,
            detail="Failed to decode VIN. Please check and try again.",
        )
    return decoded


@router.post("/vin/decode", response_model=DecodedVinResult)
@limiter.limit(external_rate_limit)
async def decode_vin_endpoint(
    request: Request,
    req: VINDecodeRequest,
    garage: GarageService = Depends(get_garage),
):
    """Decode a VIN using NHTSA vPIC and add the vehicle to the catalog."""
    return await _decode_or_fail(garage, req.vin)


@router.get("/vin/{vin}/car", response_model=Vehicle)
@limiter.limit(external_rate_limit)
async def car_for_vin(
    request: Request,
    vin: str,
    garage: GarageService = Depends(get_garage),
):
    """Catalog car for a VIN, or a synthesized one carrying compatible parts."""
    decoded = await _decode_or_fail(garage, vin)
    return await garage.get_car_from_vehicle(decoded)


@router.get("/makes")
@limiter.limit(external_rate_limit)
async def get_makes(request: Request, nhtsa: NHTSAClient = Depends(get_nhtsa)):
    """All vehicle makes known to NHTSA."""
    try:
        makes = await nhtsa.get_all_makes()
    except httpx.HTTPError as e:
        log_error("NHTSA makes lookup failed", e)
        raise HTTPException(status_code=502, detail="NHTSA lookup failed")
    return {"makes": [m.get("Make_Name") for m in makes]}


@router.get("/models/{make}/{year}")
@limiter.limit(external_rate_limit)
async def get_models(
    request: Request,
    make: str,
    year: int,
    nhtsa: NHTSAClient = Depends(get_nhtsa),
):
    """Models for a make and year from NHTSA."""
    try:
        models = await nhtsa.get_models_for_make_year(make, year)
    except httpx.HTTPError as e:
        log_error("NHTSA models lookup failed", e, make=make, year=year)
        raise HTTPException(status_code=502, detail="NHTSA lookup failed")
    return {"models": [m.get("Model_Name") for m in models]}


# ---------------------------------------------------------------------------
# Users / Saved items
# ---------------------------------------------------------------------------


@router.post("/users", status_code=201)
def create_user(
    req: CreateUserRequest,
    profiles: UserProfileRepository = Depends(get_user_profiles),
):
    try:
        profiles.initialize_user_structure(req.uid, req.email)
    except Exception as e:
        log_error("Error initializing user", e, uid=req.uid)
        raise HTTPException(status_code=502, detail="Could not create user profile")
    return {"uid": req.uid}


@router.get("/users/{uid}/saved-cars", response_model=list[DecodedVinResult])
async def list_saved_cars(uid: str, garage: GarageService = Depends(get_garage)):
    return await garage.load_saved_vehicles(uid)


@router.post("/users/{uid}/saved-cars", status_code=201)
async def save_catalog_car(
    uid: str,
    req: SaveCatalogCarRequest,
    garage: GarageService = Depends(get_garage),
    catalog: CatalogRepository = Depends(get_catalog),
):
    car = _require_car(catalog, req.car_id)
    try:
        await garage.save_catalog_car(uid, car)
    except Exception as e:
        log_error("Error saving car", e, uid=uid, car_id=req.car_id)
        raise HTTPException(status_code=502, detail="Could not save car")
    return {"doc_id": str(car.id)}


@router.post(
    "/users/{uid}/saved-cars/vin",
    status_code=201,
    response_model=list[DecodedVinResult],
)
async def save_vin_vehicle(
    uid: str,
    vehicle: DecodedVinResult,
    garage: GarageService = Depends(get_garage),
):
    await garage.save_vehicle_to_profile(vehicle, uid)
    return garage.session_vehicles(uid)


@router.get("/users/{uid}/saved-parts", response_model=list[SavedPart])
async def list_saved_parts(uid: str, garage: GarageService = Depends(get_garage)):
    return await garage.load_saved_parts(uid)


@router.post(
    "/users/{uid}/saved-parts",
    status_code=201,
    response_model=list[SavedPart],
)
async def save_part(
    uid: str,
    req: SavePartRequest,
    garage: GarageService = Depends(get_garage),
    catalog: CatalogRepository = Depends(get_catalog),
):
    car = _require_car(catalog, req.car_id)
    part = next((p for p in car.parts if p.name == req.part_name), None)
    if part is None:
        raise HTTPException(
            status_code=404,
            detail=f"Part {req.part_name!r} not found on car {req.car_id}",
        )
    try:
        return await garage.save_part(uid, car, part)
    except Exception as e:
        log_error("Error saving part", e, uid=uid, car_id=req.car_id)
        raise HTTPException(status_code=502, detail="Could not save part")


@router.delete("/users/{uid}/saved-parts/{doc_id}", status_code=204)
async def remove_saved_part(
    uid: str,
    doc_id: str,
    garage: GarageService = Depends(get_garage),
):
    await garage.remove_saved_part(uid, doc_id)
    return Response(status_code=204)


@router.post("/contributions", status_code=201)
async def submit_contribution(
    req: ContributionRequest,
    garage: GarageService = Depends(get_garage),
):
    """Submit missing-info corrections for a decoded vehicle."""
    ok = await garage.submit_missing_info(req.vehicle, req.updates, req.user_id)
    if not ok:
        raise HTTPException(status_code=502, detail="Could not submit contribution")
    return {"status": "pending"}


# ---------------------------------------------------------------------------
# Diagnosis
# ---------------------------------------------------------------------------


@router.post("/diagnose", response_model=Exchange)
@limiter.limit(external_rate_limit)
def diagnose(
    request: Request,
    req: DiagnoseRequest,
    service: DiagnoseService = Depends(get_diagnose),
):
    """Describe a vehicle issue and get likely causes and next steps."""
    try:
        return service.submit(req.prompt, req.history)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DiagnosisUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        log_error("Diagnosis request failed", e)
        raise HTTPException(status_code=502, detail=f"Request failed: {e}")
