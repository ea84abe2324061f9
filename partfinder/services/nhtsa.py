"""Async client for the NHTSA vPIC API.

No authentication required. All endpoints return JSON with ?format=json.
"""

import time

import httpx

from partfinder.config import get_settings
from partfinder.core.logging import log_external_call
from partfinder.models.records import DecodedVinResult

# DecodeVinValues result keys -> DecodedVinResult fields
_VIN_FIELDS = {
    "make": "Make",
    "model": "Model",
    "year": "ModelYear",
    "vehicle_type": "VehicleType",
    "manufacturer": "Manufacturer",
    "plant_country": "PlantCountry",
    "engine_info": "EngineCylinders",
}


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class NHTSAClient:
    """Async client for the NHTSA vPIC API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.nhtsa_base_url).rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.nhtsa_timeout,
            transport=transport,
        )

    async def decode_vin(self, vin: str) -> DecodedVinResult | None:
        """Decode a VIN. Returns None when vPIC has no result row for it."""
        vin = vin.strip().upper()
        url = f"{self.base_url}/vehicles/DecodeVinValues/{vin}"
        start = time.time()
        try:
            resp = await self.client.get(url, params={"format": "json"})
            resp.raise_for_status()
        except httpx.HTTPError:
            log_external_call("nhtsa", "decode_vin", False, (time.time() - start) * 1000)
            raise
        log_external_call("nhtsa", "decode_vin", True, (time.time() - start) * 1000)

        results = resp.json().get("Results") or []
        if not results or not isinstance(results[0], dict):
            return None
        row = results[0]
        return DecodedVinResult(
            vin=vin,
            **{field: _optional_str(row.get(key)) for field, key in _VIN_FIELDS.items()},
        )

    async def get_all_makes(self) -> list[dict]:
        """Get all vehicle makes."""
        url = f"{self.base_url}/vehicles/GetAllMakes"
        resp = await self.client.get(url, params={"format": "json"})
        resp.raise_for_status()
        return resp.json().get("Results", [])

    async def get_models_for_make_year(self, make: str, year: int) -> list[dict]:
        """Get models for a specific make and year."""
        url = (
            f"{self.base_url}/vehicles/GetModelsForMakeYear"
            f"/make/{make}/modelyear/{year}"
        )
        resp = await self.client.get(url, params={"format": "json"})
        resp.raise_for_status()
        return resp.json().get("Results", [])

    async def close(self) -> None:
        await self.client.aclose()
