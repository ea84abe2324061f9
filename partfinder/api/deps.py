"""FastAPI dependency injection.

Every service is a lazily-built process singleton; tests swap them out via
``app.dependency_overrides``.
"""

from functools import lru_cache

from openai import OpenAI
from slowapi import Limiter
from slowapi.util import get_remote_address

from partfinder.config import get_settings
from partfinder.services.catalog import CatalogRepository
from partfinder.services.catalog_cache import CatalogCache
from partfinder.services.db import get_supabase_client
from partfinder.services.diagnose import DiagnoseService
from partfinder.services.garage import GarageService
from partfinder.services.nhtsa import NHTSAClient
from partfinder.services.profiles import (
    SavedCarsRepository,
    SavedPartsRepository,
    UserProfileRepository,
)

limiter = Limiter(key_func=get_remote_address)


def external_rate_limit() -> str:
    """Rate limit applied to endpoints that call third-party APIs."""
    return get_settings().rate_limit


@lru_cache
def get_nhtsa() -> NHTSAClient:
    return NHTSAClient()


@lru_cache
def get_catalog() -> CatalogRepository:
    settings = get_settings()
    return CatalogRepository(
        get_supabase_client(),
        settings.static_catalog_path,
        CatalogCache(ttl=settings.catalog_cache_ttl),
    )


@lru_cache
def get_user_profiles() -> UserProfileRepository:
    return UserProfileRepository(get_supabase_client())


@lru_cache
def get_garage() -> GarageService:
    client = get_supabase_client()
    return GarageService(
        catalog=get_catalog(),
        nhtsa=get_nhtsa(),
        saved_cars=SavedCarsRepository(client),
        saved_parts=SavedPartsRepository(client),
    )


@lru_cache
def get_diagnose() -> DiagnoseService:
    settings = get_settings()
    client = OpenAI(api_key=settings.openai_api_key) if settings.openai_api_key else None
    return DiagnoseService(
        client,
        model=settings.openai_model,
        max_tokens=settings.openai_max_tokens,
    )
