#!/usr/bin/env python
"""Upload the bundled static catalog into the document store's ``cars`` table."""

import sys
from pathlib import Path

from partfinder.config import get_settings
from partfinder.models.records import StaticCatalogFile
from partfinder.services.catalog import CARS_TABLE
from partfinder.services.db import get_supabase_client, utc_timestamp
from partfinder.services.normalizer import normalize_catalog


def main():
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else get_settings().static_catalog_path

    if not path.exists():
        print(f"Error: catalog file not found at {path}")
        sys.exit(1)

    print(f"Loading catalog from {path}...")
    catalog = StaticCatalogFile.model_validate_json(path.read_text(encoding="utf-8"))
    vehicles = normalize_catalog(catalog.cars)

    rows = [
        {
            "id": v.id,
            "make": v.make,
            "model": v.model,
            "year": v.year,
            "image_key": v.image_key,
            "parts": [
                {
                    "name": p.name,
                    "category": p.category.value,
                    "price": p.price,
                    "inStock": p.in_stock,
                }
                for p in v.parts
            ],
            "added_from_vin": False,
            "updated_at": utc_timestamp(),
        }
        for v in vehicles
    ]
    get_supabase_client().table(CARS_TABLE).upsert(rows).execute()
    print(f"Successfully seeded {len(rows)} cars into '{CARS_TABLE}'")


if __name__ == "__main__":
    main()
