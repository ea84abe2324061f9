import os

import uvicorn

from partfinder.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    # Session stores and the catalog cache are per process
    uvicorn.run(
        "partfinder.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        workers=int(os.environ.get("WEB_CONCURRENCY", 1)),
        log_level=settings.log_level.lower(),
        reload=os.environ.get("RELOAD", "").lower() == "true",
    )
