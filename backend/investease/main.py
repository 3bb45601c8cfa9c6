import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .coach_routes import router as coach_router
from .config import Settings, get_settings
from .logging_config import configure_logging
from .studio_routes import router as studio_router


configure_logging()
logger = logging.getLogger(__name__)

settings_snapshot = get_settings()
app = FastAPI(title="Investease Learning Studio", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings_snapshot.app_url],
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("Backend starting for app URL: %s", settings_snapshot.app_url)
logger.info("OpenAI API key configured: %s", settings_snapshot.coaching_enabled)

app.include_router(studio_router)
app.include_router(coach_router)


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {"status": "ok", "coaching_enabled": settings.coaching_enabled}
