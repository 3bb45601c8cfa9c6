import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
TELEMETRY_FORMAT = "%(asctime)s %(message)s"

# Third-party loggers opened up by INVESTEASE_DEBUG_HTTP=1.
HTTP_DEBUG_LOGGERS = ("httpx", "openai.agents", "uvicorn.access")


def _level(raw: Optional[str], default: str) -> str:
    candidate = (raw or default).strip().upper()
    if not isinstance(logging.getLevelName(candidate), int):
        return default
    return candidate


def build_logging_config(
    level: Optional[str] = None,
    *,
    telemetry_level: Optional[str] = None,
    debug_http: Optional[bool] = None,
) -> Dict[str, Any]:
    """Assemble the dictConfig payload, falling back to INVESTEASE_* variables."""
    root_level = _level(level or os.getenv("INVESTEASE_LOG_LEVEL"), "INFO")
    events_level = _level(telemetry_level or os.getenv("INVESTEASE_TELEMETRY_LOG_LEVEL"), root_level)
    if debug_http is None:
        debug_http = os.getenv("INVESTEASE_DEBUG_HTTP", "0") == "1"

    loggers: Dict[str, Any] = {
        "investease.telemetry": {
            "handlers": ["telemetry"],
            "level": events_level,
            "propagate": False,
        },
    }
    if debug_http:
        for name in HTTP_DEBUG_LOGGERS:
            loggers[name] = {"level": "DEBUG"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT},
            "telemetry": {"format": TELEMETRY_FORMAT},
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default"},
            "telemetry": {"class": "logging.StreamHandler", "formatter": "telemetry"},
        },
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": root_level},
    }


def configure_logging(level: Optional[str] = None) -> None:
    dictConfig(build_logging_config(level))
