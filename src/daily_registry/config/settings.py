from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[3]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

DOCUMENTS_PATH = Path(os.path.expanduser("~")) / "Documents"
APP_NAME = os.getenv("APP_NAME", "Daily Registry")

log = logging.getLogger(__name__)


def _normalize_base_url(raw: str) -> str:
    return raw.strip().rstrip("/") + "/"


def _app_data_dir() -> Path:
    return Path(os.getenv("APP_DATA_DIR", str(DOCUMENTS_PATH / APP_NAME))).expanduser()


@dataclass(frozen=True)
class Settings:
    app_name: str = APP_NAME
    api_base_url: str = _normalize_base_url(os.getenv("REGISTRY_API_URL", "http://localhost:5000/api"))
    api_token: str | None = os.getenv("REGISTRY_API_TOKEN") or None
    request_timeout: float = float(os.getenv("REGISTRY_REQUEST_TIMEOUT", "10"))
    database_path: Path = Path(
        os.getenv("DATABASE_PATH") or str(_app_data_dir() / "registry.db")
    )
    default_status: str = os.getenv("DEFAULT_ATTENDANCE_STATUS", "Present")
    missing_status: str = os.getenv("MISSING_ATTENDANCE_STATUS", "Absent")
    time_placeholder: str = os.getenv("TIME_PLACEHOLDER", "—")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __repr__(self) -> str:
        return (
            f"Settings(app_name={self.app_name}, "
            f"api_base_url={self.api_base_url}, "
            f"api_token={'set' if self.api_token else 'unset'}, "
            f"request_timeout={self.request_timeout}, "
            f"database_path={self.database_path}, "
            f"default_status={self.default_status}, "
            f"missing_status={self.missing_status}, "
            f"time_placeholder={self.time_placeholder}, "
            f"log_level={self.log_level})"
        )


settings = Settings()


def refresh_settings() -> Settings:
    """Rebuild the settings object from the current environment."""

    global settings  # noqa: PLW0603 - module-level singleton

    load_dotenv(ENV_PATH, override=True)
    settings = Settings(
        app_name=os.getenv("APP_NAME", APP_NAME),
        api_base_url=_normalize_base_url(os.getenv("REGISTRY_API_URL", "http://localhost:5000/api")),
        api_token=os.getenv("REGISTRY_API_TOKEN") or None,
        request_timeout=float(os.getenv("REGISTRY_REQUEST_TIMEOUT", "10")),
        database_path=Path(os.getenv("DATABASE_PATH") or str(_app_data_dir() / "registry.db")),
        default_status=os.getenv("DEFAULT_ATTENDANCE_STATUS", "Present"),
        missing_status=os.getenv("MISSING_ATTENDANCE_STATUS", "Absent"),
        time_placeholder=os.getenv("TIME_PLACEHOLDER", "—"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
    log.debug("Settings refreshed: %r", settings)
    return settings


def configure_logging(level: str | int | None = None) -> None:
    """Install a root handler once; later calls only adjust the level."""

    resolved = level if level is not None else settings.log_level
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=resolved,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    root.setLevel(resolved)
