from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys


DEFAULT_API_URL = "http://localhost:8090"
DEFAULT_SIZE_INCREMENTS = {"S": 0.0, "M": 10.0, "L": 20.0, "XL": 30.0}


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    settings_db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = DEFAULT_API_URL
    token: str | None = None
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "ApiSettings":
        url = (os.environ.get("PSM_API_URL") or os.environ.get("PSM_API_BASE_URL") or "").strip()
        timeout_raw = (os.environ.get("PSM_API_TIMEOUT") or "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else 10.0
        except ValueError:
            timeout = 10.0
        return cls(
            base_url=(url or DEFAULT_API_URL).rstrip("/"),
            token=(os.environ.get("PSM_API_TOKEN") or "").strip() or None,
            timeout=timeout if timeout > 0 else 10.0,
        )


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "PetSupplyManager") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "settings.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, settings_db_path=db, logs_dir=logs)
