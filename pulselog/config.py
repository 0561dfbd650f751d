from __future__ import annotations

import os
from datetime import tzinfo
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo


class Settings:
    """Centralized configuration for the heart-rate session service."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        # ---- Health store ----
        self.data_root: Path = Path(
            os.environ.get("PULSELOG_DATA_ROOT") or data_root_default
        ).expanduser()
        self.store_backend: str = (
            os.environ.get("PULSELOG_STORE_BACKEND") or "file"
        ).strip().lower()
        self.store_url: str = os.environ.get(
            "PULSELOG_STORE_URL", "http://127.0.0.1:8000"
        )
        self.store_timeout: float = float(os.environ.get("PULSELOG_STORE_TIMEOUT", "30"))
        # Local stores have no authorization UI of their own; when enabled a
        # permission request is granted immediately.
        self.auto_grant: bool = (os.environ.get("PULSELOG_AUTO_GRANT") or "").strip() in {"1", "true", "True"}

        # ---- Session ----
        # Empty means "use the operating system's local zone".
        self.timezone_name: str = (os.environ.get("PULSELOG_TIMEZONE") or "").strip()
        self.history_hours: int = int(os.environ.get("PULSELOG_HISTORY_HOURS") or "24")
        self.health_settings_url: str = os.environ.get(
            "PULSELOG_SETTINGS_URL", "http://127.0.0.1:8000/api/docs"
        )

        cors = os.environ.get("PULSELOG_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]

    @property
    def local_timezone(self) -> Optional[tzinfo]:
        """Configured zone, or ``None`` to fall back to the system zone."""
        if not self.timezone_name:
            return None
        return ZoneInfo(self.timezone_name)


settings = Settings()
