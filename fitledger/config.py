# -*- coding: utf-8 -*-
from __future__ import annotations

import os
from datetime import tzinfo
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo


class Settings:
    """Centralized configuration for the ledger backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent

        # ---- Ledger storage ----
        self.storage_backend: str = (os.environ.get("FITLEDGER_STORAGE") or "file").strip().lower()
        self.data_root: Path = Path(
            os.environ.get("FITLEDGER_DATA_ROOT") or (repo_root / "data")
        ).expanduser()
        # Empty means "host local time zone".
        self.timezone_name: str = (os.environ.get("FITLEDGER_TZ") or "").strip()
        self.water_goal_ml: float = float(os.environ.get("FITLEDGER_WATER_GOAL_ML") or "2000")

        # ---- Server ----
        self.log_level: str = (os.environ.get("FITLEDGER_LOG_LEVEL") or "INFO").upper()
        self.host: str = os.environ.get("FITLEDGER_HOST") or "127.0.0.1"
        self.port: int = int(os.environ.get("FITLEDGER_PORT") or "8000")

        # ---- Text-generation collaborator (OpenAI-compatible) ----
        self.coach_api_key: str | None = os.environ.get("COACH_API_KEY")
        self.coach_base_url: str = os.environ.get(
            "COACH_BASE_URL", "https://api.groq.com/openai/v1"
        )
        self.coach_model: str = os.environ.get(
            "COACH_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct"
        )
        self.coach_timeout: float = float(os.environ.get("COACH_TIMEOUT", "30"))
        self.coach_max_tokens: int = int(os.environ.get("COACH_MAX_TOKENS", "400"))
        self.coach_temperature: float = float(os.environ.get("COACH_TEMPERATURE", "0.7"))

        cors = os.environ.get("FITLEDGER_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]

    def local_zone(self) -> Optional[tzinfo]:
        """Zone used for day-bucketing; ``None`` means the host's local zone."""
        if not self.timezone_name:
            return None
        return ZoneInfo(self.timezone_name)


settings = Settings()
