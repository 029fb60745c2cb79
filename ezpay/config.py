"""
ezpay/config.py

Runtime settings for the EZPay backend, read from the environment
(and an optional .env file) once at import time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(), override=False)

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Runtime settings shared across the backend application."""

    def __init__(self) -> None:
        self.title: str = "EZPay Banking API"
        self.version: str = "1.0.0"
        self.database_url: str = os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{BASE_DIR / 'ezpay.db'}")
        self.database_echo: bool = _env_bool("DATABASE_ECHO", False)
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_dir: Path = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))
        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:4200").split(",")
            if origin.strip()
        ]
        # bcrypt cost factor (log2 of the work rounds)
        self.pin_hash_rounds: int = int(os.getenv("PIN_HASH_ROUNDS", "12"))
        # A uniform draw strictly above this value settles a mock transfer.
        self.mock_transfer_success_threshold: float = float(
            os.getenv("MOCK_TRANSFER_SUCCESS_THRESHOLD", "0.1")
        )
        self.api_host: str = os.getenv("API_HOST", "0.0.0.0")
        self.api_port: int = int(os.getenv("API_PORT", "8080"))


settings = Settings()
