"""Application settings and validation."""

import os
from pathlib import Path
from typing import Optional

BASE = Path(__file__).resolve().parent.parent
DEFAULT_DB_URL = f"sqlite:///{BASE / 'pmb.db'}"


class Settings:
    ENV: str
    DATABASE_URL: str
    LOG_LEVEL: str
    API_KEY_PREFIX: str
    ADMIN_TOKEN: Optional[str]
    ALLOW_DEV_CORS: bool
    DEFAULT_PAGE_LIMIT: int

    def __init__(self, **overrides):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or DEFAULT_DB_URL
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.API_KEY_PREFIX = os.getenv("API_KEY_PREFIX", "pmb_")
        self.ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "").strip() or None
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
        # explicit values win over the environment (tests, scripts)
        for name, value in overrides.items():
            if not hasattr(self, name):
                raise TypeError(f"unknown setting: {name}")
            setattr(self, name, value)
        self._validate()

    @property
    def is_production(self) -> bool:
        return self.ENV in ("prod", "production")

    def _validate(self):
        if self.ENV != "dev" and self.ENV != "test" and self.DATABASE_URL == DEFAULT_DB_URL:
            raise RuntimeError("DATABASE_URL must be set explicitly in non-dev environments")
        if self.DEFAULT_PAGE_LIMIT < 1:
            raise RuntimeError("DEFAULT_PAGE_LIMIT must be >= 1")
