"""Application settings and validation."""

import os
from typing import List, Optional


class Settings:
    ENV: str
    HOST: str
    PORT: int
    DATABASE_URL: Optional[str]
    DB_ECHO: bool
    LOG_LEVEL: str
    CORS_ORIGINS: List[str]

    def __init__(self):
        self.ENV = os.getenv("ENV", "production").lower()
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self._raw_port = os.getenv("PORT", "3000")
        # no fallback: a missing URL leaves the connector disconnected
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or None
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        self._validate()

    @property
    def is_development(self) -> bool:
        return self.ENV in ("dev", "development")

    def _validate(self):
        try:
            self.PORT = int(self._raw_port)
        except ValueError:
            raise RuntimeError(f"PORT must be an integer, got {self._raw_port!r}")
        if self.PORT <= 0:
            raise RuntimeError(f"PORT must be positive, got {self.PORT}")


settings = Settings()
