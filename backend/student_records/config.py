"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent
DEFAULT_DB_URL = f"sqlite:///{BASE / 'students.db'}"


class Settings:
    ENV: str
    DATABASE_URL: str
    SQL_ECHO: bool
    MAX_UPLOAD_BYTES: int
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    BATCH_SUBMIT_INVALID: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DB_URL)
        self.SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))  # 10 MB default
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        # Batch writes historically submit every row, even ones that failed validation.
        self.BATCH_SUBMIT_INVALID = os.getenv("BATCH_SUBMIT_INVALID", "true").lower() == "true"
        self._validate()

    def _validate(self):
        if self.MAX_UPLOAD_BYTES <= 0:
            raise RuntimeError("MAX_UPLOAD_BYTES must be a positive number of bytes")
        if self.ENV != "dev" and self.DATABASE_URL == DEFAULT_DB_URL:
            raise RuntimeError("DATABASE_URL must be set explicitly in non-dev environments")


settings = Settings()
