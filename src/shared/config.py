"""Configuration management for the DeFiLlama protocol sync."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


class Config:
    """Application configuration."""

    # Project paths
    ROOT_DIR = Path(__file__).parent.parent.parent
    DATA_DIR = ROOT_DIR / "data"
    LOGS_DIR = ROOT_DIR / "logs"

    # Database
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
    DB_NAME: str = os.getenv("DB_NAME", "defillama")
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "postgres")

    # DeFiLlama API
    DEFILLAMA_BASE_URL: str = os.getenv("DEFILLAMA_BASE_URL", "https://api.llama.fi")
    DEFILLAMA_REQUEST_DELAY: float = float(os.getenv("DEFILLAMA_REQUEST_DELAY", "0.5"))
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))

    # Sync engine
    SYNC_REFRESH_INTERVAL_HOURS: float = float(os.getenv("SYNC_REFRESH_INTERVAL_HOURS", "24"))
    SYNC_RETRY_BASE_DELAY: float = float(os.getenv("SYNC_RETRY_BASE_DELAY", "1.0"))
    SYNC_RETRY_MAX_DELAY: float = float(os.getenv("SYNC_RETRY_MAX_DELAY", "300"))
    SYNC_MAX_ATTEMPTS: Optional[int] = _optional_int("SYNC_MAX_ATTEMPTS")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.DEFILLAMA_BASE_URL:
            raise ValueError("DEFILLAMA_BASE_URL not set in environment")
        if cls.SYNC_REFRESH_INTERVAL_HOURS < 0:
            raise ValueError("SYNC_REFRESH_INTERVAL_HOURS must be non-negative")
        if cls.SYNC_MAX_ATTEMPTS is not None and cls.SYNC_MAX_ATTEMPTS < 1:
            raise ValueError("SYNC_MAX_ATTEMPTS must be at least 1 when set")

    @property
    def database_url(self) -> str:
        """Construct database URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


config = Config()
