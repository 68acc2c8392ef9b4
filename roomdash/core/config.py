from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    BROADCAST_INTERVAL_SECONDS: float = Field(1.0, gt=0)
    TOP_ROOMS_LIMIT: int = Field(5, ge=1)

    STATIC_DIR: str = str(PACKAGE_DIR / "static")   # dashboard page + client script
    STATIC_BASE_URL: str = "/static"                # URL prefix to serve assets from


settings = Settings()
