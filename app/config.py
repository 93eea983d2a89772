# app/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

class Settings(BaseSettings):
    ENV: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    DATA_DIR: Path = Path("data")  # where collection files (.jsonl) live
    PRODUCTS_FILE: str = "products.jsonl"
    LOCK_TIMEOUT: float = 10.0  # seconds to wait for a collection lock
    LOG_LEVEL: str = "INFO"

    # Example .env:
    # PORT=8080
    # DATA_DIR=./data
    # LOG_LEVEL=DEBUG

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
