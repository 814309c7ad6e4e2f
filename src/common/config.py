import os
from enum import StrEnum
from typing import Final

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LogLevel(StrEnum):
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class StoreBackend(StrEnum):
    DYNAMODB = "dynamodb"
    MEMORY = "memory"


class Settings(BaseModel):
    records_table: str = Field(default="climate_records", validation_alias="CLIMATE_RECORDS_TABLE")
    store_backend: StoreBackend = Field(default=StoreBackend.DYNAMODB, validation_alias="STORE_BACKEND")
    log_level: LogLevel = Field(default=LogLevel.INFO, validation_alias="LOG_LEVEL")


ENV_KEYS: Final[tuple[str, ...]] = (
    "CLIMATE_RECORDS_TABLE",
    "STORE_BACKEND",
    "LOG_LEVEL",
)


def load_settings() -> Settings:
    # Load .env if present (does nothing if file missing)
    load_dotenv()
    data: dict[str, str] = {}
    for key in ENV_KEYS:
        if key in os.environ:
            data[key] = os.environ[key]
    if "STORE_BACKEND" in data:
        data["STORE_BACKEND"] = data["STORE_BACKEND"].lower()
    if "LOG_LEVEL" in data:
        data["LOG_LEVEL"] = data["LOG_LEVEL"].upper()
    return Settings.model_validate(data)
