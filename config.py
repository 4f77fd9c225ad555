# config.py
import os
from enum import StrEnum
from pathlib import Path
from typing import Final

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from api_client import DEFAULT_BASE_URL
from settings import SETTINGS_FILE


class LogLevel(StrEnum):
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class Settings(BaseModel):
    base_url: str = Field(default=DEFAULT_BASE_URL, validation_alias="AIRBAR_BASE_URL")
    poll_interval_secs: int = Field(default=60, ge=1, validation_alias="AIRBAR_POLL_INTERVAL_SECS")
    # URLSession usa 60 s por defecto; requests no tiene límite
    http_timeout_secs: float = Field(default=60.0, gt=0, validation_alias="AIRBAR_HTTP_TIMEOUT_SECS")
    log_level: LogLevel = Field(default=LogLevel.INFO, validation_alias="AIRBAR_LOG_LEVEL")
    settings_path: Path = Field(default=SETTINGS_FILE, validation_alias="AIRBAR_SETTINGS_PATH")


ENV_KEYS: Final[tuple[str, ...]] = (
    "AIRBAR_BASE_URL",
    "AIRBAR_POLL_INTERVAL_SECS",
    "AIRBAR_HTTP_TIMEOUT_SECS",
    "AIRBAR_LOG_LEVEL",
    "AIRBAR_SETTINGS_PATH",
)


def load_settings() -> Settings:
    # Carga .env si existe (no hace nada si falta)
    load_dotenv()
    data: dict[str, str] = {}
    for key in ENV_KEYS:
        if key in os.environ:
            data[key] = os.environ[key]

    if "AIRBAR_LOG_LEVEL" in data:
        data["AIRBAR_LOG_LEVEL"] = data["AIRBAR_LOG_LEVEL"].upper()
    if "AIRBAR_SETTINGS_PATH" in data:
        data["AIRBAR_SETTINGS_PATH"] = str(Path(data["AIRBAR_SETTINGS_PATH"]).expanduser())

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        bad = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise RuntimeError(f"Invalid configuration: {', '.join(bad)}") from e
