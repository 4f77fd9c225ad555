# api_client.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from models import HISTORY_WINDOW, CurrentReading, HistorySample

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.airgradient.com/public/api/v1"
QUERY_TIME_FORMAT = "%Y%m%dT%H%M%SZ"


class AirBarError(Exception):
    """Error base de una consulta a la API."""


class ConfigError(AirBarError):
    """Falta el token o la ubicación; no se llega a hacer la petición."""


class NetworkError(AirBarError):
    """Fallo de transporte o respuesta HTTP de error."""


class DecodeError(AirBarError):
    """La respuesta no tiene la forma esperada."""


# ==================== ESQUEMAS DE LA API ====================

class CurrentMeasure(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True, allow_inf_nan=False)

    temperature_c: Optional[float] = Field(default=None, validation_alias="atmp")
    humidity_pct: Optional[float] = Field(default=None, validation_alias="rhum")
    co2_ppm: Optional[float] = Field(default=None, validation_alias="rco2_corrected")
    pm1: Optional[float] = Field(default=None, validation_alias="pm01_corrected")
    pm25: Optional[float] = Field(default=None, validation_alias="pm02_corrected")
    pm10: Optional[float] = Field(default=None, validation_alias="pm10_corrected")
    nox_index: Optional[float] = Field(default=None, validation_alias="noxIndex")

    def to_reading(self) -> CurrentReading:
        return CurrentReading(
            temperature_c=self.temperature_c,
            humidity_pct=self.humidity_pct,
            co2_ppm=self.co2_ppm,
            pm1=self.pm1,
            pm25=self.pm25,
            pm10=self.pm10,
            nox_index=self.nox_index,
        )


class PastMeasure(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True, allow_inf_nan=False)

    timestamp: datetime
    pm25: Optional[float] = Field(default=None, validation_alias="pm02_corrected")
    co2: Optional[float] = Field(default=None, validation_alias="rco2_corrected")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_iso(cls, value: Any) -> datetime:
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 string")
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    def to_sample(self) -> HistorySample:
        return HistorySample(timestamp=self.timestamp, pm25=self.pm25, co2=self.co2)


def format_query_time(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime(QUERY_TIME_FORMAT)


def decode_current(payload: Any) -> CurrentReading:
    if not isinstance(payload, list):
        raise DecodeError(f"expected a JSON array, got {type(payload).__name__}")
    if not payload:
        raise DecodeError("current measures response is empty")
    first = payload[0]
    if not isinstance(first, dict):
        raise DecodeError(f"expected an object as first element, got {type(first).__name__}")
    try:
        return CurrentMeasure.model_validate(first).to_reading()
    except ValidationError as exc:
        raise DecodeError(f"invalid current measure: {exc.error_count()} field error(s)") from exc


def decode_history(payload: Any) -> Tuple[List[HistorySample], List[str]]:
    """
    Decodifica las filas del histórico una a una.

    Devuelve (muestras, diagnósticos). Una fila sin timestamp válido o sin
    pm2.5 ni CO2 se descarta y queda anotada en los diagnósticos; nunca
    hace fallar la respuesta completa.
    """
    if not isinstance(payload, list):
        raise DecodeError(f"expected a JSON array, got {type(payload).__name__}")

    samples: List[HistorySample] = []
    diagnostics: List[str] = []
    for i, row in enumerate(payload):
        if not isinstance(row, dict):
            diagnostics.append(f"row {i}: not an object")
            continue
        try:
            measure = PastMeasure.model_validate(row)
        except ValidationError as exc:
            fields = ",".join(str(e["loc"][0]) for e in exc.errors() if e["loc"])
            diagnostics.append(f"row {i}: invalid {fields or 'row'}")
            continue
        if measure.pm25 is None and measure.co2 is None:
            diagnostics.append(f"row {i}: no pm2.5 or co2 value")
            continue
        samples.append(measure.to_sample())
    return samples, diagnostics


class AirGradientClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, path: str, params: Dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(
                url,
                params=params,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
            resp.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "?"
            raise NetworkError(f"GET {path} failed: HTTP {status}") from exc
        except requests.RequestException as exc:
            # el texto de requests lleva la URL completa, con el token
            raise NetworkError(f"GET {path} failed: {type(exc).__name__}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(f"GET {path} returned invalid JSON") from exc

    def fetch_current(self, token: str) -> CurrentReading:
        if not token:
            raise ConfigError("API token is not configured")
        payload = self._get_json("/locations/measures/current", {"token": token})
        return decode_current(payload)

    def fetch_history(
        self,
        token: str,
        location_id: str,
        now: Optional[datetime] = None,
        window: timedelta = HISTORY_WINDOW,
    ) -> List[HistorySample]:
        if not token or not location_id:
            raise ConfigError("API token and location id are required for history")

        end = now or datetime.now(timezone.utc)
        start = end - window
        payload = self._get_json(
            f"/locations/{quote(location_id, safe='')}/measures/past",
            {
                "token": token,
                "from": format_query_time(start),
                "to": format_query_time(end),
            },
        )
        samples, diagnostics = decode_history(payload)
        for msg in diagnostics:
            logger.debug("history %s: %s", location_id, msg)
        logger.debug(
            "history %s: %s rows kept, %s dropped",
            location_id,
            len(samples),
            len(diagnostics),
        )
        return samples
