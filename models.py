# models.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class Configuration:
    api_token: str = ""
    location_id: str = ""


@dataclass(frozen=True)
class CurrentReading:
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    co2_ppm: Optional[float] = None  # ppm
    pm1: Optional[float] = None  # µg/m³
    pm25: Optional[float] = None
    pm10: Optional[float] = None
    nox_index: Optional[float] = None


@dataclass(frozen=True)
class HistorySample:
    timestamp: datetime  # siempre con zona horaria (UTC)
    pm25: Optional[float] = None
    co2: Optional[float] = None


@dataclass(frozen=True)
class TimelinePoint:
    timestamp: datetime
    pm25: Optional[float] = None
    co2: Optional[float] = None

    @property
    def is_gap(self) -> bool:
        return self.pm25 is None and self.co2 is None


@dataclass(frozen=True)
class AxisRange:
    lower: float
    upper: float


# Ventana del histórico y rejilla del gráfico
HISTORY_WINDOW = timedelta(hours=6)
BUCKET_STEP = timedelta(minutes=5)
