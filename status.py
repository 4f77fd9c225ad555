# status.py
from __future__ import annotations
from typing import Optional

from state import AppState

LOADING_TEXT = "Cargando..."
MISSING = "—"

# Umbrales PM2.5 (µg/m³) del indicador de la barra de menú
PM25_RED = 50.0
PM25_ORANGE = 30.0
PM25_YELLOW = 5.0


def pm25_level(pm25: Optional[float]) -> str:
    if pm25 is None:
        return "⚪"
    if pm25 > PM25_RED:
        return "🔴"
    if pm25 > PM25_ORANGE:
        return "🟠"
    if pm25 > PM25_YELLOW:
        return "🟡"
    return "🟢"


def _fmt(value: Optional[float], pattern: str) -> str:
    return MISSING if value is None else format(value, pattern)


def format_status_text(state: AppState) -> str:
    reading = state.reading
    if reading is None:
        text = LOADING_TEXT
    else:
        text = (
            f"🌡 {_fmt(reading.temperature_c, '.1f')}°C "
            f"💨 {_fmt(reading.co2_ppm, '.0f')} "
            f"{pm25_level(reading.pm25)} {_fmt(reading.pm25, '.1f')}µg/m³"
        )
    if state.error:
        text += " ⚠"
    return text


# Colores del icono de la bandeja, mismo orden que pm25_level
LEVEL_COLORS = {
    "🔴": "#ff3b30",
    "🟠": "#ff9500",
    "🟡": "#ffcc00",
    "🟢": "#34c759",
    "⚪": "#8e8e93",
}


def pm25_color(pm25: Optional[float]) -> str:
    return LEVEL_COLORS[pm25_level(pm25)]


def format_updated_text(state: AppState) -> str:
    if state.updated_at is None:
        return "Sin datos todavía."
    local = state.updated_at.astimezone()
    return f"Actualizado: {local:%H:%M:%S}"
