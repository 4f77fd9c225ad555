# state.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from api_client import AirBarError, AirGradientClient
from models import AxisRange, Configuration, CurrentReading, TimelinePoint
from timeline import axis_range, reconcile

logger = logging.getLogger(__name__)


class PollKind(str, Enum):
    CURRENT = "current"
    HISTORY = "history"


# ==================== RESULTADOS DE UN CICLO ====================

@dataclass(frozen=True)
class CurrentUpdated:
    reading: CurrentReading
    kind: PollKind = field(default=PollKind.CURRENT, init=False)


@dataclass(frozen=True)
class HistoryUpdated:
    points: Tuple[TimelinePoint, ...]
    kind: PollKind = field(default=PollKind.HISTORY, init=False)


@dataclass(frozen=True)
class PollFailed:
    kind: PollKind
    reason: str


PollResult = Union[CurrentUpdated, HistoryUpdated, PollFailed]


# ==================== ESTADO PUBLICADO ====================

@dataclass(frozen=True)
class AppState:
    reading: Optional[CurrentReading] = None
    points: Tuple[TimelinePoint, ...] = ()
    current_error: Optional[str] = None
    history_error: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def error(self) -> bool:
        return self.current_error is not None or self.history_error is not None

    @property
    def pm25_range(self) -> AxisRange:
        return axis_range(p.pm25 for p in self.points)

    @property
    def co2_range(self) -> AxisRange:
        return axis_range(p.co2 for p in self.points)


def reduce(state: AppState, result: PollResult, now: Optional[datetime] = None) -> AppState:
    """
    Aplica el resultado de un ciclo al estado.

    Un fallo conserva los últimos valores buenos y sólo marca el error
    de ese tipo de ciclo; un éxito reemplaza los datos y limpia su error.
    """
    if isinstance(result, CurrentUpdated):
        return replace(
            state,
            reading=result.reading,
            current_error=None,
            updated_at=now or state.updated_at,
        )
    if isinstance(result, HistoryUpdated):
        return replace(
            state,
            points=tuple(result.points),
            history_error=None,
            updated_at=now or state.updated_at,
        )
    if result.kind is PollKind.CURRENT:
        return replace(state, current_error=result.reason)
    return replace(state, history_error=result.reason)


# ==================== GENERACIONES DE PETICIÓN ====================

class RequestTracker:
    def __init__(self) -> None:
        self._latest: Dict[PollKind, int] = {kind: 0 for kind in PollKind}

    def issue(self, kind: PollKind) -> int:
        self._latest[kind] += 1
        return self._latest[kind]

    def latest(self, kind: PollKind) -> int:
        return self._latest[kind]

    def is_latest(self, kind: PollKind, generation: int) -> bool:
        return generation == self._latest[kind]


@dataclass(frozen=True)
class FetchIntent:
    kind: PollKind
    generation: int
    config: Configuration
    issued_at: datetime


def plan_tick(
    config: Configuration, tracker: RequestTracker, now: Optional[datetime] = None
) -> List[FetchIntent]:
    issued_at = now or datetime.now(timezone.utc)
    return [
        FetchIntent(kind, tracker.issue(kind), config, issued_at)
        for kind in (PollKind.CURRENT, PollKind.HISTORY)
    ]


def run_intent(client: AirGradientClient, intent: FetchIntent) -> PollResult:
    cfg = intent.config
    try:
        if intent.kind is PollKind.CURRENT:
            return CurrentUpdated(client.fetch_current(cfg.api_token))
        samples = client.fetch_history(cfg.api_token, cfg.location_id, now=intent.issued_at)
        return HistoryUpdated(tuple(reconcile(samples, intent.issued_at)))
    except AirBarError as exc:
        return PollFailed(intent.kind, f"{type(exc).__name__}: {exc}")
