# poller.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal, Slot

from api_client import AirGradientClient
from models import Configuration
from settings import SettingsManager, store_configuration
from state import (
    AppState,
    FetchIntent,
    PollFailed,
    PollResult,
    RequestTracker,
    plan_tick,
    reduce,
    run_intent,
)

logger = logging.getLogger(__name__)

Dispatcher = Callable[[FetchIntent], None]


class _TaskSignals(QObject):
    finished = Signal(object, object)


class FetchTask(QRunnable):
    """Ejecuta una petición en el pool y devuelve el resultado por señal."""

    def __init__(self, client: AirGradientClient, intent: FetchIntent) -> None:
        super().__init__()
        self.client = client
        self.intent = intent
        self.signals = _TaskSignals()

    def run(self) -> None:
        try:
            result: PollResult = run_intent(self.client, self.intent)
        except Exception as e:
            logger.exception("Unexpected error in %s poll", self.intent.kind.value)
            result = PollFailed(self.intent.kind, repr(e))
        self.signals.finished.emit(self.intent, result)


class PollingManager(QObject):
    state_changed = Signal(object)

    def __init__(
        self,
        client: AirGradientClient,
        settings: SettingsManager,
        config: Configuration,
        interval_secs: int = 60,
        dispatch: Optional[Dispatcher] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.client = client
        self.settings = settings

        self._config = config
        self._state = AppState()
        self._tracker = RequestTracker()
        self._pool = QThreadPool.globalInstance()
        self._dispatch = dispatch or self._dispatch_to_pool

        # Timer de sondeo (ms)
        self.timer = QTimer(self)
        self.timer.setInterval(int(interval_secs * 1000))
        self.timer.timeout.connect(self.refresh)

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def state(self) -> AppState:
        return self._state

    # ===================== CONTROL DEL SONDEO =====================
    def start(self) -> None:
        logger.info("Polling every %ss", self.timer.interval() // 1000)
        self.refresh()
        self.timer.start()

    def stop(self) -> None:
        self.timer.stop()

    @Slot()
    def refresh(self) -> None:
        for intent in plan_tick(self._config, self._tracker):
            logger.debug("Dispatching %s poll #%s", intent.kind.value, intent.generation)
            self._dispatch(intent)

    def save_config(self, token: str, location_id: str) -> None:
        self._config = Configuration(api_token=token.strip(), location_id=location_id.strip())
        store_configuration(self.settings, self._config)
        logger.info("Configuration saved (location=%s)", self._config.location_id or "-")
        self.refresh()

    # ===================== RESULTADOS =====================
    def _dispatch_to_pool(self, intent: FetchIntent) -> None:
        task = FetchTask(self.client, intent)
        task.signals.finished.connect(self.apply_result)
        self._pool.start(task)

    @Slot(object, object)
    def apply_result(self, intent: FetchIntent, result: PollResult) -> None:
        if not self._tracker.is_latest(intent.kind, intent.generation):
            logger.debug(
                "Discarding stale %s result #%s (latest #%s)",
                intent.kind.value,
                intent.generation,
                self._tracker.latest(intent.kind),
            )
            return

        self._state = reduce(self._state, result, now=datetime.now(timezone.utc))
        if isinstance(result, PollFailed):
            logger.warning("%s poll failed: %s", intent.kind.value, result.reason)
        else:
            logger.info("%s poll updated", intent.kind.value)
        self.state_changed.emit(self._state)
