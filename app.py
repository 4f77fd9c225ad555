# app.py
import logging
import os
import sys
from typing import Optional

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QColor, QIcon, QPainter, QPixmap
from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from api_client import AirGradientClient
from config import load_settings
from poller import PollingManager
from settings import SettingsManager, load_configuration
from state import AppState
from status import LOADING_TEXT, format_status_text, pm25_color
from ui_detail_window import DetailWindow


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def level_icon(pm25: Optional[float]) -> QIcon:
    """Círculo del color del nivel de PM2.5."""
    pixmap = QPixmap(32, 32)
    pixmap.fill(Qt.transparent)
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(Qt.NoPen)
    painter.setBrush(QColor(pm25_color(pm25)))
    painter.drawEllipse(4, 4, 24, 24)
    painter.end()
    return QIcon(pixmap)


def main() -> None:
    runtime = load_settings()
    _setup_logging(runtime.log_level)

    app = QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)

    settings = SettingsManager(runtime.settings_path)
    client = AirGradientClient(runtime.base_url, timeout=runtime.http_timeout_secs)
    manager = PollingManager(
        client=client,
        settings=settings,
        config=load_configuration(settings),
        interval_secs=runtime.poll_interval_secs,
    )
    window = DetailWindow(manager)

    # ====== ICONO DE LA BARRA DE MENÚ ======
    tray = QSystemTrayIcon(level_icon(None))
    menu = QMenu()
    status_action = QAction(LOADING_TEXT, menu)
    status_action.setEnabled(False)
    show_action = QAction("Mostrar detalle", menu)
    refresh_action = QAction("Actualizar", menu)
    quit_action = QAction("Salir", menu)
    show_action.triggered.connect(lambda: (window.show(), window.raise_(), window.activateWindow()))
    refresh_action.triggered.connect(manager.refresh)
    quit_action.triggered.connect(app.quit)
    for action in (status_action, show_action, refresh_action, quit_action):
        menu.addAction(action)
    tray.setContextMenu(menu)
    tray.setToolTip(LOADING_TEXT)

    def on_state(state: AppState) -> None:
        text = format_status_text(state)
        status_action.setText(text)
        tray.setToolTip(text)
        tray.setIcon(level_icon(state.reading.pm25 if state.reading else None))

    manager.state_changed.connect(on_state)
    tray.show()

    manager.start()
    exit_code = app.exec()

    manager.stop()
    settings.save()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
