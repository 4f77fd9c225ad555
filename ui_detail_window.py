# ui_detail_window.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.dates import DateFormatter, HourLocator
from matplotlib.figure import Figure

from poller import PollingManager
from state import AppState
from status import format_updated_text
from timeline import metric_series


# (atributo de CurrentReading, título, formato)
INDICATORS = (
    ("temperature_c", "Temp (°C)", "{:.1f}"),
    ("humidity_pct", "Humedad (%)", "{:.0f}"),
    ("co2_ppm", "CO₂ (ppm)", "{:.0f}"),
    ("pm1", "PM1", "{:.1f}"),
    ("pm25", "PM2.5", "{:.1f}"),
    ("pm10", "PM10", "{:.1f}"),
    ("nox_index", "NOx", "{:.0f}"),
)


class ConfigDialog(QDialog):
    def __init__(self, manager: PollingManager, parent=None) -> None:
        super().__init__(parent)
        self.manager = manager
        self.setWindowTitle("Configuración")

        layout = QFormLayout(self)
        self.token_edit = QLineEdit(manager.config.api_token)
        self.token_edit.setEchoMode(QLineEdit.PasswordEchoOnEdit)
        self.location_edit = QLineEdit(manager.config.location_id)
        layout.addRow("API Token", self.token_edit)
        layout.addRow("Location ID", self.location_edit)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def accept(self) -> None:
        self.manager.save_config(self.token_edit.text(), self.location_edit.text())
        super().accept()


class DetailWindow(QWidget):
    def __init__(self, manager: PollingManager, parent=None) -> None:
        super().__init__(parent)
        self.manager = manager
        self.setWindowTitle("AirBar")
        self.resize(420, 520)

        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(8)

        title = QLabel("Últimas 6 h de aire")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 14px; font-weight: 600;")
        main_layout.addWidget(title)

        # --------- PANEL DE INDICADORES ----------
        indicators_frame = QFrame()
        indicators_frame.setFrameShape(QFrame.StyledPanel)
        indicators_frame.setObjectName("indicatorsFrame")
        indicators_layout = QHBoxLayout(indicators_frame)
        indicators_layout.setContentsMargins(10, 6, 10, 6)

        self.indicator_labels: Dict[str, QLabel] = {}
        for attr, caption, _fmt in INDICATORS:
            box = QVBoxLayout()
            lbl_caption = QLabel(caption)
            lbl_caption.setAlignment(Qt.AlignCenter)
            lbl_value = QLabel("—")
            lbl_value.setAlignment(Qt.AlignCenter)
            lbl_value.setStyleSheet("font-size: 13px; font-weight: 600;")
            box.addWidget(lbl_caption)
            box.addWidget(lbl_value)
            indicators_layout.addLayout(box)
            self.indicator_labels[attr] = lbl_value

        main_layout.addWidget(indicators_frame)

        # --------- BANNER DE ERROR ----------
        self.error_label = QLabel("")
        self.error_label.setAlignment(Qt.AlignCenter)
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet(
            "background-color: #ff3b30; color: white; font-weight: 700; padding: 4px; border-radius: 4px;"
        )
        self.error_label.hide()
        main_layout.addWidget(self.error_label)

        # --------- FIGURA MATPLOTLIB ----------
        self.figure = Figure(figsize=(4, 3.5))
        self.canvas = FigureCanvas(self.figure)
        self.canvas.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.ax_pm25 = self.figure.add_subplot(2, 1, 1)
        self.ax_co2 = self.figure.add_subplot(2, 1, 2, sharex=self.ax_pm25)
        main_layout.addWidget(self.canvas)

        # --------- LABEL INFERIOR ----------
        self.info_label = QLabel("")
        self.info_label.setStyleSheet("color: gray;")
        main_layout.addWidget(self.info_label)

        # --------- BOTONES ----------
        buttons = QHBoxLayout()
        self.btn_refresh = QPushButton("Actualizar")
        self.btn_config = QPushButton("Configuración")
        self.btn_exit = QPushButton("Salir")
        self.btn_refresh.clicked.connect(self.manager.refresh)
        self.btn_config.clicked.connect(self.open_config)
        self.btn_exit.clicked.connect(QApplication.quit)
        for btn in (self.btn_refresh, self.btn_config, self.btn_exit):
            btn.setCursor(Qt.PointingHandCursor)
            btn.setMinimumHeight(28)
            buttons.addWidget(btn)
        main_layout.addLayout(buttons)

        self.manager.state_changed.connect(self.render_state)
        self.render_state(self.manager.state)

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self.manager.refresh()

    def open_config(self) -> None:
        ConfigDialog(self.manager, self).exec()

    # ===================== RENDER =====================
    def render_state(self, state: AppState) -> None:
        self._update_indicators(state)
        self._update_error(state)
        self.info_label.setText(format_updated_text(state))
        self._update_plots(state)

    def _update_indicators(self, state: AppState) -> None:
        for attr, _caption, fmt in INDICATORS:
            value: Optional[float] = getattr(state.reading, attr, None)
            self.indicator_labels[attr].setText("—" if value is None else fmt.format(value))

    def _update_error(self, state: AppState) -> None:
        messages = [m for m in (state.current_error, state.history_error) if m]
        if messages:
            self.error_label.setText("⚠ " + " | ".join(messages))
            self.error_label.show()
        else:
            self.error_label.hide()

    def _update_plots(self, state: AppState) -> None:
        self.ax_pm25.clear()
        self.ax_co2.clear()

        times, values = metric_series(state.points, "pm25")
        self.ax_pm25.plot(times, values, color="tab:red", linewidth=2.5)
        pm_range = state.pm25_range
        self.ax_pm25.set_ylim(pm_range.lower, pm_range.upper)
        self.ax_pm25.set_ylabel("PM2.5 (µg/m³)")
        self.ax_pm25.grid(True)

        times, values = metric_series(state.points, "co2")
        self.ax_co2.plot(times, values, color="tab:blue", linewidth=2.5)
        co2_range = state.co2_range
        self.ax_co2.set_ylim(co2_range.lower, co2_range.upper)
        self.ax_co2.set_ylabel("CO₂ (ppm)")
        self.ax_co2.grid(True)

        if state.points:
            self.ax_co2.set_xlim(state.points[0].timestamp, state.points[-1].timestamp)
        local_tz = datetime.now().astimezone().tzinfo
        self.ax_co2.xaxis.set_major_locator(HourLocator(tz=local_tz))
        self.ax_co2.xaxis.set_major_formatter(DateFormatter("%H:%M", tz=local_tz))

        self.figure.tight_layout()
        self.canvas.draw()
