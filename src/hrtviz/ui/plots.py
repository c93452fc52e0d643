# src/hrtviz/ui/plots.py
from PySide6.QtWidgets import QWidget, QVBoxLayout
import pyqtgraph as pg

from hrtengine.types import SimulationResult


class PlotWidget(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)

        # Main plot area
        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setLabel("left", "E2", units="pg/mL")
        self.plot_widget.setLabel("bottom", "Time since first dose", units="h")
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        layout.addWidget(self.plot_widget)

        self.curve = None
        self.markers = None

    def plot_result(self, result: SimulationResult, origin_h: float, dose_times_h=()):
        """Draw the curve with time relative to `origin_h` and tick marks at each dose."""
        self.clear()
        if result.is_empty:
            return
        t = result.time_h - origin_h
        self.curve = self.plot_widget.plot(t, result.conc_pg_ml, pen=pg.mkPen(width=2))
        xs = [d - origin_h for d in dose_times_h]
        if xs:
            self.markers = self.plot_widget.plot(
                xs, [0.0] * len(xs), pen=None, symbol="t1", symbolSize=10,
            )

    def clear(self):
        self.plot_widget.clear()
        self.curve = None
        self.markers = None
