# src/hrtviz/ui/main_window.py
from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal
from PySide6.QtWidgets import QApplication, QHBoxLayout, QMainWindow, QStatusBar, QWidget

from hrtengine.metrics import summarize
from hrtengine.timeline import DoseTimeline
from .controls import ControlsPanel
from .plots import PlotWidget

DEBOUNCE_MS = 500


class _RunSignals(QObject):
    finished = Signal(int, object)       # generation, SimulationResult | None
    failed = Signal(str)


class _SimulationJob(QRunnable):
    """Runs one timeline snapshot on the thread pool."""

    def __init__(self, timeline: DoseTimeline):
        super().__init__()
        self.snapshot = timeline.begin_run()
        self.timeline = timeline
        self.signals = _RunSignals()

    def run(self):
        generation, events, weight = self.snapshot
        try:
            result = self.timeline.compute(events, weight)
        except Exception as e:
            self.signals.failed.emit(str(e))
            return
        self.signals.finished.emit(generation, result)


class MainWindow(QMainWindow):
    def __init__(self, timeline: DoseTimeline | None = None):
        super().__init__()
        self.setWindowTitle("HRT plasma E2")
        self.resize(1100, 680)

        self.timeline = timeline or DoseTimeline()

        central = QWidget(self); self.setCentralWidget(central)
        root = QHBoxLayout(central)

        self.controls = ControlsPanel(body_weight_kg=self.timeline.body_weight_kg)
        self.plot = PlotWidget()
        root.addWidget(self.controls, 0)
        root.addWidget(self.plot, 1)

        self.status = QStatusBar(); self.setStatusBar(self.status)

        # coalesce bursts of edits into one run
        self._debounce = QTimer(self)
        self._debounce.setSingleShot(True)
        self._debounce.setInterval(DEBOUNCE_MS)
        self._debounce.timeout.connect(self._start_run)
        self._pool = QThreadPool.globalInstance()

        # wire events
        self.controls.eventSubmitted.connect(self.on_event_submitted)
        self.controls.removeRequested.connect(self.on_remove)
        self.controls.bodyWeightChanged.connect(self.on_weight_changed)

        self.controls.set_events(self.timeline.events)
        self._debounce.start()

    def on_event_submitted(self, event):
        self.timeline.save(event)
        self.controls.set_events(self.timeline.events)
        self._debounce.start()

    def on_remove(self, event_id: str):
        if self.timeline.remove(event_id):
            self.controls.set_events(self.timeline.events)
            self._debounce.start()

    def on_weight_changed(self, kg: float):
        self.timeline.set_body_weight(kg)
        self._debounce.start()

    def _start_run(self):
        job = _SimulationJob(self.timeline)
        job.signals.finished.connect(self._on_finished)
        job.signals.failed.connect(lambda msg: self.status.showMessage(f"Error: {msg}", 8000))
        self.status.showMessage("Simulating...")
        self._pool.start(job)

    def _on_finished(self, generation: int, result):
        if not self.timeline.publish(generation, result):
            return
        if result is None:
            self.plot.clear()
            self.status.showMessage("No doses yet", 5000)
            return
        events = self.timeline.events
        origin_h = min(e.time_h for e in events)
        self.plot.plot_result(result, origin_h, [e.time_h for e in events])
        s = summarize(result)
        msg = (f"Cmax {s['cmax']:.1f} pg/mL at {s['tmax'] - origin_h:.1f} h | "
               f"Cavg {s['cavg']:.1f} pg/mL | AUC {s['auc']:.0f} pg·h/mL")
        self.status.showMessage(msg)


def main():
    app = QApplication.instance() or QApplication([])
    window = MainWindow()
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
