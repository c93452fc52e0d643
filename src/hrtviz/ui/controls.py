# src/hrtviz/ui/controls.py
from PySide6.QtCore import QDateTime, Qt, Signal
from PySide6.QtWidgets import (QComboBox, QDateTimeEdit, QDoubleSpinBox, QFrame, QLabel,
                               QListWidget, QListWidgetItem, QPushButton, QVBoxLayout)

from hrtengine.dosing import (INJECTABLE_ESTERS, ORAL_ESTERS, ester_to_e2_equivalent, gel,
                              injection, oral, patch_apply, patch_remove, sublingual)
from hrtengine.parameters import SUBLINGUAL_HOLD_MINUTES, SublingualTier
from hrtengine.types import DoseEvent, Ester, Route, datetime_to_hours, hours_to_datetime

ROUTE_LABELS = {
    Route.INJECTION: "Injection",
    Route.PATCH_APPLY: "Patch on",
    Route.PATCH_REMOVE: "Patch off",
    Route.GEL: "Gel",
    Route.ORAL: "Oral",
    Route.SUBLINGUAL: "Sublingual",
}


def esters_for(route: Route) -> tuple:
    if route is Route.INJECTION:
        return INJECTABLE_ESTERS
    if route in (Route.ORAL, Route.SUBLINGUAL):
        return ORAL_ESTERS
    return (Ester.E2,)


def describe(event: DoseEvent) -> str:
    when = hours_to_datetime(event.time_h).astimezone().strftime("%Y-%m-%d %H:%M")
    label = ROUTE_LABELS[event.route]
    if event.route is Route.PATCH_REMOVE:
        return f"{when}  {label}"
    rate = event.extras.release_rate_ug_per_day
    if rate is not None:
        return f"{when}  {label}  {rate:g} µg/day"
    return f"{when}  {label}  {event.ester.abbreviation}  {event.dose_mg:.2f} mg E2-eq"


class ControlsPanel(QFrame):
    eventSubmitted = Signal(object)          # DoseEvent
    removeRequested = Signal(str)            # event id
    bodyWeightChanged = Signal(float)

    def __init__(self, body_weight_kg: float = 70.0):
        super().__init__()
        self.setFrameShape(QFrame.StyledPanel)
        layout = QVBoxLayout(self)

        # --- Patient ---
        layout.addWidget(QLabel("Body weight (kg)"))
        self.weight = QDoubleSpinBox(); self.weight.setRange(1, 300); self.weight.setValue(body_weight_kg)
        self.weight.setSuffix(" kg")
        self.weight.valueChanged.connect(lambda v: self.bodyWeightChanged.emit(float(v)))
        layout.addWidget(self.weight)

        # --- New dose ---
        layout.addWidget(QLabel("Route"))
        self.route = QComboBox()
        for route, label in ROUTE_LABELS.items():
            self.route.addItem(label, route)
        layout.addWidget(self.route)

        layout.addWidget(QLabel("Drug"))
        self.ester = QComboBox()
        layout.addWidget(self.ester)

        layout.addWidget(QLabel("Time"))
        self.when = QDateTimeEdit(QDateTime.currentDateTime()); self.when.setCalendarPopup(True)
        layout.addWidget(self.when)

        self.lbl_dose = QLabel("Dose (mg of drug as labelled)")
        self.dose = QDoubleSpinBox(); self.dose.setDecimals(3); self.dose.setRange(0, 1000); self.dose.setValue(5.0)
        self.dose.setSuffix(" mg")
        layout.addWidget(self.lbl_dose)
        layout.addWidget(self.dose)

        self.lbl_rate = QLabel("Release rate (0 = use reservoir dose)")
        self.rate = QDoubleSpinBox(); self.rate.setRange(0, 1000); self.rate.setValue(50.0)
        self.rate.setSuffix(" µg/day")
        layout.addWidget(self.lbl_rate)
        layout.addWidget(self.rate)

        self.lbl_tier = QLabel("Held under the tongue")
        self.tier = QComboBox()
        for tier in SublingualTier:
            self.tier.addItem(f"{tier.name.title()} (~{SUBLINGUAL_HOLD_MINUTES[tier]:g} min)", tier)
        self.tier.setCurrentIndex(SublingualTier.STANDARD.value)
        layout.addWidget(self.lbl_tier)
        layout.addWidget(self.tier)

        add = QPushButton("Add dose"); layout.addWidget(add)
        add.clicked.connect(self._emit_event)

        # --- History ---
        layout.addWidget(QLabel("Doses"))
        self.history = QListWidget()
        layout.addWidget(self.history, 1)
        remove = QPushButton("Remove selected"); layout.addWidget(remove)
        remove.clicked.connect(self._emit_remove)

        self.route.currentIndexChanged.connect(self._update_route_visibility)
        self._update_route_visibility()

    def set_events(self, events):
        self.history.clear()
        for e in events:
            item = QListWidgetItem(describe(e))
            item.setData(Qt.UserRole, e.id)
            self.history.addItem(item)

    def _current_route(self) -> Route:
        return self.route.currentData()

    def _update_route_visibility(self):
        route = self._current_route()
        self.ester.clear()
        for ester in esters_for(route):
            self.ester.addItem(ester.full_name, ester)

        has_dose = route is not Route.PATCH_REMOVE
        self.lbl_dose.setVisible(has_dose)
        self.dose.setVisible(has_dose)
        is_patch = route is Route.PATCH_APPLY
        self.lbl_rate.setVisible(is_patch)
        self.rate.setVisible(is_patch)
        is_sl = route is Route.SUBLINGUAL
        self.lbl_tier.setVisible(is_sl)
        self.tier.setVisible(is_sl)

    def _emit_event(self):
        route = self._current_route()
        ester = self.ester.currentData() or Ester.E2
        time_h = datetime_to_hours(self.when.dateTime().toPython().astimezone())
        dose = ester_to_e2_equivalent(float(self.dose.value()), ester)

        if route is Route.INJECTION:
            event = injection(dose, time_h, ester)
        elif route is Route.PATCH_APPLY:
            rate = float(self.rate.value())
            event = patch_apply(time_h, dose_mg=dose, release_rate_ug_per_day=rate if rate > 0 else None)
        elif route is Route.PATCH_REMOVE:
            event = patch_remove(time_h)
        elif route is Route.GEL:
            event = gel(dose, time_h)
        elif route is Route.ORAL:
            event = oral(dose, time_h, ester)
        else:
            event = sublingual(dose, time_h, ester, tier=self.tier.currentData())
        self.eventSubmitted.emit(event)

    def _emit_remove(self):
        item = self.history.currentItem()
        if item is not None:
            self.removeRequested.emit(item.data(Qt.UserRole))
