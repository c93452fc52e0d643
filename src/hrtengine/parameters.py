# src/hrtengine/parameters.py
"""
Constant parameter tables for every route. All rate constants are in 1/h.

The per-ester tables are read-only mappings. Missing entries are never an
error: every lookup goes through `lookup()`, which returns the default the
caller names (0 for rates unless stated otherwise). Rates here were tuned
against literature Tmax/Cmax, they are not fitted per patient.
"""
import math
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .types import Ester


def lookup(table: Mapping[Ester, float], ester: Ester, default: float = 0.0) -> float:
    """Table value for `ester`, or `default` when the table has no row for it."""
    return float(table.get(ester, default))


# --------------------------
# Core (free E2)
# --------------------------
VD_PER_KG = 2.0            # L/kg
K_CLEAR = 0.41             # elimination k3 of free E2
# Effective k3 used only for oil injections. It keeps the flip-flop
# (absorption-limited) shape and is not the physiological clearance of E2.
K_CLEAR_INJECTION = 0.041
DEPOT_K1_CORR = 1.0        # global factor applied to both injection depot rates


# --------------------------
# Injection: two-part depot
# --------------------------
# Share of the dose in the fast depot; the rest goes to the slow depot.
FRAC_FAST = MappingProxyType({
    Ester.EB: 0.90,
    Ester.EV: 0.40,
    Ester.EC: 0.229164549,
    Ester.EN: 0.05,
})
DEFAULT_FRAC_FAST = 1.0

# Fast depot, mainly sets Tmax and Cmax.
K1_FAST = MappingProxyType({
    Ester.EB: 0.144,
    Ester.EV: 0.0216,
    Ester.EC: 0.005035046,
    Ester.EN: 0.0010,
})

# Slow depot, mainly sets the terminal tail.
K1_SLOW = MappingProxyType({
    Ester.EB: 0.114,
    Ester.EV: 0.0138,
    Ester.EC: 0.004510574,
    Ester.EN: 0.0050,
})

# Empirical fraction of the (E2-equivalent) dose that ends up as free E2.
FORMATION_FRACTION = MappingProxyType({
    Ester.EB: 0.10922376473734707,
    Ester.EV: 0.062258288229969413,
    Ester.EC: 0.117255838,
    Ester.EN: 0.12,
})
DEFAULT_FORMATION_FRACTION = 0.08


# --------------------------
# Ester hydrolysis (k2)
# --------------------------
K2 = MappingProxyType({
    Ester.EB: 0.090,   # t½ ≈ 7.7 h
    Ester.EV: 0.070,   # t½ ≈ 9.9 h
    Ester.EC: 0.045,   # t½ ≈ 15.4 h
    Ester.EN: 0.015,   # t½ ≈ 46.2 h
})


# --------------------------
# Transdermal patch
# --------------------------
PATCH_K1 = 0.0075          # generic first-order release, t½ ≈ 3.8 d
UG_PER_DAY_TO_MG_PER_H = 1.0 / 24_000.0


# --------------------------
# Transdermal gel
# --------------------------
GEL_BASE_K1 = 0.022        # t½ ≈ 36 h (EstroGel 0.75 mg on 750 cm²)
GEL_SIGMA_SAT = 0.0080     # mg/cm², saturation load; unused until area scaling exists
GEL_F_MAX = 0.05
GEL_DEFAULT_AREA_CM2 = 750.0


def gel_parameters(dose_mg: float, area_cm2: float) -> tuple[float, float]:
    """
    (k1, F) for a gel dose spread over `area_cm2`.

    Simplified model: area is ignored and the baseline k1 and Fmax are
    returned for every positive dose.
    """
    if dose_mg <= 0:
        return 0.0, 0.0
    return GEL_BASE_K1, GEL_F_MAX


# --------------------------
# Oral / sublingual
# --------------------------
ORAL_K_ABS_E2 = 0.32       # micronised E2, Tmax ≈ 2-3 h
ORAL_K_ABS_EV = 0.05       # EV tablet, Tmax ≈ 6-7 h
ORAL_BIOAVAILABILITY = 0.03
SUBLINGUAL_K_ABS = 1.8     # mucosal path, Tmax ≈ 1 h with K_CLEAR


def oral_k_abs(ester: Ester) -> float:
    return ORAL_K_ABS_EV if ester is Ester.EV else ORAL_K_ABS_E2


def oral_k2(ester: Ester) -> float:
    """Only EV tablets need hydrolysis before E2 is measurable."""
    return lookup(K2, Ester.EV) if ester is Ester.EV else 0.0


class SublingualTier(Enum):
    QUICK = 0
    CASUAL = 1
    STANDARD = 2
    STRICT = 3

    @classmethod
    def from_code(cls, code: float) -> "SublingualTier":
        """Round a stored tier code (halves away from zero); anything outside 0..3 maps to STANDARD."""
        try:
            return cls(int(math.copysign(math.floor(abs(code) + 0.5), code)))
        except (ValueError, OverflowError):
            return DEFAULT_SUBLINGUAL_TIER


DEFAULT_SUBLINGUAL_TIER = SublingualTier.STANDARD

# Recommended θ per tier, from a dissolution + mucosal uptake + swallowing
# model (k_SL = 1.8, k_sw = 1.8, dissolution t½ = 5 min).
SUBLINGUAL_THETA = MappingProxyType({
    SublingualTier.QUICK: 0.01,
    SublingualTier.CASUAL: 0.04,
    SublingualTier.STANDARD: 0.11,
    SublingualTier.STRICT: 0.18,
})
DEFAULT_SUBLINGUAL_THETA = SUBLINGUAL_THETA[DEFAULT_SUBLINGUAL_TIER]

# Suggested hold time under the tongue (minutes).
SUBLINGUAL_HOLD_MINUTES = MappingProxyType({
    SublingualTier.QUICK: 2.0,
    SublingualTier.CASUAL: 5.0,
    SublingualTier.STANDARD: 10.0,
    SublingualTier.STRICT: 15.0,
})

# θ range across swallowing and dissolution scenarios.
SUBLINGUAL_THETA_RANGE = MappingProxyType({
    SublingualTier.QUICK: (0.004, 0.012),
    SublingualTier.CASUAL: (0.021, 0.057),
    SublingualTier.STANDARD: (0.064, 0.156),
    SublingualTier.STRICT: (0.115, 0.253),
})
