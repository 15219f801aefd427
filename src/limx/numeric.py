# -----------------------------------------------------------------------------
# Numeric probing
# Purpose:
#   One-sided convergence checks (decreasing h toward a finite point, growing
#   |x| toward ±∞), the two-sided numeric limit used as the last resort, and
#   the zero/finite/infinite tendency probe shared by the classifier and the
#   L'Hôpital loop.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import sympy as sp

from .config import (ZERO_TOL, LARGE, CONVERGENCE_TOL, JUMP_TOL, CONTINUITY_STEP, CONTINUITY_TOL,
                     FALLBACK_STEPS, INFINITY_PROBES, TENDENCY_PROBES, GROWTH_PROBES, GAP_RATIO)
from .evaluator import X, Evaluator, EvalError
from .log import get_logger
from .types import LimitPoint, Direction

logger = get_logger(__name__)


class Tendency(Enum):
    ZERO = "zero"
    FINITE = "finite"
    INFINITE = "infinite"


class SideStatus(Enum):
    CONVERGED = "converged"
    DIVERGED = "diverged"
    FAILED = "failed"


@dataclass
class SideProbe:
    status: SideStatus
    value: float | None = None          # limit of this side (±inf when diverged)
    samples: List[tuple] = field(default_factory=list)


@dataclass
class NumericOutcome:
    value: float | None                 # None means the limit does not exist
    left: SideProbe | None = None
    right: SideProbe | None = None
    steps: List[str] = field(default_factory=list)


def snap(v: float) -> float:
    """Remove probing noise: tiny values become 0, near-integers become integers."""
    if math.isinf(v):
        return v
    if abs(v) < CONVERGENCE_TOL:
        return 0.0
    r = round(v)
    if abs(v - r) < CONVERGENCE_TOL:
        return float(r)
    return v


def safe_eval(ev: Evaluator, x: float) -> float | None:
    try:
        return ev.evaluate(x)
    except EvalError:
        return None


def continuous_at(ev: Evaluator, a: float, v: float) -> bool:
    """
    A value above LARGE at a finite point is only trusted when the neighbours
    agree with it (x**20 at 10), not when it is a pole hit in floating point
    (tan at pi/2).
    """
    if abs(v) <= LARGE:
        return True
    h = max(abs(a), 1.0) * CONTINUITY_STEP
    for x in (a - h, a + h):
        w = safe_eval(ev, x)
        if w is None or abs(w - v) > CONTINUITY_TOL * abs(v):
            return False
    return True


def _grows_steadily(ev: Evaluator, sign: int) -> bool:
    # monotone over GROWTH_PROBES with gaps per decade that do not shrink
    vals = [safe_eval(ev, sign * m) for m in GROWTH_PROBES]
    if any(v is None for v in vals):
        return False
    gaps = [b - a for a, b in zip(vals, vals[1:])]
    if not (all(g > 0 for g in gaps) or all(g < 0 for g in gaps)):
        return False
    if abs(gaps[-1]) <= CONVERGENCE_TOL:
        return False
    return all(abs(b) >= GAP_RATIO * abs(a) for a, b in zip(gaps, gaps[1:]))


def tendency(ev: Evaluator, point: LimitPoint) -> Tendency:
    """
    How an expression behaves at the point.
    Finite point: a single evaluation; errors, non-finite values and large
    values that jump away from their neighbours count as infinite.
    Infinite point: three probes of growing magnitude, so slow decay (1/x) is
    recognized without a huge surrogate value; slow growth (log x) is caught
    by the per-decade gaps.
    """
    if not point.is_infinite:
        v = safe_eval(ev, point.value)
        if v is None or not math.isfinite(v) or not continuous_at(ev, point.value, v):
            return Tendency.INFINITE
        return Tendency.ZERO if abs(v) < ZERO_TOL else Tendency.FINITE

    vals = [safe_eval(ev, point.sign * m) for m in TENDENCY_PROBES]
    last = vals[-1]
    if last is None or abs(last) >= LARGE:
        return Tendency.INFINITE
    if abs(last) < ZERO_TOL:
        return Tendency.ZERO
    if any(v is None for v in vals):
        return Tendency.FINITE
    mags = [abs(v) for v in vals]
    if mags[2] > 10 and mags[2] > 1.5 * mags[1] and mags[1] > 1.5 * mags[0]:
        return Tendency.INFINITE
    if mags[2] < 1e-3 and mags[2] * 1.5 < mags[1] and mags[1] * 1.5 < mags[0]:
        return Tendency.ZERO
    if _grows_steadily(ev, point.sign):
        return Tendency.INFINITE
    return Tendency.FINITE


def expr_tendency(e: sp.Expr, point: LimitPoint) -> Tendency:
    """tendency() for a SymPy expression; constants are judged exactly."""
    if not e.has(X):
        if e.is_zero:
            return Tendency.ZERO
        return Tendency.FINITE if e.is_finite else Tendency.INFINITE
    return tendency(Evaluator(e), point)


def _diverges(vals: List[float]) -> bool:
    """Magnitudes rising over the last samples, by a huge value or by gaps that do not shrink."""
    tail = vals[-4:]
    mags = [abs(v) for v in tail]
    if len(tail) < 2 or not all(b > a for a, b in zip(mags, mags[1:])):
        return False
    if mags[-1] >= LARGE:
        return True
    if len(tail) < 4:
        return False
    diffs = [b - a for a, b in zip(tail, tail[1:])]
    same_sign = all(d > 0 for d in diffs) or all(d < 0 for d in diffs)
    steady = all(abs(b) >= GAP_RATIO * abs(a) for a, b in zip(diffs, diffs[1:]))
    return same_sign and steady and abs(diffs[-1]) > CONVERGENCE_TOL


def probe_side(ev: Evaluator, point: LimitPoint, side: int = 1) -> SideProbe:
    """
    Walk toward the point from one side (side=-1 left, +1 right; ignored at ±∞).
    Converged once two consecutive values differ by less than CONVERGENCE_TOL
    (relative to the value when it is above 1). Diverged only when the
    magnitudes keep rising; anything else is FAILED.
    """
    if point.is_infinite:
        xs = [point.sign * m for m in INFINITY_PROBES]
    else:
        xs = [point.value + side * h for h in FALLBACK_STEPS]

    samples = []
    prev: Optional[float] = None
    for x in xs:
        v = safe_eval(ev, x)
        if v is None or not math.isfinite(v):
            continue
        samples.append((x, v))
        if prev is not None and abs(v - prev) < CONVERGENCE_TOL * max(1.0, abs(v)):
            return SideProbe(SideStatus.CONVERGED, snap(v), samples)
        prev = v

    vals = [v for _, v in samples]
    if _diverges(vals):
        return SideProbe(SideStatus.DIVERGED, math.copysign(math.inf, vals[-1]), samples)
    return SideProbe(SideStatus.FAILED, None, samples)


def unbounded(ev: Evaluator, point: LimitPoint, direction: Direction = Direction.BOTH) -> bool:
    """True when every requested side of the point diverges."""
    if point.is_infinite:
        sides = (1,)
    else:
        sides = {Direction.BOTH: (-1, 1), Direction.LEFT: (-1,), Direction.RIGHT: (1,)}[direction]
    return all(probe_side(ev, point, s).status is SideStatus.DIVERGED for s in sides)


def _describe(label: str, probe: SideProbe) -> str:
    if probe.status is SideStatus.CONVERGED:
        return f"{label}: values approach {probe.value:g}"
    if probe.status is SideStatus.DIVERGED:
        return f"{label}: values grow without bound ({'+' if probe.value > 0 else '-'}∞)"
    return f"{label}: values do not settle"


def numeric_limit(ev: Evaluator, point: LimitPoint, direction: Direction = Direction.BOTH) -> NumericOutcome:
    """Numeric limit from probing; value None when the sides disagree or do not settle."""
    steps: List[str] = []
    if point.is_infinite:
        p = probe_side(ev, point)
        steps.append(_describe(f"Evaluating at x = {point.sign * INFINITY_PROBES[0]:g} … {point.sign * INFINITY_PROBES[-1]:g}", p))
        value = p.value if p.status is not SideStatus.FAILED else None
        return NumericOutcome(value, right=p, steps=steps)

    left = probe_side(ev, point, -1) if direction in (Direction.BOTH, Direction.LEFT) else None
    right = probe_side(ev, point, 1) if direction in (Direction.BOTH, Direction.RIGHT) else None
    if left:
        steps.append(_describe(f"Left side (x → {point}⁻)", left))
    if right:
        steps.append(_describe(f"Right side (x → {point}⁺)", right))
    logger.debug("numeric_limit", point=str(point), direction=direction.value,
                 left=left.status.value if left else None, right=right.status.value if right else None)

    if direction is Direction.LEFT:
        return NumericOutcome(left.value if left.status is not SideStatus.FAILED else None, left=left, steps=steps)
    if direction is Direction.RIGHT:
        return NumericOutcome(right.value if right.status is not SideStatus.FAILED else None, right=right, steps=steps)

    if left.status is SideStatus.FAILED or right.status is SideStatus.FAILED:
        return NumericOutcome(None, left, right, steps)
    if left.status is SideStatus.DIVERGED or right.status is SideStatus.DIVERGED:
        same = left.status is right.status and left.value == right.value
        if not same:
            steps.append("The one-sided limits differ")
        return NumericOutcome(left.value if same else None, left, right, steps)
    if abs(left.value - right.value) <= JUMP_TOL:
        steps.append("Both one-sided limits agree")
        return NumericOutcome(snap((left.value + right.value) / 2), left, right, steps)
    steps.append(f"The one-sided limits differ ({left.value:g} ≠ {right.value:g})")
    return NumericOutcome(None, left, right, steps)


def jump_check(ev: Evaluator, point: LimitPoint) -> Optional[NumericOutcome]:
    """Two convergent one-sided limits that disagree: a jump, so the limit does not exist."""
    left = probe_side(ev, point, -1)
    right = probe_side(ev, point, 1)
    if left.status is SideStatus.CONVERGED and right.status is SideStatus.CONVERGED \
            and abs(left.value - right.value) > JUMP_TOL:
        steps = [_describe(f"Left side (x → {point}⁻)", left),
                 _describe(f"Right side (x → {point}⁺)", right),
                 f"The one-sided limits differ ({left.value:g} ≠ {right.value:g})"]
        return NumericOutcome(None, left, right, steps)
    return None
