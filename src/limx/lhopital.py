# -----------------------------------------------------------------------------
# L'Hôpital sub-engine
# Purpose:
#   Differentiate numerator and denominator until the quotient at the point is
#   no longer 0/0 or ∞/∞, with a bounded number of iterations.
#   States: ITERATING → RESOLVED | EXHAUSTED (NOT_APPLICABLE when the starting
#   pair is not indeterminate).
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Union

import sympy as sp

from .config import LHOPITAL_MAX_ITERATIONS, LHOPITAL_CONVERGING_MAX_ITERATIONS, CONVERGENCE_TOL
from .evaluator import X, Evaluator, exact_value
from .formatter import format_result
from .log import get_logger
from .numeric import Tendency, expr_tendency, safe_eval, snap
from .tracer import StepTrace
from .types import LimitPoint, MAX_ITERATIONS, INDETERMINATE

logger = get_logger(__name__)

Quotient = Union[sp.Expr, float, str]


class LHopitalState(Enum):
    ITERATING = "iterating"
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"
    NOT_APPLICABLE = "not_applicable"


@dataclass
class LHopitalOutcome:
    state: LHopitalState
    value: Quotient | None
    iterations: int
    num: sp.Expr
    den: sp.Expr

    @property
    def resolved(self) -> bool:
        return self.state is LHopitalState.RESOLVED and not isinstance(self.value, str)


def _indeterminate(nt: Tendency, dt: Tendency) -> bool:
    return (nt is Tendency.ZERO and dt is Tendency.ZERO) or \
           (nt is Tendency.INFINITE and dt is Tendency.INFINITE)


def _form_label(nt: Tendency) -> str:
    return "0/0" if nt is Tendency.ZERO else "∞/∞"


def _at(e: sp.Expr, point: LimitPoint) -> float | None:
    if not e.has(X):
        return float(e) if e.is_finite else None
    return safe_eval(Evaluator(e), point.probe_value)


def _sign(v: float | None) -> int:
    if v is None:
        return 0
    return (v > 0) - (v < 0)


def _quotient(num: sp.Expr, den: sp.Expr, nt: Tendency, dt: Tendency, point: LimitPoint) -> Quotient:
    """Value of num/den once the pair is no longer indeterminate."""
    if not point.is_infinite:
        exact = exact_value(num / den, point.value)
        if exact is not None:
            return exact
    if dt is Tendency.INFINITE:
        return sp.Integer(0)
    nv, dv = _at(num, point), _at(den, point)
    if nt is Tendency.INFINITE:
        s = _sign(nv) * _sign(dv)
        return (sp.oo if s > 0 else -sp.oo) if s else INDETERMINATE
    if dt is Tendency.ZERO or dv is None or dv == 0:
        return INDETERMINATE
    if nv is None:
        return INDETERMINATE
    return snap(nv / dv)


def _try_simplified(num: sp.Expr, den: sp.Expr, point: LimitPoint) -> Quotient | None:
    """Probe simplify(num/den) once; a finite value settles the iteration early."""
    try:
        q = sp.simplify(num / den)
    except (TypeError, ValueError, NotImplementedError, RecursionError):
        return None
    if not point.is_infinite:
        return exact_value(q, point.value)
    t = expr_tendency(q, point)
    if t is Tendency.ZERO:
        return sp.Integer(0)
    if t is Tendency.FINITE:
        v = _at(q, point)
        return snap(v) if v is not None else None
    return None


def run_lhopital(num: sp.Expr, den: sp.Expr, point: LimitPoint,
                 max_iterations: int = LHOPITAL_MAX_ITERATIONS,
                 trace: StepTrace | None = None) -> LHopitalOutcome:
    trace = trace if trace is not None else StepTrace()
    nt, dt = expr_tendency(num, point), expr_tendency(den, point)
    if not _indeterminate(nt, dt):
        trace.add(f"L'Hôpital's rule does not apply: {num} / {den} is not 0/0 or ∞/∞ at x → {point}")
        return LHopitalOutcome(LHopitalState.NOT_APPLICABLE, None, 0, num, den)

    state = LHopitalState.ITERATING
    for i in range(1, max_iterations + 1):
        num, den = sp.diff(num, X), sp.diff(den, X)
        trace.add(f"Iteration {i}: numerator' = {num}, denominator' = {den}")
        nt, dt = expr_tendency(num, point), expr_tendency(den, point)
        logger.debug("lhopital_iteration", iteration=i, num=str(num), den=str(den),
                     num_tendency=nt.value, den_tendency=dt.value)
        if _indeterminate(nt, dt):
            q = _try_simplified(num, den, point)
            if q is not None:
                trace.add(f"Simplifying the quotient gives {format_result(q)}")
                return LHopitalOutcome(LHopitalState.RESOLVED, q, i, num, den)
            trace.add(f"Still {_form_label(nt)}: differentiate again")
            continue
        value = _quotient(num, den, nt, dt, point)
        trace.add(f"Quotient of the derivatives at x → {point}: {format_result(value)}")
        state = LHopitalState.RESOLVED
        return LHopitalOutcome(state, value, i, num, den)

    trace.add(f"{MAX_ITERATIONS} ({max_iterations})")
    return LHopitalOutcome(LHopitalState.EXHAUSTED, MAX_ITERATIONS, max_iterations, num, den)


def _numeric_quotient(num: sp.Expr, den: sp.Expr, point: LimitPoint) -> float | None:
    nv, dv = _at(num, point), _at(den, point)
    if nv is None or dv is None or dv == 0:
        return None
    q = nv / dv
    return q if math.isfinite(q) else None


def run_lhopital_converging(num: sp.Expr, den: sp.Expr, point: LimitPoint,
                            max_iterations: int = LHOPITAL_CONVERGING_MAX_ITERATIONS,
                            tol: float = CONVERGENCE_TOL,
                            trace: StepTrace | None = None) -> LHopitalOutcome:
    """Variant that stops once two successive derivative quotients agree within tol."""
    trace = trace if trace is not None else StepTrace()
    prev: float | None = None
    for i in range(1, max_iterations + 1):
        num, den = sp.diff(num, X), sp.diff(den, X)
        q = _numeric_quotient(num, den, point)
        if q is not None and prev is not None and abs(q - prev) < tol:
            trace.add(f"Derivative quotients converge to {format_result(snap(q))} after {i} iterations")
            return LHopitalOutcome(LHopitalState.RESOLVED, snap(q), i, num, den)
        prev = q
    trace.add(f"Derivative quotients did not converge in {max_iterations} iterations")
    return LHopitalOutcome(LHopitalState.EXHAUSTED, MAX_ITERATIONS, max_iterations, num, den)
