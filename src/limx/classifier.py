# -----------------------------------------------------------------------------
# Indeterminate-form classifier
# Purpose:
#   Decide which form f(x) takes at the limit point. Structure (quotient,
#   difference, product, power) is read from the SymPy expression tree;
#   behavior of each part is read from numeric probes.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from typing import Optional, Tuple

import sympy as sp

from .config import CONVERGENCE_TOL
from .evaluator import X, Evaluator, parse
from .log import get_logger
from .numeric import Tendency, continuous_at, expr_tendency, safe_eval
from .types import IndeterminateForm, LimitPoint

logger = get_logger(__name__)


def split_quotient(expr: sp.Expr) -> Tuple[sp.Expr, sp.Expr]:
    """Top-level numerator/denominator (denominator 1 when there is no division)."""
    return sp.fraction(expr)


def split_product(expr: sp.Expr, point: LimitPoint) -> Optional[Tuple[sp.Expr, sp.Expr]]:
    """
    For a top-level product, return (zero_part, infinite_part) when one group of
    factors tends to 0 and the remaining factors tend to ∞; otherwise None.
    """
    if not expr.is_Mul:
        return None
    zero, rest = [], []
    for f in expr.args:
        if f.has(X) and expr_tendency(f, point) is Tendency.ZERO:
            zero.append(f)
        else:
            rest.append(f)
    if not zero or not rest:
        return None
    zero_part, inf_part = sp.Mul(*zero), sp.Mul(*rest)
    if expr_tendency(inf_part, point) is not Tendency.INFINITE:
        return None
    return zero_part, inf_part


def _has_opposite_terms(expr: sp.Expr) -> bool:
    if not expr.is_Add:
        return False
    signs = {t.could_extract_minus_sign() for t in expr.args if t.has(X)}
    return signs == {True, False}


def _power_form(base: sp.Expr, ex: sp.Expr, point: LimitPoint) -> Optional[IndeterminateForm]:
    if not (base.has(X) and ex.has(X)):
        return None
    bt, et = expr_tendency(base, point), expr_tendency(ex, point)
    if bt is Tendency.ZERO and et is Tendency.ZERO:
        return IndeterminateForm.ZERO_TO_ZERO
    if bt is Tendency.INFINITE and et is Tendency.ZERO:
        return IndeterminateForm.INF_TO_ZERO
    b = safe_eval(Evaluator(base), point.probe_value)
    if b is not None and abs(b - 1) < CONVERGENCE_TOL and et is Tendency.INFINITE:
        return IndeterminateForm.ONE_TO_INF
    return None


def _classify_infinite(expr: sp.Expr, point: LimitPoint) -> IndeterminateForm:
    num, den = split_quotient(expr)
    if num.has(X) and den.has(X):
        return IndeterminateForm.INF_OVER_INF
    if _has_opposite_terms(expr):
        return IndeterminateForm.INF_MINUS_INF
    if expr.is_Pow:
        form = _power_form(expr.base, expr.exp, point)
        if form is not None:
            return form
    return IndeterminateForm.INFINITE


def _classify_finite(expr: sp.Expr, point: LimitPoint) -> IndeterminateForm:
    # 0.0**0.0 evaluates to 1.0 in floating point, so powers are checked first
    if expr.is_Pow:
        form = _power_form(expr.base, expr.exp, point)
        if form is IndeterminateForm.ZERO_TO_ZERO:
            return form

    ev = Evaluator(expr)
    v = safe_eval(ev, point.value)
    if v is not None and math.isfinite(v) and continuous_at(ev, point.value, v):
        return IndeterminateForm.NUMERICAL

    num, den = split_quotient(expr)
    if den.has(X):
        nt, dt = expr_tendency(num, point), expr_tendency(den, point)
        if nt is Tendency.ZERO and dt is Tendency.ZERO:
            return IndeterminateForm.ZERO_OVER_ZERO
        if nt is Tendency.INFINITE and dt is Tendency.INFINITE:
            return IndeterminateForm.INF_OVER_INF
        if nt is not Tendency.ZERO and dt is Tendency.ZERO:
            return IndeterminateForm.NONZERO_OVER_ZERO

    if split_product(expr, point) is not None:
        return IndeterminateForm.ZERO_TIMES_INF

    if expr.is_Pow:
        form = _power_form(expr.base, expr.exp, point)
        if form is not None:
            return form
    return IndeterminateForm.UNDEFINED


def classify(expr: str | sp.Expr, point: LimitPoint) -> IndeterminateForm:
    """Classify the form of f(x) at the point (canonical text or a parsed expression)."""
    e = parse(expr) if isinstance(expr, str) else expr
    form = _classify_infinite(e, point) if point.is_infinite else _classify_finite(e, point)
    logger.debug("classified", expression=str(e), point=str(point), form=form.value)
    return form
