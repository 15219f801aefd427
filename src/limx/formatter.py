# -----------------------------------------------------------------------------
# Result formatting
# Purpose:
#   Canonical display strings for limit values (∞, -∞, e, p/q, trimmed
#   decimals) and conversion of exact SymPy results into engine values.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from typing import Any

import sympy as sp

from .types import SymbolicConstant, Value


def _format_float(v: float) -> str:
    if math.isinf(v):
        return "∞" if v > 0 else "-∞"
    if v == int(v) and abs(v) < 1e15:
        return str(int(v))
    s = f"{v:.6f}".rstrip("0").rstrip(".")
    return "0" if s in ("-0", "") else s


def format_result(value: Any) -> str:
    """Render a value: ∞ / -∞ / e, integers as-is, rationals as p/q, floats to 6 decimals."""
    if isinstance(value, SymbolicConstant):
        return value.value
    if isinstance(value, str):
        return value
    if isinstance(value, sp.Basic):
        if value is sp.oo:
            return "∞"
        if value is sp.S.NegativeInfinity:
            return "-∞"
        if value is sp.E:
            return "e"
        if isinstance(value, sp.Integer):
            return str(int(value))
        if isinstance(value, sp.Rational):
            return f"{value.p}/{value.q}"
        return _format_float(float(value))
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return str(value)
    return _format_float(float(value))


def to_value(exact: Any) -> Value:
    """Map an exact or numeric result to float | SymbolicConstant."""
    if isinstance(exact, SymbolicConstant):
        return exact
    if isinstance(exact, sp.Basic):
        if exact is sp.oo:
            return SymbolicConstant.INFINITY
        if exact is sp.S.NegativeInfinity:
            return SymbolicConstant.NEG_INFINITY
        if exact is sp.E:
            return SymbolicConstant.E
        return float(exact)
    v = float(exact)
    if math.isinf(v):
        return SymbolicConstant.INFINITY if v > 0 else SymbolicConstant.NEG_INFINITY
    return v


def is_exact_display(exact: Any) -> bool:
    """True when an exact value has a nicer display than its float (1/2, e, ∞)."""
    return isinstance(exact, sp.Basic) and (exact.is_Rational or exact in (sp.E, sp.oo, sp.S.NegativeInfinity))
