# -----------------------------------------------------------------------------
# Expression evaluator (SymPy adapter)
# Purpose:
#   The only place that parses canonical expression text. Provides compiled
#   numeric evaluators plus symbolic derivative/simplify helpers used by the
#   strategy appliers.
# Safety:
#   - Input is restricted to a whitelisted character set, no dunder names.
#   - Only the variable x is accepted as a free symbol.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
import re
from typing import Dict, Any

import sympy as sp
from sympy.parsing.sympy_parser import (
    parse_expr, standard_transformations, implicit_multiplication,
)

X = sp.Symbol("x", real=True)

class CompileError(Exception): pass
class EvalError(Exception): pass

_ALLOWED = re.compile(r"^[0-9A-Za-z_+\-*/(). ]*$")
_TRANSFORMS = standard_transformations + (implicit_multiplication,)

# Names the parser may resolve; everything else becomes a Symbol and is rejected
_LOCALS: Dict[str, Any] = {
    "x": X, "e": sp.E, "E": sp.E, "pi": sp.pi, "oo": sp.oo,
    "sin": sp.sin, "cos": sp.cos, "tan": sp.tan, "cot": sp.cot, "sec": sp.sec, "csc": sp.csc,
    "asin": sp.asin, "acos": sp.acos, "atan": sp.atan,
    "arcsin": sp.asin, "arccos": sp.acos, "arctan": sp.atan,
    "sinh": sp.sinh, "cosh": sp.cosh, "tanh": sp.tanh,
    "log": sp.log, "ln": sp.log, "exp": sp.exp, "sqrt": sp.sqrt, "abs": sp.Abs,
    "log10": lambda a: sp.log(a, 10),
}


def parse(normalized: str) -> sp.Expr:
    """Parse canonical text into a SymPy expression in x. Raises CompileError."""
    text = (normalized or "").strip()
    if not text:
        raise CompileError("Empty expression")
    if "__" in text or not _ALLOWED.match(text):
        raise CompileError(f"Unsupported characters in expression: {text!r}")
    try:
        expr = parse_expr(text, local_dict=dict(_LOCALS), transformations=_TRANSFORMS, evaluate=True)
    except Exception as e:
        raise CompileError(f"Could not parse expression {text!r}: {e}") from e
    if not isinstance(expr, sp.Expr):
        raise CompileError(f"Not an expression: {text!r}")
    extra = expr.free_symbols - {X}
    if extra:
        names = ", ".join(sorted(str(s) for s in extra))
        raise CompileError(f"Unrecognized variable(s): {names}. Only x is supported")
    return expr


class Evaluator:
    """Compiled numeric form of an expression; evaluate(x) returns a real float."""

    def __init__(self, expr: sp.Expr):
        self.expr = expr
        try:
            self._fn = sp.lambdify(X, expr, modules="math")
        except Exception as e:
            raise CompileError(f"Could not compile expression {expr}: {e}") from e

    def evaluate(self, x: float) -> float:
        try:
            v = self._fn(float(x))
        except (ArithmeticError, ValueError, TypeError, NameError) as e:
            # ZeroDivisionError and OverflowError are ArithmeticErrors
            raise EvalError(f"{type(e).__name__} at x={x}: {e}") from e
        if isinstance(v, complex):
            if abs(v.imag) > 1e-12 * max(1.0, abs(v.real)):
                raise EvalError(f"Complex value at x={x}")
            v = v.real
        try:
            v = float(v)
        except (TypeError, ValueError, OverflowError) as e:
            raise EvalError(f"Non-real value at x={x}: {e}") from e
        if math.isnan(v):
            raise EvalError(f"Undefined value at x={x}")
        return v

    def __str__(self) -> str:
        return str(self.expr)


def compile_expression(normalized: str) -> Evaluator:
    return Evaluator(parse(normalized))


def exact_value(expr: sp.Expr, a: float) -> sp.Expr | None:
    """Exact value of expr at the finite point a, or None when it is not a finite real number."""
    try:
        v = sp.simplify(expr.subs(X, sp.nsimplify(a)))
    except (TypeError, ValueError, ZeroDivisionError, NotImplementedError, RecursionError, AttributeError):
        return None
    if v.free_symbols or v.has(sp.nan, sp.zoo, sp.oo, -sp.oo):
        return None
    if v.is_real is not True or v.is_finite is not True:
        return None
    return v


def derivative(expr: str | sp.Expr, var: str = "x") -> str:
    """Symbolic derivative as text (canonical syntax)."""
    e = parse(expr) if isinstance(expr, str) else expr
    return str(sp.diff(e, X if var == "x" else sp.Symbol(var)))


def simplify(expr: str | sp.Expr) -> str:
    """Best-effort simplification; returns the input unchanged when SymPy gives up."""
    e = parse(expr) if isinstance(expr, str) else expr
    try:
        return str(sp.simplify(e))
    except (TypeError, ValueError, NotImplementedError, RecursionError):
        return str(e)
