# -----------------------------------------------------------------------------
# Strategy selector
# Purpose: Map an indeterminate form (plus the expression's shape) to the
# resolution strategy, with the explanation trail and hints for the student.
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

import sympy as sp

from .evaluator import X, parse
from .types import IndeterminateForm, Strategy

# Function names that rule out the polynomial strategies even when SymPy
# would treat them as constants
NON_POLYNOMIAL_KEYWORDS = ("sin", "cos", "tan", "log", "exp", "sqrt")

@dataclass
class Selection:
    strategy: Strategy
    steps: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)


def is_polynomial(e: sp.Expr) -> bool:
    text = str(e)
    if any(k in text for k in NON_POLYNOMIAL_KEYWORDS):
        return False
    return bool(e.is_polynomial(X))


def has_sqrt(e: sp.Expr) -> bool:
    return any(p.exp.is_Rational and p.exp.q == 2 for p in e.atoms(sp.Pow))


def tips_for(form: IndeterminateForm, text: str) -> List[str]:
    tips: List[str] = []
    trig = any(k in text for k in ("sin", "cos", "tan"))
    if form is IndeterminateForm.ZERO_OVER_ZERO:
        tips.append("Indeterminate form 0/0: try factoring and cancelling common terms")
        if "sqrt" in text or "**(1/2)" in text:
            tips.append("Contains a square root: consider rationalizing")
        if trig:
            tips.append("Contains trigonometric functions: use the fundamental limits")
    elif form is IndeterminateForm.INF_OVER_INF:
        tips.append("Indeterminate form ∞/∞: divide numerator and denominator by the highest power")
        tips.append("For polynomials: the limit depends on the leading coefficients")
    elif form is IndeterminateForm.INF_MINUS_INF:
        tips.append("Indeterminate form ∞-∞: try factoring or rationalizing")
        tips.append("Consider rewriting the expression as a single fraction")
    elif form is IndeterminateForm.ONE_TO_INF:
        tips.append("Indeterminate form 1^∞: use lim (1 + f(x))^g(x) = e^(lim f(x)·g(x))")
        tips.append("Or take the natural logarithm and apply L'Hôpital")
    elif form is IndeterminateForm.ZERO_TIMES_INF:
        tips.append("Indeterminate form 0·∞: rewrite as a 0/0 or ∞/∞ quotient")
        tips.append("Use the identity f(x)·g(x) = f(x)/(1/g(x))")
    elif form in (IndeterminateForm.ZERO_TO_ZERO, IndeterminateForm.INF_TO_ZERO):
        tips.append("Indeterminate form 0^0 or ∞^0: take the natural logarithm and apply L'Hôpital")
        tips.append("Consider lim f(x)^g(x) = e^(lim g(x)·ln(f(x)))")
    elif form is IndeterminateForm.NUMERICAL:
        tips.append("Direct substitution: the limit is the value of the function at the point")
    elif form is IndeterminateForm.NONZERO_OVER_ZERO:
        tips.append("Nonzero over zero: compare the one-sided limits to find the sign of ∞")
    elif form is IndeterminateForm.INFINITE:
        tips.append("The function grows without bound: check its asymptotic behavior")
    else:
        tips.append("Complex form: analyze each term separately")
        if "sin" in text or "cos" in text:
            tips.append("Use trigonometric identities or the fundamental limits")
        if "log" in text or "exp" in text:
            tips.append("Consider properties of exponential and logarithmic functions")
    return tips


def select(form: IndeterminateForm, expr: str | sp.Expr) -> Selection:
    """Pure decision table from form and expression shape to a strategy."""
    e = parse(expr) if isinstance(expr, str) else expr
    text = str(e)
    num, den = sp.fraction(e)
    steps: List[str] = [f"Form detected: {form.value}"]

    if form is IndeterminateForm.NUMERICAL:
        strategy = Strategy.DIRECT_SUBSTITUTION
        steps.append("The function is defined at the point: substitute directly")
    elif form is IndeterminateForm.NONZERO_OVER_ZERO:
        strategy = Strategy.LATERAL_LIMITS
        steps.append("The denominator vanishes but the numerator does not: study the one-sided limits")
    elif form is IndeterminateForm.ZERO_OVER_ZERO:
        if is_polynomial(num) and is_polynomial(den):
            strategy = Strategy.FACTORING
            steps.append("Numerator and denominator are polynomials: factor and cancel")
        elif has_sqrt(e):
            strategy = Strategy.RATIONALIZATION
            steps.append("The expression contains a square root: multiply by the conjugate")
        else:
            strategy = Strategy.LHOPITAL
            steps.append("Apply L'Hôpital's rule: differentiate numerator and denominator")
    elif form is IndeterminateForm.INF_OVER_INF:
        if is_polynomial(num) and is_polynomial(den):
            strategy = Strategy.HIGHEST_DEGREE
            steps.append("Rational function: compare the highest powers")
        else:
            strategy = Strategy.LHOPITAL
            steps.append("Apply L'Hôpital's rule: differentiate numerator and denominator")
    elif form is IndeterminateForm.INF_MINUS_INF:
        if is_polynomial(e):
            strategy = Strategy.HIGHEST_DEGREE
            steps.append("Polynomial: the highest-degree term dominates")
        elif has_sqrt(e):
            strategy = Strategy.CONJUGATE_MULTIPLICATION
            steps.append("Difference involving a square root: multiply by the conjugate")
        else:
            strategy = Strategy.NUMERIC_FALLBACK
            steps.append("No algebraic rewrite applies: estimate the limit numerically")
    elif form is IndeterminateForm.ZERO_TIMES_INF:
        strategy = Strategy.LHOPITAL
        steps.append("Rewrite the product as a quotient and apply L'Hôpital's rule")
    elif form in (IndeterminateForm.ONE_TO_INF, IndeterminateForm.ZERO_TO_ZERO, IndeterminateForm.INF_TO_ZERO):
        strategy = Strategy.EXPONENTIAL_FUNDAMENTALS
        steps.append("Exponential form: rewrite f^g as e^(g·ln f)")
    else:
        strategy = Strategy.NUMERIC_FALLBACK
        steps.append("Estimate the limit numerically from both sides")

    return Selection(strategy, steps, tips_for(form, text))
