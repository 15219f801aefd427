# -----------------------------------------------------------------------------
# Strategy appliers
# Purpose:
#   One routine per resolution strategy. Each receives a StrategyContext and
#   returns a CalculationResult; appliers that cannot finish return an
#   UNRESOLVED or EXPLANATION_ONLY result and leave the numeric fallback to
#   the engine.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import sympy as sp

from .catalog import FundamentalMatch
from .classifier import split_product
from .config import Settings, LATERAL_DELTA, CONVERGENCE_TOL
from .evaluator import X, Evaluator, exact_value
from .formatter import format_result, to_value
from .lhopital import LHopitalState, run_lhopital, run_lhopital_converging
from .log import get_logger
from .numeric import Tendency, expr_tendency, numeric_limit, safe_eval, snap, unbounded
from .selector import has_sqrt
from .tracer import StepTrace
from .types import (CalculationResult, Direction, Expression, IndeterminateForm, LimitPoint,
                    ResultKind, Strategy, DOES_NOT_EXIST)

logger = get_logger(__name__)


@dataclass
class StrategyContext:
    expression: Expression
    expr: sp.Expr
    point: LimitPoint
    direction: Direction
    form: IndeterminateForm
    evaluator: Evaluator
    settings: Settings = field(default_factory=Settings)
    trace: StepTrace = field(default_factory=StepTrace)
    tips: List[str] = field(default_factory=list)
    catalog_match: Optional[FundamentalMatch] = None


# ---------------- result builders ----------------

def resolved(ctx: StrategyContext, strategy: Strategy, exact) -> CalculationResult:
    return CalculationResult(to_value(exact), format_result(exact), ctx.trace.lines(), list(ctx.tips),
                             strategy, ctx.form, ResultKind.RESOLVED)


def labelled(ctx: StrategyContext, strategy: Strategy, label: str, kind: ResultKind) -> CalculationResult:
    return CalculationResult(label, label, ctx.trace.lines(), list(ctx.tips), strategy, ctx.form, kind)


def does_not_exist(ctx: StrategyContext, strategy: Strategy) -> CalculationResult:
    ctx.trace.add(f"Conclusion: the limit {DOES_NOT_EXIST.lower()}")
    return labelled(ctx, strategy, DOES_NOT_EXIST, ResultKind.DOES_NOT_EXIST)


# ---------------- shared helpers ----------------

def _via_lhopital(ctx: StrategyContext, num: sp.Expr, den: sp.Expr) -> Tuple[Optional[CalculationResult], Optional[str]]:
    """Run the L'Hôpital loop (then its converging variant); returns (result, failure label)."""
    out = run_lhopital(num, den, ctx.point, ctx.settings.lhopital_max_iterations, ctx.trace)
    if out.state is LHopitalState.EXHAUSTED:
        ctx.trace.add("Retrying while watching the derivative quotients converge")
        out = run_lhopital_converging(num, den, ctx.point, trace=ctx.trace)
    if out.resolved:
        return resolved(ctx, Strategy.LHOPITAL, out.value), None
    if out.state is LHopitalState.NOT_APPLICABLE:
        return None, "L'Hôpital's rule does not apply"
    return None, str(out.value)


def _split_radical(side: sp.Expr) -> Optional[Tuple[sp.Expr, sp.Expr]]:
    """Split a sum into (radical terms, other terms)."""
    if not side.is_Add:
        return None
    rad = [t for t in side.args if has_sqrt(t)]
    rest = [t for t in side.args if not has_sqrt(t)]
    if not rad or not rest:
        return None
    return sp.Add(*rad), sp.Add(*rest)


def _cancel(e: sp.Expr) -> sp.Expr:
    try:
        return sp.cancel(e)
    except (sp.PolynomialError, NotImplementedError):
        return e


def _pattern_label(p: sp.Expr) -> str:
    try:
        poly = sp.Poly(p, X)
    except sp.PolynomialError:
        return "Factor"
    c = poly.all_coeffs()
    deg = poly.degree()
    if deg == 2 and c[1] == 0 and c[0] * c[2] < 0:
        return "Difference of squares"
    if deg == 3 and c[1] == 0 and c[2] == 0 and c[3] != 0:
        return "Difference of cubes" if c[0] * c[3] < 0 else "Sum of cubes"
    if deg == 2 and c[1] != 0 and c[2] != 0:
        return "Quadratic trinomial"
    if deg >= 1 and c[-1] == 0:
        return "Common factor"
    return "Factor"


# ---------------- appliers ----------------

def apply_direct_substitution(ctx: StrategyContext) -> CalculationResult:
    p = ctx.point
    exact = None if p.is_infinite else exact_value(ctx.expr, p.value)
    value = exact if exact is not None else ctx.evaluator.evaluate(p.probe_value)
    ctx.trace.add(f"Substitute x = {p}: f({p}) = {format_result(value)}")
    return resolved(ctx, Strategy.DIRECT_SUBSTITUTION, value)


def apply_lateral_limits(ctx: StrategyContext) -> CalculationResult:
    p, ev = ctx.point, ctx.evaluator
    if p.is_infinite:
        return apply_numeric_fallback(ctx)
    a, d = p.value, LATERAL_DELTA
    use_left = ctx.direction in (Direction.BOTH, Direction.LEFT)
    use_right = ctx.direction in (Direction.BOTH, Direction.RIGHT)
    left = safe_eval(ev, a - d) if use_left else None
    right = safe_eval(ev, a + d) if use_right else None
    if use_left:
        ctx.trace.add(f"Left side: f({a - d:g}) = {'undefined' if left is None else f'{left:g}'}")
    if use_right:
        ctx.trace.add(f"Right side: f({a + d:g}) = {'undefined' if right is None else f'{right:g}'}")

    if ctx.form is IndeterminateForm.NONZERO_OVER_ZERO:
        signs = [math.copysign(1, v) for v in (left, right) if v is not None]
        if (use_left and left is None) or (use_right and right is None):
            return labelled(ctx, Strategy.LATERAL_LIMITS, "One-sided values undefined", ResultKind.UNRESOLVED)
        if len(set(signs)) == 1:
            ctx.trace.add("The denominator tends to 0 with a fixed sign: the function is unbounded")
            return resolved(ctx, Strategy.LATERAL_LIMITS, sp.oo if signs[0] > 0 else -sp.oo)
        ctx.trace.add("The one-sided limits are -∞ and +∞")
        return does_not_exist(ctx, Strategy.LATERAL_LIMITS)

    if left is not None and right is not None and abs(left - right) < CONVERGENCE_TOL:
        ctx.trace.add("Both one-sided values agree")
        return resolved(ctx, Strategy.LATERAL_LIMITS, snap((left + right) / 2))
    # the single δ probe can disagree on a smooth function; refine before concluding
    out = numeric_limit(ev, p, ctx.direction)
    ctx.trace.extend(out.steps)
    if out.value is not None:
        return resolved(ctx, Strategy.LATERAL_LIMITS, out.value)
    return does_not_exist(ctx, Strategy.LATERAL_LIMITS)


def apply_factoring(ctx: StrategyContext) -> CalculationResult:
    num, den = sp.fraction(ctx.expr)
    fn, fd = sp.factor(num), sp.factor(den)
    for part, factored in ((num, fn), (den, fd)):
        if str(factored) != str(part):
            ctx.trace.add_record(_pattern_label(part), str(part), str(factored))
    common = sp.gcd(num, den)
    if common.has(X) and not ctx.point.is_infinite:
        reduced = _cancel(ctx.expr)
        ctx.trace.add_record("Cancel the common factor", f"({fn})/({fd})", str(reduced),
                             note=f"common factor {sp.factor(common)}")
        exact = exact_value(reduced, ctx.point.value)
        if exact is not None:
            ctx.trace.add(f"Substitute x = {ctx.point}: {format_result(exact)}")
            return resolved(ctx, Strategy.FACTORING, exact)
        ctx.trace.add("The reduced form is still undefined at the point")
        num, den = sp.fraction(reduced)
    else:
        ctx.trace.add("No common factor found: falling back to L'Hôpital's rule")
    result, _ = _via_lhopital(ctx, num, den)
    if result is not None:
        return result
    return labelled(ctx, Strategy.FACTORING, "Complex factoring", ResultKind.UNRESOLVED)


def apply_rationalization(ctx: StrategyContext) -> CalculationResult:
    num, den = sp.fraction(ctx.expr)
    for where, side in (("numerator", num), ("denominator", den)):
        parts = _split_radical(side)
        if parts is None:
            continue
        r, b = parts
        conj = r - b
        product = sp.expand(r ** 2 - b ** 2)
        ctx.trace.add_record("Multiply by the conjugate", f"({side})·({conj})", str(product),
                             note=f"(a + b)(a - b) = a² - b² in the {where}")
        rewritten = product / (den * conj) if where == "numerator" else (num * conj) / product
        reduced = _cancel(rewritten)
        ctx.trace.add_record("Simplify", str(rewritten), str(reduced))
        if not ctx.point.is_infinite:
            exact = exact_value(reduced, ctx.point.value)
            if exact is not None:
                ctx.trace.add(f"Substitute x = {ctx.point}: {format_result(exact)}")
                return resolved(ctx, Strategy.RATIONALIZATION, exact)
        ctx.trace.add("The rationalized form is still indeterminate")
        break
    else:
        ctx.trace.add("No sum with a square root to rationalize")
    result, _ = _via_lhopital(ctx, num, den)
    if result is not None:
        return result
    return labelled(ctx, Strategy.RATIONALIZATION, "Rationalization did not simplify", ResultKind.UNRESOLVED)


def apply_fundamental_limit(ctx: StrategyContext) -> CalculationResult:
    m = ctx.catalog_match
    ctx.trace.add(f"Recognized fundamental limit: {m.entry.name} ({m.entry.category})")
    if m.entry.explanation:
        ctx.trace.add(m.entry.explanation)
    return resolved(ctx, Strategy.FUNDAMENTAL_LIMIT, m.value)


def apply_lhopital(ctx: StrategyContext) -> CalculationResult:
    if ctx.form is IndeterminateForm.ZERO_TIMES_INF:
        parts = split_product(ctx.expr, ctx.point)
        if parts is None:
            return labelled(ctx, Strategy.LHOPITAL, "L'Hôpital's rule does not apply", ResultKind.UNRESOLVED)
        zero_part, inf_part = parts
        num, den = inf_part, 1 / zero_part
        ctx.trace.add_record("Rewrite the product as a quotient", str(ctx.expr), f"({num})/({den})",
                             note="f·g = g/(1/f)")
    else:
        num, den = sp.fraction(ctx.expr)
    result, label = _via_lhopital(ctx, num, den)
    if result is not None:
        return result
    return labelled(ctx, Strategy.LHOPITAL, label, ResultKind.UNRESOLVED)


def apply_highest_degree(ctx: StrategyContext) -> CalculationResult:
    num, den = sp.fraction(ctx.expr)
    p = ctx.point
    if not p.is_infinite:
        return apply_lhopital(ctx)
    try:
        pn, pd = sp.Poly(num, X), sp.Poly(den, X)
    except sp.PolynomialError:
        return apply_lhopital(ctx)
    dn, dd = pn.degree(), pd.degree()
    ln, ld = pn.LC(), pd.LC()
    ctx.trace.add(f"Numerator: degree {dn}, leading coefficient {ln}")
    ctx.trace.add(f"Denominator: degree {dd}, leading coefficient {ld}")
    if dn == dd:
        exact = ln / ld
        ctx.trace.add(f"Equal degrees: the limit is the ratio of leading coefficients {ln}/{ld}")
    elif dn > dd:
        s = int(sp.sign(ln / ld)) * p.sign ** (dn - dd)
        exact = sp.oo if s > 0 else -sp.oo
        ctx.trace.add(f"Numerator degree is higher: the function is unbounded ({format_result(exact)})")
    else:
        exact = sp.Integer(0)
        ctx.trace.add("Denominator degree is higher: the function tends to 0")
    return resolved(ctx, Strategy.HIGHEST_DEGREE, exact)


def apply_conjugate_multiplication(ctx: StrategyContext) -> CalculationResult:
    parts = _split_radical(ctx.expr)
    if parts is None:
        ctx.trace.add("Multiply and divide by the conjugate to turn the difference into a quotient")
        return labelled(ctx, Strategy.CONJUGATE_MULTIPLICATION, "Apply conjugate multiplication",
                        ResultKind.EXPLANATION_ONLY)
    r, b = parts
    rewritten = sp.expand(r ** 2 - b ** 2) / (r - b)
    ctx.trace.add_record("Multiply and divide by the conjugate", str(ctx.expr), str(rewritten),
                         note="a - b = (a² - b²)/(a + b)")
    if expr_tendency(rewritten, ctx.point) is Tendency.ZERO:
        ctx.trace.add("The numerator stays bounded while the denominator grows: the limit is 0")
        return resolved(ctx, Strategy.CONJUGATE_MULTIPLICATION, sp.Integer(0))
    out = numeric_limit(Evaluator(rewritten), ctx.point, ctx.direction)
    ctx.trace.extend(out.steps)
    if out.value is not None:
        return resolved(ctx, Strategy.CONJUGATE_MULTIPLICATION, out.value)
    return labelled(ctx, Strategy.CONJUGATE_MULTIPLICATION, "Apply conjugate multiplication",
                    ResultKind.EXPLANATION_ONLY)


def _exp_of(L) -> sp.Expr | float:
    if isinstance(L, sp.Basic):
        if L is sp.oo:
            return sp.oo
        if L is sp.S.NegativeInfinity:
            return sp.Integer(0)
        return sp.exp(L)
    if math.isinf(L):
        return sp.oo if L > 0 else sp.Integer(0)
    if float(L).is_integer():
        return sp.exp(sp.Integer(int(L)))
    return math.exp(L)


def apply_exponential_fundamentals(ctx: StrategyContext) -> CalculationResult:
    e = ctx.expr
    if not e.is_Pow:
        ctx.trace.add("Take the natural logarithm and apply L'Hôpital's rule")
        return labelled(ctx, Strategy.EXPONENTIAL_FUNDAMENTALS, "Apply logarithm + L'Hôpital",
                        ResultKind.EXPLANATION_ONLY)
    base, ex = e.base, e.exp
    if ctx.point.is_infinite and sp.simplify(base - (1 + 1 / X)) == 0 and sp.simplify(ex - X) == 0:
        ctx.trace.add("Fundamental limit: (1 + 1/x)^x → e")
        return resolved(ctx, Strategy.EXPONENTIAL_FUNDAMENTALS, sp.E)

    num, den = sp.log(base), 1 / ex
    ctx.trace.add_record("Rewrite as an exponential", str(e), f"exp({ex}·log({base}))",
                         note="f^g = e^(g·ln f)")
    ctx.trace.add(f"Compute L = lim ({num})/({den})")
    out = run_lhopital(num, den, ctx.point, ctx.settings.lhopital_max_iterations, ctx.trace)
    if out.state is LHopitalState.EXHAUSTED:
        out = run_lhopital_converging(num, den, ctx.point, trace=ctx.trace)
    if not out.resolved:
        ctx.trace.add("Take the natural logarithm and apply L'Hôpital's rule")
        return labelled(ctx, Strategy.EXPONENTIAL_FUNDAMENTALS, "Apply logarithm + L'Hôpital",
                        ResultKind.EXPLANATION_ONLY)
    L = out.value
    if not isinstance(L, sp.Basic) and abs(L - 1) < CONVERGENCE_TOL:
        L = sp.Integer(1)
    value = _exp_of(L)
    ctx.trace.add(f"L = {format_result(L)}, so the limit is e^L = {format_result(value)}")
    return resolved(ctx, Strategy.EXPONENTIAL_FUNDAMENTALS, value)


def _bounded_over_unbounded(ctx: StrategyContext) -> bool:
    num, den = sp.fraction(ctx.expr)
    if not den.has(X) or expr_tendency(num, ctx.point) is Tendency.INFINITE:
        return False
    return unbounded(Evaluator(den), ctx.point, ctx.direction)


def apply_numeric_fallback(ctx: StrategyContext) -> CalculationResult:
    if _bounded_over_unbounded(ctx):
        ctx.trace.add("The numerator stays bounded while the denominator grows without bound: the limit is 0")
        return resolved(ctx, Strategy.NUMERIC_FALLBACK, sp.Integer(0))
    out = numeric_limit(ctx.evaluator, ctx.point, ctx.direction)
    ctx.trace.extend(out.steps)
    if out.value is None:
        return does_not_exist(ctx, Strategy.NUMERIC_FALLBACK)
    ctx.trace.add(f"Numeric estimate: {format_result(out.value)}")
    return resolved(ctx, Strategy.NUMERIC_FALLBACK, out.value)


APPLIERS: Dict[Strategy, Callable[[StrategyContext], CalculationResult]] = {
    Strategy.DIRECT_SUBSTITUTION: apply_direct_substitution,
    Strategy.LATERAL_LIMITS: apply_lateral_limits,
    Strategy.FACTORING: apply_factoring,
    Strategy.RATIONALIZATION: apply_rationalization,
    Strategy.FUNDAMENTAL_LIMIT: apply_fundamental_limit,
    Strategy.LHOPITAL: apply_lhopital,
    Strategy.HIGHEST_DEGREE: apply_highest_degree,
    Strategy.CONJUGATE_MULTIPLICATION: apply_conjugate_multiplication,
    Strategy.EXPONENTIAL_FUNDAMENTALS: apply_exponential_fundamentals,
    Strategy.NUMERIC_FALLBACK: apply_numeric_fallback,
}


def apply(strategy: Strategy, ctx: StrategyContext) -> CalculationResult:
    logger.debug("apply_strategy", strategy=strategy.value, form=ctx.form.value)
    return APPLIERS[strategy](ctx)
