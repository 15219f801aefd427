import math
import pytest
import sympy as sp

from limx.classifier import classify
from limx.evaluator import X, Evaluator, compile_expression, parse
from limx.formatter import format_result, to_value
from limx.lhopital import LHopitalState, run_lhopital, run_lhopital_converging
from limx.numeric import SideStatus, Tendency, numeric_limit, probe_side, tendency
from limx.selector import select
from limx.strategies import StrategyContext, apply_lateral_limits
from limx.tracer import StepTrace
from limx.types import (Direction, Expression, IndeterminateForm as F, LimitPoint, Strategy, SymbolicConstant,
                        DOES_NOT_EXIST, MAX_ITERATIONS)

ZERO = LimitPoint.finite(0)
INF = LimitPoint.pos_inf()

@pytest.mark.parametrize("text,point,form", [
    ("x**2+1", LimitPoint.finite(2), F.NUMERICAL),
    ("(x**2-1)/(x-1)", LimitPoint.finite(1), F.ZERO_OVER_ZERO),
    ("1/x", ZERO, F.NONZERO_OVER_ZERO),
    ("x*log(x)", ZERO, F.ZERO_TIMES_INF),
    ("x**x", ZERO, F.ZERO_TO_ZERO),
    ("(1+x)**(1/x)", ZERO, F.ONE_TO_INF),
    ("(2*x**3+5)/(x**3-7)", INF, F.INF_OVER_INF),
    ("sqrt(x**2+1)-x", INF, F.INF_MINUS_INF),
    ("(1+1/x)**x", INF, F.ONE_TO_INF),
    ("x**(1/x)", INF, F.INF_TO_ZERO),
    ("x**2", INF, F.INFINITE),
])
def test_classify(text, point, form):
    assert classify(text, point) is form

@pytest.mark.parametrize("form,text,strategy", [
    (F.NUMERICAL, "x+1", Strategy.DIRECT_SUBSTITUTION),
    (F.NONZERO_OVER_ZERO, "1/x", Strategy.LATERAL_LIMITS),
    (F.ZERO_OVER_ZERO, "(x**2-1)/(x-1)", Strategy.FACTORING),
    (F.ZERO_OVER_ZERO, "(sqrt(x+1)-1)/x", Strategy.RATIONALIZATION),
    (F.ZERO_OVER_ZERO, "sin(2*x)/x", Strategy.LHOPITAL),
    (F.INF_OVER_INF, "(x**2+1)/(x+3)", Strategy.HIGHEST_DEGREE),
    (F.INF_OVER_INF, "exp(x)/x", Strategy.LHOPITAL),
    (F.INF_MINUS_INF, "x**2-x", Strategy.HIGHEST_DEGREE),
    (F.INF_MINUS_INF, "sqrt(x+1)-sqrt(x)", Strategy.CONJUGATE_MULTIPLICATION),
    (F.INF_MINUS_INF, "exp(x)-x", Strategy.NUMERIC_FALLBACK),
    (F.ZERO_TIMES_INF, "x*log(x)", Strategy.LHOPITAL),
    (F.ONE_TO_INF, "(1+1/x)**x", Strategy.EXPONENTIAL_FUNDAMENTALS),
    (F.ZERO_TO_ZERO, "x**x", Strategy.EXPONENTIAL_FUNDAMENTALS),
    (F.INF_TO_ZERO, "x**(1/x)", Strategy.EXPONENTIAL_FUNDAMENTALS),
    (F.INFINITE, "x**2", Strategy.NUMERIC_FALLBACK),
    (F.UNDEFINED, "sin(1/x)", Strategy.NUMERIC_FALLBACK),
])
def test_select(form, text, strategy):
    sel = select(form, text)
    assert sel.strategy is strategy
    assert sel.steps and sel.tips

def test_select_tips_mention_square_root():
    sel = select(F.ZERO_OVER_ZERO, "(sqrt(x+1)-1)/x")
    assert any("square root" in t for t in sel.tips)

def test_lhopital_resolves_sin():
    trace = StepTrace()
    out = run_lhopital(sp.sin(X), X, ZERO, trace=trace)
    assert out.state is LHopitalState.RESOLVED
    assert out.value == 1
    assert out.iterations == 1
    assert any(line.startswith("Iteration 1") for line in trace.lines())

def test_lhopital_needs_two_iterations():
    out = run_lhopital(1 - sp.cos(X), X ** 2, ZERO)
    assert out.state is LHopitalState.RESOLVED
    assert out.value == sp.Rational(1, 2)

def test_lhopital_at_infinity():
    out = run_lhopital(X, sp.exp(X), INF)
    assert out.state is LHopitalState.RESOLVED
    assert out.value == 0

def test_lhopital_not_applicable():
    out = run_lhopital(sp.sin(X), X, INF)
    assert out.state is LHopitalState.NOT_APPLICABLE

def test_lhopital_exhausts():
    out = run_lhopital(X ** 5, sp.sin(X) ** 5, ZERO, max_iterations=2)
    assert out.state is LHopitalState.EXHAUSTED
    assert out.value == MAX_ITERATIONS

def test_lhopital_converging_variant():
    # successive derivative quotients are all 1/2
    out = run_lhopital_converging(sp.exp(X) - 1, 2 * (sp.exp(X) - 1), ZERO)
    assert out.state is LHopitalState.RESOLVED
    assert out.value == 0.5
    assert out.iterations == 2

def test_probe_side_converges():
    ev = compile_expression("sin(x)/x")
    p = probe_side(ev, ZERO, 1)
    assert p.status is SideStatus.CONVERGED
    assert p.value == 1.0

def test_probe_side_diverges():
    ev = compile_expression("1/x")
    assert probe_side(ev, ZERO, 1).value == math.inf
    assert probe_side(ev, ZERO, -1).value == -math.inf

def test_numeric_limit_jump():
    ev = compile_expression("abs(x)/x")
    assert numeric_limit(ev, ZERO, Direction.BOTH).value is None
    assert numeric_limit(ev, ZERO, Direction.RIGHT).value == 1.0

def test_numeric_limit_infinity():
    ev = compile_expression("(3*x+1)/(x+2)")
    assert numeric_limit(ev, INF).value == 3.0

@pytest.mark.parametrize("value,text", [
    (math.inf, "∞"),
    (-math.inf, "-∞"),
    (SymbolicConstant.E, "e"),
    (2.0, "2"),
    (7, "7"),
    (0.6931471805599453, "0.693147"),
    (0.5, "0.5"),
    (-1e-9, "0"),
    (sp.Rational(3, 2), "3/2"),
    (sp.Integer(-4), "-4"),
    (sp.oo, "∞"),
    (sp.E, "e"),
    (sp.log(2), "0.693147"),
    ("Does not exist", "Does not exist"),
])
def test_format_result(value, text):
    assert format_result(value) == text

def test_to_value():
    assert to_value(sp.oo) is SymbolicConstant.INFINITY
    assert to_value(-sp.oo) is SymbolicConstant.NEG_INFINITY
    assert to_value(sp.E) is SymbolicConstant.E
    assert to_value(sp.Rational(1, 2)) == 0.5
    assert to_value(math.inf) is SymbolicConstant.INFINITY

@pytest.mark.parametrize("text,point,expected", [
    ("x**20", LimitPoint.finite(10), Tendency.FINITE),
    ("exp(x)", LimitPoint.finite(30), Tendency.FINITE),
    ("tan(x)", LimitPoint.finite(math.pi / 2), Tendency.INFINITE),
    ("1/x", ZERO, Tendency.INFINITE),
    ("log(x)", INF, Tendency.INFINITE),
    ("-log(x)", INF, Tendency.INFINITE),
    ("sqrt(x)", INF, Tendency.INFINITE),
    ("1-1/log(x)", INF, Tendency.FINITE),
    ("sin(x)", INF, Tendency.FINITE),
    ("1/x", INF, Tendency.ZERO),
])
def test_tendency(text, point, expected):
    assert tendency(compile_expression(text), point) is expected

@pytest.mark.parametrize("text,point,side,status", [
    ("1/log(x)", INF, 1, SideStatus.FAILED),
    ("1/log(x)", ZERO, 1, SideStatus.FAILED),
    ("1-1/log(x)", INF, 1, SideStatus.FAILED),
    ("log(x)", ZERO, 1, SideStatus.DIVERGED),
    ("log(x)", INF, 1, SideStatus.DIVERGED),
    ("exp(x)", INF, 1, SideStatus.DIVERGED),
])
def test_side_walk_slow_sequences(text, point, side, status):
    assert probe_side(compile_expression(text), point, side).status is status

def test_side_walk_large_finite_value():
    p = probe_side(compile_expression("x**20"), LimitPoint.finite(10), 1)
    assert p.status is SideStatus.CONVERGED
    assert p.value == pytest.approx(1e20, rel=1e-6)

def test_lhopital_log_growth_at_infinity():
    out = run_lhopital(sp.log(X), X, INF)
    assert out.state is LHopitalState.RESOLVED
    assert out.value == 0

def _context(text, point, form, direction=Direction.BOTH):
    expression = Expression.from_raw(text)
    expr = parse(expression.normalized)
    return StrategyContext(expression=expression, expr=expr, point=point, direction=direction,
                           form=form, evaluator=Evaluator(expr))

def test_lateral_limits_agree():
    res = apply_lateral_limits(_context("sin(x)/x", ZERO, F.ZERO_OVER_ZERO))
    assert res.value == 1
    assert "Both one-sided values agree" in res.steps

def test_lateral_limits_refined():
    res = apply_lateral_limits(_context("(x**2-1)/(x-1)", LimitPoint.finite(1), F.ZERO_OVER_ZERO))
    assert res.strategy is Strategy.LATERAL_LIMITS
    assert res.value == 2

def test_lateral_limits_jump():
    res = apply_lateral_limits(_context("abs(x)/x", ZERO, F.ZERO_OVER_ZERO))
    assert res.value == DOES_NOT_EXIST
