import pytest

from limx.config import Settings
from limx.evaluator import CompileError, EvalError, compile_expression, derivative, parse, simplify
from limx.normalizer import normalize, parse_point
from limx.types import Direction, LimitPoint, PointKind

@pytest.mark.parametrize("raw", [
    "sen(x)/x", "x^2 + 3,5", "ln(1+x)/x", "tg(x) / x", "(1+1/x)^x",
    "x × 2 ÷ 4", "π*x", "x²-1", "infinity", "exp(x)-1", "",
])
def test_normalize_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once

def test_normalize_rewrites():
    assert normalize("sen(x)/x") == "sin(x)/x"
    assert normalize("x^2 + 3,5") == "x**2+3.5"
    assert normalize("ln(1+x)/x") == "log(1+x)/x"
    assert normalize("tg(x)") == "tan(x)"
    assert normalize("x²") == "x**2"
    assert normalize("∞") == "oo"

def test_normalize_keeps_whole_words():
    # aliases only apply to whole tokens
    assert normalize("sin(x)") == "sin(x)"
    assert normalize("sinh(x)") == "sinh(x)"

@pytest.mark.parametrize("text", ["oo", "inf", "infinity", "∞", "+oo", "INF", " Infinity "])
def test_parse_point_positive_infinity(text):
    p = parse_point(text)
    assert p == LimitPoint.pos_inf()
    assert p.is_infinite and p.sign == 1

@pytest.mark.parametrize("text", ["-oo", "-inf", "-infinity", "-∞"])
def test_parse_point_negative_infinity(text):
    assert parse_point(text).kind is PointKind.NEG_INF

def test_parse_point_numbers():
    assert parse_point("2").value == 2.0
    assert parse_point("0,5").value == 0.5
    assert parse_point("-1.25").value == -1.25
    assert parse_point("00").kind is PointKind.FINITE

@pytest.mark.parametrize("text", ["", None, "abc", "nan", "1..2"])
def test_parse_point_rejects(text):
    assert parse_point(text) is None

def test_probe_value_surrogate():
    assert LimitPoint.pos_inf().probe_value == 1e10
    assert LimitPoint.neg_inf().probe_value == -1e10
    assert LimitPoint.finite(3).probe_value == 3.0
    assert str(LimitPoint.finite(3)) == "3"

def test_direction_aliases():
    assert Direction.parse("ambos") is Direction.BOTH
    assert Direction.parse("esquerda") is Direction.LEFT
    assert Direction.parse("Direita") is Direction.RIGHT
    assert Direction.parse(None) is Direction.BOTH
    assert Direction.parse("up") is None

def test_compile_and_evaluate():
    ev = compile_expression("x**2+1")
    assert ev.evaluate(2) == 5.0
    assert compile_expression("2x").evaluate(3) == 6.0
    assert abs(compile_expression("e**x").evaluate(1) - 2.718281828) < 1e-8

def test_evaluate_errors():
    with pytest.raises(EvalError):
        compile_expression("1/x").evaluate(0)
    with pytest.raises(EvalError):
        compile_expression("log(x)").evaluate(0)
    with pytest.raises(EvalError):
        compile_expression("sqrt(x)").evaluate(-1)

def test_compile_errors():
    with pytest.raises(CompileError):
        parse("")
    with pytest.raises(CompileError):
        parse("y+x")
    with pytest.raises(CompileError):
        parse("sin(x")
    with pytest.raises(CompileError):
        parse("__import__('os')")

def test_derivative_text():
    assert derivative("x**3") == "3*x**2"

def test_simplify_text():
    assert simplify("(x**2-1)/(x-1)") == "x + 1"

def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("LIMX_LOG_JSON", "true")
    monkeypatch.setenv("API_PORT", "9001")
    monkeypatch.setenv("LIMX_LHOPITAL_MAX_ITERATIONS", "5")
    s = Settings.from_env()
    assert s.api_port == 9001
    assert s.log_json is True
    assert s.lhopital_max_iterations == 5
    monkeypatch.setenv("LIMX_LHOPITAL_MAX_ITERATIONS", "0")
    with pytest.raises(ValueError):
        Settings.from_env()
