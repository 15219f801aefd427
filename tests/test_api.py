from fastapi.testclient import TestClient

import api.main
from api.main import app
from limx.tracer import StepTrace
from limx.validation import auto_correct, suggest_corrections, validate_expression

client = TestClient(app)

def test_health():
    assert client.get("/health").json() == {"ok": True}

def test_limit_endpoint():
    r = client.post("/limit", json={"function": "sin(x)/x", "point": "0", "direction": "ambos"})
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["display"] == "1"
    assert body["strategy"] == "fundamental_limit"
    assert body["metadata"]["is_fundamental"] is True

def test_limit_endpoint_infinite_value():
    r = client.post("/limit", json={"function": "(x^3+1)/(x^2+1)", "point": "oo"})
    assert r.json()["value"] == "∞"

def test_limit_endpoint_error_payload():
    body = client.post("/limit", json={"function": "", "point": "0"}).json()
    assert body["ok"] is False
    assert body["value"] == "Error"
    assert body["kind"] == "error"

def test_catalog_and_examples():
    assert client.get("/catalog").json()["count"] >= 10
    assert client.get("/examples").json()["count"] >= 15
    assert "INPUT SYNTAX" in client.get("/syntax").json()["help"]

def test_validate_endpoint():
    body = client.post("/validate", json={"expression": "sen(x)^2"}).json()
    assert body["valid"] is True
    assert body["corrected"] == "sin(x)**2"
    assert any("sen(" in w for w in body["warnings"])

def test_validate_errors():
    r = validate_expression("(x+1")
    assert not r.valid
    assert "Unbalanced parentheses" in r.errors
    r = validate_expression("y+1")
    assert not r.valid and r.errors[0].startswith("Unrecognized variable")
    assert validate_expression("   ").errors == ["Expression cannot be empty"]

def test_validate_warnings():
    r = validate_expression("1/x + 0,5")
    assert r.valid
    assert "Possible division by zero" in r.warnings
    assert any('","' in w for w in r.warnings)

def test_suggest_and_autocorrect():
    assert suggest_corrections("(x+1")[0] == "Unbalanced parentheses"
    assert auto_correct("tg(x) + ln(x)") == "tan(x) + log(x)"
    assert auto_correct("-infinity") == "-oo"
    assert auto_correct("x^2, infinity") == "x**2. oo"

def test_step_trace_records():
    t = StepTrace()
    t.add("first")
    t.add_record("Difference of squares", "x**2 - 1", "(x - 1)*(x + 1)")
    assert len(t) == 2
    assert t.lines()[1] == "Difference of squares: x**2 - 1 = (x - 1)*(x + 1)"

def test_run_serves_with_uvicorn(monkeypatch):
    calls = {}
    monkeypatch.setattr(api.main.uvicorn, "run", lambda target, **kw: calls.update(kw, target=target))
    api.main.run()
    assert calls["target"] is app
    assert calls["host"] == api.main._settings.api_host
    assert calls["port"] == api.main._settings.api_port
