import pytest
import sympy as sp

from limx.catalog import Catalog, CatalogError, load_examples
from limx.types import LimitPoint

ZERO = LimitPoint.finite(0)
INF = LimitPoint.pos_inf()

def test_catalog_loads(catalog):
    ids = {e["id"] for e in catalog.list_entries()}
    assert {"sin_x_over_x", "one_plus_inv_x_pow_x", "a_pow_x_minus_one_over_x"} <= ids

@pytest.mark.parametrize("text,point,expected", [
    ("sin(x)/x", ZERO, 1),
    ("(1-cos(x))/x", ZERO, 0),
    ("(1-cos(x))/x**2", ZERO, sp.Rational(1, 2)),
    ("tan(x)/x", ZERO, 1),
    ("(1+1/x)**x", INF, sp.E),
    ("(1+1/x)**x", LimitPoint.neg_inf(), sp.E),
    ("(1+x)**(1/x)", ZERO, sp.E),
    ("(e**x-1)/x", ZERO, 1),
    ("(exp(x)-1)/x", ZERO, 1),
    ("log(1+x)/x", ZERO, 1),
    ("(3**x-1)/x", ZERO, sp.log(3)),
])
def test_lookup_matches(catalog, text, point, expected):
    m = catalog.lookup(text, point)
    assert m is not None
    assert sp.simplify(m.value - expected) == 0

def test_lookup_respects_point(catalog):
    assert catalog.lookup("sin(x)/x", LimitPoint.finite(1)) is None
    assert catalog.lookup("(1+1/x)**x", ZERO) is None

def test_lookup_is_textual(catalog):
    # equivalent but differently written expressions are not recognized
    assert catalog.lookup("sin(2*x)/x", ZERO) is None
    assert catalog.lookup("(0**x-1)/x", ZERO) is None

def test_malformed_catalog():
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text("limits: []")
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text("""
categories:
  trig:
    limits:
      - id: broken
        name: broken
        point: zero
        value: "1"
""")
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text("""
categories:
  trig:
    limits:
      - id: bad_point
        name: bad
        point: one
        value: "1"
        patterns: ['^x$']
""")

def test_examples_file():
    items = load_examples()
    assert len(items) >= 15
    assert all({"function", "point", "direction", "expected", "category"} <= set(i) for i in items)
