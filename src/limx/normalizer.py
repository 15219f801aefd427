# -----------------------------------------------------------------------------
# Input normalization
# Purpose:
#   Turn locale-flavored input ("sen(x)/x", "x^2", "0,5", "∞") into the one
#   canonical syntax every later stage relies on, and parse limit points.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
import re
from typing import Optional

from .types import LimitPoint

class InputError(Exception): pass

# Single-character replacements applied before token aliases
_CHAR_MAP = [
    (",", "."),
    ("^", "**"),
    ("×", "*"),
    ("·", "*"),
    ("÷", "/"),
    ("π", "pi"),
    ("²", "**2"),
    ("³", "**3"),
    ("∞", "oo"),
]

# Whole-word aliases (Portuguese function names, spelled-out infinity)
_TOKEN_ALIASES = [
    ("infinity", "oo"),
    ("infinito", "oo"),
    ("inf", "oo"),
    ("sen", "sin"),
    ("tg", "tan"),
    ("ln", "log"),
]
_TOKEN_RES = [(re.compile(rf"(?<![A-Za-z_]){word}(?![A-Za-z_])"), repl) for word, repl in _TOKEN_ALIASES]

_INFINITY_WORDS = {"oo", "inf", "infinity", "infinito", "∞"}


def normalize(raw: str) -> str:
    """
    Canonicalize an expression string. Never raises; unknown tokens pass
    through untouched. normalize(normalize(s)) == normalize(s).
    """
    s = re.sub(r"\s+", "", raw or "")
    for src, dst in _CHAR_MAP:
        s = s.replace(src, dst)
    for rx, repl in _TOKEN_RES:
        s = rx.sub(repl, s)
    return s


def parse_point(text: str | None) -> Optional[LimitPoint]:
    """
    Parse a limit point: oo / inf / infinity / ∞ (optionally signed, any case)
    or a plain decimal ("0,5" accepted). Returns None when unparseable.
    """
    if text is None:
        return None
    s = re.sub(r"\s+", "", str(text)).lower()
    if not s:
        return None
    sign = 1
    body = s
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body in _INFINITY_WORDS:
        return LimitPoint.pos_inf() if sign > 0 else LimitPoint.neg_inf()
    try:
        v = float(s.replace(",", "."))
    except ValueError:
        return None
    if math.isnan(v):
        return None
    if math.isinf(v):
        return LimitPoint.pos_inf() if v > 0 else LimitPoint.neg_inf()
    return LimitPoint.finite(v)
