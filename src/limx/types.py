# -----------------------------------------------------------------------------
# Types module: Shared values for the limit engine
# Purpose:
#   Define the structured representations passed between the normalizer,
#   classifier, selector, strategy appliers and the API layer.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Union

from .config import INFINITY_SURROGATE

# Display/value labels for non-numeric outcomes
DOES_NOT_EXIST = "Does not exist"
ERROR = "Error"
MAX_ITERATIONS = "Maximum iterations reached"
INDETERMINATE = "Indeterminate"


class Direction(Enum):
    BOTH = "both"
    LEFT = "left"
    RIGHT = "right"

    @staticmethod
    def parse(text: str | None) -> "Direction | None":
        """Accept Portuguese and English direction labels; None when unknown."""
        s = (text or "ambos").strip().lower()
        aliases = {
            "ambos": Direction.BOTH, "both": Direction.BOTH, "": Direction.BOTH,
            "esquerda": Direction.LEFT, "left": Direction.LEFT, "-": Direction.LEFT,
            "direita": Direction.RIGHT, "right": Direction.RIGHT, "+": Direction.RIGHT,
        }
        return aliases.get(s)


class IndeterminateForm(Enum):
    ZERO_OVER_ZERO = "0/0"
    INF_OVER_INF = "∞/∞"
    INF_MINUS_INF = "∞-∞"
    ONE_TO_INF = "1^∞"
    ZERO_TIMES_INF = "0·∞"
    ZERO_TO_ZERO = "0^0"
    INF_TO_ZERO = "∞^0"
    NONZERO_OVER_ZERO = "k/0"
    NUMERICAL = "numerical"
    INFINITE = "infinite"
    UNDEFINED = "undefined"

    @property
    def is_indeterminate(self) -> bool:
        return self not in (IndeterminateForm.NUMERICAL, IndeterminateForm.INFINITE,
                            IndeterminateForm.UNDEFINED, IndeterminateForm.NONZERO_OVER_ZERO)


class Strategy(Enum):
    DIRECT_SUBSTITUTION = "direct_substitution"
    LATERAL_LIMITS = "lateral_limits"
    FACTORING = "factoring"
    RATIONALIZATION = "rationalization"
    FUNDAMENTAL_LIMIT = "fundamental_limit"
    LHOPITAL = "lhopital"
    HIGHEST_DEGREE = "highest_degree"
    CONJUGATE_MULTIPLICATION = "conjugate_multiplication"
    EXPONENTIAL_FUNDAMENTALS = "exponential_fundamentals"
    NUMERIC_FALLBACK = "numeric_fallback"


class SymbolicConstant(Enum):
    E = "e"
    INFINITY = "∞"
    NEG_INFINITY = "-∞"

    @property
    def numeric(self) -> float:
        return {SymbolicConstant.E: math.e,
                SymbolicConstant.INFINITY: math.inf,
                SymbolicConstant.NEG_INFINITY: -math.inf}[self]


class ResultKind(Enum):
    RESOLVED = "resolved"
    DOES_NOT_EXIST = "does_not_exist"
    UNRESOLVED = "unresolved"
    EXPLANATION_ONLY = "explanation_only"
    ERROR = "error"


class PointKind(Enum):
    FINITE = "finite"
    POS_INF = "+oo"
    NEG_INF = "-oo"


@dataclass(frozen=True)
class Expression:
    """Raw user text plus its canonical form (see normalizer.normalize)."""
    raw: str
    normalized: str

    @staticmethod
    def from_raw(raw: str) -> "Expression":
        from .normalizer import normalize
        return Expression(raw=raw, normalized=normalize(raw))


@dataclass(frozen=True)
class LimitPoint:
    kind: PointKind
    value: float = 0.0   # meaningful only for FINITE

    @staticmethod
    def finite(value: float) -> "LimitPoint":
        return LimitPoint(PointKind.FINITE, float(value))

    @staticmethod
    def pos_inf() -> "LimitPoint":
        return LimitPoint(PointKind.POS_INF)

    @staticmethod
    def neg_inf() -> "LimitPoint":
        return LimitPoint(PointKind.NEG_INF)

    @property
    def is_infinite(self) -> bool:
        return self.kind is not PointKind.FINITE

    @property
    def sign(self) -> int:
        # Orientation of an infinite point; finite points report the sign of the value
        if self.kind is PointKind.POS_INF:
            return 1
        if self.kind is PointKind.NEG_INF:
            return -1
        return (self.value > 0) - (self.value < 0)

    @property
    def probe_value(self) -> float:
        """Value used to evaluate 'at' the point: the point itself or ±1e10."""
        if self.is_infinite:
            return self.sign * INFINITY_SURROGATE
        return self.value

    def __str__(self) -> str:
        if self.kind is PointKind.POS_INF:
            return "∞"
        if self.kind is PointKind.NEG_INF:
            return "-∞"
        v = self.value
        return str(int(v)) if v == int(v) else repr(v)


Value = Union[float, SymbolicConstant, str]


@dataclass
class CalculationResult:
    """
    Outcome of one limit computation.
    - value: float, symbolic constant (e, ∞, -∞) or a label such as "Does not exist"
    - display: canonical presentation string (see formatter.format_result)
    - steps/tips: the explanation trail and form-specific hints
    """
    value: Value
    display: str
    steps: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)
    strategy: Strategy | None = None
    form: IndeterminateForm | None = None
    kind: ResultKind = ResultKind.RESOLVED

    @property
    def numeric(self) -> float | None:
        if isinstance(self.value, SymbolicConstant):
            return self.value.numeric
        if isinstance(self.value, (int, float)):
            return float(self.value)
        return None

    @property
    def complexity(self) -> str:
        n = len(self.steps) + len(self.tips)
        if n <= 3:
            return "Simple"
        if n <= 6:
            return "Medium"
        if n <= 10:
            return "Complex"
        return "Very complex"

    def to_dict(self) -> Dict[str, Any]:
        # JSON-friendly payload for the API layer
        value: Any = self.value.value if isinstance(self.value, SymbolicConstant) else self.value
        if isinstance(value, float) and not math.isfinite(value):
            value = self.display
        return {
            "value": value,
            "display": self.display,
            "steps": list(self.steps),
            "tips": list(self.tips),
            "strategy": self.strategy.value if self.strategy else None,
            "form": self.form.value if self.form else None,
            "kind": self.kind.value,
            "metadata": {
                "has_error": self.kind is ResultKind.ERROR,
                "is_indeterminate": bool(self.form and self.form.is_indeterminate),
                "is_fundamental": self.strategy is Strategy.FUNDAMENTAL_LIMIT,
                "complexity": self.complexity,
            },
        }
