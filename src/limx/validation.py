# -----------------------------------------------------------------------------
# Expression validation & correction hints
# Purpose:
#   Feedback for students while they type: hard errors (unbalanced
#   parentheses, unknown variables, syntax) and soft warnings for notations
#   the normalizer rewrites automatically.
# -----------------------------------------------------------------------------

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import List

from .evaluator import CompileError, EvalError, compile_expression
from .normalizer import normalize

# Sample points used to check the compiled expression can actually be evaluated
TEST_VALUES = (0.0, 1.0, -1.0, 2.0, -2.0)

SYNTAX_HELP = """\
INPUT SYNTAX

Operators:
  • Addition: +
  • Subtraction: -
  • Multiplication: *
  • Division: /
  • Power: ** (or ^)
  • Parentheses: ( )

Functions:
  • Sine: sin(x) (sen(x) accepted)
  • Cosine: cos(x)
  • Tangent: tan(x) (tg(x) accepted)
  • Natural logarithm: log(x) (ln(x) accepted)
  • Exponential: exp(x) or e^x
  • Square root: sqrt(x)
  • Absolute value: abs(x)

Constants:
  • pi
  • e (Euler's number)
  • Infinity: oo, inf, infinity or ∞
  • Minus infinity: -oo

Examples:
  • sin(x)/x
  • (x^2-1)/(x-1)
  • (sqrt(x+1)-1)/x
  • (1+1/x)^x
  • (2*x^3+5)/(x^3-7)
  • (1-cos(x))/x

Tips:
  • Use parentheses to group operations
  • A decimal comma is converted to a point automatically
  • Direction: both, left or right (ambos, esquerda, direita)
"""

@dataclass
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self):
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def _notation_warnings(expr: str) -> List[str]:
    warnings = []
    if "^" in expr:
        warnings.append('Use "**" instead of "^" for powers (converted automatically)')
    if "," in expr:
        warnings.append('Use "." instead of "," for decimals (converted automatically)')
    if "sen(" in expr:
        warnings.append('Use "sin(" instead of "sen(" for sine (converted automatically)')
    if "tg(" in expr:
        warnings.append('Use "tan(" instead of "tg(" for tangent (converted automatically)')
    if "ln(" in expr:
        warnings.append('Use "log(" instead of "ln(" for the natural logarithm (converted automatically)')
    if "++" in expr or "--" in expr:
        warnings.append("Repeated operators detected")
    if "/0" in expr.replace(" ", "") or "/x" in expr.replace(" ", ""):
        warnings.append("Possible division by zero")
    return warnings


def validate_expression(expr: str) -> ValidationReport:
    """Check an expression for errors and notation warnings without computing a limit."""
    if not expr or not expr.strip():
        return ValidationReport(False, ["Expression cannot be empty"])

    errors: List[str] = []
    warnings = _notation_warnings(expr)
    if expr.count("(") != expr.count(")"):
        errors.append("Unbalanced parentheses")

    try:
        compiled = compile_expression(normalize(expr))
    except CompileError as e:
        msg = str(e)
        if msg.startswith("Unrecognized variable"):
            errors.append(msg)
        elif not errors:
            errors.append(f"Syntax error: {msg}")
        return ValidationReport(False, errors, warnings)

    for v in TEST_VALUES:
        try:
            compiled.evaluate(v)
        except EvalError:
            continue
        break
    else:
        warnings.append("The expression could not be evaluated at x = 0, ±1, ±2")

    return ValidationReport(not errors, errors, warnings)


def suggest_corrections(expr: str) -> List[str]:
    """Errors first, then warnings, as a flat list of hints."""
    report = validate_expression(expr)
    return report.errors + report.warnings


def auto_correct(expr: str) -> str:
    """Rewrite common notations in place, keeping the student's spacing."""
    if not expr:
        return expr
    s = expr.replace("^", "**").replace(",", ".")
    s = re.sub(r"\bsen\(", "sin(", s)
    s = re.sub(r"\btg\(", "tan(", s)
    s = re.sub(r"\bln\(", "log(", s)
    s = re.sub(r"-\s*infinity\b", "-oo", s)
    s = re.sub(r"\binfinity\b", "oo", s)
    return s
