# -----------------------------------------------------------------------------
# LimitEngine: End-to-end limit pipeline
# Responsibilities:
#   • Validate and normalize inputs (function text, limit point, direction)
#   • Compile the expression once (SymPy) and reuse it for every probe
#   • Fundamental-limit catalog short-circuit
#   • Form classification → strategy selection → strategy application
#   • Jump check for two-sided limits, numeric fallback for unresolved cases
#   • One error funnel: calculate() never raises to the caller
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from functools import lru_cache
from typing import Optional

from .catalog import Catalog
from .classifier import classify
from .config import Settings, JUMP_TOL
from .evaluator import Evaluator, CompileError, parse
from .log import get_logger
from .normalizer import InputError, parse_point
from .numeric import SideStatus, jump_check, numeric_limit, probe_side
from .selector import select
from .strategies import StrategyContext, apply, labelled, resolved
from .tracer import StepTrace
from .types import (CalculationResult, Direction, Expression, IndeterminateForm,
                    ResultKind, Strategy, ERROR)
from .validation import suggest_corrections

logger = get_logger(__name__)


class LimitEngine:
    def __init__(self, catalog: Optional[Catalog] = None, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.catalog = catalog or Catalog.from_file(self.settings.catalog_path)

    @staticmethod
    def _classify_error(e: Exception) -> str:
        # "user_input" errors are fixable by the student; anything else is ours
        if isinstance(e, (InputError, CompileError)):
            return "user_input"
        return "engine"

    @staticmethod
    def _side_check(ctx: StrategyContext, result: CalculationResult) -> CalculationResult:
        """
        Symbolic strategies substitute the point itself, which ignores the side
        (abs(x)/x → sign(x) → 0). A convergent one-sided probe that disagrees wins.
        """
        v = result.numeric
        if result.kind is not ResultKind.RESOLVED or v is None or not math.isfinite(v):
            return result
        side = probe_side(ctx.evaluator, ctx.point, -1 if ctx.direction is Direction.LEFT else 1)
        if side.status is not SideStatus.CONVERGED or abs(side.value - v) <= JUMP_TOL:
            return result
        ctx.trace.add(f"Checking the {ctx.direction.value} side numerically: values approach {side.value:g}")
        return resolved(ctx, Strategy.LATERAL_LIMITS, side.value)

    def calculate(self, function_str: str, point_str: str, direction: str = "ambos") -> CalculationResult:
        """
        Compute lim f(x) as x → point from the given direction.
        Failures are reported as value "Error" with the message in the steps.
        """
        trace = StepTrace()
        try:
            return self._calculate(function_str, point_str, direction, trace)
        except Exception as e:
            kind = self._classify_error(e)
            if kind == "user_input":
                logger.info("limit_rejected", function=function_str, point=point_str, error=str(e))
            else:
                logger.exception("limit_failed", function=function_str, point=point_str)
            trace.add(f"Error: {e}")
            tips = suggest_corrections(function_str or "")
            return CalculationResult(ERROR, ERROR, trace.lines(), tips, None, None, ResultKind.ERROR)

    def _calculate(self, function_str: str, point_str: str, direction: str, trace: StepTrace) -> CalculationResult:
        if not function_str or not str(function_str).strip():
            raise InputError("Please enter a function of x")
        if point_str is None or not str(point_str).strip():
            raise InputError("Please enter the limit point")
        d = Direction.parse(direction)
        if d is None:
            raise InputError(f"Invalid direction: {direction!r} (use both, left or right)")
        point = parse_point(point_str)
        if point is None:
            raise InputError(f"Invalid limit point: {point_str!r}")

        expression = Expression.from_raw(function_str)
        side = "" if d is Direction.BOTH or point.is_infinite else ("⁻" if d is Direction.LEFT else "⁺")
        trace.add(f"Computing lim x → {point}{side} of {expression.normalized}")
        if expression.normalized != expression.raw.strip():
            trace.add(f"Normalized input: {expression.raw.strip()} → {expression.normalized}")

        expr = parse(expression.normalized)
        evaluator = Evaluator(expr)

        match = self.catalog.lookup(expression.normalized, point)
        form = classify(expr, point)
        ctx = StrategyContext(expression=expression, expr=expr, point=point, direction=d, form=form,
                              evaluator=evaluator, settings=self.settings, trace=trace,
                              catalog_match=match)
        if match is not None:
            result = apply(Strategy.FUNDAMENTAL_LIMIT, ctx)
            logger.info("limit_calculated", function=expression.normalized, point=str(point),
                        strategy=result.strategy.value, display=result.display)
            return result

        selection = select(form, expr)
        trace.extend(selection.steps)
        ctx.tips = selection.tips

        if not point.is_infinite and d is Direction.BOTH and form is not IndeterminateForm.NUMERICAL:
            if jump_check(evaluator, point) is not None:
                trace.add("The one-sided values settle on different numbers: comparing lateral limits")
                result = apply(Strategy.LATERAL_LIMITS, ctx)
                logger.info("limit_calculated", function=expression.normalized, point=str(point),
                            form=form.value, strategy=result.strategy.value, display=result.display)
                return result

        result = apply(selection.strategy, ctx)
        if result.kind in (ResultKind.UNRESOLVED, ResultKind.EXPLANATION_ONLY) \
                and selection.strategy is not Strategy.NUMERIC_FALLBACK:
            trace.add("Estimating the limit numerically")
            fb = numeric_limit(evaluator, point, d)
            trace.extend(fb.steps)
            if fb.value is not None:
                result = resolved(ctx, Strategy.NUMERIC_FALLBACK, fb.value)
            else:
                result = labelled(ctx, result.strategy, str(result.value), result.kind)
        elif d is not Direction.BOTH and not point.is_infinite and form is not IndeterminateForm.NUMERICAL:
            result = self._side_check(ctx, result)

        logger.info("limit_calculated", function=expression.normalized, point=str(point),
                    form=form.value, strategy=result.strategy.value if result.strategy else None,
                    display=result.display)
        return result


@lru_cache(maxsize=1)
def default_engine() -> LimitEngine:
    return LimitEngine()


def calculate_limit(function_str: str, point_str: str, direction: str = "ambos") -> CalculationResult:
    """Module-level convenience wrapper around a shared LimitEngine."""
    return default_engine().calculate(function_str, point_str, direction)
