"""Evaluator — threads a value through an ordered list of steps."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from .body import IDENTITY_BODY, apply_body, resolve
from .config import EvaluatorConfig
from .errors import (
    FallbackFallthrough,
    FallthroughError,
    GuardFallthrough,
    PatternFallthrough,
    PipelineConfigError,
)
from .steps import (
    Binary,
    Call,
    Clause,
    FallibleBindingChain,
    GuardedDispatch,
    NegatedBinary,
    PatternDispatch,
)

logger = logging.getLogger(__name__)


def _condition(expr: Any, config: EvaluatorConfig, what: str) -> bool:
    result = resolve(expr)
    if config.strict_conditions and not isinstance(result, bool):
        raise TypeError(
            f"{what} must evaluate to a bool under strict_conditions, "
            f"got {type(result).__name__}"
        )
    return bool(result)


def _first_pattern_match(
    subject: Any, clauses: Iterable[Clause], scope: dict[str, Any] | None = None
) -> tuple[int, Clause, dict[str, Any]] | None:
    for position, clause in enumerate(clauses):
        captured = clause.matcher.match(subject, scope)
        if captured is not None:
            return position, clause, captured
    return None


# ---------------------------------------------------------------------------
# Per-kind selection
# ---------------------------------------------------------------------------


def _apply_call(value: Any, step: Call, config: EvaluatorConfig) -> Any:
    if config.trace:
        logger.debug("Call %s", step.op.name)
    return step.op.pipe(value)


def _select_branch(run_then: bool, step: Binary | NegatedBinary) -> tuple[str, Any]:
    if run_then:
        return "then", step.then
    if step.otherwise is not None:
        return "otherwise", step.otherwise
    return "identity", IDENTITY_BODY


def _apply_binary(value: Any, step: Binary, config: EvaluatorConfig) -> Any:
    holds = _condition(step.condition, config, "condition")
    label, body = _select_branch(holds, step)
    if config.trace:
        logger.debug("Binary: condition %s, running %s", holds, label)
    return apply_body(value, body)


def _apply_negated_binary(
    value: Any, step: NegatedBinary, config: EvaluatorConfig
) -> Any:
    # then runs when the condition fails; a missing else stays the identity
    holds = _condition(step.condition, config, "condition")
    label, body = _select_branch(not holds, step)
    if config.trace:
        logger.debug("NegatedBinary: condition %s, running %s", holds, label)
    return apply_body(value, body)


def _apply_guarded_dispatch(
    value: Any, step: GuardedDispatch, config: EvaluatorConfig
) -> Any:
    for position, clause in enumerate(step.clauses):
        if _condition(clause.matcher, config, "guard"):
            if config.trace:
                logger.debug("GuardedDispatch: clause %d selected", position)
            return apply_body(value, clause.body)
    logger.debug("GuardedDispatch: no guard held for value %r", value)
    raise GuardFallthrough(value=value)


def _apply_pattern_dispatch(
    value: Any, step: PatternDispatch, config: EvaluatorConfig
) -> Any:
    subject = resolve(step.subject)
    selected = _first_pattern_match(subject, step.clauses)
    if selected is None:
        logger.debug("PatternDispatch: no clause matched %r", subject)
        raise PatternFallthrough(subject=subject, value=value)
    position, clause, captured = selected
    if config.trace:
        logger.debug(
            "PatternDispatch: clause %d matched %r, bound %s",
            position,
            subject,
            sorted(captured),
        )
    return apply_body(value, clause.body, captured)


def _apply_fallible_binding_chain(
    value: Any, step: FallibleBindingChain, config: EvaluatorConfig
) -> Any:
    scope: dict[str, Any] = {}
    for position, binding in enumerate(step.bindings):
        produced = resolve(binding.expr, scope)
        captured = binding.pattern.match(produced, scope)
        if captured is None:
            if config.trace:
                logger.debug(
                    "FallibleBindingChain: binding %d failed on %r", position, produced
                )
            return _apply_fallback(value, produced, step, config)
        scope.update(captured)
    if config.trace:
        logger.debug("FallibleBindingChain: all bindings matched, bound %s", sorted(scope))
    return apply_body(value, step.body, scope)


def _apply_fallback(
    value: Any, produced: Any, step: FallibleBindingChain, config: EvaluatorConfig
) -> Any:
    if step.fallback is None:
        logger.debug("FallibleBindingChain: no fallback clauses for %r", produced)
        raise FallbackFallthrough(subject=produced, value=value, has_fallback=False)
    selected = _first_pattern_match(produced, step.fallback)
    if selected is None:
        logger.debug("FallibleBindingChain: no fallback clause matched %r", produced)
        raise FallbackFallthrough(subject=produced, value=value)
    position, clause, captured = selected
    if config.trace:
        logger.debug("FallibleBindingChain: fallback clause %d selected", position)
    return apply_body(value, clause.body, captured)


_APPLIERS: dict[type, Callable[[Any, Any, EvaluatorConfig], Any]] = {
    Call: _apply_call,
    Binary: _apply_binary,
    NegatedBinary: _apply_negated_binary,
    GuardedDispatch: _apply_guarded_dispatch,
    PatternDispatch: _apply_pattern_dispatch,
    FallibleBindingChain: _apply_fallible_binding_chain,
}


def applier_for(step: Any) -> Callable[[Any, Any, EvaluatorConfig], Any]:
    """Return the selection function for *step*'s kind.

    Raises ``PipelineConfigError`` when *step* is not one of the step kinds.
    """
    try:
        return _APPLIERS[type(step)]
    except KeyError:
        raise PipelineConfigError(
            f"{type(step).__name__} is not a pipeline step; expected one of "
            f"{', '.join(cls.__name__ for cls in _APPLIERS)}"
        ) from None


def apply_step(
    value: Any, step: Any, config: EvaluatorConfig | None = None
) -> Any:
    """Evaluate a single step against *value* and return the new value."""
    return applier_for(step)(value, step, config or EvaluatorConfig())


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def evaluate(
    initial: Any, steps: Iterable[Any], config: EvaluatorConfig | None = None
) -> Any:
    """Thread *initial* through *steps*, strictly left to right.

    Each step's result is the next step's input.  Failures raised by user
    code propagate unchanged; a fallthrough error gets the failing step's
    position recorded in ``step_index`` before it propagates.
    """
    plan = plan_steps(steps)
    output, error, _ = run_plan(initial, plan, config or EvaluatorConfig())
    if error is not None:
        raise error
    return output


def plan_steps(steps: Iterable[Any]) -> list[tuple[Any, Callable[..., Any]]]:
    """Pair each step with its applier.

    Every kind is resolved up front so a bad step fails before any side
    effect.
    """
    return [(step, applier_for(step)) for step in steps]


def run_plan(
    initial: Any,
    plan: list[tuple[Any, Callable[..., Any]]],
    config: EvaluatorConfig,
) -> tuple[Any, Exception | None, int | None]:
    """Run a plan from :func:`plan_steps` and capture the first failure.

    Returns ``(output, None, None)`` on success and ``(None, error, index)``
    when the step at *index* raised.  A fallthrough error also gets
    ``step_index`` recorded, unless a nested pipeline already set it.
    """
    current = initial
    for index, (step, applier) in enumerate(plan):
        try:
            current = applier(current, step, config)
        except Exception as exc:
            if isinstance(exc, FallthroughError) and exc.step_index is None:
                exc.step_index = index
            return None, exc, index
    return current, None, None
