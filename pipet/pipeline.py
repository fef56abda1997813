"""Pipeline — fluent builder and entry point for conditional pipelines."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from .body import Op
from .config import EvaluatorConfig
from .errors import PipelineConfigError
from .evaluator import applier_for, evaluate, plan_steps, run_plan
from .result import EvaluationResult
from .steps import (
    Call,
    binary,
    call,
    fallible_binding_chain,
    guarded_dispatch,
    negated_binary,
    pattern_dispatch,
)

logger = logging.getLogger(__name__)

_MISSING = object()


class Pipeline:
    """Initial value plus an ordered sequence of steps.

    Build via the fluent API::

        result = (
            Pipeline(1)
            .call(inc)                                   # 2
            .binary(lambda: flag, inc)                   # 3 when flag holds
            .negated_binary(True, op(add, 3))            # skipped
            .pattern_dispatch(get_status, [
                (("ok", bind("n")), op(add, ref("n"))),
                (_, identity),
            ])
            .evaluate()
        )

    A ``Pipeline`` is itself a transform (``pipe(value)``), so it can be
    passed to ``call()`` or appended with ``then()`` inside another pipeline.

    Evaluate many initial values::

        results = pipe.run([1, 2, 3])
    """

    def __init__(
        self,
        initial: Any = _MISSING,
        steps: Iterable[Any] | None = None,
        *,
        config: EvaluatorConfig | None = None,
    ) -> None:
        self.initial = initial
        self.config = config or EvaluatorConfig()
        self._steps: list = [self._coerce_step(s) for s in (steps or [])]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_step(step: Any) -> Any:
        """Return *step* as one of the step kinds.

        A nested ``Pipeline`` becomes a ``Call``; anything that is not a
        step kind raises ``PipelineConfigError``.
        """
        if isinstance(step, Pipeline):
            return Call(Op(step))
        applier_for(step)
        return step

    @property
    def steps(self) -> tuple:
        return tuple(self._steps)

    # ------------------------------------------------------------------
    # Fluent builder
    # ------------------------------------------------------------------

    def then(self, step: Any) -> "Pipeline":
        """Append *step* and return ``self`` for chaining."""
        # Validate before mutating so errors are raised immediately
        coerced = self._coerce_step(step)
        self._steps = self._steps + [coerced]
        return self

    def call(self, fn: Any, *args: Any, **kwargs: Any) -> "Pipeline":
        """Append a ``Call`` step: ``value -> fn(value, *args, **kwargs)``."""
        return self.then(call(fn, *args, **kwargs))

    def binary(self, condition: Any, then: Any, otherwise: Any = None) -> "Pipeline":
        return self.then(binary(condition, then, otherwise))

    def negated_binary(
        self, condition: Any, then: Any, otherwise: Any = None
    ) -> "Pipeline":
        return self.then(negated_binary(condition, then, otherwise))

    def guarded_dispatch(self, clauses: Iterable[Any]) -> "Pipeline":
        return self.then(guarded_dispatch(clauses))

    def pattern_dispatch(self, subject: Any, clauses: Iterable[Any]) -> "Pipeline":
        return self.then(pattern_dispatch(subject, clauses))

    def fallible_binding_chain(
        self,
        bindings: Iterable[Any],
        body: Any,
        fallback: Iterable[Any] | None = None,
    ) -> "Pipeline":
        return self.then(fallible_binding_chain(bindings, body, fallback))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, initial: Any = _MISSING) -> Any:
        """Thread *initial* (or the pipeline's own initial value) through
        every step and return the final value."""
        if initial is _MISSING:
            initial = self.initial
        if initial is _MISSING:
            raise PipelineConfigError(
                "Pipeline has no initial value; pass one to Pipeline() or evaluate()"
            )
        return evaluate(initial, self.steps, self.config)

    def __call__(self, value: Any) -> Any:
        """Use the pipeline as a transform of *value*."""
        return self.evaluate(value)

    def run(self, samples: Iterable[Any]) -> list[EvaluationResult]:
        """Evaluate each of *samples* as an initial value, in order.

        Failures are captured per sample instead of raised: every sample
        produces exactly one ``EvaluationResult``.
        """
        plan = plan_steps(self._steps)
        results: list[EvaluationResult] = []
        for sample in samples:
            output, error, index = run_plan(sample, plan, self.config)
            result = EvaluationResult(
                sample=sample, output=output, error=error, failed_at=None
            )
            if error is not None:
                result.failed_at = type(plan[index][0]).__name__
                result.step_index = index
                logger.warning(
                    "Pipeline: sample %r failed at step %d (%s): %s",
                    sample,
                    index,
                    result.failed_at,
                    error,
                )
            results.append(result)
        return results

    def __repr__(self) -> str:
        kinds = ", ".join(type(s).__name__ for s in self._steps)
        return f"Pipeline([{kinds}])"
