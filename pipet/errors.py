"""Pipet error types."""

from __future__ import annotations

from typing import Any


class PipelineConfigError(Exception):
    """Invalid pipeline wiring.

    Examples:
    - An empty body, or a body whose final sub-operation is a ``Let``.
    - A clause that is not a ``(matcher, body)`` pair.
    - An object appended to a pipeline that is not one of the step kinds.
    """


class UnboundNameError(KeyError):
    """A ``Ref`` or ``Pin`` names a binding that is not in scope."""

    def __init__(self, name: str, available: Any = ()) -> None:
        self.name = name
        self.available = tuple(sorted(available))
        super().__init__(
            f"name {name!r} is not bound in this step "
            f"(bound names: {list(self.available)!r})"
        )

    def __str__(self) -> str:
        return str(self.args[0])


class FallthroughError(Exception):
    """No clause of a dispatch step matched.

    ``subject`` is what was being matched (``None`` for guarded dispatch,
    where there is no subject).  ``value`` is the threaded value the step
    received.  ``step_index`` is filled in by the evaluator with the
    position of the failing step.
    """

    kind = "dispatch"

    def __init__(self, subject: Any = None, value: Any = None) -> None:
        self.subject = subject
        self.value = value
        self.step_index: int | None = None
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"no {self.kind} clause matched {self.subject!r}"

    def __str__(self) -> str:
        message = self._describe()
        if self.step_index is not None:
            message = f"step {self.step_index}: {message}"
        return message


class GuardFallthrough(FallthroughError):
    """A guarded dispatch had no guard evaluate true."""

    kind = "guard"

    def _describe(self) -> str:
        return f"no guard clause evaluated true (value={self.value!r})"


class PatternFallthrough(FallthroughError):
    """A pattern dispatch subject matched none of the clause patterns."""

    kind = "pattern"


class FallbackFallthrough(FallthroughError):
    """A fallible binding failed and no fallback clause matched it.

    ``subject`` is the value produced by the failing binding expression.
    """

    kind = "fallback"

    def __init__(
        self, subject: Any = None, value: Any = None, has_fallback: bool = True
    ) -> None:
        self.has_fallback = has_fallback
        super().__init__(subject, value)

    def _describe(self) -> str:
        if not self.has_fallback:
            return f"binding failed on {self.subject!r} and no fallback clauses were given"
        return f"no fallback clause matched {self.subject!r}"
