"""Step kinds, clauses and bindings.

Six step kinds make up a pipeline.  They are plain frozen data: the
evaluator decides how each one selects a body.

==========================  ====================================================
``Call``                    always pipes the value through ``op``
``Binary``                  ``then`` when the condition holds, else ``otherwise``
``NegatedBinary``           ``Binary`` with the branches swapped
``GuardedDispatch``         first clause whose guard holds
``PatternDispatch``         first clause whose pattern matches the subject
``FallibleBindingChain``    primary body if every binding matches, else the
                            first fallback clause matching the failed value
==========================  ====================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .body import Body, Op
from .errors import PipelineConfigError
from .patterns import Pattern, as_pattern


# ---------------------------------------------------------------------------
# Clauses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Clause:
    """A matcher paired with the body it selects.

    ``matcher`` is a guard expression for ``GuardedDispatch`` and a
    ``Pattern`` for ``PatternDispatch`` and fallback lists.
    """

    matcher: Any
    body: Body

    def __post_init__(self) -> None:
        if not isinstance(self.body, Body):
            object.__setattr__(self, "body", Body.of(self.body))


@dataclass(frozen=True)
class Binding:
    """``pattern <- expr`` inside a fallible binding chain."""

    pattern: Pattern
    expr: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", as_pattern(self.pattern))


def _pair(item: Any, what: str) -> tuple[Any, Any]:
    if isinstance(item, (tuple, list)) and len(item) == 2:
        return item[0], item[1]
    raise PipelineConfigError(
        f"each {what} must be a (matcher, body) pair, got {item!r}"
    )


def _guard_clauses(clauses: Iterable[Any]) -> tuple[Clause, ...]:
    result = []
    for item in clauses:
        if isinstance(item, Clause):
            result.append(item)
            continue
        guard, body = _pair(item, "guard clause")
        result.append(Clause(guard, Body.of(body)))
    return tuple(result)


def _pattern_clauses(clauses: Iterable[Any]) -> tuple[Clause, ...]:
    result = []
    for item in clauses:
        if isinstance(item, Clause):
            result.append(Clause(as_pattern(item.matcher), item.body))
            continue
        pattern, body = _pair(item, "pattern clause")
        result.append(Clause(as_pattern(pattern), Body.of(body)))
    return tuple(result)


def _bindings(bindings: Iterable[Any]) -> tuple[Binding, ...]:
    result = []
    for item in bindings:
        if isinstance(item, Binding):
            result.append(item)
            continue
        if not (isinstance(item, (tuple, list)) and len(item) == 2):
            raise PipelineConfigError(
                f"each binding must be a (pattern, expression) pair, got {item!r}"
            )
        result.append(Binding(as_pattern(item[0]), item[1]))
    return tuple(result)


# ---------------------------------------------------------------------------
# Step kinds
# ---------------------------------------------------------------------------


def _optional_body(body: Any) -> Body | None:
    return Body.of(body) if body is not None else None


@dataclass(frozen=True)
class Call:
    """Unconditional transform: ``value -> op(value, *args)``."""

    op: Op

    def __post_init__(self) -> None:
        if not isinstance(self.op, Op):
            object.__setattr__(self, "op", Op(self.op))


@dataclass(frozen=True)
class Binary:
    condition: Any
    then: Body
    otherwise: Body | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "then", Body.of(self.then))
        object.__setattr__(self, "otherwise", _optional_body(self.otherwise))


@dataclass(frozen=True)
class NegatedBinary:
    condition: Any
    then: Body
    otherwise: Body | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "then", Body.of(self.then))
        object.__setattr__(self, "otherwise", _optional_body(self.otherwise))


@dataclass(frozen=True)
class GuardedDispatch:
    clauses: tuple[Clause, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "clauses", _guard_clauses(self.clauses))


@dataclass(frozen=True)
class PatternDispatch:
    subject: Any
    clauses: tuple[Clause, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "clauses", _pattern_clauses(self.clauses))


@dataclass(frozen=True)
class FallibleBindingChain:
    """All bindings must match for ``body`` to run.

    The first binding that fails short-circuits the chain; its value is then
    dispatched over ``fallback`` exactly like a ``PatternDispatch``.  A
    ``None`` fallback means any failure is a ``FallbackFallthrough``.
    """

    bindings: tuple[Binding, ...]
    body: Body
    fallback: tuple[Clause, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "bindings", _bindings(self.bindings))
        object.__setattr__(self, "body", Body.of(self.body))
        if self.fallback is not None:
            object.__setattr__(self, "fallback", _pattern_clauses(self.fallback))


STEP_KINDS = (
    Call,
    Binary,
    NegatedBinary,
    GuardedDispatch,
    PatternDispatch,
    FallibleBindingChain,
)


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def call(fn: Callable | Op, *args: Any, **kwargs: Any) -> Call:
    """Always pipe the value into ``fn(value, *args, **kwargs)``."""
    if isinstance(fn, Op):
        if args or kwargs:
            raise PipelineConfigError("call(op(...)) takes no extra arguments")
        return Call(fn)
    return Call(Op(fn, args, kwargs))


def binary(condition: Any, then: Any, otherwise: Any = None) -> Binary:
    return Binary(condition, then, otherwise)


def negated_binary(condition: Any, then: Any, otherwise: Any = None) -> NegatedBinary:
    return NegatedBinary(condition, then, otherwise)


def guarded_dispatch(clauses: Iterable[Any]) -> GuardedDispatch:
    """Clauses are ``(guard, body)`` pairs, tried in order."""
    return GuardedDispatch(tuple(clauses))


def pattern_dispatch(subject: Any, clauses: Iterable[Any]) -> PatternDispatch:
    """Clauses are ``(pattern, body)`` pairs, tried in order."""
    return PatternDispatch(subject, tuple(clauses))


def fallible_binding_chain(
    bindings: Iterable[Any], body: Any, fallback: Iterable[Any] | None = None
) -> FallibleBindingChain:
    """Bindings are ``(pattern, expression)`` pairs; fallback clauses are
    ``(pattern, body)`` pairs."""
    return FallibleBindingChain(
        tuple(bindings),
        body,
        tuple(fallback) if fallback is not None else None,
    )
