"""Structural patterns for pattern dispatch and fallible bindings.

A pattern is an explicit matcher object: ``match(subject, scope)`` returns a
dict of captured bindings on success and ``None`` on failure.  Plain Python
values are coerced with :func:`as_pattern`::

    ("ok", bind("x"))             # tuple of length 2, first item "ok"
    {"status": 200, "body": _}     # mapping containing at least these keys
    ListPattern(bind("head"), rest="tail")   # non-empty list
    when(("ok", bind("n")), lambda n: n > 0)
"""

from __future__ import annotations

from collections.abc import Mapping as AbstractMapping
from typing import Any, Callable, Mapping

from .errors import PipelineConfigError, UnboundNameError


class Pattern:
    """Base class for all matchers."""

    def match(
        self, subject: Any, scope: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        captured: dict[str, Any] = {}
        if self._match(subject, captured, scope if scope is not None else {}):
            return captured
        return None

    def _match(
        self, subject: Any, captured: dict[str, Any], scope: Mapping[str, Any]
    ) -> bool:
        raise NotImplementedError


class Wildcard(Pattern):
    """Matches anything, binds nothing."""

    def _match(self, subject, captured, scope) -> bool:
        return True

    def __repr__(self) -> str:
        return "_"


WILDCARD = Wildcard()
_ = WILDCARD


_NUMERIC_KINDS = (bool, int, float, complex)


def _numeric_kind(value: Any) -> type | None:
    for kind in _NUMERIC_KINDS:
        if isinstance(value, kind):
            return kind
    return None


class Literal(Pattern):
    """Equality match that also requires the same numeric kind.

    ``True`` does not match ``1`` and ``1`` does not match ``1.0``.
    """

    def __init__(self, value: Any) -> None:
        self.value = value

    def _match(self, subject, captured, scope) -> bool:
        if _numeric_kind(subject) is not _numeric_kind(self.value):
            return False
        return bool(subject == self.value)

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


class Bind(Pattern):
    """Capture the subject under *name*, optionally constrained by *inner*.

    Binding the same name twice within one pattern requires equal values.
    """

    def __init__(self, name: str, inner: Any = WILDCARD) -> None:
        self.name = name
        self.inner = as_pattern(inner)

    def _match(self, subject, captured, scope) -> bool:
        if not self.inner._match(subject, captured, scope):
            return False
        if self.name in captured:
            return Literal(captured[self.name])._match(subject, captured, scope)
        captured[self.name] = subject
        return True

    def __repr__(self) -> str:
        if self.inner is WILDCARD:
            return f"bind({self.name!r})"
        return f"bind({self.name!r}, {self.inner!r})"


class Pin(Pattern):
    """Match the value already bound to *name* in the enclosing scope."""

    def __init__(self, name: str) -> None:
        self.name = name

    def _match(self, subject, captured, scope) -> bool:
        if self.name in scope:
            expected = scope[self.name]
        elif self.name in captured:
            expected = captured[self.name]
        else:
            raise UnboundNameError(self.name, list(scope.keys()) + list(captured))
        return Literal(expected)._match(subject, captured, scope)

    def __repr__(self) -> str:
        return f"pin({self.name!r})"


class TuplePattern(Pattern):
    """Tuple of exactly ``len(items)`` elements, matched positionally."""

    def __init__(self, *items: Any) -> None:
        self.items = tuple(as_pattern(i) for i in items)

    def _match(self, subject, captured, scope) -> bool:
        if not isinstance(subject, tuple) or len(subject) != len(self.items):
            return False
        return all(p._match(s, captured, scope) for p, s in zip(self.items, subject))

    def __repr__(self) -> str:
        return f"TuplePattern{self.items!r}"


class ListPattern(Pattern):
    """List matched positionally.

    Without *rest* the list must have exactly ``len(items)`` elements; with
    *rest* it needs at least that many and the remainder is bound to *rest*.
    """

    def __init__(self, *items: Any, rest: str | None = None) -> None:
        self.items = tuple(as_pattern(i) for i in items)
        self.rest = rest

    def _match(self, subject, captured, scope) -> bool:
        if not isinstance(subject, list):
            return False
        n = len(self.items)
        if self.rest is None and len(subject) != n:
            return False
        if len(subject) < n:
            return False
        if not all(p._match(s, captured, scope) for p, s in zip(self.items, subject)):
            return False
        if self.rest is not None:
            return Bind(self.rest)._match(subject[n:], captured, scope)
        return True

    def __repr__(self) -> str:
        return f"ListPattern({list(self.items)!r}, rest={self.rest!r})"


class MappingPattern(Pattern):
    """Mapping that contains at least the given keys with matching values."""

    def __init__(self, entries: Mapping[Any, Any]) -> None:
        self.entries = {k: as_pattern(v) for k, v in entries.items()}

    def _match(self, subject, captured, scope) -> bool:
        if not isinstance(subject, AbstractMapping):
            return False
        for key, pattern in self.entries.items():
            if key not in subject:
                return False
            if not pattern._match(subject[key], captured, scope):
                return False
        return True

    def __repr__(self) -> str:
        return f"MappingPattern({self.entries!r})"


class InstanceOf(Pattern):
    """``isinstance(subject, types)``."""

    def __init__(self, types: type | tuple[type, ...]) -> None:
        self.types = types

    def _match(self, subject, captured, scope) -> bool:
        return isinstance(subject, self.types)

    def __repr__(self) -> str:
        return f"instance_of({self.types!r})"


class Guarded(Pattern):
    """Structural match followed by a guard over the captured bindings.

    The guard is called with the names captured by its own pattern as
    keyword arguments and must return a truthy value for the pattern to
    match.  Names captured elsewhere in an enclosing pattern are not passed.
    """

    def __init__(self, pattern: Any, guard: Callable[..., Any]) -> None:
        if not callable(guard):
            raise PipelineConfigError("a pattern guard must be callable")
        self.pattern = as_pattern(pattern)
        self.guard = guard

    def _match(self, subject, captured, scope) -> bool:
        # Sibling captures stay visible to pins but are not passed to the guard
        own: dict[str, Any] = {}
        if not self.pattern._match(subject, own, {**captured, **scope}):
            return False
        for name, value in own.items():
            if name in captured and not Literal(captured[name])._match(
                value, captured, scope
            ):
                return False
        if not self.guard(**own):
            return False
        captured.update(own)
        return True

    def __repr__(self) -> str:
        return f"when({self.pattern!r}, {self.guard!r})"


class AnyOf(Pattern):
    """First alternative that matches wins; its captures are kept."""

    def __init__(self, *alternatives: Any) -> None:
        if not alternatives:
            raise PipelineConfigError("any_of() needs at least one alternative")
        self.alternatives = tuple(as_pattern(a) for a in alternatives)

    def _match(self, subject, captured, scope) -> bool:
        for alternative in self.alternatives:
            trial = dict(captured)
            if alternative._match(subject, trial, scope):
                captured.update(trial)
                return True
        return False

    def __repr__(self) -> str:
        return f"any_of{self.alternatives!r}"


def as_pattern(value: Any) -> Pattern:
    """Coerce *value* into a ``Pattern``."""
    if isinstance(value, Pattern):
        return value
    if isinstance(value, tuple):
        return TuplePattern(*value)
    if isinstance(value, list):
        return ListPattern(*value)
    if isinstance(value, dict):
        return MappingPattern(value)
    return Literal(value)


def bind(name: str, inner: Any = WILDCARD) -> Bind:
    return Bind(name, inner)


def pin(name: str) -> Pin:
    return Pin(name)


def instance_of(*types: type) -> InstanceOf:
    return InstanceOf(types[0] if len(types) == 1 else types)


def when(pattern: Any, guard: Callable[..., Any]) -> Guarded:
    return Guarded(pattern, guard)


def any_of(*alternatives: Any) -> AnyOf:
    return AnyOf(*alternatives)
