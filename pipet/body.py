"""Bodies, sub-operations and the branch applier.

A *body* is what a selected branch runs: an ordered, non-empty sequence of
sub-operations.  Every sub-operation except the last runs for effect only;
the last one is called with the threaded value prepended to its arguments
and its result becomes the new value::

    body = Body.of([
        let("num", lookup_increment),   # num = lookup_increment()
        op(print, "adding", ref("num")),
        op(add, ref("num")),            # add(value, num)
    ])
    apply_body(1, body)

``Ref`` arguments are looked up in the step's scope (bindings captured by a
pattern or by an earlier ``Let``) at call time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .errors import PipelineConfigError, UnboundNameError


def identity(value: Any) -> Any:
    """Return *value* unchanged."""
    return value


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ref:
    """Reference to a name bound in the current step's scope."""

    name: str

    def lookup(self, scope: Mapping[str, Any]) -> Any:
        try:
            return scope[self.name]
        except KeyError:
            raise UnboundNameError(self.name, scope.keys()) from None


def _resolve_arg(arg: Any, scope: Mapping[str, Any]) -> Any:
    # Callables passed as arguments are data (e.g. a mapper), only Refs resolve.
    if isinstance(arg, Ref):
        return arg.lookup(scope)
    return arg


def resolve(expr: Any, scope: Mapping[str, Any] | None = None) -> Any:
    """Evaluate a lazily-supplied expression.

    ``Ref`` is looked up, ``Op`` is invoked without a value, zero-argument
    callables are called, and anything else is returned as a literal.
    """
    scope = scope if scope is not None else {}
    if isinstance(expr, Ref):
        return expr.lookup(scope)
    if isinstance(expr, Op):
        return expr.invoke(scope)
    if callable(expr):
        return expr()
    return expr


# ---------------------------------------------------------------------------
# Sub-operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Op:
    """A call ``fn(*args, **kwargs)``.

    In final position of a body the threaded value is prepended:
    ``fn(value, *args, **kwargs)``.
    """

    fn: Callable
    args: tuple = ()
    kwargs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise PipelineConfigError(
                f"sub-operation must be callable, got {type(self.fn).__name__}"
            )
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))
        if not isinstance(self.kwargs, MappingProxyType):
            object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))

    def _arguments(self, scope: Mapping[str, Any]) -> tuple[list, dict]:
        args = [_resolve_arg(a, scope) for a in self.args]
        kwargs = {k: _resolve_arg(v, scope) for k, v in self.kwargs.items()}
        return args, kwargs

    def invoke(self, scope: Mapping[str, Any] | None = None) -> Any:
        """Call without the threaded value (non-final position)."""
        args, kwargs = self._arguments(scope if scope is not None else {})
        return self.fn(*args, **kwargs)

    def pipe(self, value: Any, scope: Mapping[str, Any] | None = None) -> Any:
        """Call with *value* as the leading argument (final position)."""
        args, kwargs = self._arguments(scope if scope is not None else {})
        return self.fn(value, *args, **kwargs)

    @property
    def name(self) -> str:
        return getattr(self.fn, "__name__", type(self.fn).__name__)


@dataclass(frozen=True)
class Let:
    """Bind the result of *source* to *name* in the body's scope.

    *source* follows the rules of :func:`resolve`; when it is callable it is
    called with ``args``/``kwargs`` (``Ref`` arguments resolved).
    """

    name: str
    source: Any
    args: tuple = ()
    kwargs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))
        if not isinstance(self.kwargs, MappingProxyType):
            object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))
        if (self.args or self.kwargs) and not callable(self.source):
            raise PipelineConfigError(
                f"let({self.name!r}, ...) was given arguments but its source "
                f"is not callable"
            )

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        if callable(self.source):
            return Op(self.source, self.args, self.kwargs).invoke(scope)
        return resolve(self.source, scope)


def op(fn: Callable, *args: Any, **kwargs: Any) -> Op:
    """Build an ``Op`` sub-operation."""
    return Op(fn, args, kwargs)


def let(name: str, source: Any, *args: Any, **kwargs: Any) -> Let:
    """Build a ``Let`` sub-operation."""
    return Let(name, source, args, kwargs)


def ref(name: str) -> Ref:
    """Build a ``Ref`` to a bound name."""
    return Ref(name)


def _as_sub_operation(item: Any) -> Op | Let:
    if isinstance(item, (Op, Let)):
        return item
    if callable(item):
        return Op(item)
    raise PipelineConfigError(
        f"body elements must be callables, Op or Let; got {type(item).__name__}"
    )


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Body:
    """Ordered, non-empty sequence of sub-operations."""

    ops: tuple

    def __post_init__(self) -> None:
        ops = tuple(_as_sub_operation(o) for o in self.ops)
        if not ops:
            raise PipelineConfigError("a body needs at least one sub-operation")
        if isinstance(ops[-1], Let):
            raise PipelineConfigError(
                f"the last sub-operation of a body receives the piped value "
                f"and cannot be let({ops[-1].name!r}, ...)"
            )
        object.__setattr__(self, "ops", ops)

    @classmethod
    def of(cls, body: Any) -> "Body":
        """Coerce *body* into a ``Body``.

        Accepts a ``Body``, a single callable / ``Op``, or a list/tuple of
        sub-operations.
        """
        if isinstance(body, Body):
            return body
        if isinstance(body, (list, tuple)):
            return cls(tuple(body))
        return cls((body,))

    @property
    def effects(self) -> tuple:
        return self.ops[:-1]

    @property
    def final(self) -> Op:
        return self.ops[-1]

    def __len__(self) -> int:
        return len(self.ops)


IDENTITY_BODY = Body((Op(identity),))


def apply_body(
    value: Any, body: Body, scope: Mapping[str, Any] | None = None
) -> Any:
    """Run *body* and pipe *value* through its final sub-operation.

    Every sub-operation but the last runs in order for effect; ``Let``
    results are added to a body-local copy of *scope*.  The last one is
    called with *value* as its leading argument and its result returned.
    """
    local: dict[str, Any] = dict(scope) if scope else {}
    for sub in body.effects:
        if isinstance(sub, Let):
            local[sub.name] = sub.evaluate(local)
        else:
            sub.invoke(local)
    return body.final.pipe(value, local)
