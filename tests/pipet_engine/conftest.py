"""Shared fixtures and reusable helper transforms for pipet tests.

Every helper here is a plain function so tests can use it both as a
``call()`` target and as a body sub-operation.
"""

from __future__ import annotations

import pytest

from pipet import EvaluatorConfig

# ---------------------------------------------------------------------------
# Reusable transforms
# ---------------------------------------------------------------------------


def inc(x):
    return x + 1


def add(x, y):
    return x + y


def mul(x, y):
    return x * y


def return_true():
    return True


def return_false():
    return False


def return_ok_tuple():
    return ("ok", 7)


def boom(*_args, **_kwargs):
    raise RuntimeError("boom")


class Recorder:
    """Callable that records every call it receives in ``call_log``.

    ``returns`` is handed back from each call so a recorder can stand in for
    a condition, a guard or a subject.
    """

    def __init__(self, name: str = "rec", returns=None, log: list | None = None):
        self.name = name
        self.returns = returns
        self.call_log: list = log if log is not None else []

    def __call__(self, *args, **kwargs):
        self.call_log.append((self.name, args, kwargs))
        return self.returns

    @property
    def called(self) -> bool:
        return bool(self.call_log)


class Piped:
    """Final sub-operation that records the value it was piped."""

    def __init__(self, name: str = "piped", log: list | None = None):
        self.name = name
        self.log: list = log if log is not None else []

    def __call__(self, value, *args):
        self.log.append((self.name, value, args))
        return value


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def event_log():
    """Shared list that ordered recorders append to."""
    return []


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def strict_config():
    return EvaluatorConfig(strict_conditions=True)


@pytest.fixture
def trace_config():
    return EvaluatorConfig(trace=True)
