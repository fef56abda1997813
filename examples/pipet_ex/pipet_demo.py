#!/usr/bin/env python3
# %% [markdown]
# # pipet — Interactive Demo
#
# This notebook walks through every step kind of the conditional pipeline
# evaluator.  Each cell is self-contained; run them top to bottom.
#
# **No external dependencies**: only the `pipet/` package.

# %% [markdown]
# ## Setup & Imports

# %%
import logging
import sys
from pathlib import Path

# Walk up from the script/notebook directory until we find the project root
# (identified by containing a `pipet/` package directory).
_here = Path(__file__).resolve().parent if "__file__" in dir() else Path.cwd()
_root = _here
for _p in [_here] + list(_here.parents):
    if (_p / "pipet" / "__init__.py").exists():
        _root = _p
        break
sys.path.insert(0, str(_root))

from pipet import (
    EvaluatorConfig,
    FallbackFallthrough,
    PatternFallthrough,
    Pipeline,
    _,
    bind,
    identity,
    let,
    op,
    ref,
    when,
)


def inc(x):
    return x + 1


def add(x, y):
    return x + y


# %% [markdown]
# ---
# ## 1. Calls and binary conditions
#
# `call()` always pipes the value.  `binary()` pipes it through the body only
# when the condition holds; otherwise the value passes through unchanged.

# %%
pipe = (
    Pipeline(1)
    .call(inc)                           # 2
    .binary(True, inc)                   # 3
    .binary(False, inc)                  # 3 (skipped)
    .binary(lambda: True, op(add, 3))    # 6
    .negated_binary(True, op(add, 3))    # 6 (condition held, skipped)
)
print(f"{pipe!r} -> {pipe.evaluate()}")

# %% [markdown]
# ---
# ## 2. Multi-statement bodies
#
# Every sub-operation but the last runs for effect; the last one receives the
# value as its first argument.  `let()` binds a name for later `ref()`s.

# %%
pipe = Pipeline([1, 2, 3]).binary(
    True,
    [
        op(print, "    adding num to every item"),
        let("num", 3),
        op(lambda xs, n: [x + n for x in xs], ref("num")),
    ],
)
print(pipe.evaluate())

# %% [markdown]
# ---
# ## 3. Guarded and pattern dispatch
#
# The first guard that holds, or the first pattern that matches, selects the
# body.  Captures are visible in that body.  No match raises.

# %%
def lookup():
    return ("ok", 40)


pipe = (
    Pipeline(2)
    .guarded_dispatch([(False, op(add, 100)), (True, inc)])          # 3
    .pattern_dispatch(
        lookup,
        [
            (when(("ok", bind("n")), lambda n: n > 100), identity),
            (("ok", bind("n")), op(add, ref("n"))),                   # 43
            (_, identity),
        ],
    )
)
print(pipe.evaluate())

try:
    Pipeline(0).pattern_dispatch(("foo", "bar"), [(":never", inc)]).evaluate()
except PatternFallthrough as e:
    print(f"  Caught PatternFallthrough: {e}")

# %% [markdown]
# ---
# ## 4. Fallible binding chains
#
# Every binding must match for the primary body to run.  The first failing
# value is dispatched over the fallback clauses instead.

# %%
def fetch(key):
    return {"a": ("ok", 7)}.get(key, ("error", f"missing {key}"))


for key in ("a", "b"):
    pipe = Pipeline(16).fallible_binding_chain(
        [(("ok", bind("x")), op(fetch, key))],
        op(add, ref("x")),
        fallback=[(("error", bind("reason")), [op(print, "    fallback:", ref("reason")), identity])],
    )
    print(f"  key={key!r} -> {pipe.evaluate()}")

try:
    Pipeline(1).fallible_binding_chain([(("ok", _), "nope")], inc).evaluate()
except FallbackFallthrough as e:
    print(f"  Caught FallbackFallthrough: {e}")

# %% [markdown]
# ---
# ## 5. Batch evaluation and tracing
#
# `run()` evaluates many initial values and captures each failure instead of
# raising.  `EvaluatorConfig(trace=True)` logs every selection at DEBUG.

# %%
logging.basicConfig(level=logging.DEBUG, format="    %(name)s: %(message)s")

pipe = Pipeline(config=EvaluatorConfig(trace=True)).call(inc).guarded_dispatch(
    [(True, op(add, 10))]
)
for r in pipe.run([1, 2]):
    tag = "OK" if r.ok else f"FAIL @ {r.failed_at}"
    print(f"  [{tag}] sample={r.sample!r} output={r.output!r}")
