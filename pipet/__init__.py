"""Conditional pipelines: thread a value through unconditional and branching steps.

Public surface::

    from pipet import (
        Pipeline,
        evaluate,
        call, binary, negated_binary,
        guarded_dispatch, pattern_dispatch, fallible_binding_chain,
        op, let, ref, identity,
        _, bind, pin, instance_of, when, any_of,
        EvaluatorConfig,
        EvaluationResult,
        GuardFallthrough, PatternFallthrough, FallbackFallthrough,
        PipelineConfigError,
    )
"""

from .body import Body, Let, Op, Ref, apply_body, identity, let, op, ref
from .config import EvaluatorConfig
from .errors import (
    FallbackFallthrough,
    FallthroughError,
    GuardFallthrough,
    PatternFallthrough,
    PipelineConfigError,
    UnboundNameError,
)
from .evaluator import apply_step, evaluate
from .patterns import (
    WILDCARD,
    Pattern,
    _,
    any_of,
    as_pattern,
    bind,
    instance_of,
    pin,
    when,
)
from .pipeline import Pipeline
from .result import EvaluationResult
from .steps import (
    Binary,
    Binding,
    Call,
    Clause,
    FallibleBindingChain,
    GuardedDispatch,
    NegatedBinary,
    PatternDispatch,
    binary,
    call,
    fallible_binding_chain,
    guarded_dispatch,
    negated_binary,
    pattern_dispatch,
)

__all__ = [
    "Pipeline",
    "evaluate",
    "apply_step",
    "apply_body",
    # Steps
    "Call",
    "Binary",
    "NegatedBinary",
    "GuardedDispatch",
    "PatternDispatch",
    "FallibleBindingChain",
    "Clause",
    "Binding",
    "call",
    "binary",
    "negated_binary",
    "guarded_dispatch",
    "pattern_dispatch",
    "fallible_binding_chain",
    # Bodies
    "Body",
    "Op",
    "Let",
    "Ref",
    "op",
    "let",
    "ref",
    "identity",
    # Patterns
    "Pattern",
    "WILDCARD",
    "_",
    "as_pattern",
    "bind",
    "pin",
    "instance_of",
    "when",
    "any_of",
    # Config / results
    "EvaluatorConfig",
    "EvaluationResult",
    # Errors
    "FallthroughError",
    "GuardFallthrough",
    "PatternFallthrough",
    "FallbackFallthrough",
    "PipelineConfigError",
    "UnboundNameError",
]
