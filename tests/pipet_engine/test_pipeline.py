"""Unit tests for Pipeline — construction, validation, and execution."""

from __future__ import annotations

import logging

import pytest

from pipet import (
    Binary,
    Call,
    EvaluationResult,
    EvaluatorConfig,
    FallbackFallthrough,
    GuardedDispatch,
    PatternFallthrough,
    Pipeline,
    PipelineConfigError,
    _,
    binary,
    bind,
    call,
    op,
    ref,
)
from tests.pipet_engine.conftest import Recorder, add, boom, inc, mul


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestPipelineConstruction:
    def test_empty_pipeline_has_no_steps(self):
        assert Pipeline().steps == ()

    def test_list_constructor_accepted(self):
        p = Pipeline(1, [call(inc), binary(True, inc)])
        assert [type(s) for s in p.steps] == [Call, Binary]

    def test_then_returns_self(self):
        p = Pipeline()
        assert p.then(call(inc)) is p

    def test_fluent_methods_append_matching_kinds(self):
        p = (
            Pipeline()
            .call(inc)
            .binary(True, inc)
            .negated_binary(False, inc)
            .guarded_dispatch([(True, inc)])
            .pattern_dispatch(1, [(1, inc)])
            .fallible_binding_chain([(_, 1)], inc, [(_, inc)])
        )
        assert [type(s).__name__ for s in p.steps] == [
            "Call",
            "Binary",
            "NegatedBinary",
            "GuardedDispatch",
            "PatternDispatch",
            "FallibleBindingChain",
        ]

    def test_non_step_rejected_immediately(self):
        p = Pipeline().call(inc)
        with pytest.raises(PipelineConfigError, match="not a pipeline step"):
            p.then(inc)
        assert len(p.steps) == 1

    def test_non_step_in_constructor_rejected(self):
        with pytest.raises(PipelineConfigError):
            Pipeline(1, ["not a step"])

    def test_invalid_body_rejected_at_build_time(self):
        with pytest.raises(PipelineConfigError):
            Pipeline().binary(True, [])

    def test_malformed_clause_rejected(self):
        with pytest.raises(PipelineConfigError, match="pair"):
            Pipeline().guarded_dispatch([(True, inc, "extra")])

    def test_steps_property_is_a_snapshot(self):
        p = Pipeline().call(inc)
        snapshot = p.steps
        p.call(inc)
        assert len(snapshot) == 1
        assert len(p.steps) == 2

    def test_repr_lists_step_kinds(self):
        p = Pipeline().call(inc).guarded_dispatch([(True, inc)])
        assert repr(p) == "Pipeline([Call, GuardedDispatch])"

    def test_default_config(self):
        assert Pipeline().config == EvaluatorConfig()


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestPipelineEvaluate:
    def test_uses_constructor_initial(self):
        assert Pipeline(1).call(inc).evaluate() == 2

    def test_explicit_initial_overrides(self):
        assert Pipeline(1).call(inc).evaluate(10) == 11

    def test_none_is_a_valid_initial(self):
        assert Pipeline(None).call(lambda v: v is None).evaluate() is True

    def test_missing_initial_raises(self):
        with pytest.raises(PipelineConfigError, match="no initial value"):
            Pipeline().call(inc).evaluate()

    def test_re_evaluation_is_independent(self):
        p = Pipeline().call(mul, 2)
        assert p.evaluate(3) == 6
        assert p.evaluate(4) == 8

    def test_pipeline_is_a_transform(self):
        double_then_inc = Pipeline().call(mul, 2).call(inc)
        assert double_then_inc(5) == 11

    def test_nested_pipeline_via_then(self):
        inner = Pipeline().call(mul, 2)
        outer = Pipeline(3).then(inner).call(inc)
        assert isinstance(outer.steps[0], Call)
        assert outer.evaluate() == 7

    def test_nested_pipeline_as_branch_body(self):
        inner = Pipeline().call(add, 10)
        assert Pipeline(1).binary(True, inner).evaluate() == 11

    def test_config_is_used(self):
        p = Pipeline(1, config=EvaluatorConfig(strict_conditions=True))
        p.binary("truthy", inc)
        with pytest.raises(TypeError):
            p.evaluate()

    def test_fallthrough_step_index_from_pipeline(self):
        p = Pipeline(0).call(inc).pattern_dispatch("x", [("y", inc)])
        with pytest.raises(PatternFallthrough) as exc_info:
            p.evaluate()
        assert exc_info.value.step_index == 1


# ---------------------------------------------------------------------------
# run() — batch evaluation
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestPipelineRun:
    def test_one_result_per_sample(self):
        results = Pipeline().call(inc).run([1, 2, 3])
        assert [r.output for r in results] == [2, 3, 4]
        assert all(isinstance(r, EvaluationResult) for r in results)
        assert all(r.ok for r in results)

    def test_failure_is_captured_not_raised(self):
        p = Pipeline().call(inc).pattern_dispatch(
            op(lambda: "fixed"), [("other", inc)]
        )
        (result,) = p.run([1])
        assert not result.ok
        assert result.output is None
        assert isinstance(result.error, PatternFallthrough)
        assert result.failed_at == "PatternDispatch"
        assert result.step_index == 1
        assert result.error.step_index == 1

    def test_user_error_records_failing_step(self):
        p = Pipeline().call(inc).binary(True, boom).call(inc)
        (result,) = p.run([1])
        assert isinstance(result.error, RuntimeError)
        assert result.failed_at == "Binary"
        assert result.step_index == 1

    def test_nested_pipeline_failure_reports_outer_step(self):
        inner = Pipeline().call(inc).pattern_dispatch(0, [(1, inc)])
        (result,) = Pipeline().call(inc).call(inc).then(inner).run([1])
        assert result.failed_at == "Call"
        assert result.step_index == 2
        assert result.error.step_index == 1

    def test_failure_in_first_step(self):
        (result,) = Pipeline().call(boom).run([1])
        assert result.failed_at == "Call"
        assert result.step_index == 0

    def test_other_samples_continue_after_failure(self):
        p = Pipeline().call(lambda v: v if v > 0 else boom()).call(inc)
        results = p.run([1, -1, 2])
        assert [r.ok for r in results] == [True, False, True]
        assert [r.output for r in results] == [2, None, 3]

    def test_fallback_fallthrough_captured(self):
        p = Pipeline().fallible_binding_chain([(("ok", bind("n")), "error")], inc)
        results = p.run([5, 6])
        assert [type(r.error) for r in results] == [FallbackFallthrough] * 2
        assert all(r.failed_at == "FallibleBindingChain" for r in results)

    def test_samples_evaluated_in_order(self, event_log):
        rec = Recorder("rec", log=event_log)
        results = Pipeline().guarded_dispatch([(True, [rec, str.upper])]).run(["a", "b"])
        assert len(event_log) == 2
        assert [r.output for r in results] == ["A", "B"]

    def test_failures_logged_as_warning(self, caplog):
        caplog.set_level(logging.WARNING, logger="pipet.pipeline")
        Pipeline().guarded_dispatch([(False, inc)]).run([42])
        assert any(
            "failed at step 0 (GuardedDispatch)" in r.getMessage()
            for r in caplog.records
        )

    def test_bindings_through_run(self):
        p = Pipeline().pattern_dispatch(
            ("ok", 5), [(("ok", bind("n")), op(add, ref("n")))]
        )
        assert [r.output for r in p.run([0, 1])] == [5, 6]

    def test_steps_guarded_dispatch_kind(self):
        p = Pipeline().guarded_dispatch([(True, inc)])
        assert isinstance(p.steps[0], GuardedDispatch)
