"""
Tests for the retry policy engine
Logic testing: Decision/Branch, Boundary, Path coverage
"""
import pytest

from fetch_call_retry import (
    AttemptContext,
    CallOutcome,
    OutcomeKind,
    RetryAttempts,
    RetryConfig,
    RetryOverride,
    allow_and_delay,
    decide,
    decision_for,
    normalize_decision,
    resolve_policy,
    within_budget,
)


def status_outcome(status):
    return CallOutcome(kind=OutcomeKind.STATUS_FAILURE, status=status)


NETWORK = CallOutcome(kind=OutcomeKind.NETWORK_FAILURE, error=OSError("reset"))
PARSE = CallOutcome(kind=OutcomeKind.PARSE_FAILURE, status=200, error=ValueError("bad json"))


class TestNormalizeDecision:
    """Tests for normalize_decision."""

    def test_true_means_one_retry(self):
        """Should map True to one additional attempt."""
        assert normalize_decision(True) == RetryAttempts(attempts=1)

    @pytest.mark.parametrize("decision", [False, None])
    def test_false_and_none_mean_never(self, decision):
        """Should map False and None to no retry."""
        assert normalize_decision(decision) is None

    def test_passes_retry_attempts_through(self):
        """Should keep RetryAttempts as given."""
        decision = RetryAttempts(attempts=3, delay=0.5)
        assert normalize_decision(decision) is decision

    def test_accepts_plain_mapping(self):
        """Should convert a mapping with attempts and delay."""
        assert normalize_decision({"attempts": 2, "delay": 1.0}) == RetryAttempts(2, 1.0)

    def test_ignores_unsupported_values(self):
        """Should treat unsupported values as never."""
        assert normalize_decision("yes") is None
        assert normalize_decision({"attempts": "many"}) is None


class TestAllowAndDelay:
    """Tests for allow_and_delay."""

    # Boundary: attempts bound additional tries
    def test_allows_until_attempts_exhausted(self):
        decision = RetryAttempts(attempts=2)
        assert allow_and_delay(decision, 0).allow is True
        assert allow_and_delay(decision, 1).allow is True
        assert allow_and_delay(decision, 2).allow is False

    def test_zero_attempts_never_allow(self):
        assert allow_and_delay(RetryAttempts(attempts=0), 0).allow is False

    def test_fixed_delay(self):
        verdict = allow_and_delay(RetryAttempts(attempts=1, delay=2), 0)
        assert verdict.explicit_delay == 2.0

    def test_delay_function_receives_attempt(self):
        verdict = allow_and_delay(RetryAttempts(attempts=5, delay=lambda n: n * 10), 3)
        assert verdict.allow is True
        assert verdict.explicit_delay == 30.0

    @pytest.mark.parametrize("value", [-1, float("inf"), float("nan")])
    def test_ignores_invalid_delay_function_results(self, value):
        verdict = allow_and_delay(RetryAttempts(attempts=1, delay=lambda n: value), 0)
        assert verdict.allow is True
        assert verdict.explicit_delay is None

    def test_ignores_failing_delay_function(self):
        def boom(attempt):
            raise RuntimeError("no delay")

        verdict = allow_and_delay(RetryAttempts(attempts=1, delay=boom), 0)
        assert verdict.allow is True
        assert verdict.explicit_delay is None


class TestDecisionFor:
    """Tests for selector tier lookup."""

    def test_local_code_beats_global_code(self):
        """Should prefer the per-call code over the client code."""
        policy = resolve_policy(
            RetryConfig(on_status={503: RetryAttempts(5)}),
            RetryOverride(on_status={503: RetryAttempts(1)}),
        )
        assert decision_for(status_outcome(503), policy) == RetryAttempts(1)

    def test_global_name_beats_local_wildcard(self):
        """Should prefer any specific selector over wildcards."""
        policy = resolve_policy(
            RetryConfig(on_status={"service_unavailable": RetryAttempts(2)}),
            RetryOverride(on_status={"5xx": RetryAttempts(9)}),
        )
        assert decision_for(status_outcome(503), policy) == RetryAttempts(2)

    def test_local_wildcard_beats_global_wildcard(self):
        policy = resolve_policy(
            RetryConfig(on_status={"5xx": RetryAttempts(2)}),
            RetryOverride(on_status={"5xx": False}),
        )
        assert decision_for(status_outcome(500), policy) is False

    def test_string_code_selector(self):
        policy = resolve_policy(RetryConfig(on_status={"429": True}))
        assert decision_for(status_outcome(429), policy) is True

    def test_no_match(self):
        policy = resolve_policy(RetryConfig(on_status={"5xx": True}))
        assert decision_for(status_outcome(404), policy) is None

    def test_call_decision_applies_to_every_channel(self):
        """Should use a bare per-call decision for all channels."""
        policy = resolve_policy(RetryConfig(on_status={503: False}), True)
        assert decision_for(status_outcome(503), policy) is True
        assert decision_for(NETWORK, policy) is True
        assert decision_for(PARSE, policy) is True

    def test_network_and_parse_slots(self):
        policy = resolve_policy(
            RetryConfig(on_network_error=RetryAttempts(3), on_parsing_error=True),
            RetryOverride(on_network_error=RetryAttempts(1)),
        )
        assert decision_for(NETWORK, policy) == RetryAttempts(1)
        assert decision_for(PARSE, policy) is True

    def test_success_has_no_decision(self):
        policy = resolve_policy(RetryConfig(on_status={"2xx": True}))
        outcome = CallOutcome(kind=OutcomeKind.SUCCESS, status=200)
        assert decision_for(outcome, policy) is None


class TestWithinBudget:
    """Tests for within_budget."""

    def test_unlimited_without_budget(self):
        policy = resolve_policy(RetryConfig())
        assert within_budget(policy, AttemptContext(started_at=0.0), now=1e9) is True

    def test_boundary(self):
        policy = resolve_policy(RetryConfig(max_overall_time_seconds=5.0))
        context = AttemptContext(started_at=100.0)
        assert within_budget(policy, context, now=104.9) is True
        assert within_budget(policy, context, now=105.0) is False


class TestDecide:
    """Tests for decide gating."""

    @pytest.fixture
    def policy(self):
        return resolve_policy(
            RetryConfig(on_status={503: RetryAttempts(2, delay=1.0)}, on_network_error=True)
        )

    def test_allows_retry(self, policy):
        verdict = decide(status_outcome(503), policy, AttemptContext(), "GET", True)
        assert verdict.allow is True
        assert verdict.explicit_delay == 1.0

    def test_denies_success(self, policy):
        outcome = CallOutcome(kind=OutcomeKind.SUCCESS, status=200)
        assert decide(outcome, policy, AttemptContext(), "GET", True).allow is False

    def test_denies_exhausted_attempts(self, policy):
        verdict = decide(status_outcome(503), policy, AttemptContext(attempt=2), "GET", True)
        assert verdict.allow is False

    def test_denies_ineligible_method(self, policy):
        verdict = decide(status_outcome(503), policy, AttemptContext(), "POST", True)
        assert verdict.allow is False

    def test_method_is_case_insensitive(self, policy):
        assert decide(status_outcome(503), policy, AttemptContext(), "get", True).allow is True

    def test_denies_non_replayable_body(self, policy):
        verdict = decide(status_outcome(503), policy, AttemptContext(), "GET", False)
        assert verdict.allow is False

    def test_denies_caller_cancellation(self, policy):
        outcome = CallOutcome(kind=OutcomeKind.NETWORK_FAILURE, cancelled_by_caller=True)
        assert decide(outcome, policy, AttemptContext(), "GET", True).allow is False

    def test_allows_timeout_per_network_decision(self, policy):
        outcome = CallOutcome(kind=OutcomeKind.NETWORK_FAILURE, error=TimeoutError())
        assert decide(outcome, policy, AttemptContext(), "GET", True).allow is True

    def test_denies_when_budget_exhausted(self):
        policy = resolve_policy(
            RetryConfig(on_status={503: True}, max_overall_time_seconds=1.0)
        )
        context = AttemptContext(started_at=10.0)
        assert decide(status_outcome(503), policy, context, "GET", True, now=10.5).allow is True
        assert decide(status_outcome(503), policy, context, "GET", True, now=11.0).allow is False

    def test_denies_without_decision(self, policy):
        assert decide(PARSE, policy, AttemptContext(), "GET", True).allow is False
