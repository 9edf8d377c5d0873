"""Unit tests for the retry state machine and its driver.

All waits go through an injected recorder, so the schedule is checked
without actually sleeping.
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest

from conftest import ScriptedService
from textbook_md.config import RetryPolicy
from textbook_md.exceptions import ServiceExhausted, ServiceThrottled
from textbook_md.tables.retry import Action, backoff_for, call_with_retry, next_action
from textbook_md.tables.service import Outcome, ServiceResult

# ===========================================================================
# backoff_for / next_action tests (pure)
# ===========================================================================


class TestBackoffFor:

    def test_throttled_scales_with_attempt(self):
        policy = RetryPolicy()
        assert backoff_for(1, Outcome.THROTTLED, policy) == 10
        assert backoff_for(2, Outcome.THROTTLED, policy) == 20
        assert backoff_for(3, Outcome.THROTTLED, policy) == 30

    def test_generic_failure_is_fixed(self):
        policy = RetryPolicy()
        assert backoff_for(1, Outcome.FAILED, policy) == 2
        assert backoff_for(2, Outcome.FAILED, policy) == 2

    def test_custom_policy(self):
        policy = RetryPolicy(throttle_backoff_unit=0.5, error_backoff=0.1)
        assert backoff_for(2, Outcome.THROTTLED, policy) == 1.0
        assert backoff_for(2, Outcome.FAILED, policy) == 0.1


class TestNextAction:

    def test_success_is_done(self):
        assert next_action(1, ServiceResult.success("x"), RetryPolicy()) == Action(done=True)

    def test_failure_before_last_attempt_retries(self):
        action = next_action(1, ServiceResult.failed(), RetryPolicy())
        assert action.done is False
        assert action.wait == 2

    def test_throttle_before_last_attempt_retries(self):
        action = next_action(2, ServiceResult.throttled(), RetryPolicy())
        assert action.done is False
        assert action.wait == 20

    def test_failure_on_last_attempt_exhausts(self):
        action = next_action(3, ServiceResult.throttled(), RetryPolicy())
        assert action.done is True
        assert action.exhausted is True
        assert action.wait == 0


# ===========================================================================
# call_with_retry tests
# ===========================================================================


class TestCallWithRetry:

    def test_first_attempt_success_no_wait(self, sleep_recorder):
        service = ScriptedService([ServiceResult.success("| a |")])
        assert call_with_retry(service, "prompt", sleep=sleep_recorder) == "| a |"
        assert service.calls == 1
        assert sleep_recorder.waits == []

    def test_throttled_twice_waits_10_then_20(self, throttled_then_ok, sleep_recorder):
        result = call_with_retry(throttled_then_ok, "prompt", sleep=sleep_recorder)
        assert result == "| A | B |"
        assert throttled_then_ok.calls == 3
        assert sleep_recorder.waits == [10, 20]

    def test_failure_then_success_waits_2(self, sleep_recorder):
        service = ScriptedService([ServiceResult.failed("500"), ServiceResult.success("ok")])
        assert call_with_retry(service, "prompt", sleep=sleep_recorder) == "ok"
        assert sleep_recorder.waits == [2]

    def test_mixed_failure_kinds(self, sleep_recorder):
        service = ScriptedService([ServiceResult.failed(), ServiceResult.throttled(), ServiceResult.success("ok")])
        call_with_retry(service, "prompt", sleep=sleep_recorder)
        assert sleep_recorder.waits == [2, 20]

    def test_always_failing_exhausts_after_three_attempts(self, failing_service, sleep_recorder):
        with pytest.raises(ServiceExhausted) as excinfo:
            call_with_retry(failing_service, "prompt", sleep=sleep_recorder)
        assert excinfo.value.attempts == 3
        assert "boom" in str(excinfo.value)
        assert failing_service.calls == 3
        # No wait after the final attempt
        assert sleep_recorder.waits == [2, 2]

    def test_always_throttled_exhausts(self, sleep_recorder):
        service = ScriptedService([ServiceResult.throttled("429")])
        with pytest.raises(ServiceExhausted):
            call_with_retry(service, "prompt", sleep=sleep_recorder)
        assert sleep_recorder.waits == [10, 20]

    def test_raised_service_error_counts_as_failure(self, raising_service, sleep_recorder):
        with pytest.raises(ServiceExhausted):
            call_with_retry(raising_service, "prompt", sleep=sleep_recorder)
        assert raising_service.calls == 3
        assert sleep_recorder.waits == [2, 2]

    def test_raised_throttle_counts_as_throttled(self, sleep_recorder):
        service = ScriptedService([ServiceThrottled("slow down"), ServiceResult.success("ok")])
        assert call_with_retry(service, "prompt", sleep=sleep_recorder) == "ok"
        assert sleep_recorder.waits == [10]

    def test_single_attempt_policy(self, failing_service, sleep_recorder):
        with pytest.raises(ServiceExhausted):
            call_with_retry(failing_service, "prompt", RetryPolicy(max_attempts=1), sleep=sleep_recorder)
        assert failing_service.calls == 1
        assert sleep_recorder.waits == []

    def test_prompt_forwarded_on_every_attempt(self, throttled_then_ok, sleep_recorder):
        call_with_retry(throttled_then_ok, "Name\nAge", sleep=sleep_recorder)
        assert throttled_then_ok.prompts == ["Name\nAge"] * 3
