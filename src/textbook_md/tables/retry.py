"""Bounded retry with differentiated backoff for the normalization service.

The decision of what to do after each attempt is a pure function
(``next_action``) of the attempt number, the three-way service result and the
``RetryPolicy``.  The driver ``call_with_retry`` only adds the loop and an
injected ``sleep`` callable, so the same logic runs in a worker thread
(``time.sleep``), under an event loop wrapper, or against a recording stub in
tests.

Schedule with the default policy (3 attempts):
  throttled on attempt n -> wait n * 10 before attempt n + 1   (10, 20)
  other failure          -> wait 2 before the next attempt
  failure on attempt 3   -> ServiceExhausted, no wait
"""

import logging
import time
from typing import Callable, NamedTuple

from textbook_md.config import RetryPolicy
from textbook_md.exceptions import ServiceError, ServiceExhausted, ServiceThrottled
from textbook_md.tables.service import NormalizationService, Outcome, ServiceResult

logger = logging.getLogger(__name__)


class Action(NamedTuple):
    """What the driver should do after an attempt."""

    done: bool
    wait: float = 0.0
    exhausted: bool = False


def backoff_for(attempt: int, outcome: Outcome, policy: RetryPolicy) -> float:
    """Return the wait before the attempt following a failed *attempt* (1-based)."""
    if outcome is Outcome.THROTTLED:
        return attempt * policy.throttle_backoff_unit
    return policy.error_backoff


def next_action(attempt: int, result: ServiceResult, policy: RetryPolicy) -> Action:
    """Decide the next step after *attempt* produced *result*."""
    if result.outcome is Outcome.SUCCESS:
        return Action(done=True)
    if attempt >= policy.max_attempts:
        return Action(done=True, exhausted=True)
    return Action(done=False, wait=backoff_for(attempt, result.outcome, policy))


def _attempt(service: NormalizationService, prompt: str) -> ServiceResult:
    """Call the service once, mapping raised service errors onto results."""
    try:
        return service.normalize(prompt)
    except ServiceThrottled as exc:
        return ServiceResult.throttled(str(exc))
    except ServiceError as exc:
        return ServiceResult.failed(str(exc))


def call_with_retry(
    service: NormalizationService,
    prompt: str,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Return the service's text for *prompt*, retrying per *policy*.

    Raises ServiceExhausted once every attempt has failed.
    """
    policy = policy or RetryPolicy()
    attempt = 1
    while True:
        result = _attempt(service, prompt)
        action = next_action(attempt, result, policy)

        if action.exhausted:
            raise ServiceExhausted(attempt, result.error or result.outcome.value)
        if action.done:
            return result.text

        logger.info("Attempt %d/%d %s; retrying in %.0fs", attempt, policy.max_attempts, result.outcome.value, action.wait)
        sleep(action.wait)
        attempt += 1
