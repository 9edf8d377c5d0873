"""Table normalization service: protocol, three-way result, and the Azure OpenAI client.

The pipeline talks to the service only through ``NormalizationService``:
one prompt in, one ``ServiceResult`` out.  Rate limiting is reported as its
own outcome so the retry loop can back off longer than for other failures.
Any object with a matching ``normalize`` method (including a test double)
can stand in for the OpenAI-backed implementation.
"""

import logging
import time
from enum import Enum
from typing import Protocol

from openai import OpenAI, RateLimitError
from pydantic import BaseModel

from textbook_md.config import azure_settings
from textbook_md.tables.cache import cache_key

logger = logging.getLogger(__name__)


# ─── Result Model ─────────────────────────────────────────────────────────────


class Outcome(str, Enum):
    """How a single service call ended."""

    SUCCESS = "success"
    THROTTLED = "throttled"
    FAILED = "failed"


class ServiceResult(BaseModel):
    """Outcome of one normalization call plus its payload."""

    outcome: Outcome
    text: str = ""
    error: str = ""

    @classmethod
    def success(cls, text: str) -> "ServiceResult":
        return cls(outcome=Outcome.SUCCESS, text=text)

    @classmethod
    def throttled(cls, error: str = "") -> "ServiceResult":
        return cls(outcome=Outcome.THROTTLED, error=error)

    @classmethod
    def failed(cls, error: str = "") -> "ServiceResult":
        return cls(outcome=Outcome.FAILED, error=error)


class NormalizationService(Protocol):  # pylint: disable=too-few-public-methods
    """Stateless, reusable prompt -> text capability."""

    def normalize(self, prompt: str) -> ServiceResult: ...


# ─── Azure OpenAI Implementation ─────────────────────────────────────────────

# System prompt instructs the LLM on how to rebuild tabular regions
SYSTEM_PROMPT = """\
You are a table-reconstruction expert.  You receive a fragment of a plain-text
instructional document (course notes, a textbook, a manual) that was marked as
possibly containing a table.  Text extraction often lays tables out vertically
(one cell per line) or with irregular spacing.

Your task: rewrite any tabular data in the fragment as a canonical markdown
pipe table.

Rules:
  1. Every table row becomes one line of the form "| cell | cell | ... |",
     with a header row followed by a "| --- | --- |" separator row.
  2. Every row must have the same number of cells; use "-" for an empty cell.
  3. Do NOT invent data that is not present in the fragment.
  4. Leave genuinely non-tabular content (bulleted lists, prose) unchanged.
  5. Return ONLY the transformed text: no commentary, no explanation, no code
     fences.
  6. If the fragment contains no table, return it unmodified.
"""


class OpenAINormalizationService:
    """Normalization service backed by an Azure OpenAI chat deployment."""

    def __init__(self, client: OpenAI, deployment: str, system_prompt: str = SYSTEM_PROMPT):
        self.client = client
        self.deployment = deployment
        self.system_prompt = system_prompt

    @property
    def cache_namespace(self) -> str:
        """Deployment plus a prompt fingerprint; cached tables are only reused under both."""
        return f"{self.deployment}:{cache_key(self.system_prompt)[:16]}"

    def normalize(self, prompt: str) -> ServiceResult:
        """Send one table fragment to the LLM; never raises."""
        t0 = time.time()
        try:
            completion = self.client.chat.completions.create(
                model=self.deployment,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
        except RateLimitError as exc:
            logger.warning("LLM rate-limited after %.1fs: %s", time.time() - t0, exc)
            return ServiceResult.throttled(str(exc))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("LLM call failed after %.1fs: %s", time.time() - t0, exc)
            return ServiceResult.failed(str(exc))

        elapsed = time.time() - t0
        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            logger.warning("LLM returned a refusal or empty result (%.1fs)", elapsed)
            return ServiceResult.failed("empty completion")

        logger.debug("LLM responded in %.1fs", elapsed)
        return ServiceResult.success(content)


def build_service_from_env() -> OpenAINormalizationService | None:
    """Create the Azure OpenAI service from environment settings, or None if unconfigured."""
    settings = azure_settings()

    # All three variables must be set for LLM table normalization to work
    if not all(settings.values()):
        logger.warning("Azure OpenAI credentials not configured; table regions will keep their original text")
        return None

    base_url = f"{settings['endpoint']}/openai/v1/"
    logger.info("Connecting to Azure OpenAI at %s  (deployment=%s)", base_url, settings["deployment"])
    # Retries and backoff belong to call_with_retry, not the SDK
    client = OpenAI(base_url=base_url, api_key=settings["api_key"], max_retries=0)
    return OpenAINormalizationService(client, settings["deployment"])
