"""Shared test configuration, service doubles, and fixtures."""

import threading
import time
from pathlib import Path

import pytest
from dotenv import load_dotenv

from textbook_md.exceptions import ServiceError
from textbook_md.tables.service import ServiceResult

# Load .env from project root for all tests
root = Path(__file__).parent.parent.resolve()
load_dotenv(root / ".env")


class ScriptedService:
    """Normalization double that replays a fixed sequence of results.

    Each script entry is a ServiceResult to return or an exception to raise.
    Once the script runs out, the last entry repeats.
    """

    def __init__(self, script: list):
        self.script = list(script)
        self.prompts: list[str] = []
        self._lock = threading.Lock()

    def normalize(self, prompt: str) -> ServiceResult:
        with self._lock:
            self.prompts.append(prompt)
            step = self.script[min(len(self.prompts), len(self.script)) - 1]
        if isinstance(step, Exception):
            raise step
        return step

    @property
    def calls(self) -> int:
        return len(self.prompts)


class UppercaseService:
    """Always succeeds; returns the prompt upper-cased, slower for prompts listed in *delays*."""

    def __init__(self, delays: dict[str, float] | None = None):
        self.delays = delays or {}
        self.prompts: list[str] = []
        self._lock = threading.Lock()

    def normalize(self, prompt: str) -> ServiceResult:
        with self._lock:
            self.prompts.append(prompt)
        time.sleep(self.delays.get(prompt, 0.0))
        return ServiceResult.success(prompt.upper())


class SleepRecorder:
    """Stand-in for time.sleep that records requested waits without waiting."""

    def __init__(self):
        self.waits: list[float] = []
        self._lock = threading.Lock()

    def __call__(self, seconds: float) -> None:
        with self._lock:
            self.waits.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def failing_service() -> ScriptedService:
    return ScriptedService([ServiceResult.failed("boom")])


@pytest.fixture
def throttled_then_ok() -> ScriptedService:
    return ScriptedService(
        [
            ServiceResult.throttled("429"),
            ServiceResult.throttled("429"),
            ServiceResult.success("| A | B |"),
        ]
    )


@pytest.fixture
def raising_service() -> ScriptedService:
    return ScriptedService([ServiceError("connection reset")])
