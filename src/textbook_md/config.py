"""Shared configuration for the textbook-md conversion pipeline.

Every heuristic in the classifier is empirically tuned rather than principled,
so the patterns and thresholds live here as pydantic models with defaults
instead of hard-coded constants.  A caller can override any of them per
document, e.g. ``StructureConfig(heading_max_length=60)``.

Environment settings (Azure OpenAI credentials, deployment name) are read from
``ROOT/.env`` through python-dotenv.
"""

import os
import re
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from textbook_md.structure import patterns

ROOT = Path(__file__).parent.parent.parent.resolve()
load_dotenv(ROOT / ".env")


def _check_regexes(values: list[str]) -> list[str]:
    """Fail fast on a pattern that will not compile."""
    for value in values:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid regex {value!r}: {exc}") from exc
    return values


# ─── Classifier Tunables ──────────────────────────────────────────────────────


class StructureConfig(BaseModel):
    """Patterns and thresholds for the heading/list classifier and extractor."""

    # Lines longer than this (after trimming) are prose, never headings
    heading_max_length: int = Field(default=45, ge=1)

    major_section_patterns: list[str] = Field(default_factory=lambda: list(patterns.MAJOR_SECTION_PATTERNS))
    sub_section_patterns: list[str] = Field(default_factory=lambda: list(patterns.SUB_SECTION_PATTERNS))
    numbered_outline_pattern: str = patterns.NUMBERED_OUTLINE_PATTERN
    step_patterns: list[str] = Field(default_factory=lambda: list(patterns.STEP_PATTERNS))
    bullet_item_pattern: str = patterns.BULLET_ITEM_PATTERN
    ordered_item_patterns: list[str] = Field(default_factory=lambda: list(patterns.ORDERED_ITEM_PATTERNS))

    # Bullet glyphs stripped when a bullet item is rewritten
    primary_bullets: str = patterns.PRIMARY_BULLETS
    bullet_symbol: str = "-"

    # Emitted immediately before every depth-1 heading after the first
    page_break_token: str = "<!-- pagebreak -->"
    heading_marker: str = "#"

    # "Short line followed by a long line is a sub-heading".  Off by default;
    # earlier iterations used it with a 30/30 split.
    context_subheading: bool = False
    context_short_max: int = Field(default=30, ge=1)
    context_long_min: int = Field(default=30, ge=1)
    context_depth: int = Field(default=3, ge=1)

    # Unmarked table of contents: heading line, then raw lines until N blank lines
    toc_heading_pattern: str | None = patterns.TOC_HEADING_PATTERN
    toc_end_blank_lines: int = Field(default=2, ge=1)

    # Marker-based extraction: how far past TOC_START to look for the first chapter
    toc_scan_window: int = Field(default=50, ge=0)

    # Table candidates shorter than this are plain text
    min_table_lines: int = Field(default=2, ge=1)

    @field_validator("major_section_patterns", "sub_section_patterns", "step_patterns", "ordered_item_patterns")
    @classmethod
    def validate_pattern_lists(cls, value: list[str]) -> list[str]:
        """Reject any list entry that is not a valid regex."""
        return _check_regexes(value)

    @field_validator("numbered_outline_pattern", "bullet_item_pattern")
    @classmethod
    def validate_single_pattern(cls, value: str) -> str:
        """Reject a single pattern that is not a valid regex."""
        _check_regexes([value])
        return value

    @field_validator("toc_heading_pattern")
    @classmethod
    def validate_optional_pattern(cls, value: str | None) -> str | None:
        """Reject an invalid TOC heading regex (None disables the TOC block)."""
        if value is not None:
            _check_regexes([value])
        return value

    @field_validator("numbered_outline_pattern")
    @classmethod
    def validate_outline_group(cls, value: str) -> str:
        """The numbered-outline pattern must capture the dotted prefix as group 1."""
        if re.compile(value).groups < 1:
            raise ValueError("numbered_outline_pattern must capture the numeric prefix in group 1")
        return value


# ─── Retry Policy ─────────────────────────────────────────────────────────────


class RetryPolicy(BaseModel):
    """Bounded retry schedule for the table normalization service (seconds)."""

    max_attempts: int = Field(default=3, ge=1)
    # Throttled on attempt n -> wait n * throttle_backoff_unit
    throttle_backoff_unit: float = Field(default=10.0, ge=0)
    # Any other failure -> fixed wait
    error_backoff: float = Field(default=2.0, ge=0)


# ─── Environment ──────────────────────────────────────────────────────────────


def azure_settings() -> dict[str, str]:
    """Return the Azure OpenAI settings from the environment (empty strings when unset)."""
    return {
        "endpoint": os.getenv("AZURE_OPENAI_ENDPOINT", "").rstrip("/"),
        "api_key": os.getenv("AZURE_OPENAI_API_KEY", ""),
        "deployment": os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", ""),
    }


DEFAULT_CACHE_FILE = ROOT / "data" / "intermediate" / "table_llm_cache.json"
