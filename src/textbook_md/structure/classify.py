"""Line-by-line heading/list classification and markdown emission.

Takes the reassembled text (tables already normalized) and rewrites each line:

  - canonical table rows ("| a | b |") pass through unchanged
  - blank lines pass through
  - an unmarked table of contents ("目錄", "Contents") becomes one heading
    followed by its raw entries, left unclassified until two blank lines
  - everything else goes through the rule cascade in rules.py

Headings are emitted as ``#`` * depth + title with a blank line on each side;
every depth-1 heading after the first gets a page-break token right before it
so the renderer starts a new page per chapter.  A final cleanup collapses runs
of three or more blank lines to one.

All state (first heading seen, TOC tracking) lives in a ``_ClassifierState``
created per call, so concurrent documents never share it.
"""

import logging
import re

from textbook_md.config import StructureConfig
from textbook_md.structure.patterns import TABLE_ROW_RE
from textbook_md.structure.rules import ClassificationResult, LineContext, build_rules, classify_line, clean_title

logger = logging.getLogger(__name__)


# ── Classifier state container ───────────────────────────────────────────────


class _ClassifierState:
    """Mutable per-document state for one classification pass."""

    def __init__(self):
        self.output: list[str] = []
        self.headings: list[tuple[int, str]] = []
        self.list_items = 0

        # Unmarked table of contents tracking
        self.in_toc = False
        self.toc_done = False
        self.blank_run = 0

    def emit_heading(self, depth: int, title: str, config: StructureConfig):
        """Append a heading block, preceded by a page break for every chapter after the first."""
        self.output.append("")
        if depth == 1 and self.headings:
            self.output.append(config.page_break_token)
        self.output.append(f"{config.heading_marker * depth} {title}")
        self.output.append("")
        self.headings.append((depth, title))


# ── Cleanup pass ─────────────────────────────────────────────────────────────


def collapse_blank_lines(lines: list[str]) -> list[str]:
    """Collapse every run of 3+ blank lines to exactly one; shorter runs are kept."""
    output: list[str] = []
    run: list[str] = []
    for line in lines:
        if not line.strip():
            run.append("")
            continue
        output.extend(run if len(run) < 3 else [""])
        run = []
        output.append(line)
    output.extend(run if len(run) < 3 else [""])
    return output


# ── Main pass ────────────────────────────────────────────────────────────────


def _handle_blank(state: _ClassifierState, config: StructureConfig):
    """Record a blank line and close an open TOC block after enough blanks."""
    state.output.append("")
    state.blank_run += 1
    if state.in_toc and state.blank_run >= config.toc_end_blank_lines:
        state.in_toc = False
        state.toc_done = True
        logger.debug("Unmarked table of contents ended")


def _emit(state: _ClassifierState, result: ClassificationResult, config: StructureConfig):
    """Write one classified line to the output."""
    if result.depth > 0:
        state.emit_heading(result.depth, result.text, config)
        return
    if result.is_list_item:
        state.list_items += 1
    state.output.append(result.text)


def classify_lines(text: str, config: StructureConfig | None = None) -> str:
    """Classify every line of *text* and return the markdown (blank runs collapsed)."""
    config = config or StructureConfig()
    rules = build_rules(config)
    toc_re = re.compile(config.toc_heading_pattern) if config.toc_heading_pattern else None
    state = _ClassifierState()

    lines = text.split("\n")
    for i, line in enumerate(lines):
        # Canonical table rows are already final
        if TABLE_ROW_RE.match(line):
            state.blank_run = 0
            state.output.append(line)
            continue

        trimmed = line.strip()
        if not trimmed:
            _handle_blank(state, config)
            continue
        state.blank_run = 0

        # Inside an unmarked TOC: keep entries as-is, never headings
        if state.in_toc:
            state.output.append(trimmed)
            continue
        if toc_re is not None and not state.toc_done and toc_re.match(trimmed):
            state.in_toc = True
            state.emit_heading(1, clean_title(trimmed), config)
            logger.debug("Unmarked table of contents starts at line %d", i)
            continue

        next_text = lines[i + 1].strip() if i + 1 < len(lines) else ""
        _emit(state, classify_line(LineContext(trimmed, next_text), rules), config)

    logger.info(
        "Classified %d lines: %d headings (%d top-level), %d list items",
        len(lines),
        len(state.headings),
        sum(1 for depth, _ in state.headings if depth == 1),
        state.list_items,
    )
    return "\n".join(collapse_blank_lines(state.output))
