"""Strip the table-of-contents / preamble region using marker boundaries.

Precedence, first applicable wins:
  1. MAIN_START present  -- drop everything up to and including it.
  2. TOC_START present   -- excise TOC_START..TOC_END; without TOC_END, excise
                            up to the first major-section line within the scan
                            window; failing that, drop only the marker line.
  3. no markers          -- return the document unchanged.

Extraction never discards content without an explicit marker, and never
raises: an ambiguous marker layout resolves deterministically to one of the
paths above.
"""

import logging
import re

from textbook_md.config import StructureConfig
from textbook_md.extraction.markers import MarkerKind, find_marker

logger = logging.getLogger(__name__)

# Leader dots (or ellipsis) followed by an optional page number
TOC_ENTRY_RE = re.compile(r"(?:\.{2,}|…)[\s.…]*\d*\s*$")


def _find_major_section(lines: list[str], start: int, window: int, major_res: list[re.Pattern]) -> int | None:
    """Return the index of the first major-section line in lines[start:start+window], or None.

    TOC entries ("Chapter 1 Basics ........ 5") match the same patterns as
    the chapter they point to, so lines ending in leader dots are skipped.
    """
    stop = min(len(lines), start + window)
    for idx in range(start, stop):
        stripped = lines[idx].strip()
        if TOC_ENTRY_RE.search(stripped):
            continue
        if any(pattern.match(stripped) for pattern in major_res):
            return idx
    return None


def extract_main_content(text: str, config: StructureConfig | None = None) -> str:
    """Return the main-content region of *text* according to its markers."""
    config = config or StructureConfig()
    lines = text.split("\n")

    # ── 1. Explicit main-content boundary wins outright ─────────────────
    main_idx = find_marker(lines, MarkerKind.MAIN_START)
    if main_idx is not None:
        logger.info("Main-content marker at line %d; dropping %d preceding lines", main_idx, main_idx)
        return "\n".join(lines[main_idx + 1 :])

    # ── 2. TOC region ────────────────────────────────────────────────────
    toc_idx = find_marker(lines, MarkerKind.TOC_START)
    if toc_idx is None:
        logger.debug("No extraction markers found; keeping the whole document")
        return text

    toc_end_idx = find_marker(lines, MarkerKind.TOC_END, start=toc_idx + 1)
    if toc_end_idx is not None:
        resume = toc_end_idx + 1
        logger.info("TOC excised between markers (lines %d-%d)", toc_idx, toc_end_idx)
    else:
        major_res = [re.compile(p) for p in config.major_section_patterns]
        major_idx = _find_major_section(lines, toc_idx + 1, config.toc_scan_window, major_res)
        if major_idx is not None:
            resume = major_idx
            logger.info("TOC excised up to first major section at line %d", major_idx)
        else:
            resume = toc_idx + 1
            logger.warning("TOC start marker without an end or a major section within %d lines; dropping only the marker", config.toc_scan_window)

    return "\n".join(lines[:toc_idx] + lines[resume:])
