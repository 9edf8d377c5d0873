"""Collect a heading outline (table of contents) from converted markdown.

Downstream renderers build their table of contents from the top two heading
levels and anchor each listed heading as ``section-N`` in outline order.  This
module produces the same list without rendering anything, so callers can
inspect or serialise the structure the classifier recovered.
"""

import re
from typing import NamedTuple

HEADING_RE = re.compile(r"^(#+)\s+(.+?)\s*#*\s*$")
FENCE_RE = re.compile(r"^\s*(```|~~~)")


class OutlineEntry(NamedTuple):
    """One heading in the outline."""

    level: int
    title: str
    slug: str


def extract_outline(markdown: str, max_level: int = 2) -> list[OutlineEntry]:
    """Return headings of level <= *max_level* with ``section-N`` slugs.

    N is the entry's 1-based position in the returned list.  Heading depth is
    not capped at six, since the classifier emits deeper levels for long
    numbered outlines.  Headings inside fenced code blocks and pipe-table rows
    are ignored.
    """
    entries: list[OutlineEntry] = []
    in_fence = False

    for line in markdown.split("\n"):
        if FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        match = HEADING_RE.match(line)
        if not match:
            continue
        level = len(match.group(1))
        if level <= max_level:
            entries.append(OutlineEntry(level, match.group(2), f"section-{len(entries) + 1}"))

    return entries
