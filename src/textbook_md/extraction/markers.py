"""Literal marker tokens that authors embed in a document to delimit regions.

Each marker kind has an ASCII-bracket surface form (``[TABLE_START]``), a
full-width-bracket form (``【TABLE_START】``) and Chinese aliases
(``[表格開始]``).  A line is a marker line when its stripped text equals one
of the surface forms; markers are consumed by extraction and segmentation and
never reach the output.
"""

from enum import Enum


class MarkerKind(str, Enum):
    """The five region delimiters recognised in input text."""

    TOC_START = "TOC_START"
    TOC_END = "TOC_END"
    MAIN_START = "MAIN_START"
    TABLE_START = "TABLE_START"
    TABLE_END = "TABLE_END"


# Chinese aliases for each marker name
MARKER_ALIASES: dict[MarkerKind, tuple[str, ...]] = {
    MarkerKind.TOC_START: ("目錄開始",),
    MarkerKind.TOC_END: ("目錄結束",),
    MarkerKind.MAIN_START: ("正文開始",),
    MarkerKind.TABLE_START: ("表格開始",),
    MarkerKind.TABLE_END: ("表格結束",),
}

# (open, close) bracket pairs: ASCII and full-width
BRACKETS = (("[", "]"), ("【", "】"), ("［", "］"))


def surface_forms(kind: MarkerKind) -> set[str]:
    """Return every accepted literal for *kind*."""
    names = (kind.value,) + MARKER_ALIASES[kind]
    return {f"{left}{name}{right}" for name in names for left, right in BRACKETS}


# Surface form -> kind lookup, built once
_LOOKUP: dict[str, MarkerKind] = {form: kind for kind in MarkerKind for form in surface_forms(kind)}


def marker_kind(line: str) -> MarkerKind | None:
    """Return the marker kind if *line* is a marker line, else None."""
    stripped = line.strip()
    if not stripped or stripped[0] not in "[【［":
        return None
    # ASCII names are matched case-insensitively: "[toc_start]" == "[TOC_START]"
    return _LOOKUP.get(stripped) or _LOOKUP.get(stripped.upper())


def is_marker(line: str) -> bool:
    """Return True if *line* is any marker line."""
    return marker_kind(line) is not None


def find_marker(lines: list[str], kind: MarkerKind, start: int = 0) -> int | None:
    """Return the index of the first *kind* marker line at or after *start*, or None."""
    for idx in range(start, len(lines)):
        if marker_kind(lines[idx]) is kind:
            return idx
    return None
