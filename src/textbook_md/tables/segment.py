"""Partition main content into ordered ``text`` / ``table_candidate`` chunks.

Explicit TABLE_START / TABLE_END markers delimit table candidates; everything
else is text.  The chunks exactly partition the input with marker lines
removed: joining every chunk's lines in order reproduces the content
verbatim, so no line can be lost between here and reassembly.
"""

import logging
from typing import Literal

from pydantic import BaseModel

from textbook_md.extraction.markers import MarkerKind, marker_kind

logger = logging.getLogger(__name__)

TEXT = "text"
TABLE_CANDIDATE = "table_candidate"


class Chunk(BaseModel):
    """A contiguous run of lines tagged as plain text or a table candidate."""

    kind: Literal["text", "table_candidate"]
    lines: list[str]

    @property
    def text(self) -> str:
        """The chunk content as a single newline-joined string."""
        return "\n".join(self.lines)

    def is_normalizable(self, min_lines: int = 2) -> bool:
        """True for table candidates large enough to plausibly be a table."""
        return self.kind == TABLE_CANDIDATE and len(self.lines) >= min_lines


def segment_chunks(text: str) -> list[Chunk]:
    """Split *text* into chunks at explicit table markers (single pass)."""
    chunks: list[Chunk] = []
    buffer: list[str] = []
    inside_table = False

    def flush(kind: str) -> None:
        if buffer:
            chunks.append(Chunk(kind=kind, lines=list(buffer)))
            buffer.clear()

    for line in text.split("\n"):
        kind = marker_kind(line)

        if kind is MarkerKind.TABLE_START:
            # A second start inside an open table closes nothing: the pending
            # lines are flushed as text, same as outside a table
            flush(TEXT)
            inside_table = True
        elif kind is MarkerKind.TABLE_END and inside_table:
            flush(TABLE_CANDIDATE)
            inside_table = False
        elif kind is not None:
            # Stray TABLE_END or a leftover TOC/MAIN marker: never emitted
            logger.debug("Dropping stray %s marker", kind.value)
        else:
            buffer.append(line)

    # An unterminated table region stays text
    if inside_table:
        logger.warning("TABLE_START without TABLE_END; treating %d trailing lines as text", len(buffer))
    flush(TEXT)

    n_tables = sum(1 for chunk in chunks if chunk.kind == TABLE_CANDIDATE)
    logger.info("Segmented content into %d chunks (%d table candidates)", len(chunks), n_tables)
    return chunks


def join_chunks(chunks: list[Chunk]) -> str:
    """Concatenate chunk contents in order."""
    return "\n".join(line for chunk in chunks for line in chunk.lines)
