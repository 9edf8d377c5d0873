"""Normalize table-candidate chunks through the service and reassemble in order.

Each eligible chunk (a table candidate with at least ``min_table_lines``
lines) is sent to the normalization service independently, in a thread pool.
Results are written back by chunk index, so the output order always matches
the input order whatever order the calls complete in.

A chunk whose normalization is exhausted (or whose service blows up in an
unexpected way) keeps its original lines: one bad table never aborts the
conversion and never loses content.
"""

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from tqdm import tqdm

from textbook_md.config import RetryPolicy
from textbook_md.exceptions import ServiceExhausted
from textbook_md.tables.cache import TableCache
from textbook_md.tables.retry import call_with_retry
from textbook_md.tables.segment import Chunk
from textbook_md.tables.service import NormalizationService

logger = logging.getLogger(__name__)

# Models sometimes wrap the answer in ```markdown ... ``` despite instructions
CODE_FENCE_RE = re.compile(r"^\s*```[\w-]*\s*\n(.*?)\n\s*```\s*$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a single code fence wrapping the whole response."""
    match = CODE_FENCE_RE.match(text)
    return match.group(1) if match else text.strip("\n")


def normalize_table_chunk(
    chunk: Chunk,
    service: NormalizationService,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Return the normalized text of one table chunk; raises ServiceExhausted."""
    return strip_code_fence(call_with_retry(service, chunk.text, policy, sleep))


def _normalize_or_fallback(
    idx: int,
    chunk: Chunk,
    service: NormalizationService,
    policy: RetryPolicy | None,
    sleep: Callable[[float], None],
    cache: TableCache | None,
) -> list[str]:
    """Worker: normalized lines for one chunk, or its original lines on failure."""
    if cache is not None:
        cached = cache.get(chunk.text)
        if cached is not None:
            logger.debug("Cache hit for chunk %d", idx)
            return cached.split("\n")

    try:
        normalized = normalize_table_chunk(chunk, service, policy, sleep)
    except ServiceExhausted as exc:
        logger.warning("Chunk %d: %s; keeping original text", idx, exc)
        return list(chunk.lines)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Chunk %d: unexpected normalization error (%s); keeping original text", idx, exc)
        return list(chunk.lines)

    if cache is not None:
        cache.put(chunk.text, normalized)
    return normalized.split("\n")


def normalize_chunks(
    chunks: list[Chunk],
    service: NormalizationService | None,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    max_workers: int = 4,
    min_table_lines: int = 2,
    cache: TableCache | None = None,
) -> list[Chunk]:
    """Return *chunks* with every eligible table candidate normalized, order preserved."""
    targets = [idx for idx, chunk in enumerate(chunks) if chunk.is_normalizable(min_table_lines)]
    skipped = sum(1 for chunk in chunks if chunk.kind == "table_candidate") - len(targets)
    if skipped:
        logger.info("Treating %d undersized table candidates as text", skipped)

    if service is None or not targets:
        if targets:
            logger.info("No normalization service; %d table regions keep their original text", len(targets))
        return list(chunks)

    results: dict[int, list[str]] = {}
    logger.info("Normalizing %d table regions (workers=%d)", len(targets), max_workers)

    # Keep per-request HTTP logs from clobbering the progress bar
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if max_workers <= 1:
        for idx in tqdm(targets, desc="Normalizing tables"):
            results[idx] = _normalize_or_fallback(idx, chunks[idx], service, policy, sleep, cache)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {pool.submit(_normalize_or_fallback, idx, chunks[idx], service, policy, sleep, cache): idx for idx in targets}
            for future in tqdm(as_completed(futures), total=len(futures), desc="Normalizing tables"):
                results[futures[future]] = future.result()

    # Serialized, index-ordered reassembly
    output: list[Chunk] = []
    for idx, chunk in enumerate(chunks):
        if idx in results:
            output.append(Chunk(kind=chunk.kind, lines=results[idx]))
        else:
            output.append(chunk)
    return output
