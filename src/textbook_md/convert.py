"""Convert a plain-text instructional document into structured markdown.

Runs the five stages in order:
  1. extract_main_content  -- drop the TOC / preamble region named by markers
  2. segment_chunks        -- split into text and table-candidate chunks
  3. normalize_chunks      -- rebuild table candidates via the LLM (parallel,
                              order-preserving, original text on failure)
  4. classify_lines        -- headings, list items, page breaks
  5. collapse_blank_lines  -- (inside classify_lines) final blank-line cleanup

No stage has a caller-visible failure mode: at worst a table region comes out
in its original textual form.

Usage:
  python -m textbook_md.convert notes.txt                  # writes notes.md
  python -m textbook_md.convert notes.txt out.md --workers 8
  python -m textbook_md.convert notes.txt --no-llm         # skip table normalization
  python -m textbook_md.convert notes.txt --outline        # also print the heading outline
"""

import argparse
import logging
import time
from pathlib import Path
from typing import Callable

from textbook_md.config import DEFAULT_CACHE_FILE, RetryPolicy, StructureConfig
from textbook_md.extraction.main_content import extract_main_content
from textbook_md.structure.classify import classify_lines
from textbook_md.structure.outline import extract_outline
from textbook_md.tables.cache import TableCache
from textbook_md.tables.normalize import normalize_chunks
from textbook_md.tables.segment import join_chunks, segment_chunks
from textbook_md.tables.service import NormalizationService, build_service_from_env

logger = logging.getLogger(__name__)


def convert_text(  # pylint: disable=too-many-arguments
    text: str,
    service: NormalizationService | None = None,
    config: StructureConfig | None = None,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    max_workers: int = 4,
    cache: TableCache | None = None,
) -> str:
    """Run the full pipeline on *text* and return the markdown result."""
    config = config or StructureConfig()

    # Step 1: Strip the TOC / preamble region
    content = extract_main_content(text, config)

    # Step 2: Partition into text and table-candidate chunks
    chunks = segment_chunks(content)

    # Step 3: Normalize table candidates, original text on failure
    chunks = normalize_chunks(
        chunks,
        service,
        policy=policy,
        sleep=sleep,
        max_workers=max_workers,
        min_table_lines=config.min_table_lines,
        cache=cache,
    )

    # Steps 4-5: Classify headings / lists, then collapse blank runs
    markdown = classify_lines(join_chunks(chunks), config)
    return markdown.strip("\n") + "\n"


def run(input_path: Path, output_path: Path | None = None, use_llm: bool = True, max_workers: int = 4, cache_path: Path | None = DEFAULT_CACHE_FILE) -> Path:
    """Convert a UTF-8 text file and write the markdown next to it (or to *output_path*)."""
    input_path = Path(input_path)
    if output_path is None:
        output_path = input_path.with_suffix(".md")

    logger.info("Reading %s", input_path)
    text = input_path.read_text(encoding="utf-8")

    service = build_service_from_env() if use_llm else None
    cache = TableCache(cache_path, namespace=service.cache_namespace) if (service is not None and cache_path is not None) else None

    markdown = convert_text(text, service=service, max_workers=max_workers, cache=cache)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(markdown, encoding="utf-8")
    logger.info("Wrote %s (%d lines)", output_path, markdown.count("\n"))
    return output_path


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Convert a plain-text instructional document to structured markdown")
    parser.add_argument("input", type=Path, help="Plain-text input file (UTF-8)")
    parser.add_argument("output", type=Path, nargs="?", default=None, help="Markdown output file (default: input with .md suffix)")
    parser.add_argument("--workers", type=int, default=4, help="Parallel table normalization calls")
    parser.add_argument("--no-llm", action="store_true", help="Leave table regions in their original form")
    parser.add_argument("--cache", type=Path, default=DEFAULT_CACHE_FILE, help="Table normalization cache file")
    parser.add_argument("--outline", action="store_true", help="Print the heading outline of the result")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    output_path = run(args.input, args.output, use_llm=not args.no_llm, max_workers=args.workers, cache_path=args.cache)

    if args.outline:
        for entry in extract_outline(output_path.read_text(encoding="utf-8")):
            print(f"{'  ' * (entry.level - 1)}- [{entry.title}](#{entry.slug})")


if __name__ == "__main__":
    main()
