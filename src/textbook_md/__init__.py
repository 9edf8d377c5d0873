"""Plain-text instructional documents to structured markdown.

Subpackages:
  extraction  -- marker tokens and main-content extraction
  tables      -- chunk segmentation and LLM table normalization
  structure   -- heading/list classification and outline extraction

Entry point: ``textbook_md.convert.convert_text`` (or ``python -m textbook_md.convert``).
"""
