"""Heading/list classification of reassembled text.

Submodules:
  patterns  -- default regex sources and glyph sets
  rules     -- ordered classifier rules and the first-match cascade
  classify  -- per-line pass, heading emission, blank-line cleanup
  outline   -- heading outline extraction from converted markdown
"""
