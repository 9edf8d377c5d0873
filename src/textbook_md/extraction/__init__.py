"""Marker tokens and main-content extraction.

Submodules:
  markers       -- marker kinds, surface forms, line matching
  main_content  -- TOC / preamble excision by marker precedence
"""
