"""Default regex sources and glyph sets for heading/list classification.

These are the out-of-the-box values for ``StructureConfig``.  They are tuned
for numbered, chaptered instructional text (English and Traditional Chinese
conventions) and are kept as plain strings so callers can override them per
document.  Compiled forms live on the rule objects in rules.py.
"""

import re

# ─── Glyph Sets ───────────────────────────────────────────────────────────────

# First-level bullet glyphs; rewritten to the canonical bullet symbol
PRIMARY_BULLETS = "•●▪■◆·*-"

# Second-level bullet glyphs; treated as step-depth headings
SECONDARY_BULLETS = "○◦▫□◇"

# Chinese and Arabic numerals used in "第X章" style headings
CJK_NUMERALS = "一二三四五六七八九十百零〇\\d"


# ─── Heading Patterns ─────────────────────────────────────────────────────────

# Closed keyword set for top-level sections, optionally followed by a colon
# and a title ("Conclusion", "附錄：常用指令").
MAJOR_SECTION_KEYWORDS = (
    "Introduction",
    "Preface",
    "Foreword",
    "Appendix",
    "Conclusion",
    "Summary",
    "References",
    "導論",
    "前言",
    "序言",
    "附錄",
    "結語",
    "總結",
    "結論",
)

MAJOR_SECTION_PATTERNS = (
    r"^(?:" + "|".join(MAJOR_SECTION_KEYWORDS) + r")(?:\s*[:：].*)?$",
    # "Appendix A", "Appendix B: Glossary"
    r"^Appendix\s+[A-Z0-9]+\b(?:\s*[:：]?.*)?$",
    # "Chapter 3", "Chapter 3: Loops", "Chapter 3 Loops"
    r"^Chapter\s+\d+\b(?:\s*[:：]?.*)?$",
    # "第三章：迴圈", "第3章 迴圈"
    r"^第[" + CJK_NUMERALS + r"]+章(?:\s*[:：]?.*)?$",
)

SUB_SECTION_PATTERNS = (
    r"^Section\s+\d+(?:\.\d+)*\b",
    r"^第[" + CJK_NUMERALS + r"]+節",
)

# "1. Intro", "1.1 Background", "2.3.1、細節" -> dotted prefix + punctuation/space + text.
# ")" is left out so "3) item" stays an ordered list item.
NUMBERED_OUTLINE_PATTERN = r"^(\d+(?:\.\d+)*)[.\s、]+(\S.*)$"

STEP_PATTERNS = (
    r"^Step\s*\d+\b",
    r"^步驟\s*[" + CJK_NUMERALS + r"]+",
    r"^[" + re.escape(SECONDARY_BULLETS) + r"]\s*\S",
)


# ─── List Patterns ────────────────────────────────────────────────────────────

BULLET_ITEM_PATTERN = r"^[" + re.escape(PRIMARY_BULLETS) + r"]\s+\S"

ORDERED_ITEM_PATTERNS = (
    # "a) ...", "3) ...", "iv. ..."
    r"^(?:\d+|[A-Za-z]|[ivxlc]+)[.)）]\s+\S",
    # "(1) ...", "（a）..."
    r"^[(（](?:\d+|[A-Za-z])[)）]\s*\S",
)


# ─── Unmarked Table of Contents ──────────────────────────────────────────────

TOC_HEADING_PATTERN = r"^(?:目錄|目次|Contents|Table of Contents)\s*[:：]?$"


# ─── Title Cleanup ────────────────────────────────────────────────────────────

# Leader dots or ellipsis with an optional trailing page number: "Loops ....... 12"
TRAILING_LEADER_RE = re.compile(r"\s*(?:(?:\s*\.){2,}|…)[\s.…]*\d*\s*$")

# Bare trailing ellipsis / periods: "Getting started..."
TRAILING_ELLIPSIS_RE = re.compile(r"[.…]+\s*$")

# Trailing colon, ASCII or full-width
TRAILING_COLON_RE = re.compile(r"\s*[:：]\s*$")

# Leading table delimiter of a canonical pipe row
TABLE_ROW_RE = re.compile(r"^\s*\|")

# Secondary bullet glyph leading a step-depth heading
LEADING_SECONDARY_BULLET_RE = re.compile(r"^[" + re.escape(SECONDARY_BULLETS) + r"]\s*")
