"""Ordered classifier rules for the heading/list cascade.

Every rule shares one capability, ``match(ctx)``: return a
``ClassificationResult`` if the rule applies to the line, else None.
``build_rules`` assembles them in fixed priority order from a
``StructureConfig`` and ``classify_line`` takes the first match:

    1. LengthGuardRule       long lines are prose (depth 0)
    2. PatternRule (major)   Introduction / Chapter N / 附錄 ... -> depth 1
    3. PatternRule (sub)     Section N / 第N節                    -> depth 2
    4. NumberedOutlineRule   1. / 1.1 / 1.1.1 ...                 -> components + 1
    5. PatternRule (step)    Step N / secondary bullet glyph      -> depth 3
    6. ContextSubheadingRule short line before a long one (opt-in)
    7. DefaultRule           depth 0, list item or prose
"""

import re
from typing import NamedTuple

from textbook_md.config import StructureConfig
from textbook_md.structure.patterns import LEADING_SECONDARY_BULLET_RE, TRAILING_COLON_RE, TRAILING_ELLIPSIS_RE, TRAILING_LEADER_RE


class LineContext(NamedTuple):
    """A trimmed line plus the trimmed line after it (empty at end of input)."""

    text: str
    next_text: str = ""


class ClassificationResult(NamedTuple):
    """Depth 0 means not a heading; text is the cleaned presentation."""

    depth: int
    is_list_item: bool
    text: str


def clean_title(title: str) -> str:
    """Strip trailing filler (leader dots + page number, ellipsis, colon) from a heading."""
    cleaned = LEADING_SECONDARY_BULLET_RE.sub("", title)
    cleaned = TRAILING_LEADER_RE.sub("", cleaned)
    cleaned = TRAILING_ELLIPSIS_RE.sub("", cleaned)
    cleaned = TRAILING_COLON_RE.sub("", cleaned).strip()
    return cleaned or title.strip()


# ─── List Items ───────────────────────────────────────────────────────────────


class ListItemMatcher:
    """Detect list items and rewrite bullet glyphs to the canonical symbol."""

    def __init__(self, config: StructureConfig):
        self.bullet_re = re.compile(config.bullet_item_pattern)
        self.ordered_res = [re.compile(p) for p in config.ordered_item_patterns]
        self.glyph_re = re.compile(r"^[" + re.escape(config.primary_bullets) + r"]\s*")
        self.bullet_symbol = config.bullet_symbol

    def is_list_item(self, text: str) -> bool:
        return bool(self.bullet_re.match(text)) or any(p.match(text) for p in self.ordered_res)

    def normalize(self, text: str) -> str:
        """Ordered markers stay verbatim; bullet glyphs become the canonical bullet."""
        if self.bullet_re.match(text):
            return f"{self.bullet_symbol} {self.glyph_re.sub('', text, count=1)}"
        return text

    def classify(self, text: str) -> ClassificationResult:
        """Depth-0 result: a normalized list item or plain prose."""
        if self.is_list_item(text):
            return ClassificationResult(0, True, self.normalize(text))
        return ClassificationResult(0, False, text)


# ─── Rules ────────────────────────────────────────────────────────────────────


class Rule:
    """Base rule: subclasses implement match()."""

    name = "rule"

    def match(self, ctx: LineContext) -> ClassificationResult | None:
        raise NotImplementedError


class LengthGuardRule(Rule):
    """Lines longer than the threshold are never headings, whatever they start with."""

    name = "length_guard"

    def __init__(self, max_length: int, lists: ListItemMatcher):
        self.max_length = max_length
        self.lists = lists

    def match(self, ctx: LineContext) -> ClassificationResult | None:
        if len(ctx.text) > self.max_length:
            return self.lists.classify(ctx.text)
        return None


class PatternRule(Rule):
    """Fixed-depth heading when any of the patterns matches."""

    def __init__(self, name: str, patterns: list[str], depth: int):
        self.name = name
        self.patterns = [re.compile(p) for p in patterns]
        self.depth = depth

    def match(self, ctx: LineContext) -> ClassificationResult | None:
        if any(p.match(ctx.text) for p in self.patterns):
            return ClassificationResult(self.depth, False, clean_title(ctx.text))
        return None


class NumberedOutlineRule(Rule):
    """Dotted numeric prefix: depth = number of components + 1, uncapped."""

    name = "numbered_outline"

    def __init__(self, pattern: str):
        self.pattern = re.compile(pattern)

    def match(self, ctx: LineContext) -> ClassificationResult | None:
        found = self.pattern.match(ctx.text)
        if not found:
            return None
        depth = len(found.group(1).split(".")) + 1
        return ClassificationResult(depth, False, clean_title(ctx.text))


class ContextSubheadingRule(Rule):
    """A short line directly followed by a long, un-numbered line reads as a sub-heading."""

    name = "context_subheading"

    def __init__(self, short_max: int, long_min: int, depth: int, lists: ListItemMatcher):
        self.short_max = short_max
        self.long_min = long_min
        self.depth = depth
        self.lists = lists
        self.numbered_re = re.compile(r"^[\d.]+\s")

    def match(self, ctx: LineContext) -> ClassificationResult | None:
        if len(ctx.text) >= self.short_max or self.lists.is_list_item(ctx.text):
            return None
        if len(ctx.next_text) > self.long_min and not self.numbered_re.match(ctx.next_text):
            return ClassificationResult(self.depth, False, clean_title(ctx.text))
        return None


class DefaultRule(Rule):
    """Catch-all: depth 0, list item or prose."""

    name = "default"

    def __init__(self, lists: ListItemMatcher):
        self.lists = lists

    def match(self, ctx: LineContext) -> ClassificationResult | None:
        return self.lists.classify(ctx.text)


# ─── Cascade ──────────────────────────────────────────────────────────────────


def build_rules(config: StructureConfig) -> list[Rule]:
    """Assemble the rule cascade in priority order."""
    lists = ListItemMatcher(config)
    rules: list[Rule] = [
        LengthGuardRule(config.heading_max_length, lists),
        PatternRule("major_section", config.major_section_patterns, 1),
        PatternRule("sub_section", config.sub_section_patterns, 2),
        NumberedOutlineRule(config.numbered_outline_pattern),
        PatternRule("step", config.step_patterns, 3),
    ]
    if config.context_subheading:
        rules.append(ContextSubheadingRule(config.context_short_max, config.context_long_min, config.context_depth, lists))
    rules.append(DefaultRule(lists))
    return rules


def classify_line(ctx: LineContext, rules: list[Rule]) -> ClassificationResult:
    """Return the first rule's classification; the default rule always matches."""
    for rule in rules:
        result = rule.match(ctx)
        if result is not None:
            return result
    raise ValueError("Rule cascade has no catch-all rule")
