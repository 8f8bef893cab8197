"""
Brand token matching.

A single case-insensitive regex is built from the configured brand tokens so
that spelling variants of the same brand land in the same bucket:

    "brand-name", "brand name", "brand_name", "brandname"  -> token "brand-name"
    "brand2", "brand 2"                                     -> token "brand2"

Matching is substring based. Generic tokens ("sister") will over-match
generic queries ("book for sister"); keep the token list brand specific.
"""

import re
from typing import Iterable, Optional

# Separator inside a token: hyphen, underscore or space, or nothing at all
SEPARATOR_PATTERN = "[-_ ]?"


def token_pattern(token: str) -> str:
    """Translate one brand token into its regex fragment."""
    parts = []
    for ch in token:
        if ch in "- ":
            parts.append(SEPARATOR_PATTERN)
        elif ch.isdigit():
            parts.append(" ?" + ch)
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


class BrandMatcher:
    """Compiled brand rule. Build with compile_tokens()."""

    def __init__(self, tokens: tuple, pattern: Optional[re.Pattern]):
        self.tokens = tokens
        self.pattern = pattern

    def matches(self, text) -> bool:
        """True if text contains any brand token. Non-strings and "" are never branded."""
        if not text or not isinstance(text, str):
            return False
        if self.pattern is None:
            return False
        return self.pattern.search(text) is not None

    def __repr__(self):
        return f"BrandMatcher(tokens={list(self.tokens)!r})"


def compile_tokens(tokens: Iterable[str]) -> BrandMatcher:
    """
    Compile brand tokens into a BrandMatcher.

    Blank tokens are ignored. With no usable tokens the matcher matches
    nothing (an empty alternation would otherwise match every string).
    """
    cleaned = tuple(t.strip() for t in tokens if isinstance(t, str) and t.strip())
    if not cleaned:
        return BrandMatcher(cleaned, None)

    pattern = re.compile("|".join(token_pattern(t) for t in cleaned), re.IGNORECASE)
    return BrandMatcher(cleaned, pattern)
