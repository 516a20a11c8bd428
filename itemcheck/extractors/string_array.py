"""
Large string array scan.

Some builds ship the item list as a flat array literal,
``["Unloaded","Dirt","Stone",...]``, instead of an enum object.
"""

import json
import re
from typing import Any, List, Optional, Sequence

from .base import BaseExtractor, register
from ..utils.logger import get_logger

logger = get_logger(__name__)

# "[" followed by two quoted elements
ARRAY_START = re.compile(r"""\[\s*['"][^'"]+['"]\s*,\s*['"][^'"]+""")

KEYWORD_WINDOW = 1200
MAX_ARRAY_LENGTH = 200_000
MIN_ELEMENTS = 50
MIN_STRING_RATIO = 0.8


def find_array_end(text: str, start: int, max_length: int = MAX_ARRAY_LENGTH) -> Optional[int]:
    """
    Index just past the bracket closing the array opened at ``start``.

    Brackets inside string literals are ignored; backslash escapes are
    honored. Returns None if the array is unterminated or longer than
    ``max_length``.
    """
    depth = 0
    quote = None
    escaped = False
    limit = min(len(text), start + max_length)

    for i in range(start, limit):
        char = text[i]

        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in ('"', "'"):
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return i + 1

    return None


def parse_array_literal(literal: str) -> Optional[List[Any]]:
    """Parse an array literal as JSON, retrying with single quotes swapped for double."""
    try:
        value = json.loads(literal)
    except ValueError:
        try:
            value = json.loads(literal.replace("'", '"'))
        except ValueError:
            return None
    return value if isinstance(value, list) else None


def is_name_array(items: List[Any]) -> bool:
    strings = sum(1 for item in items if isinstance(item, str))
    return strings >= MIN_ELEMENTS and strings >= len(items) * MIN_STRING_RATIO


def scan_large_string_array(text: str, keywords: Sequence[str]) -> Optional[List[str]]:
    """
    Find the longest plausible string array in the text.

    A candidate must have one of ``keywords`` within the first
    ``KEYWORD_WINDOW`` characters, parse as an array, hold at least
    ``MIN_ELEMENTS`` strings, and be at least 80% strings.

    Returns:
        String elements of the longest candidate, or None
    """
    best: List[Any] = []

    for match in ARRAY_START.finditer(text):
        start = match.start()

        preview = text[start:start + KEYWORD_WINDOW]
        if not any(keyword in preview for keyword in keywords):
            continue

        end = find_array_end(text, start)
        if end is None:
            continue

        items = parse_array_literal(text[start:end])
        if items is None:
            continue

        if len(items) > len(best) and is_name_array(items):
            logger.debug(f"String array candidate at {start}: {len(items)} elements")
            best = items

    if not best:
        return None
    return [item for item in best if isinstance(item, str)]


@register
class StringArrayExtractor(BaseExtractor):
    """Item list written as a flat array of quoted names."""

    name = "string_array"

    def scan(self, text: str) -> Optional[List[str]]:
        return scan_large_string_array(text, self.tables.array_keywords)
