"""
Definition block scan.

Block definitions in the bundle look like

    "Maple Log":{displayName:{translationKey:"..."},ttb:30,textureInfo:"maple_log",...}

or go through a short wrapper call, ``Xe("Maple Log",{...textureInfo:...})``.
Each definition marker (``textureInfo:``) is attributed to the closest
name-like token before it.

Families generated at runtime from one template are recognized by
their concatenation shapes and expanded over a palette from the
extraction tables:

    e => "Spawn " + e + " Capsule"     closure with prefix and suffix
    e => `Spawn ${e} Capsule`          same, template literal
    e + " Wool"                        suffix only

Closures fall back to the default palette. A bare suffix is only expanded
when the tables list it under a palette; string building such as
``n + " Kills"`` generates nothing.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .base import BaseExtractor, register
from .filters import NameFilter
from ..utils.config import ExtractionTables
from ..utils.logger import get_logger

logger = get_logger(__name__)

LOOKBACK = 1500

WRAPPER_CALL = re.compile(r"""[A-Za-z0-9_$]{1,3}\(\s*(["'])([^"']+)\1\s*,""")
OBJECT_KEY = re.compile(r"""(?:"([^"]+)"|([A-Za-z0-9_$]+))\s*:\s*\{""")

_PARAM = r"""(?<![\w$])\(?\s*([A-Za-z_$][\w$]{0,2})\s*\)?\s*=>\s*"""
_LITERAL = r"""[A-Za-z0-9 ]*"""

CLOSURE = re.compile(
    _PARAM + rf"""(["'])({_LITERAL})\2\s*\+\s*\1\s*\+\s*(["'])({_LITERAL})\4"""
)
TEMPLATE_CLOSURE = re.compile(
    _PARAM + rf"""`({_LITERAL})\$\{{\s*\1\s*\}}({_LITERAL})`"""
)
SUFFIX_CONCAT = re.compile(
    r"""(?<![\w$."'])([A-Za-z_$][\w$]{0,2})\s*\+\s*(["'])( [A-Z][A-Za-z0-9 ]*)\2"""
)
CAPITALIZED_WORD = re.compile(r"\b[A-Z]")


def marker_pattern(markers: Sequence[str]) -> "re.Pattern[str]":
    alternatives = "|".join(re.escape(m) for m in markers)
    return re.compile(
        rf"""(?<![\w$])(?:{alternatives})\s*:\s*(\[[^\]]*\]|"[^"]+"|[A-Za-z0-9_$]+(?:\.[A-Za-z0-9_$]+)?)"""
    )


@dataclass(frozen=True)
class Template:
    """A generated name family: prefix + palette value + suffix."""
    start: int
    end: int
    prefix: str
    suffix: str
    closure: bool = True

    def expand(self, palette: Sequence[str]) -> List[str]:
        return [" ".join(f"{self.prefix}{value}{self.suffix}".split()) for value in palette]


def find_templates(text: str) -> List[Template]:
    """Closure and suffix concatenation shapes, in text order."""
    templates: List[Template] = []

    for pattern in (CLOSURE, TEMPLATE_CLOSURE):
        for match in pattern.finditer(text):
            if pattern is CLOSURE:
                prefix, suffix = match.group(3), match.group(5)
            else:
                prefix, suffix = match.group(2), match.group(3)
            if not CAPITALIZED_WORD.search(prefix + suffix):
                continue
            templates.append(Template(match.start(), match.end(), prefix, suffix))

    closures = list(templates)
    for match in SUFFIX_CONCAT.finditer(text):
        if any(t.start <= match.start() < t.end for t in closures):
            continue
        templates.append(Template(match.start(), match.end(), "", match.group(3), closure=False))

    templates.sort(key=lambda t: t.start)
    return templates


def lookback_candidates(text: str, position: int, lookback: int = LOOKBACK) -> List[str]:
    """Name-like tokens before ``position``, closest first."""
    window_start = max(0, position - lookback)
    window = text[window_start:position]

    candidates: List[Tuple[int, str]] = []
    for match in WRAPPER_CALL.finditer(window):
        candidates.append((match.start(), match.group(2)))
    for match in OBJECT_KEY.finditer(window):
        candidates.append((match.start(), match.group(1) or match.group(2)))

    candidates.sort(key=lambda c: c[0], reverse=True)
    return [name for _, name in candidates]


def scan_definition_blocks(text: str, tables: ExtractionTables) -> Optional[List[str]]:
    """
    Names of definition blocks and generated families, in text order.

    Returns:
        Names, or None if nothing was recognized
    """
    names: List[str] = []
    name_filter = NameFilter(tables)

    def add(name: str) -> None:
        if name_filter.add(name):
            names.append(name)
            for variant in tables.implied_variants.get(name, ()):
                if name_filter.add(variant):
                    names.append(variant)

    events: List[Tuple[int, object]] = []
    if tables.definition_markers:
        for match in marker_pattern(tables.definition_markers).finditer(text):
            events.append((match.start(), None))
    for template in find_templates(text):
        events.append((template.start, template))
    events.sort(key=lambda e: e[0])

    for position, template in events:
        if isinstance(template, Template):
            if template.closure:
                palette = tables.palette_for(template.prefix, template.suffix)
            else:
                palette = tables.palette_for_suffix(template.suffix)
            if not palette:
                continue
            logger.debug(f"Generated family '{template.prefix}*{template.suffix}' at {position}")
            for name in template.expand(palette):
                add(name)
            continue

        for candidate in lookback_candidates(text, position):
            if name_filter.accepts(candidate):
                add(candidate)
                break

    return names or None


@register
class DefinitionBlockExtractor(BaseExtractor):
    """Names recovered from per-block definition objects."""

    name = "definitions"

    def scan(self, text: str) -> Optional[List[str]]:
        return scan_definition_blocks(text, self.tables)
