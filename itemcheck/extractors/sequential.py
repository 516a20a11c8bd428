"""
Sequential enumeration scans.

The game's item list is usually compiled into an object or enum of the
form ``{Unloaded:0,Dirt:1,Stone:2,...}``. Starting from a position in
the bundle, ``extract_sequential_items`` walks forward entry by entry,
keeping only entries whose ids continue the run 0, 1, 2, ...

Two strategies build on it:
    anchor      - start at a known first member ("Unloaded: 0")
    sequential  - try every "<name>: 0" in the text, keep the longest run
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

from .base import BaseExtractor, register
from ..utils.logger import get_logger

logger = get_logger(__name__)

DELIMITERS = ",;{"

# ,Name:12  ;"Name"=12  {'Name' : 12
ENTRY_PATTERN = re.compile(r"""[,;{]\s*["']?([A-Za-z0-9_\s]+)["']?\s*[:=]\s*(\d+)""")

# Same entry without the leading delimiter, for a scan starting on a name
LEAD_PATTERN = re.compile(r"""\s*["']?([A-Za-z0-9_\s]+)["']?\s*[:=]\s*(\d+)""")

ZERO_ENTRY_PATTERN = re.compile(r"""[,;{]\s*["']?([A-Za-z0-9_\s]+)["']?\s*[:=]\s*0(?!\d)""")


@dataclass(frozen=True)
class SequentialLimits:
    """Termination and acceptance limits for one sequential scan."""
    max_consecutive_failures: int = 10
    max_items: int = 2000
    soft_cap_items: int = 200
    max_total_failures: int = 20
    min_items: int = 100


DEFAULT_LIMITS = SequentialLimits()


def extract_sequential_items(
    text: str,
    start: int,
    limits: SequentialLimits = DEFAULT_LIMITS
) -> Optional[List[str]]:
    """
    Collect a contiguous id run starting at ``start``.

    An entry is accepted when its id is exactly one past the last
    accepted id (the first must be 0), or equal to it (an alias: the
    id keeps its first name). A name already collected under an earlier
    id is treated as an alias too. Anything else is a failure: the scan
    moves forward one character and tries again.

    The scan stops after ``max_consecutive_failures`` failures in a row,
    at the end of the text, past ``max_items`` names, or past
    ``soft_cap_items`` names once more than ``max_total_failures``
    failures have accumulated.

    Returns:
        Names ordered by id, or None if fewer than ``min_items`` were found
    """
    by_id: Dict[int, str] = {}
    seen: Set[str] = set()
    last_id = -1
    position = start
    consecutive_failures = 0
    total_failures = 0
    first_attempt = True

    while consecutive_failures < limits.max_consecutive_failures:
        if first_attempt and text[position:position + 1] not in DELIMITERS:
            match = LEAD_PATTERN.match(text, position)
        else:
            match = ENTRY_PATTERN.match(text, position)
        first_attempt = False

        accepted = False
        if match:
            name = match.group(1).strip()
            item_id = int(match.group(2))
            if name and (item_id == last_id + 1 or (item_id == last_id and last_id >= 0)):
                if item_id == last_id + 1 and name not in seen:
                    by_id[item_id] = name
                    seen.add(name)
                last_id = item_id
                position = match.end()
                consecutive_failures = 0
                accepted = True

        if not accepted:
            consecutive_failures += 1
            total_failures += 1
            position += 1

        if position >= len(text) or len(by_id) > limits.max_items:
            break
        if len(by_id) > limits.soft_cap_items and total_failures > limits.max_total_failures:
            break

    if len(by_id) < limits.min_items:
        return None

    return [by_id[item_id] for item_id in sorted(by_id)]


def anchor_patterns(sentinel: str) -> List["re.Pattern[str]"]:
    """The three surface forms of ``sentinel = 0``, in priority order."""
    name = re.escape(sentinel)
    return [
        re.compile(rf"(?<![\w$]){name}\s*:\s*0(?!\d)"),
        re.compile(rf"(?<![\w$]){name}\s*=\s*0(?!\d)"),
        re.compile(rf""""{name}"\s*:\s*0(?!\d)"""),
    ]


def scan_from_anchor(
    text: str,
    sentinels: Sequence[str],
    limits: SequentialLimits = DEFAULT_LIMITS
) -> Optional[List[str]]:
    """Run the sequential scan from the first sentinel anchor found."""
    for sentinel in sentinels:
        for pattern in anchor_patterns(sentinel):
            match = pattern.search(text)
            if match:
                logger.info(f"Found anchor '{sentinel}' at index {match.start()}")
                return extract_sequential_items(text, match.start(), limits)
    return None


def scan_sequential_enums(
    text: str,
    limits: SequentialLimits = DEFAULT_LIMITS
) -> Optional[List[str]]:
    """Try every ``<name>: 0`` start and keep the longest run."""
    best: List[str] = []
    candidates = 0

    for match in ZERO_ENTRY_PATTERN.finditer(text):
        candidates += 1
        items = extract_sequential_items(text, match.start(), limits)
        if items and len(items) > len(best):
            best = items

    logger.debug(f"Heuristic scan tried {candidates} start positions, best run {len(best)}")
    return best or None


@register
class AnchorScanExtractor(BaseExtractor):
    """Enumeration located by its first member."""

    name = "anchor"

    def scan(self, text: str) -> Optional[List[str]]:
        return scan_from_anchor(text, self.tables.sentinels)


@register
class SequentialEnumExtractor(BaseExtractor):
    """Longest id run anywhere in the text. Slow; a fallback."""

    name = "sequential"

    def scan(self, text: str) -> Optional[List[str]]:
        return scan_sequential_enums(text)
