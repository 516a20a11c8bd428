"""
Coverage of the mined item list by the translation dictionary.

Everything here is a pure function of (items, dictionary); reports are
rebuilt on every call and never cached.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class ItemStatus:
    """One mined item and its translation, if any."""
    index: int
    name: str
    translated: bool
    translation: Optional[str] = None


@dataclass(frozen=True)
class CoverageReport:
    items: Tuple[ItemStatus, ...]
    total: int
    translated_count: int
    missing: Tuple[str, ...]
    coverage: float
    orphans: Tuple[str, ...]

    @property
    def missing_count(self) -> int:
        return len(self.missing)


@dataclass(frozen=True)
class MissingRun:
    """
    Consecutive untranslated items.

    ``insert_after`` is the translated item right before the run, or
    None when the run starts the list. ``start_index`` is 1-based.
    """
    insert_after: Optional[str]
    start_index: int
    items: Tuple[str, ...]


def coverage_percent(translated: int, total: int) -> float:
    """Percentage rounded to one decimal; 0.0 for an empty list."""
    if total == 0:
        return 0.0
    return round(translated / total * 100, 1)


def compare(items: Sequence[str], dictionary: Mapping[str, str]) -> CoverageReport:
    """
    Compare mined items with dictionary keys (case-sensitive).

    Orphans are dictionary keys with no mined item, in dictionary order.
    """
    statuses = tuple(
        ItemStatus(index=i, name=name, translated=name in dictionary, translation=dictionary.get(name))
        for i, name in enumerate(items)
    )
    missing = tuple(s.name for s in statuses if not s.translated)
    translated = len(statuses) - len(missing)

    known = set(items)
    orphans = tuple(key for key in dictionary if key not in known)

    return CoverageReport(
        items=statuses,
        total=len(statuses),
        translated_count=translated,
        missing=missing,
        coverage=coverage_percent(translated, len(statuses)),
        orphans=orphans,
    )


def missing_runs(items: Sequence[str], dictionary: Mapping[str, str]) -> List[MissingRun]:
    """Group consecutive missing items with their insertion point."""
    runs: List[MissingRun] = []
    current: List[str] = []
    start = 0

    for i, name in enumerate(items):
        if name not in dictionary:
            if not current:
                start = i
            current.append(name)
            continue
        if current:
            runs.append(_run(items, start, current))
            current = []

    if current:
        runs.append(_run(items, start, current))

    return runs


def _run(items: Sequence[str], start: int, names: List[str]) -> MissingRun:
    # The item before a run is translated, otherwise it would be in the run
    insert_after = items[start - 1] if start > 0 else None
    return MissingRun(insert_after=insert_after, start_index=start + 1, items=tuple(names))
