"""Filtered, searched and sorted rows for listing items."""

from dataclasses import dataclass
from typing import List, Literal, Mapping, Optional, Sequence

from .coverage import compare

ItemFilter = Literal["all", "missing", "translated", "orphan"]
ItemSort = Literal["original", "name-asc", "name-desc", "status"]

FILTERS = ("all", "missing", "translated", "orphan")
SORTS = ("original", "name-asc", "name-desc", "status")


@dataclass(frozen=True)
class ItemRow:
    name: str
    index: int
    translation: Optional[str]
    translated: bool
    orphan: bool = False

    @property
    def number(self) -> int:
        """1-based display number."""
        return self.index + 1


def _matches(row: ItemRow, query: str) -> bool:
    # Names compare case-insensitively, translations as typed
    if query.lower() in row.name.lower():
        return True
    return bool(row.translation) and query in row.translation


def item_rows(
    items: Sequence[str],
    dictionary: Mapping[str, str],
    item_filter: ItemFilter = "all",
    query: str = "",
    sort: ItemSort = "original"
) -> List[ItemRow]:
    """
    Rows for display.

    The "orphan" filter lists dictionary entries with no mined item, in
    dictionary order, and ignores ``sort``.
    """
    if item_filter not in FILTERS:
        raise ValueError(f"Unknown filter: {item_filter}")
    if sort not in SORTS:
        raise ValueError(f"Unknown sort: {sort}")

    report = compare(items, dictionary)

    if item_filter == "orphan":
        rows = [
            ItemRow(name=name, index=i, translation=dictionary[name], translated=True, orphan=True)
            for i, name in enumerate(report.orphans)
        ]
        if query:
            rows = [r for r in rows if _matches(r, query)]
        return rows

    rows = [
        ItemRow(name=s.name, index=s.index, translation=s.translation, translated=s.translated)
        for s in report.items
    ]

    if item_filter == "missing":
        rows = [r for r in rows if not r.translated]
    elif item_filter == "translated":
        rows = [r for r in rows if r.translated]

    if query:
        rows = [r for r in rows if _matches(r, query)]

    if sort == "name-asc":
        rows.sort(key=lambda r: r.name.casefold())
    elif sort == "name-desc":
        rows.sort(key=lambda r: r.name.casefold(), reverse=True)
    elif sort == "status":
        rows.sort(key=lambda r: (r.translated, r.index))

    return rows
