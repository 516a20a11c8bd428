"""Validity filters shared by name-recognition scans."""

from typing import Optional, Set

from ..utils.config import ExtractionTables

MIN_NAME_LENGTH = 2

# Internal/non-shippable variants use "|"; internal identifiers use "_"
INTERNAL_MARKERS = ("|", "_")


class NameFilter:
    """
    Decides whether a candidate string is a plausible item name.

    Keeps the set of names accepted so far in one scan, so a filter
    instance must not be shared between scans.
    """

    def __init__(self, tables: ExtractionTables):
        self.denylist = set(tables.property_denylist)
        self.reserved_prefixes = tuple(p.lower() for p in tables.reserved_prefixes)
        self.seen: Set[str] = set()

    def rejection(self, name: str) -> Optional[str]:
        """Reason the name is rejected, or None if it is acceptable."""
        if len(name) < MIN_NAME_LENGTH:
            return "too short"
        if name in self.seen:
            return "duplicate"
        for marker in INTERNAL_MARKERS:
            if marker in name:
                return f"contains {marker!r}"
        if self.reserved_prefixes and name.lower().startswith(self.reserved_prefixes):
            return "reserved prefix"
        if name in self.denylist:
            return "schema property"
        return None

    def accepts(self, name: str) -> bool:
        return self.rejection(name) is None

    def add(self, name: str) -> bool:
        """Record the name if acceptable. Returns whether it was added."""
        if not self.accepts(name):
            return False
        self.seen.add(name)
        return True
