"""
Entry Store Module - Latest query result and live text filtering

The backing sequence is an immutable tuple swapped under a lock, so a reader
sees either the old or the new result, never a mix. Filtering is recomputed
on every call without any index; entry counts are bounded by a single query.
"""
import re
import threading
from typing import Iterable, List, Tuple

from .entry_parser import LogEntry
from .errors import FilterError


class EntryStore:
    """Ordered, read-only snapshot of the most recent journal entries"""

    def __init__(self, entries: Iterable[LogEntry] = ()):
        self._entries: Tuple[LogEntry, ...] = tuple(entries)
        self._lock = threading.Lock()

    @property
    def entries(self) -> Tuple[LogEntry, ...]:
        with self._lock:
            return self._entries

    def __len__(self) -> int:
        return len(self.entries)

    def replace(self, entries: Iterable[LogEntry]) -> None:
        """Swap in a new result, keeping the given order"""
        snapshot = tuple(entries)
        with self._lock:
            self._entries = snapshot

    def filtered(self, search: str) -> List[LogEntry]:
        """
        Entries with at least one visible field matching search

        Args:
            search: Regular expression, matched case-insensitively anywhere
                in the formatted timestamp, process name or message.
                An empty string matches everything.

        Returns:
            Matching entries in store order

        Raises:
            FilterError: If search is not a valid regular expression
        """
        entries = self.entries
        if not search:
            return list(entries)

        try:
            pattern = re.compile(search, re.IGNORECASE)
        except re.error as e:
            raise FilterError(search, str(e)) from e

        return [
            entry for entry in entries
            if any(pattern.search(field) for field in entry.visible_fields())
        ]
