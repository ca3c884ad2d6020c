"""
Journal Package - Query and filter engine for systemd journal entries

This package turns journalctl output into structured entries and keeps a
live, searchable view of them, independent of any UI toolkit:
- Building journalctl arguments from filter criteria
- Running journalctl with a bounded wait
- Parsing its JSON output into immutable entries
- Case-insensitive regular expression search over visible fields
- Event dispatch and observer notification

Package Structure:
- controller: Event handling and orchestration (FilterController, Event, EntriesObserver)
- query: Filter criteria (QuerySpecification)
- executor: Provider invocation (QueryExecutor)
- store: Latest result and search (EntryStore)
- entry_parser: Record parsing (EntryParser, LogEntry)
- errors: Failure types
"""

from .controller import FilterController, Event, EntriesObserver
from .query import QuerySpecification
from .executor import QueryExecutor
from .store import EntryStore
from .entry_parser import EntryParser, LogEntry
from .errors import (
    JournalError,
    ParseError,
    ExecutionError,
    ExecutionTimeoutError,
    QueryInProgressError,
    FilterError,
)

__all__ = [
    # Orchestration
    'FilterController',
    'Event',
    'EntriesObserver',

    # Core components
    'QuerySpecification',
    'QueryExecutor',
    'EntryStore',
    'EntryParser',

    # Data models
    'LogEntry',

    # Errors
    'JournalError',
    'ParseError',
    'ExecutionError',
    'ExecutionTimeoutError',
    'QueryInProgressError',
    'FilterError',
]
