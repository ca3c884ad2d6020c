"""
Filter Controller Module - Coordinates queries, search and observers

Handles:
- Re-running the journal query when the filter specification changes
- Re-running the same query on refresh
- Re-filtering the current entries when the search text changes
- Dispatching user events through an explicit event table
- Reporting every outcome to an observer
"""
import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .entry_parser import EntryParser, LogEntry
from .errors import ExecutionError, FilterError, JournalError, QueryInProgressError
from .executor import QueryExecutor
from .query import QuerySpecification
from .store import EntryStore

logger = logging.getLogger(__name__)


class Event(Enum):
    """User events a presentation layer can forward to the controller"""
    FILTER = "filter"
    SEARCH = "search"
    REFRESH = "refresh"
    CANCEL = "cancel"


class EntriesObserver:
    """
    Receives controller notifications

    Subclass and override what you need; state is read back from the
    controller (visible_entries, spec, search).
    """

    def on_entries_updated(self) -> None:
        pass

    def on_query_description_changed(self) -> None:
        pass

    def on_error(self, error: JournalError) -> None:
        pass


class FilterController:
    """
    Keeps the visible journal entries in sync with the query and search text

    Only one query runs at a time. A query requested while another is still
    running is rejected with QueryInProgressError; the running one is left
    alone.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        observer: Optional[EntriesObserver] = None,
        spec: Optional[QuerySpecification] = None,
        parser: Optional[EntryParser] = None,
    ):
        """
        Initialize the controller and run the first query

        Args:
            executor: Runs the provider
            observer: Notified of updates and errors (no-op if None)
            spec: Initial query, defaults to the current boot
            parser: Record parser (a fresh EntryParser if None)
        """
        self._executor = executor
        self._observer = observer or EntriesObserver()
        self._parser = parser or EntryParser()
        self._spec = spec or QuerySpecification.default()
        self._search = ""
        self._store = EntryStore()
        self._visible: List[LogEntry] = []
        self._query_lock = threading.Lock()

        self._handlers: Dict[Event, Callable[[Any], bool]] = {
            Event.FILTER: self._handle_filter,
            Event.SEARCH: self._handle_search,
            Event.REFRESH: self._handle_refresh,
            Event.CANCEL: self._handle_cancel,
        }

        self._run_query()

    @property
    def spec(self) -> QuerySpecification:
        return self._spec

    @property
    def search(self) -> str:
        return self._search

    @property
    def store(self) -> EntryStore:
        return self._store

    @property
    def visible_entries(self) -> List[LogEntry]:
        return list(self._visible)

    def dispatch(self, event: Union[Event, str], payload: Any = None) -> bool:
        """
        Route a user event to its handler

        Args:
            event: Event member or its value ("filter", "search", ...)
            payload: New QuerySpecification for FILTER, new text for SEARCH

        Returns:
            False when the event loop should stop, True otherwise
        """
        try:
            event = Event(event)
        except ValueError:
            logger.warning(f"No handler for event {event!r}")
            return True

        return self._handlers[event](payload)

    def on_filter_change(self, new_spec: Optional[QuerySpecification]) -> None:
        """
        Apply a new filter specification and re-query

        Args:
            new_spec: Replacement specification, None if the user cancelled
        """
        if new_spec is None:
            logger.info(f"Filter dialog returned nothing. Query is still {self._spec}.")
            return

        self._spec = new_spec
        logger.info(f"New query is {self._spec}.")
        self._observer.on_query_description_changed()
        self._run_query()

    def on_search_change(self, new_text: str) -> None:
        """Re-filter the current entries without querying the provider"""
        self._search = new_text or ""
        logger.info(f"Search string set to '{self._search}'")

        error = self._update_visible()
        self._observer.on_entries_updated()
        if error:
            self._observer.on_error(error)

    def on_refresh(self) -> None:
        """Re-run the current query to pick up new entries"""
        self._run_query()

    def _run_query(self) -> None:
        errors: List[JournalError] = []

        if not self._query_lock.acquire(blocking=False):
            logger.warning("Rejected journal query, another one is still running")
            self._observer.on_error(QueryInProgressError(
                "A journal query is already running",
                self._executor.build_command(self._spec),
            ))
            return

        try:
            raw_units = self._executor.execute(self._spec)
        except ExecutionError as e:
            logger.error(
                f"Call to journalctl with '{self._spec.journalctl_args()}' failed: {e}. "
                f"Keeping {len(self._store)} previous entries."
            )
            errors.append(e)
        else:
            skipped_before = self._parser.skipped
            entries = self._parser.parse_lines(raw_units)
            self._store.replace(entries)
            logger.info(
                f"Call to journalctl with '{self._spec.journalctl_args()}' returned "
                f"{len(entries)} entries ({self._parser.skipped - skipped_before} skipped)."
            )
        finally:
            self._query_lock.release()

        filter_error = self._update_visible()
        if filter_error:
            errors.append(filter_error)

        self._observer.on_entries_updated()
        for error in errors:
            self._observer.on_error(error)

    def _update_visible(self) -> Optional[FilterError]:
        try:
            self._visible = self._store.filtered(self._search)
        except FilterError as e:
            logger.warning(str(e))
            self._visible = []
            return e
        return None

    def _handle_filter(self, payload: Any) -> bool:
        self.on_filter_change(payload)
        return True

    def _handle_search(self, payload: Any) -> bool:
        self.on_search_change(payload)
        return True

    def _handle_refresh(self, payload: Any) -> bool:
        self.on_refresh()
        return True

    def _handle_cancel(self, payload: Any) -> bool:
        return False
