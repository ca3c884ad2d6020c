"""
Query Module - Filter criteria for journal queries

Handles:
- Time interval with independent optional start and end bounds
- Categorical filters (boot, unit, identifier, priority, field matches)
- Conversion into journalctl arguments
- Human readable descriptions of the active interval and filters
"""
import logging
import re
import shlex
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

BOUND_FORMAT = "%Y-%m-%d %H:%M:%S"

# Recognized filters in argument order. None means the value is passed as is.
FILTER_FLAGS: Tuple[Tuple[str, Optional[str]], ...] = (
    ("boot", "--boot"),
    ("unit", "--unit"),
    ("identifier", "--identifier"),
    ("priority", "--priority"),
    ("match", None),
)

FILTER_LABELS = {
    "unit": "Unit",
    "identifier": "Process",
    "priority": "Priority",
    "match": "Match",
}

SINGLE_VALUE_FILTERS = {"boot", "priority"}

PRIORITIES = ("emerg", "alert", "crit", "err", "warning", "notice", "info", "debug")

_MATCH_RE = re.compile(r'^[A-Z0-9_]+=.+$')
_PRIORITY_NUMBER_RE = re.compile(r"[0-7]")

Bound = Union[datetime, str]


def is_valid_priority(value: str) -> bool:
    """Accepts a level name, a number 0-7 or a 'from..to' range of those"""
    levels = value.split("..", 1)
    return all(
        level in PRIORITIES or _PRIORITY_NUMBER_RE.fullmatch(level) is not None
        for level in levels
    )


def format_bound(bound: Bound) -> str:
    if isinstance(bound, datetime):
        return bound.strftime(BOUND_FORMAT)
    return bound


class QuerySpecification(BaseModel):
    """
    Immutable set of constraints sent to journalctl

    Bounds are either datetimes or strings journalctl understands on its
    own ("yesterday", "-1h", "2024-03-01 10:00"). Unset bounds and empty or
    unknown filters never show up in the generated arguments.
    """
    model_config = ConfigDict(frozen=True)

    since: Optional[Bound] = None
    until: Optional[Bound] = None
    filters: Mapping[str, Tuple[str, ...]] = Field(default_factory=dict, validate_default=True)

    @classmethod
    def default(cls) -> "QuerySpecification":
        """Entries of the current boot"""
        return cls(filters={"boot": "0"})

    @field_validator("since", "until", mode="before")
    @classmethod
    def _blank_bound_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("filters", mode="before")
    @classmethod
    def _normalize_filters(cls, value: Any) -> Dict[str, Tuple[str, ...]]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ValueError("filters must be a mapping of filter name to value(s)")

        known = dict(FILTER_FLAGS)
        normalized: Dict[str, Tuple[str, ...]] = {}
        for name, raw_values in value.items():
            if name not in known:
                logger.warning(f"Ignoring unknown journal filter '{name}'")
                continue

            if raw_values is None:
                continue
            if isinstance(raw_values, str):
                raw_values = [raw_values]

            values = []
            for item in raw_values:
                item = str(item).strip()
                if not item:
                    continue
                if name == "priority" and not is_valid_priority(item):
                    logger.warning(f"Ignoring invalid priority '{item}'")
                    continue
                if name == "match" and not _MATCH_RE.match(item):
                    logger.warning(f"Ignoring invalid field match '{item}'")
                    continue
                if item not in values:
                    values.append(item)

            if name in SINGLE_VALUE_FILTERS and len(values) > 1:
                logger.warning(f"Filter '{name}' takes one value, keeping '{values[0]}'")
                values = values[:1]

            if values:
                normalized[name] = tuple(values)

        return normalized

    @field_validator("filters", mode="after")
    @classmethod
    def _freeze_filters(cls, value: Mapping[str, Tuple[str, ...]]) -> Mapping[str, Tuple[str, ...]]:
        return MappingProxyType(dict(value))

    def __hash__(self) -> int:
        return hash((self.since, self.until, tuple(sorted(self.filters.items()))))

    def to_arguments(self) -> List[str]:
        """
        Build the journalctl arguments for this query

        Returns:
            Argument list, always the same for equal specifications
        """
        arguments = []
        if self.since is not None:
            arguments.append(f"--since={format_bound(self.since)}")
        if self.until is not None:
            arguments.append(f"--until={format_bound(self.until)}")

        for name, flag in FILTER_FLAGS:
            for value in self.filters.get(name, ()):
                arguments.append(f"{flag}={value}" if flag else value)

        return arguments

    def journalctl_args(self) -> str:
        """Arguments as a single shell-quoted string, for log messages"""
        return shlex.join(self.to_arguments())

    def interval_description(self) -> str:
        parts = []

        boot = self.filters.get("boot")
        if boot:
            if boot[0] == "0":
                parts.append("since system's boot")
            elif boot[0] == "-1":
                parts.append("during the previous boot")
            else:
                parts.append(f"during boot {boot[0]}")

        if self.since is not None and self.until is not None:
            parts.append(f"between {format_bound(self.since)} and {format_bound(self.until)}")
        elif self.since is not None:
            parts.append(f"since {format_bound(self.since)}")
        elif self.until is not None:
            parts.append(f"until {format_bound(self.until)}")

        if not parts:
            return "All entries in the journal"

        description = ", ".join(parts)
        return description[0].upper() + description[1:]

    def filters_description(self) -> str:
        parts = [
            f"{label}: {', '.join(self.filters[name])}"
            for name, label in FILTER_LABELS.items()
            if name in self.filters
        ]
        if not parts:
            return "No additional filters"
        return "; ".join(parts)

    def __str__(self) -> str:
        return f"{self.interval_description()} ({self.filters_description()})"
