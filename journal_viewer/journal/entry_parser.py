"""
Entry Parser Module - Turns journalctl JSON records into log entries

Handles:
- Realtime timestamp extraction (microseconds since the epoch)
- Process name lookup (syslog identifier, then command name)
- Message decoding, including the byte-array form used for binary payloads
- Collapsing multi-line messages into a single display line
- Batch parsing that skips malformed records instead of failing
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Tuple

from .errors import ParseError

logger = logging.getLogger(__name__)

# Format of the time column
TIME_FORMAT = "%b %d %H:%M:%S"


@dataclass(frozen=True)
class LogEntry:
    """One journal entry as shown to the user"""
    timestamp: datetime
    process_name: str = ""
    message: str = ""

    @property
    def formatted_timestamp(self) -> str:
        return self.timestamp.strftime(TIME_FORMAT)

    def visible_fields(self) -> Tuple[str, str, str]:
        """Fields the live search is matched against, in column order"""
        return (self.formatted_timestamp, self.process_name, self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for export"""
        return {
            'timestamp': self.timestamp.isoformat(),
            'process_name': self.process_name,
            'message': self.message,
        }


class EntryParser:
    """
    Parser for the output of ``journalctl --output=json``

    Each line of that output is a JSON object holding the journal fields of a
    single entry. Only the realtime timestamp is mandatory.
    """

    TIMESTAMP_FIELD = "__REALTIME_TIMESTAMP"
    PROCESS_FIELDS = ("SYSLOG_IDENTIFIER", "_COMM")
    MESSAGE_FIELD = "MESSAGE"

    def __init__(self):
        self.skipped = 0

    def parse(self, raw_unit: str) -> LogEntry:
        """
        Parse a single provider record

        Args:
            raw_unit: One line of JSON output

        Returns:
            LogEntry built from the record

        Raises:
            ParseError: If the line is not a JSON object or has no usable timestamp
        """
        try:
            record = json.loads(raw_unit)
        except ValueError as e:
            raise ParseError(f"Record is not valid JSON: {e}", raw_unit) from e

        if not isinstance(record, dict):
            raise ParseError("Record is not a JSON object", raw_unit)

        timestamp = self.parse_timestamp(record.get(self.TIMESTAMP_FIELD), raw_unit)

        process_name = ""
        for field in self.PROCESS_FIELDS:
            process_name = decode_field(record.get(field))
            if process_name:
                break

        message = collapse_lines(decode_field(record.get(self.MESSAGE_FIELD)))

        return LogEntry(timestamp=timestamp, process_name=process_name, message=message)

    def parse_timestamp(self, value: Any, raw_unit: str = "") -> datetime:
        """Convert a realtime timestamp in microseconds to a local datetime"""
        if value is None or value == "":
            raise ParseError(f"Missing {self.TIMESTAMP_FIELD}", raw_unit)

        try:
            micros = int(value)
            return datetime.fromtimestamp(micros / 1_000_000)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise ParseError(f"Invalid {self.TIMESTAMP_FIELD} {value!r}: {e}", raw_unit) from e

    def parse_lines(self, lines: Iterable[str]) -> List[LogEntry]:
        """
        Parse a batch of provider records, keeping their order

        Malformed records are logged and dropped; blank lines are ignored.

        Args:
            lines: Raw provider output, one record per item

        Returns:
            List of LogEntry objects
        """
        entries = []
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                entries.append(self.parse(line))
            except ParseError as e:
                self.skipped += 1
                logger.warning(f"Skipping journal record {line_number}: {e}")

        return entries


def decode_field(value: Any) -> str:
    """
    Return a journal field as text

    journalctl prints fields that are not valid UTF-8 as a list of byte
    values and fields that are too large as null.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        try:
            return bytes(value).decode("utf-8", errors="replace")
        except (TypeError, ValueError):
            return " ".join(str(item) for item in value)
    return str(value)


def collapse_lines(text: str) -> str:
    """Join the non-blank lines of a message with single spaces"""
    if "\n" not in text and "\r" not in text:
        return text
    return " ".join(line.strip() for line in text.splitlines() if line.strip())
