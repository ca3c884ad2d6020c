"""
Journal Errors Module - Failure types raised by the query engine

Every error here is recoverable: the controller reports it to its observer
and keeps running.
"""
from typing import List, Optional, Sequence


class JournalError(Exception):
    pass


class ParseError(JournalError):
    """A single provider record could not be turned into a LogEntry"""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ExecutionError(JournalError):
    """
    The provider could not be launched or did not finish successfully

    Attributes:
        arguments: Full command line that was attempted
        returncode: Exit status, None if the process never ran to completion
        stderr: Whatever the provider wrote to standard error
    """

    def __init__(
        self,
        message: str,
        arguments: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.arguments: List[str] = list(arguments)
        self.returncode = returncode
        self.stderr = stderr


class ExecutionTimeoutError(ExecutionError):
    """The provider was killed after exceeding the configured wait"""

    def __init__(self, message: str, arguments: Sequence[str] = (), timeout: float = 0.0):
        super().__init__(message, arguments)
        self.timeout = timeout


class QueryInProgressError(ExecutionError):
    """A query was requested while another one was still running"""


class FilterError(JournalError):
    """The search text is not a valid regular expression"""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid search pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason
