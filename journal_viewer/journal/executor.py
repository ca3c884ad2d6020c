"""
Query Executor Module - Runs journalctl for a query specification

Handles:
- Building the full command line
- Bounded wait on the provider, killing it and its process group on timeout
- Turning launch failures, non-zero exits and stderr output into ExecutionError
"""
import logging
import os
import signal
import subprocess
from typing import List, Optional

import psutil

from journal_viewer.config import Settings

from .errors import ExecutionError, ExecutionTimeoutError
from .query import QuerySpecification

logger = logging.getLogger(__name__)

BASE_ARGUMENTS = ("--no-pager", "--output=json")

# Seconds to wait for the pipes to drain after killing a timed-out provider
DRAIN_TIMEOUT = 2.0


class QueryExecutor:
    """
    Invokes the external log provider

    Each call to execute() starts a fresh process; nothing is retried.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Args:
            settings: Provider path, timeout and stderr policy (defaults if None)
        """
        settings = settings or Settings()
        self.command = settings.journalctl_path
        self.timeout = settings.query_timeout
        self.fail_on_stderr = settings.fail_on_stderr

    def build_command(self, spec: QuerySpecification) -> List[str]:
        return [self.command, *BASE_ARGUMENTS, *spec.to_arguments()]

    def execute(self, spec: QuerySpecification) -> List[str]:
        """
        Run the provider and collect its output

        Args:
            spec: Query to run

        Returns:
            Non-blank output lines, one raw record each, in provider order

        Raises:
            ExecutionTimeoutError: If the provider exceeded the timeout
            ExecutionError: If it could not be launched or failed
        """
        command = self.build_command(spec)
        logger.debug(f"Running {' '.join(command)}")

        try:
            with subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=True,
            ) as process:
                try:
                    stdout, stderr = process.communicate(timeout=self.timeout)
                except subprocess.TimeoutExpired:
                    self._kill_process_tree(process)
                    self._drain(process)
                    logger.error(f"{self.command} did not finish within {self.timeout}s, killed it")
                    raise ExecutionTimeoutError(
                        f"{self.command} timed out after {self.timeout} seconds",
                        command,
                        timeout=self.timeout,
                    )
        except OSError as e:
            logger.error(f"Could not launch {self.command}: {e}")
            raise ExecutionError(f"Could not launch {self.command}: {e}", command) from e

        stderr = stderr.strip()
        if process.returncode != 0:
            logger.error(f"{self.command} exited with status {process.returncode}: {stderr}")
            raise ExecutionError(
                f"{self.command} exited with status {process.returncode}",
                command,
                returncode=process.returncode,
                stderr=stderr,
            )

        if stderr:
            if self.fail_on_stderr:
                logger.error(f"{self.command} reported: {stderr}")
                raise ExecutionError(
                    f"{self.command} reported an error: {stderr}",
                    command,
                    returncode=process.returncode,
                    stderr=stderr,
                )
            logger.warning(f"{self.command} reported: {stderr}")

        return [line for line in stdout.splitlines() if line.strip()]

    def _kill_process_tree(self, process: subprocess.Popen) -> None:
        """Kill the provider and anything it spawned"""
        try:
            children = psutil.Process(process.pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            children = []

        for child in children:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass
            except psutil.AccessDenied:
                logger.warning(f"Access denied killing provider child {child.pid}")

        process.kill()

        # Descendants reparented away from the provider are still in its group
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass

    def _drain(self, process: subprocess.Popen) -> None:
        """Reap a killed provider without waiting on pipes held by escaped processes"""
        try:
            process.communicate(timeout=DRAIN_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning(f"Output pipes of {self.command} still held open, closing them")
            for stream in (process.stdout, process.stderr):
                if stream:
                    stream.close()
