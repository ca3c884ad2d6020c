import json
import logging
from pathlib import Path

import pytest


def journal_record(timestamp_us, identifier=None, message=None, **fields) -> str:
    """One line of journalctl --output=json"""
    record = dict(fields)
    if timestamp_us is not None:
        record["__REALTIME_TIMESTAMP"] = str(timestamp_us)
    if identifier is not None:
        record["SYSLOG_IDENTIFIER"] = identifier
    if message is not None:
        record["MESSAGE"] = message
    return json.dumps(record)


@pytest.fixture
def make_provider(tmp_path):
    """
    Factory writing an executable shell script that stands in for journalctl.
    The script records its arguments, one per line, in <name>.args.
    """
    def _make(body: str = "", output_lines=(), name: str = "fake_journalctl") -> Path:
        script = tmp_path / name
        args_file = tmp_path / f"{name}.args"
        lines = ["#!/bin/sh", f"printf '%s\\n' \"$@\" > '{args_file}'"]
        if output_lines:
            lines.append("cat <<'JOURNAL_EOF'")
            lines.extend(output_lines)
            lines.append("JOURNAL_EOF")
        if body:
            lines.append(body)
        script.write_text("\n".join(lines) + "\n")
        script.chmod(0o755)
        return script
    return _make


def recorded_args(script: Path) -> list:
    args_file = script.parent / f"{script.name}.args"
    return args_file.read_text().splitlines()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers added by setup_logging so tests do not leak file handles"""
    yield
    logger = logging.getLogger("journal_viewer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
