"""
Global pytest fixtures.

Loggers built here exit by raising SystemExit instead of calling os._exit, so a
fatal path can be asserted on without killing the test runner. Real process
termination is covered by `run_script`, which runs code in a fresh interpreter.
"""

import os
import subprocess
import sys
import textwrap
from datetime import datetime, timezone
from pathlib import Path

import pytest

from proclog.formatter import EntryFormatter
from proclog.logging_config import ProcessLogger

ROOT = Path(__file__).resolve().parents[1]

FIXED_TIME = datetime(2024, 3, 5, 14, 30, 15, tzinfo=timezone.utc)
FIXED_HOST = "testhost"
FIXED_PID = 4242


def raise_exit(code: int) -> None:
    raise SystemExit(code)


@pytest.fixture()
def formatter() -> EntryFormatter:
    return EntryFormatter(
        clock=lambda: FIXED_TIME,
        hostname=lambda: FIXED_HOST,
        pid=lambda: FIXED_PID,
    )


@pytest.fixture()
def make_logger(formatter: EntryFormatter):
    """Factory for isolated loggers; file sinks are closed on teardown."""
    created: list[ProcessLogger] = []

    def factory(**kwargs) -> ProcessLogger:
        kwargs.setdefault("formatter", formatter)
        kwargs.setdefault("exit_func", raise_exit)
        logger = ProcessLogger("proclog-test", **kwargs)
        created.append(logger)
        return logger

    yield factory
    for logger in created:
        logger.close()


@pytest.fixture()
def isolated_env(monkeypatch) -> dict[str, str]:
    """A throwaway os.environ without LOG_FILE/LOG_LEVEL."""
    env = {k: v for k, v in os.environ.items() if k not in ("LOG_FILE", "LOG_LEVEL")}
    monkeypatch.setattr(os, "environ", env)
    return env


@pytest.fixture()
def run_script(tmp_path: Path):
    """Run `source` as app.py in a fresh interpreter inside tmp_path."""

    def run(source: str, env: dict[str, str] | None = None) -> subprocess.CompletedProcess:
        script = tmp_path / "app.py"
        script.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        environment = {**os.environ, **(env or {})}
        environment["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(ROOT), environment.get("PYTHONPATH", "")) if p
        )
        return subprocess.run(
            [sys.executable, str(script)],
            cwd=tmp_path,
            env=environment,
            capture_output=True,
            text=True,
            timeout=60,
        )

    return run


def script_line(source: str, needle: str) -> int:
    """1-based line of `needle` in `source` as written by `run_script`."""
    lines = textwrap.dedent(source).lstrip("\n").splitlines()
    for number, line in enumerate(lines, start=1):
        if needle in line:
            return number
    raise AssertionError(f"{needle!r} not in script")
