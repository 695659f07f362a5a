"""Entry formatter.

Every emitted line has the fixed shape::

    <RFC3339 timestamp> <hostname> : <SEVERITY>\t<file>:<line>[<pid>] <message>

The timestamp, hostname and pid are resolved when the entry is formatted, not
when the record was created. The file and line come from the record, which the
process logger fills with the caller's location.
"""

import logging
import os
import socket
import typing as T
from datetime import datetime

from proclog.levels import severity_label


def rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def resolve_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return ""


def _now() -> datetime:
    return datetime.now().astimezone()


def format_entry(
    timestamp: datetime,
    hostname: str,
    severity: str,
    file: str,
    line: int,
    pid: int,
    message: str,
) -> bytes:
    return (
        f"{rfc3339(timestamp)} {hostname} : {severity.upper()}\t"
        f"{file}:{line}[{pid}] {message}\n"
    ).encode("utf-8")


class EntryFormatter(logging.Formatter):
    """`logging.Formatter` producing the fixed entry line.

    `render` returns the encoded line (newline included) and is what the sink
    handler writes. `format` returns the same line as text without the newline,
    since stdlib stream handlers append their own terminator.
    """

    def __init__(
        self,
        clock: T.Callable[[], datetime] | None = None,
        hostname: T.Callable[[], str] | None = None,
        pid: T.Callable[[], int] | None = None,
    ):
        super().__init__()
        self._clock = clock or _now
        self._hostname = hostname or resolve_hostname
        self._pid = pid or os.getpid

    def _safe_hostname(self) -> str:
        try:
            return self._hostname() or ""
        except OSError:
            return ""

    def render(self, record: logging.LogRecord) -> bytes:
        return format_entry(
            timestamp=self._clock(),
            hostname=self._safe_hostname(),
            severity=severity_label(record.levelno, record.levelname),
            file=record.pathname,
            line=record.lineno,
            pid=self._pid(),
            message=record.getMessage(),
        )

    def format(self, record: logging.LogRecord) -> str:
        return self.render(record).decode("utf-8").removesuffix("\n")
