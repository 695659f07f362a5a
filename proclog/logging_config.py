"""Process logger: once-only setup of the shared sink and threshold, plus the
leveled emission surface.

Each emission captures the file and line of the application code that called
it and carries them on its own `logging.LogRecord`. Nothing about the caller is
kept in shared state, so concurrent emissions cannot swap call sites.
"""

import logging
import os
import sys
import threading
import typing as T
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from proclog.exceptions import InvalidLevelError, LoggerPanic
from proclog.formatter import EntryFormatter
from proclog.levels import Severity, parse_level
from proclog.sink import SinkHandler

DEFAULT_LEVEL = "debug"
LOG_FILE_MODE = 0o666
_PACKAGE = __name__.partition(".")[0]


# -----------------------------------------------------------------------------
# Call-site capture
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class CallSite:
    file: str
    line: int
    function: str


_UNKNOWN_SITE = CallSite("(unknown file)", 0, "(unknown function)")


def _is_internal(frame) -> bool:
    module = frame.f_globals.get("__name__", "")
    return module == _PACKAGE or module.startswith(_PACKAGE + ".")


def capture_call_site() -> CallSite:
    """Location of the nearest frame outside this package."""
    frame = sys._getframe(1)
    while frame is not None and _is_internal(frame):
        frame = frame.f_back
    if frame is None:
        return _UNKNOWN_SITE
    return CallSite(frame.f_code.co_filename, frame.f_lineno, frame.f_code.co_name)


# -----------------------------------------------------------------------------
# Message construction
# -----------------------------------------------------------------------------


def _join(*values: T.Any) -> str:
    return "".join(str(value) for value in values)


def _sprintf(fmt: T.Any, *args: T.Any) -> str:
    fmt = str(fmt)
    if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
        args = args[0]
    try:
        return fmt % args
    except (TypeError, ValueError, KeyError) as e:
        if not args:
            return fmt
        return f"{fmt} (bad format arguments {args!r}: {e})"


# -----------------------------------------------------------------------------
# Once-latch
# -----------------------------------------------------------------------------


class Once:
    """Runs a callable at most once; concurrent callers wait for the first."""

    def __init__(self):
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def do(self, fn: T.Callable[[], T.Any]) -> None:
        if self._done:
            return
        with self._lock:
            if self._done:
                return
            try:
                fn()
            finally:
                self._done = True


def _program_name() -> str:
    if sys.argv and sys.argv[0]:
        return sys.argv[0]
    return sys.executable or ""


# -----------------------------------------------------------------------------
# Process logger
# -----------------------------------------------------------------------------


class ProcessLogger:
    """A leveled logger writing fixed-format lines to one sink.

    Until `init` runs, lines go to standard error with the stdlib default
    formatting and the threshold is DEBUG. `init` configures the log file and
    threshold once; later calls are ignored.
    """

    def __init__(
        self,
        name: str = "proclog",
        *,
        formatter: logging.Formatter | None = None,
        stream: T.BinaryIO | None = None,
        exit_func: T.Callable[[int], T.Any] | None = None,
    ):
        self._formatter = formatter or EntryFormatter()
        self._exit = exit_func or os._exit
        self._once = Once()
        self._tag = ""
        self._log_file: Path | None = None

        self._handler = SinkHandler(stream)
        # Unregistered on purpose: instances never share handlers or levels.
        self._logger = logging.Logger(name)
        self._logger.propagate = False
        self._logger.addHandler(self._handler)
        self._logger.setLevel(Severity.DEBUG)

    # -- state ----------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def level(self) -> Severity:
        return Severity(self._logger.level)

    @property
    def configured(self) -> bool:
        """True once `init` has run, even if it ended on a fatal path.

        A successful init also sets `log_file`.
        """
        return self._once.done

    @property
    def log_file(self) -> Path | None:
        return self._log_file

    # -- configuration --------------------------------------------------------

    def init(self, log_file: str | os.PathLike, log_level: str = "") -> None:
        """Configure the log file and threshold. Only the first call counts."""
        self._once.do(lambda: self._configure(Path(log_file), log_level))

    def _configure(self, log_file: Path, log_level: str) -> None:
        if not log_level:
            log_level = DEFAULT_LEVEL

        self._tag = _program_name()
        self._handler.setFormatter(self._formatter)
        self.set_level(log_level)

        directory = log_file.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            self.fatal(f'create log file dir error: "{directory}".')
            return

        try:
            flags = os.O_WRONLY | os.O_CREAT | os.O_APPEND | getattr(os, "O_BINARY", 0)
            fd = os.open(log_file, flags, LOG_FILE_MODE)
            stream = os.fdopen(fd, "ab")
        except OSError:
            self.fatal(f'can not open log file: "{log_file}".')
            return

        self._handler.set_stream(stream, owned=True)
        self._log_file = log_file

    def set_tag(self, tag: str) -> None:
        self._tag = tag

    def set_level(self, level: str) -> None:
        """Set the threshold from a level name; an unknown name is fatal."""
        try:
            severity = parse_level(level)
        except InvalidLevelError as e:
            self.fatal(e.message)
            return
        self._logger.setLevel(severity)

    def set_output(self, stream: T.BinaryIO | None) -> None:
        """Send lines to `stream` (binary); None means standard error."""
        self._handler.set_stream(stream)
        self._log_file = None

    def flush(self) -> None:
        self._handler.flush()

    def close(self) -> None:
        """Close a file sink and fall back to standard error."""
        self._handler.set_stream(None)
        self._log_file = None

    # -- emission -------------------------------------------------------------

    def _enabled(self, severity: Severity) -> bool:
        return severity >= self._logger.getEffectiveLevel()

    def _emit(self, severity: Severity, site: CallSite, message: str) -> None:
        record = self._logger.makeRecord(
            self._logger.name,
            severity,
            site.file,
            site.line,
            message,
            (),
            None,
            func=site.function,
        )
        self._logger.handle(record)

    def _log(self, severity: Severity, site: CallSite, build, *args: T.Any) -> None:
        if self._enabled(severity):
            self._emit(severity, site, build(*args))

    def _terminate(self) -> None:
        self.flush()
        self._exit(1)

    def debug(self, *values: T.Any) -> None:
        self._log(Severity.DEBUG, capture_call_site(), _join, *values)

    def debugf(self, fmt: str, *args: T.Any) -> None:
        self._log(Severity.DEBUG, capture_call_site(), _sprintf, fmt, *args)

    def info(self, *values: T.Any) -> None:
        self._log(Severity.INFO, capture_call_site(), _join, *values)

    def infof(self, fmt: str, *args: T.Any) -> None:
        self._log(Severity.INFO, capture_call_site(), _sprintf, fmt, *args)

    def warning(self, *values: T.Any) -> None:
        self._log(Severity.WARNING, capture_call_site(), _join, *values)

    def warningf(self, fmt: str, *args: T.Any) -> None:
        self._log(Severity.WARNING, capture_call_site(), _sprintf, fmt, *args)

    warn = warning
    warnf = warningf

    def error(self, *values: T.Any) -> None:
        self._log(Severity.ERROR, capture_call_site(), _join, *values)

    def errorf(self, fmt: str, *args: T.Any) -> None:
        self._log(Severity.ERROR, capture_call_site(), _sprintf, fmt, *args)

    def fatal(self, *values: T.Any) -> None:
        """Log at FATAL, then exit the process with status 1."""
        self._log(Severity.FATAL, capture_call_site(), _join, *values)
        self._terminate()

    def fatalf(self, fmt: str, *args: T.Any) -> None:
        self._log(Severity.FATAL, capture_call_site(), _sprintf, fmt, *args)
        self._terminate()

    def panic(self, *values: T.Any) -> T.NoReturn:
        """Log at PANIC, then raise `LoggerPanic`."""
        message = _join(*values)
        self._log(Severity.PANIC, capture_call_site(), str, message)
        raise LoggerPanic(message)

    def panicf(self, fmt: str, *args: T.Any) -> T.NoReturn:
        message = _sprintf(fmt, *args)
        self._log(Severity.PANIC, capture_call_site(), str, message)
        raise LoggerPanic(message)
