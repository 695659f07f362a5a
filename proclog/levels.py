import logging
from enum import IntEnum

from proclog.exceptions import InvalidLevelError


class Severity(IntEnum):
    """Ordered log severities, numerically compatible with stdlib `logging`."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    FATAL = logging.CRITICAL
    PANIC = logging.CRITICAL + 10

    @property
    def label(self) -> str:
        return self.name.upper()


# Accepted spellings; matching is case-sensitive.
LEVEL_NAMES: dict[str, Severity] = {
    "panic": Severity.PANIC,
    "fatal": Severity.FATAL,
    "error": Severity.ERROR,
    "warn": Severity.WARNING,
    "warning": Severity.WARNING,
    "info": Severity.INFO,
    "debug": Severity.DEBUG,
}


def parse_level(name: str) -> Severity:
    try:
        return LEVEL_NAMES[name]
    except (KeyError, TypeError):
        raise InvalidLevelError(f'not a valid level: "{name}"') from None


def severity_label(levelno: int, levelname: str = "") -> str:
    """Upper-case label for a record level, tolerating foreign levels."""
    try:
        return Severity(levelno).label
    except ValueError:
        return (levelname or f"LEVEL {levelno}").upper()
