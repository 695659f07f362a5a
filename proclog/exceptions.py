"""
Exceptions raised inside proclog.

Nothing here escapes the public logging calls except `LoggerPanic`, which is
the whole point of the panic tier.
"""


class ProcLogException(Exception):
    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class InvalidLevelError(ProcLogException):
    pass


class LoggerPanic(ProcLogException):
    """Raised by `panic`/`panicf` after the entry has been written."""
