import logging
import sys
import typing as T


class SinkHandler(logging.Handler):
    """Handler writing one encoded line per record to a binary stream.

    With no stream set, lines go to the current `sys.stderr` (its binary
    buffer when it has one). `Handler.handle` holds `self.lock` around
    `emit`, so lines from concurrent threads never interleave.
    """

    terminator = "\n"

    def __init__(self, stream: T.BinaryIO | None = None, owned: bool = False):
        super().__init__()
        self.stream = stream
        self._owned = owned

    def set_stream(self, stream: T.BinaryIO | None, owned: bool = False) -> None:
        with self.lock:
            previous, previous_owned = self.stream, self._owned
            self.stream, self._owned = stream, owned
        if previous is not None and previous_owned and previous is not stream:
            previous.close()

    def render(self, record: logging.LogRecord) -> bytes:
        formatter = self.formatter
        if formatter is not None and hasattr(formatter, "render"):
            return formatter.render(record)
        return (self.format(record) + self.terminator).encode("utf-8")

    def _write(self, data: bytes) -> None:
        stream = self.stream
        if stream is not None:
            stream.write(data)
            stream.flush()
            return
        err = sys.stderr
        if err is None:
            return
        buffer = getattr(err, "buffer", None)
        if buffer is not None:
            err.flush()
            buffer.write(data)
            buffer.flush()
        else:
            err.write(data.decode("utf-8", errors="replace"))
            err.flush()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._write(self.render(record))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        with self.lock:
            if self.stream is not None and not getattr(self.stream, "closed", False):
                self.stream.flush()

    def close(self) -> None:
        with self.lock:
            try:
                if self.stream is not None and self._owned:
                    self.stream.close()
            finally:
                self.stream, self._owned = None, False
                super().close()
