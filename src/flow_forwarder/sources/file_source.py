from __future__ import annotations
import io
import sys
from typing import Optional, TextIO

from flow_forwarder.errors import SourceUnavailableError
from .base import LineSource, StreamLineSource

STDIN_PATHS = ("-", "/dev/stdin")


class FileLineSource(StreamLineSource):
    """
    Lines from a named file, for example a goflow2 output file or a FIFO.

    Undecodable bytes are replaced rather than raised, the resulting line
    then fails JSON parsing and is counted like any other bad line.
    """

    name = "file"

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def open(self) -> "FileLineSource":
        try:
            self._stream = open(self.path, "r", encoding="utf-8", errors="replace")
        except OSError as e:
            raise SourceUnavailableError(self.path, e.strerror or str(e)) from e
        return self


class StdinLineSource(StreamLineSource):
    """
    Lines from standard input, the default when goflow2 is piped in.
    """

    name = "stdin"

    def __init__(self, stream: Optional[TextIO] = None):
        if stream is None:
            stream = io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8", errors="replace")
        super().__init__(stream)


def open_source(path: str) -> LineSource:
    """
    Pick and open the source for path. "-" and "/dev/stdin" mean stdin.

    Raises SourceUnavailableError when a file cannot be opened.
    """
    if path in STDIN_PATHS:
        return StdinLineSource()
    return FileLineSource(path).open()
