from __future__ import annotations

from typing import List, Optional


class ForwarderError(Exception):
    """
    Base class for errors raised by flow_forwarder.
    """


class ConfigError(ForwarderError):
    """
    Startup configuration is missing or invalid.

    problems
      Every individual problem found, so an operator can fix them in one go.
    """

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("invalid configuration: " + "; ".join(self.problems))


class SourceUnavailableError(ForwarderError):
    """
    The input source could not be opened.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot open input {path}: {reason}")


class SinkWriteError(ForwarderError):
    """
    A single write attempt to the sink failed.

    status is the HTTP status when the sink answered, None for transport errors.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)
