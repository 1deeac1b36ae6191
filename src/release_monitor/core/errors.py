"""Error taxonomy for the release monitoring pipeline."""

from typing import Optional


class ReleaseMonitorError(Exception):
    """Base class for pipeline errors."""


class TransportError(ReleaseMonitorError):
    """Network or HTTP failure while talking to an external service."""


class MalformedResponseError(ReleaseMonitorError):
    """Classification output could not be parsed into a severity judgment."""

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class PersistenceError(ReleaseMonitorError):
    """Version cache could not be written."""


class SinkError(ReleaseMonitorError):
    """Chat or issue-tracker delivery failed."""

    def __init__(
        self,
        sink: str,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        details = message
        if status_code is not None:
            details = f"{message} (HTTP {status_code})"
        super().__init__(f"{sink}: {details}")
        self.sink = sink
        self.status_code = status_code
        self.body = body
