from typing import Optional


class GuestbookError(Exception):
    pass


class ConnectionError(GuestbookError):
    """A backend could not be reached at startup after all attempts."""

    def __init__(self, host: str, attempts: int, last_error: Optional[BaseException] = None) -> None:
        self.host = host
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            "failed to connect to Redis at {} after {} attempts: {}".format(host, attempts, last_error)
        )


class StoreUnavailable(GuestbookError):
    """A single store operation failed while serving a request."""


class EncodingError(GuestbookError):
    """A response body could not be serialized."""
