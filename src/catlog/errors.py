"""Exception types raised by catlog."""


class CatlogError(Exception):
    """Base class for catlog errors."""


class ConfigError(CatlogError):
    """Raised when the configuration file or a config value is invalid."""


class SourceIOError(CatlogError):
    """Raised when a line source can no longer be read.

    Fatal to the source that raised it. The dispatcher closes the source and
    re-raises so the caller can decide the exit status.
    """


class ProcessSpawnError(SourceIOError):
    """Raised when the command for exec mode cannot be started."""


class NotificationError(CatlogError):
    """Raised by a notifier when it could not deliver a notification."""


class FetchError(NotificationError):
    """Raised when the cat image for a status code cannot be fetched."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"Could not fetch image for {status_code}: {message}")
        self.status_code = status_code
