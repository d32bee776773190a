"""Error taxonomy surfaced by the search engine."""


class LocatorError(RuntimeError):
    """Base class for every failure raised by the search engine."""


class InvalidInput(LocatorError, ValueError):
    """Raised when the user input fails mode-specific shape validation."""


class GeocodingFailure(LocatorError):
    """Raised when a location string cannot be resolved to coordinates."""


class AdapterFailure(LocatorError):
    """Raised by a single source adapter on transport or parse errors."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class SearchFailure(LocatorError):
    """Raised when no source adapter produced usable data."""


class SearchCancelled(LocatorError):
    """Raised when the caller cancels a search or its deadline expires."""


class PermissionDenied(LocatorError):
    """Raised when the device location is unavailable."""


class CacheFailure(LocatorError):
    """Raised by cache stores; the engine treats it as a miss."""
