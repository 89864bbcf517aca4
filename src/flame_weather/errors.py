"""Exceptions raised by the weather and location clients."""


class FlameWeatherError(Exception):
    """Base class for service errors."""
    pass


class TransientNetworkError(FlameWeatherError):
    """Raised on timeouts, connectivity loss or non-success HTTP status.

    Retried on the next scheduled cycle, never surfaced as a modal error.
    """
    pass


class UpstreamFormatError(TransientNetworkError):
    """Raised when an upstream payload does not have the expected shape."""
    pass


class ConfigurationError(FlameWeatherError):
    """Raised when background work is started without a usable coordinate."""
    pass
