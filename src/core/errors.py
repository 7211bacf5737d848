"""Error taxonomy for the live metrics feed."""

__all__ = ["LiveMetricsError", "FetchError", "AuthError", "ConfigError"]


class LiveMetricsError(Exception):
    """Base class for all live metrics errors."""


class FetchError(LiveMetricsError):
    """The data store could not be reached or answered with an error.

    Recovered by retrying on the next scheduled tick.
    """


class AuthError(LiveMetricsError):
    """Identity is missing, expired or rejected by the data store.

    Not retried automatically; surfaced so the owner can re-authenticate.
    """


class ConfigError(LiveMetricsError, ValueError):
    """Invalid configuration (e.g. non-positive interval or capacity)."""
