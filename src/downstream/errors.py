"""Exception types raised while discovering repositories and triggering builds."""

from __future__ import annotations

from typing import Optional


class DownstreamError(RuntimeError):
    """Base class for every error that ends a downstream run."""


class ConfigurationError(DownstreamError):
    """Invalid or missing configuration, raised before any network call."""


class DiscoveryError(DownstreamError):
    """The repository search failed; discovery has no partial results."""


class PollTimeoutError(DownstreamError):
    """No decision was reached for a repository before its timeout."""


class BuildLookupError(DownstreamError):
    """The latest build or the build history could not be fetched."""


class TriggerError(DownstreamError):
    """The fork request for a build was rejected."""


class HistoryExhaustedError(DownstreamError):
    """No successful build exists to fork in last-successful mode."""


class APIError(RuntimeError):
    """A single remote call failed, either in transport or with a non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


__all__ = [
    "DownstreamError",
    "ConfigurationError",
    "DiscoveryError",
    "PollTimeoutError",
    "BuildLookupError",
    "TriggerError",
    "HistoryExhaustedError",
    "APIError",
]
