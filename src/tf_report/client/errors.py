"""Exceptions raised by tf-report."""

from __future__ import annotations

from dataclasses import dataclass


class TFReportError(Exception):
    """Base exception for all tf-report errors."""


class ConfigurationError(TFReportError):
    """Raised when a required input is missing or invalid."""


class MalformedPlanError(TFReportError):
    """Raised when the plan document does not have the expected structure."""


@dataclass
class UnsupportedActionError(TFReportError):
    """Raised when a resource change carries an action value we cannot classify."""

    address: str
    action: str

    def __post_init__(self) -> None:
        super().__init__(
            f"Unsupported action {self.action!r} for resource {self.address!r}"
        )


class PublishError(TFReportError):
    """Base exception for failures talking to the GitHub API."""


class GitHubRequestError(PublishError):
    """Raised when a network-level error occurs (connection refused, timeout, etc.)."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url!r} failed: {cause}")


class GitHubResponseError(PublishError):
    """Raised when GitHub returns a non-2xx HTTP status code."""

    def __init__(self, status_code: int, url: str, message: str = "") -> None:
        self.status_code = status_code
        self.url = url
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"HTTP {status_code} for {url!r}{detail}")
