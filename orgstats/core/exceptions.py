"""
All custom exceptions for the project.
"""

from typing import Optional


class BaseAppException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(BaseAppException):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(BaseAppException):
    """Raised when run input is invalid, before any upstream call."""

    pass


class GitHubAPIError(BaseAppException):
    """Raised when a GitHub API request fails."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded."""

    pass


class OrgNotFoundError(GitHubAPIError):
    """Raised when the requested organization does not exist."""

    pass


class ConnectionError(BaseAppException):
    """Raised when network connection fails."""

    pass


class InvariantError(BaseAppException):
    """Raised when GitHub returns a payload shape we cannot work with."""

    pass
