"""
Exceptions raised by the grant adapter.

Transport failures (httpx errors, exceptions from a local capability) are
not wrapped and reach the caller unchanged.
"""

from typing import Optional


class OAuth2AdapterError(Exception):
    """Base class for adapter errors."""


class ConfigurationError(OAuth2AdapterError):
    """The adapter configuration is missing or inconsistent."""


class BackendResponseError(OAuth2AdapterError):
    """The backend answered with a body that is not a JSON object."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class GrantError(OAuth2AdapterError):
    """
    A grant error reported by the authorization backend.

    The normalized backend object is kept in ``result`` and always carries
    ``error``, ``errorCode`` and (usually) ``error_description``.
    """

    def __init__(self, result: dict):
        self.result = result
        super().__init__(result.get("error"))

    @property
    def error(self) -> Optional[str]:
        return self.result.get("error")

    @property
    def error_code(self) -> Optional[str]:
        return self.result.get("errorCode")

    @property
    def error_description(self) -> Optional[str]:
        return self.result.get("error_description")

    def to_dict(self) -> dict:
        """Return the RFC 6749 error response body."""
        body = {"error": self.error}
        if self.error_description:
            body["error_description"] = self.error_description
        return body

    def __str__(self):
        if self.error_description:
            return f"{self.error}: {self.error_description}"
        return str(self.error)
