"""
Transports to the authorization backend.

Two interchangeable implementations of :class:`OAuthBackend`:

- :class:`LocalBackend` calls an authorization capability running in the
  same process.
- :class:`RemoteBackend` posts JSON to the authorization proxy's
  ``/v2/oauth/<operation>`` endpoints.

Both return the raw backend object as a dict. Neither interprets error
fields; that is done by :func:`oauth2_grant_adapter.results.check_result_error`.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from .errors import BackendResponseError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-DNA-Api-Key"
API_PATH = "/v2/oauth"

# camelCase operation names a local capability may expose instead
CAPABILITY_ALIASES = {
    "generate_access_token": "generateAccessToken",
    "generate_authorization_code": "generateAuthorizationCode",
    "revoke_token": "revokeToken",
    "verify_access_token": "verifyAccessToken",
    "verify_api_key": "verifyApiKey",
}


class OAuthBackend(ABC):
    """The operations every transport offers."""

    @abstractmethod
    async def generate_access_token(self, body: dict) -> dict:
        """Issue a token for any grant type, or an implicit grant response."""

    @abstractmethod
    async def generate_authorization_code(self, body: dict) -> dict:
        """Issue an authorization code."""

    @abstractmethod
    async def revoke_token(self, body: dict) -> dict:
        """Revoke an access or refresh token."""

    @abstractmethod
    async def verify_access_token(self, body: dict, request: Any = None) -> dict:
        """Validate an access token, optionally against a scope."""

    @abstractmethod
    async def verify_api_key(self, body: dict, request: Any = None) -> dict:
        """Validate an API key."""


class LocalBackend(OAuthBackend):
    """
    Backend that calls an in-process authorization capability.

    The capability exposes ``generate_access_token``,
    ``generate_authorization_code``, ``revoke_token``,
    ``verify_access_token`` and ``verify_api_key``, taking the same request
    dicts as the remote proxy. The camelCase names used by the proxy
    (``generateAccessToken`` and so on) are accepted as well. Its methods may
    be plain functions or coroutines. Exceptions they raise propagate
    unchanged.
    """

    def __init__(self, capability: Any):
        self.capability = capability

    def _method(self, name: str):
        method = getattr(self.capability, name, None)
        if method is None:
            method = getattr(self.capability, CAPABILITY_ALIASES[name])
        return method

    async def _call(self, name: str, *args) -> dict:
        logger.debug(f"Local {name}")
        result = self._method(name)(*args)
        if inspect.isawaitable(result):
            result = await result
        if not result:
            return {}
        if not isinstance(result, dict):
            raise BackendResponseError(
                f"Local {name} returned {type(result).__name__}, expected a dict"
            )
        return result

    async def generate_access_token(self, body: dict) -> dict:
        return await self._call("generate_access_token", body)

    async def generate_authorization_code(self, body: dict) -> dict:
        return await self._call("generate_authorization_code", body)

    async def revoke_token(self, body: dict) -> dict:
        return await self._call("revoke_token", body)

    async def verify_access_token(self, body: dict, request: Any = None) -> dict:
        return await self._call("verify_access_token", body, request)

    async def verify_api_key(self, body: dict, request: Any = None) -> dict:
        return await self._call("verify_api_key", body, request)


class RemoteBackend(OAuthBackend):
    """
    Backend that posts to the remote authorization proxy.

    A fresh ``httpx.AsyncClient`` is used per call, with no timeout; callers
    that need one wrap the operation themselves.
    """

    def __init__(
        self,
        uri: str,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            uri: Base URI the proxy is deployed at
            api_key: API key sent in the ``x-DNA-Api-Key`` header
            transport: Optional httpx transport (used by tests)
        """
        self.uri = uri.rstrip("/")
        self.api_key = api_key
        self._transport = transport

    def __repr__(self):
        return f"RemoteBackend(uri={self.uri!r})"

    def url_for(self, operation: str) -> str:
        return f"{self.uri}{API_PATH}/{operation}"

    async def _post(self, operation: str, body: dict) -> dict:
        url = self.url_for(operation)
        logger.debug(f"Remote {operation} with fields {sorted(body)}")
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            resp = await client.post(
                url,
                json=body,
                headers={API_KEY_HEADER: self.api_key},
            )
        logger.debug(f"Remote {operation} responded {resp.status_code}")
        return self._decode(resp)

    @staticmethod
    def _decode(resp: httpx.Response) -> dict:
        """
        Turn the proxy response into the raw result.

        Error statuses are only passed through when the body is an OAuth
        error object; anything else is raised as ``httpx.HTTPStatusError``.
        """
        if not resp.content.strip():
            resp.raise_for_status()
            return {}

        try:
            data = resp.json()
        except ValueError:
            resp.raise_for_status()
            raise BackendResponseError(
                "Authorization proxy returned a non-JSON body",
                status_code=resp.status_code,
            )

        if not isinstance(data, dict):
            resp.raise_for_status()
            raise BackendResponseError(
                f"Authorization proxy returned JSON {type(data).__name__}, expected an object",
                status_code=resp.status_code,
            )

        if resp.is_error and not data.get("error"):
            resp.raise_for_status()
        return data

    async def generate_access_token(self, body: dict) -> dict:
        return await self._post("generateAccessToken", body)

    async def generate_authorization_code(self, body: dict) -> dict:
        return await self._post("generateAuthorizationCode", body)

    async def revoke_token(self, body: dict) -> dict:
        return await self._post("revokeToken", body)

    async def verify_access_token(self, body: dict, request: Any = None) -> dict:
        return await self._post("verifyAccessToken", body)

    async def verify_api_key(self, body: dict, request: Any = None) -> dict:
        return await self._post("verifyApiKey", body)
