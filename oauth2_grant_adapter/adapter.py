"""
The grant adapter.

:class:`GrantAdapter` accepts high-level OAuth 2.0 grant requests, projects
them onto the backend's request shape, calls the backend once and normalizes
the result. Successful results are returned unchanged; backend-reported
errors are raised as :class:`~oauth2_grant_adapter.errors.GrantError`.
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from .backends import LocalBackend, OAuthBackend, RemoteBackend
from .config import AdapterConfig
from .errors import ConfigurationError, GrantError
from .grants import (
    AuthorizationCodeRequest,
    AuthorizationRedirectRequest,
    ClientCredentialsRequest,
    GrantRequest,
    ImplicitGrantRequest,
    InvalidateTokenRequest,
    PasswordCredentialsRequest,
    RefreshTokenRequest,
    VerifyApiKeyRequest,
    VerifyTokenRequest,
)
from .redirects import build_authorization_code_redirect, build_implicit_grant_redirect
from .results import check_result_error, remap_invalid_scope

logger = logging.getLogger(__name__)

Options = Union[GrantRequest, Mapping[str, Any]]


class GrantAdapter:
    """
    OAuth 2.0 grant adapter over a local or remote authorization backend.

    The backend is chosen once, at construction, and never changes. The
    adapter holds no other state, so its coroutines can run concurrently.
    """

    def __init__(self, backend: OAuthBackend):
        self.backend = backend

    @classmethod
    def from_config(
        cls,
        config: AdapterConfig,
        local_capability: Any = None,
    ) -> "GrantAdapter":
        """
        Build an adapter for ``config``.

        Args:
            config: Transport configuration
            local_capability: In-process authorization capability, required
                when ``config.use_local_backend`` is set
        """
        config.validate()
        if config.use_local_backend:
            if local_capability is None:
                raise ConfigurationError(
                    "useLocalBackend is set but no local capability was supplied"
                )
            logger.info("Grant adapter using local authorization backend")
            return cls(LocalBackend(local_capability))

        logger.info(f"Grant adapter using remote authorization proxy at {config.remote_uri}")
        return cls(RemoteBackend(config.remote_uri, config.api_key))

    async def _create_credentials(self, request: GrantRequest) -> dict:
        logger.debug(f"generateAccessToken {request.grant_type}")
        result = await self.backend.generate_access_token(request.to_body())
        return check_result_error(result)

    async def create_token_client_credentials(self, options: Options) -> dict:
        """
        Generate an access token using client credentials.

        Options: ``clientId``, ``clientSecret`` (required); ``scope``,
        ``attributes``, ``tokenLifetime`` in milliseconds (optional).

        Returns the standard OAuth 2.0 token response.
        """
        return await self._create_credentials(ClientCredentialsRequest.coerce(options))

    async def create_token_password_credentials(self, options: Options) -> dict:
        """
        Generate an access token using password credentials.

        ``username`` and ``password`` are required but not checked here;
        they must be verified before calling this.
        """
        return await self._create_credentials(PasswordCredentialsRequest.coerce(options))

    async def create_token_authorization_code(self, options: Options) -> dict:
        """
        Exchange an authorization code for an access token.

        ``redirectUri`` must match the one used to generate the code.
        """
        return await self._create_credentials(AuthorizationCodeRequest.coerce(options))

    async def generate_authorization_code(self, options: Options) -> str:
        """
        Generate an authorization code and return the redirect URI for it.

        Options: ``clientId``, ``redirectUri`` (required); ``scope``,
        ``state`` (optional but recommended).

        The code, state and scope are carried as query parameters.
        """
        request = AuthorizationRedirectRequest.coerce(options)
        result = await self.backend.generate_authorization_code(request.to_body())
        response = check_result_error(result)
        return build_authorization_code_redirect(request.redirect_uri, response)

    async def create_token_implicit_grant(self, options: Options) -> str:
        """
        Generate an implicit grant token and return the redirect URI for it.

        The token response is carried in the URI fragment.
        """
        request = ImplicitGrantRequest.coerce(options)
        result = await self.backend.generate_access_token(request.to_body())
        response = check_result_error(result)
        return build_implicit_grant_redirect(request.redirect_uri, response)

    async def refresh_token(self, options: Options) -> dict:
        """
        Refresh an existing access token and return a new token set.

        Options: ``clientId``, ``clientSecret``, ``refreshToken`` (required);
        ``scope``, ``tokenLifetime`` (optional).
        """
        try:
            return await self._create_credentials(RefreshTokenRequest.coerce(options))
        except GrantError as e:
            remap_invalid_scope(e)
            raise

    async def invalidate_token(self, options: Options) -> dict:
        """
        Invalidate an access or refresh token.

        Returns ``{}`` when the backend answers with no body.
        """
        request = InvalidateTokenRequest.coerce(options)
        body = request.to_body()
        logger.debug(f"revokeToken with fields {sorted(body)}")
        result = await self.backend.revoke_token(body)
        return check_result_error(result)

    async def verify_token(
        self,
        token: str,
        required_scopes: Optional[Union[str, Sequence[str]]] = None,
        request: Any = None,
    ) -> dict:
        """
        Validate an access token, optionally against required scopes.

        Any failure reports ``invalid_token`` as its error code: grant errors
        through ``errorCode`` in their result, transport errors through an
        ``error_code`` attribute on the re-raised exception.
        """
        verify_request = VerifyTokenRequest(token=token)
        # An empty scope list is omitted; the backend mishandles empty arrays.
        if required_scopes:
            verify_request.scope = required_scopes

        try:
            result = await self.backend.verify_access_token(verify_request.to_body(), request)
            return check_result_error(result)
        except GrantError as e:
            e.result["errorCode"] = "invalid_token"
            raise
        except Exception as e:
            logger.debug(f"verifyAccessToken failed: {e}")
            e.error_code = "invalid_token"
            raise

    async def verify_api_key(self, api_key: str, request: Any = None) -> dict:
        """Validate an API key."""
        body = VerifyApiKeyRequest(api_key=api_key).to_body()
        result = await self.backend.verify_api_key(body, request)
        return check_result_error(result)
