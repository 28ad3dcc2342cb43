"""
Per-operation request structures.

Each request class lists the option names its operation recognizes. Building
one from an option bag keeps only those names, so extra keys never reach the
backend. ``to_body`` produces the camelCase request the backend expects.
"""

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Mapping, Optional, Union


def _wire(name: str):
    """Declare an optional field read from option ``name`` and sent as ``name``."""
    return field(default=None, metadata={"option": name, "wire": name})


def _option(name: str):
    """Declare an optional field read from option ``name`` but not sent verbatim."""
    return field(default=None, metadata={"option": name})


@dataclass
class GrantRequest:
    """Base class for request structures."""

    grant_type: ClassVar[Optional[str]] = None
    response_type: ClassVar[Optional[str]] = None

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "GrantRequest":
        """Pick the recognized option names out of ``options``."""
        values = {}
        for f in fields(cls):
            option_name = f.metadata.get("option")
            if option_name in options:
                values[f.name] = options[option_name]
        return cls(**values)

    @classmethod
    def coerce(cls, options: Union["GrantRequest", Mapping[str, Any]]) -> "GrantRequest":
        if isinstance(options, cls):
            return options
        return cls.from_options(options)

    def to_body(self) -> dict:
        body = {}
        for f in fields(self):
            wire_name = f.metadata.get("wire")
            value = getattr(self, f.name)
            if wire_name and value is not None:
                body[wire_name] = value
        if self.grant_type:
            body["grantType"] = self.grant_type
        if self.response_type:
            body["responseType"] = self.response_type
        token_lifetime = getattr(self, "token_lifetime", None)
        if token_lifetime:
            body["expiresIn"] = token_lifetime
        return body


@dataclass
class ClientCredentialsRequest(GrantRequest):
    grant_type: ClassVar[Optional[str]] = "client_credentials"

    client_id: Optional[str] = _wire("clientId")
    client_secret: Optional[str] = _wire("clientSecret")
    scope: Optional[Any] = _wire("scope")
    attributes: Optional[dict] = _wire("attributes")
    # Lifetime in milliseconds, sent as ``expiresIn``.
    token_lifetime: Optional[int] = _option("tokenLifetime")


@dataclass
class PasswordCredentialsRequest(GrantRequest):
    """Username and password are passed through unchecked."""

    grant_type: ClassVar[Optional[str]] = "password"

    client_id: Optional[str] = _wire("clientId")
    client_secret: Optional[str] = _wire("clientSecret")
    username: Optional[str] = _wire("username")
    password: Optional[str] = _wire("password")
    scope: Optional[Any] = _wire("scope")
    attributes: Optional[dict] = _wire("attributes")
    token_lifetime: Optional[int] = _option("tokenLifetime")


@dataclass
class AuthorizationCodeRequest(GrantRequest):
    grant_type: ClassVar[Optional[str]] = "authorization_code"

    client_id: Optional[str] = _wire("clientId")
    client_secret: Optional[str] = _wire("clientSecret")
    code: Optional[str] = _wire("code")
    redirect_uri: Optional[str] = _wire("redirectUri")
    attributes: Optional[dict] = _wire("attributes")
    token_lifetime: Optional[int] = _option("tokenLifetime")


@dataclass
class AuthorizationRedirectRequest(GrantRequest):
    """Request for an authorization code redirect."""

    response_type: ClassVar[Optional[str]] = "code"

    client_id: Optional[str] = _wire("clientId")
    redirect_uri: Optional[str] = _wire("redirectUri")
    scope: Optional[Any] = _wire("scope")
    state: Optional[str] = _wire("state")


@dataclass
class ImplicitGrantRequest(GrantRequest):
    grant_type: ClassVar[Optional[str]] = "implicit_grant"
    response_type: ClassVar[Optional[str]] = "token"

    client_id: Optional[str] = _wire("clientId")
    redirect_uri: Optional[str] = _wire("redirectUri")
    scope: Optional[Any] = _wire("scope")
    state: Optional[str] = _wire("state")
    attributes: Optional[dict] = _wire("attributes")
    token_lifetime: Optional[int] = _option("tokenLifetime")


@dataclass
class RefreshTokenRequest(GrantRequest):
    grant_type: ClassVar[Optional[str]] = "refresh_token"

    client_id: Optional[str] = _wire("clientId")
    client_secret: Optional[str] = _wire("clientSecret")
    refresh_token: Optional[str] = _wire("refreshToken")
    scope: Optional[Any] = _wire("scope")
    token_lifetime: Optional[int] = _option("tokenLifetime")


@dataclass
class InvalidateTokenRequest(GrantRequest):
    """
    Revocation request for either an access or a refresh token.

    The token goes in ``token`` with ``tokenTypeHint`` naming its kind. As a
    shortcut, the option bag may instead carry exactly one of
    ``accessToken`` / ``refreshToken``.
    """

    client_id: Optional[str] = _wire("clientId")
    client_secret: Optional[str] = _wire("clientSecret")
    token: Optional[str] = _wire("token")
    token_type_hint: Optional[str] = _wire("tokenTypeHint")

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "InvalidateTokenRequest":
        request = super().from_options(options)
        if request.token is not None:
            return request

        access_token = options.get("accessToken")
        refresh_token = options.get("refreshToken")
        if access_token and refresh_token:
            raise ValueError("Specify only one of accessToken or refreshToken")
        if access_token:
            request.token = access_token
            request.token_type_hint = request.token_type_hint or "access_token"
        elif refresh_token:
            request.token = refresh_token
            request.token_type_hint = request.token_type_hint or "refresh_token"
        return request


@dataclass
class VerifyTokenRequest(GrantRequest):
    token: Optional[str] = _wire("token")
    scope: Optional[Any] = _wire("scope")


@dataclass
class VerifyApiKeyRequest(GrantRequest):
    api_key: Optional[str] = _wire("apiKey")
