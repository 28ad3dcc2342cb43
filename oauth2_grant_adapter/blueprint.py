"""
Flask blueprint exposing the grant adapter as OAuth 2.0 endpoints.

This blueprint provides the following endpoints:
- GET /oauth2/authorize - Authorization code or implicit grant redirect
- POST /oauth2/token - Token endpoint for client_credentials, password,
  authorization_code and refresh_token grants
- POST /oauth2/revoke - Token revocation (RFC 7009)
- POST /oauth2/verify - Access token verification
- POST /oauth2/verify-api-key - API key verification
"""

import logging
from typing import Optional

import httpx
from authlib.oauth2.rfc6749.util import extract_basic_authorization, scope_to_list
from flask import jsonify, redirect, request
from flask_smorest import Blueprint

from .adapter import GrantAdapter
from .config import AdapterConfig
from .errors import BackendResponseError, GrantError
from .redirects import build_authorization_code_redirect, build_implicit_grant_redirect
from .results import is_redirect_safe

logger = logging.getLogger(__name__)

oauth2_bp = Blueprint(
    "oauth2_adapter",
    __name__,
    url_prefix="/oauth2",
    description="OAuth 2.0 grant endpoints"
)

# Adapter instance (initialized on first request unless set explicitly)
_adapter: Optional[GrantAdapter] = None


def get_adapter() -> GrantAdapter:
    """Get or initialize the grant adapter from the environment."""
    global _adapter
    if _adapter is None:
        _adapter = GrantAdapter.from_config(AdapterConfig.from_env())
    return _adapter


def set_adapter(adapter: Optional[GrantAdapter]):
    """Install the adapter used by the views (``None`` resets it)."""
    global _adapter
    _adapter = adapter


def error_response(error: str, description: Optional[str] = None, status: int = 400):
    body = {"error": error}
    if description:
        body["error_description"] = description
    return jsonify(body), status


def token_response(result: dict):
    response = jsonify(result)
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"
    return response


def grant_error_response(error: GrantError):
    status = 401 if error.error == "invalid_client" else 400
    return jsonify(error.to_dict()), status


def client_credentials_from_request():
    """
    Return ``(client_id, client_secret)`` from HTTP Basic auth or the form.
    """
    client_id, client_secret = extract_basic_authorization(request.headers)
    if client_id:
        return client_id, client_secret
    return request.form.get("client_id"), request.form.get("client_secret")


def bearer_token_from_request() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if " " in auth:
        auth_type, token = auth.split(None, 1)
        if auth_type.lower() == "bearer":
            return token.strip()
    return request.form.get("token")


def _options(**kwargs) -> dict:
    return {key: value for key, value in kwargs.items() if value is not None}


@oauth2_bp.errorhandler(httpx.HTTPError)
@oauth2_bp.errorhandler(BackendResponseError)
def backend_unavailable(e):
    logger.error(f"Authorization backend call failed: {e}")
    return error_response("server_error", "Authorization backend unavailable", 502)


@oauth2_bp.route("/authorize")
async def authorize():
    """
    Start an authorization code or implicit grant.

    Query Parameters:
        response_type: "code" or "token"
        client_id: Client identifier
        redirect_uri: Where to send the user agent afterwards
        scope: Requested scope (optional)
        state: Opaque client state (optional)
    """
    response_type = request.args.get("response_type")
    client_id = request.args.get("client_id")
    redirect_uri = request.args.get("redirect_uri")

    if not client_id or not redirect_uri:
        return error_response("invalid_request", "client_id and redirect_uri are required")

    options = _options(
        clientId=client_id,
        redirectUri=redirect_uri,
        scope=request.args.get("scope"),
        state=request.args.get("state"),
    )

    adapter = get_adapter()
    if response_type == "code":
        try:
            location = await adapter.generate_authorization_code(options)
        except GrantError as e:
            logger.warning(f"Authorization code request for {client_id} failed: {e}")
            if not is_redirect_safe(e):
                return error_response(e.error, e.error_description)
            location = build_authorization_code_redirect(
                redirect_uri, {**e.to_dict(), "state": options.get("state")}
            )
        return redirect(location)

    if response_type == "token":
        try:
            location = await adapter.create_token_implicit_grant(options)
        except GrantError as e:
            logger.warning(f"Implicit grant for {client_id} failed: {e}")
            if not is_redirect_safe(e):
                return error_response(e.error, e.error_description)
            location = build_implicit_grant_redirect(
                redirect_uri, {**e.to_dict(), "state": options.get("state")}
            )
        return redirect(location)

    return error_response("unsupported_response_type", f"Unsupported response_type: {response_type}")


@oauth2_bp.route("/token", methods=["POST"])
async def token():
    """
    Token endpoint.

    Form body:
        grant_type: client_credentials, password, authorization_code or refresh_token
        client_id / client_secret: unless sent with HTTP Basic auth
        scope, username, password, code, redirect_uri, refresh_token:
            as required by the grant type
    """
    grant_type = request.form.get("grant_type")
    if not grant_type:
        return error_response("invalid_request", "Missing grant_type")

    client_id, client_secret = client_credentials_from_request()
    form = request.form
    adapter = get_adapter()

    try:
        if grant_type == "client_credentials":
            result = await adapter.create_token_client_credentials(_options(
                clientId=client_id,
                clientSecret=client_secret,
                scope=form.get("scope"),
            ))
        elif grant_type == "password":
            result = await adapter.create_token_password_credentials(_options(
                clientId=client_id,
                clientSecret=client_secret,
                username=form.get("username"),
                password=form.get("password"),
                scope=form.get("scope"),
            ))
        elif grant_type == "authorization_code":
            result = await adapter.create_token_authorization_code(_options(
                clientId=client_id,
                clientSecret=client_secret,
                code=form.get("code"),
                redirectUri=form.get("redirect_uri"),
            ))
        elif grant_type == "refresh_token":
            result = await adapter.refresh_token(_options(
                clientId=client_id,
                clientSecret=client_secret,
                refreshToken=form.get("refresh_token"),
                scope=form.get("scope"),
            ))
        else:
            return error_response("unsupported_grant_type", f"Unsupported grant_type: {grant_type}")
    except GrantError as e:
        logger.warning(f"{grant_type} grant for {client_id} failed: {e}")
        return grant_error_response(e)

    logger.info(f"Issued {grant_type} token for client {client_id}")
    return token_response(result)


@oauth2_bp.route("/revoke", methods=["POST"])
async def revoke():
    """
    Revoke an access or refresh token.

    Form body:
        token: The token to revoke
        token_type_hint: "access_token" or "refresh_token" (optional)
    """
    client_id, client_secret = client_credentials_from_request()
    try:
        result = await get_adapter().invalidate_token(_options(
            clientId=client_id,
            clientSecret=client_secret,
            token=request.form.get("token"),
            tokenTypeHint=request.form.get("token_type_hint"),
        ))
    except GrantError as e:
        logger.warning(f"Revocation for {client_id} failed: {e}")
        return grant_error_response(e)

    return jsonify(result)


@oauth2_bp.route("/verify", methods=["POST"])
async def verify():
    """
    Verify an access token.

    The token comes from a Bearer Authorization header or the ``token`` form
    field. ``scope`` is a space-delimited list of required scopes.
    """
    access_token = bearer_token_from_request()
    if not access_token:
        return error_response("invalid_request", "Missing access token")

    required_scopes = scope_to_list(request.form.get("scope")) or []
    try:
        result = await get_adapter().verify_token(access_token, required_scopes, request)
    except GrantError as e:
        logger.warning(f"Token verification failed: {e}")
        response = jsonify({**e.to_dict(), "error": e.error_code})
        response.status_code = 401
        response.headers["WWW-Authenticate"] = f'Bearer error="{e.error_code}"'
        return response

    return jsonify(result)


@oauth2_bp.route("/verify-api-key", methods=["POST"])
async def verify_api_key():
    """
    Verify an API key sent as the ``apikey`` form field or ``x-api-key`` header.
    """
    api_key = request.form.get("apikey") or request.headers.get("x-api-key")
    if not api_key:
        return error_response("invalid_request", "Missing API key")

    try:
        result = await get_adapter().verify_api_key(api_key, request)
    except GrantError as e:
        logger.warning(f"API key verification failed: {e}")
        return jsonify(e.to_dict()), 401

    return jsonify(result)
