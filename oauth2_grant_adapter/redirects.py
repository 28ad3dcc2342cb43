"""
Redirect URI builders for the redirect-based grants.

The authorization code response travels in the query string; the implicit
grant response travels in the fragment so tokens stay out of server logs.
"""

import logging

from authlib.common.urls import add_params_to_uri
from authlib.oauth2.rfc6749.util import list_to_scope

logger = logging.getLogger(__name__)

AUTHORIZATION_CODE_PARAMS = ("code", "state", "scope", "error", "error_description")

IMPLICIT_GRANT_PARAMS = (
    "access_token",
    "token_type",
    "expires_in",
    "scope",
    "state",
    "error",
    "error_description",
)


def _pick_params(response: dict, names) -> list:
    params = []
    for name in names:
        value = response.get(name)
        if value is None:
            continue
        if name == "scope":
            value = list_to_scope(value)
        params.append((name, value))
    return params


def build_authorization_code_redirect(redirect_uri: str, response: dict) -> str:
    """Append the authorization response to ``redirect_uri`` as query parameters."""
    params = _pick_params(response, AUTHORIZATION_CODE_PARAMS)
    location = add_params_to_uri(redirect_uri or "http://", params)
    logger.debug(f"Authorization code redirect: {location}")
    return location


def build_implicit_grant_redirect(redirect_uri: str, response: dict) -> str:
    """Append the implicit grant response to ``redirect_uri`` as the fragment."""
    params = _pick_params(response, IMPLICIT_GRANT_PARAMS)
    # No logging of the location: it carries the access token.
    return add_params_to_uri(redirect_uri or "http://", params, fragment=True)
