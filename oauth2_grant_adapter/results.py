"""
Normalization of raw backend results.

The backend does not code its errors consistently, so a handful of error
descriptions are matched by wording and mapped onto the RFC 6749 error
codes clients expect. The patterns track the backend's messages verbatim.
"""

import logging
import re

from .errors import GrantError

logger = logging.getLogger(__name__)

REDIRECT_URI_PATTERNS = (
    re.compile(r"Required param.+redirect_uri"),
    re.compile(r"Invalid redirect_uri"),
)

INVALID_GRANT_PATTERNS = (re.compile(r"Invalid Authorization Code"),) + REDIRECT_URI_PATTERNS

INVALID_SCOPE_PATTERN = re.compile(r"^.*Invalid Scope")

# Errors after which the client's redirect_uri cannot be trusted
UNTRUSTED_CLIENT_ERRORS = ("invalid_client", "unauthorized_client")


def _matches(pattern, description) -> bool:
    return bool(description) and pattern.search(str(description)) is not None


def is_redirect_safe(error: GrantError) -> bool:
    """
    Return False when the backend rejected the client or its redirect URI.

    Such errors must be shown to the user agent directly instead of being
    sent to the unverified ``redirect_uri``.
    """
    if error.error in UNTRUSTED_CLIENT_ERRORS:
        return False
    description = error.error_description
    return not any(_matches(pattern, description) for pattern in REDIRECT_URI_PATTERNS)


def check_result_error(result: dict) -> dict:
    """
    Return ``result`` unchanged, or raise :class:`GrantError` if it carries
    an ``error`` field.

    ``errorCode`` is set from ``error`` after the ``invalid_grant`` rewrite.
    """
    if not result.get("error"):
        return result

    description = result.get("error_description")
    if any(_matches(pattern, description) for pattern in INVALID_GRANT_PATTERNS):
        logger.debug(f"Replacing error code {result['error']} with invalid_grant")
        result["error"] = "invalid_grant"

    result["errorCode"] = result["error"]
    raise GrantError(result)


def remap_invalid_scope(error: GrantError) -> None:
    """Force ``invalid_scope`` when the description reports a scope problem."""
    if _matches(INVALID_SCOPE_PATTERN, error.error_description):
        error.result["error"] = error.result["errorCode"] = "invalid_scope"
