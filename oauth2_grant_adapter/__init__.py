"""
oauth2-grant-adapter

An OAuth 2.0 grant-issuance adapter. It accepts high-level grant requests
and forwards them to an authorization backend that does the real work,
either in-process or through a remote HTTP authorization proxy.

Supported operations:
- client_credentials, password and authorization_code token grants
- Authorization code and implicit grant redirects
- Token refresh and revocation
- Access token and API key verification

The adapter normalizes request shapes and the error vocabulary of the
backend; it does not issue, store or sign tokens itself.
"""

__version__ = "0.1.0"

from .adapter import GrantAdapter
from .backends import LocalBackend, OAuthBackend, RemoteBackend
from .config import AdapterConfig
from .errors import BackendResponseError, ConfigurationError, GrantError, OAuth2AdapterError
from .plugin import OAuth2AdapterPlugin
from .blueprint import oauth2_bp

__all__ = [
    "GrantAdapter",
    "OAuthBackend",
    "LocalBackend",
    "RemoteBackend",
    "AdapterConfig",
    "OAuth2AdapterError",
    "ConfigurationError",
    "BackendResponseError",
    "GrantError",
    "OAuth2AdapterPlugin",
    "oauth2_bp",
    "__version__",
]
