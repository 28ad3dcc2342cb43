"""
Flask extension for the grant adapter.

Builds the adapter from configuration, makes it available to the OAuth 2.0
blueprint and registers the blueprint on the application.
"""

import logging
from typing import Any, Optional

from flask import Flask

from .adapter import GrantAdapter
from .blueprint import oauth2_bp, set_adapter
from .config import AdapterConfig

logger = logging.getLogger(__name__)

EXTENSION_NAME = "oauth2_grant_adapter"


class OAuth2AdapterPlugin:
    """
    OAuth2 grant adapter extension for Flask.

    Either pass a ready :class:`GrantAdapter`, or let the extension build one
    from ``OAUTH2_ADAPTER_*`` environment variables. In local mode the
    in-process capability must be supplied as ``local_capability``.
    """

    def __init__(
        self,
        app: Flask = None,
        adapter: Optional[GrantAdapter] = None,
        local_capability: Any = None,
    ):
        """
        Initialize the plugin.

        Args:
            app: Flask application instance (optional, can call init_app later)
            adapter: Pre-built adapter (optional)
            local_capability: In-process authorization capability for local mode
        """
        self.app = app
        self.adapter = adapter
        self.local_capability = local_capability
        self.config: Optional[AdapterConfig] = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask, *args, **kwargs):
        """
        Initialize the plugin with a Flask application.

        Args:
            app: Flask application instance
        """
        self.app = app

        if self.adapter is None:
            self.config = AdapterConfig.from_env()
            self.adapter = GrantAdapter.from_config(self.config, self.local_capability)

        app.extensions[EXTENSION_NAME] = self.adapter
        set_adapter(self.adapter)
        app.register_blueprint(self.get_blueprint())

        logger.info("OAuth2 grant adapter plugin initialized")
        logger.info(f"Authorization backend: {self.adapter.backend!r}")

    def get_blueprint(self):
        """Return the Flask blueprint for this extension."""
        return oauth2_bp

    def get_config_secrets_to_obfuscate(self):
        """Return config keys that should not be exposed."""
        return ["OAUTH2_ADAPTER_API_KEY"]

    @staticmethod
    def get_name() -> str:
        """Return the plugin name."""
        return "oauth2-grant-adapter"

    @staticmethod
    def get_version() -> str:
        """Return the plugin version."""
        from . import __version__
        return __version__

    @staticmethod
    def get_description() -> str:
        """Return the plugin description."""
        return "OAuth 2.0 grant adapter for local or remote authorization backends"
