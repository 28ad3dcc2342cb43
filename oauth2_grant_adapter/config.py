"""
Configuration management for the grant adapter.

This module handles loading and validating the transport configuration:
either an in-process authorization capability, or a remote authorization
proxy reached over HTTP with a static API key.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import ConfigurationError

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AdapterConfig:
    """Transport configuration, fixed for the adapter's lifetime."""

    # Local mode: operations call the in-process capability
    use_local_backend: bool = False

    # Remote mode: base URI of the proxy and its API key
    remote_uri: str = ""
    api_key: str = field(default="", repr=False)

    @classmethod
    def from_env(cls) -> "AdapterConfig":
        """Create configuration from environment variables."""
        return cls(
            use_local_backend=os.environ.get(
                "OAUTH2_ADAPTER_USE_LOCAL_BACKEND", "false"
            ).lower() in TRUE_VALUES,
            remote_uri=os.environ.get("OAUTH2_ADAPTER_REMOTE_URI", ""),
            api_key=os.environ.get("OAUTH2_ADAPTER_API_KEY", ""),
        )

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "AdapterConfig":
        """
        Create configuration from an option mapping.

        Accepts ``{"useLocalBackend": True}`` or
        ``{"remoteUri": ..., "apiKey": ...}``.
        """
        return cls(
            use_local_backend=bool(options.get("useLocalBackend", False)),
            remote_uri=options.get("remoteUri", ""),
            api_key=options.get("apiKey", ""),
        )

    @property
    def is_remote(self) -> bool:
        return not self.use_local_backend

    def validate(self) -> "AdapterConfig":
        """Raise :class:`ConfigurationError` unless exactly one mode is configured."""
        if self.use_local_backend:
            if self.remote_uri or self.api_key:
                raise ConfigurationError(
                    "useLocalBackend and remoteUri/apiKey are mutually exclusive"
                )
            return self

        if not self.remote_uri:
            raise ConfigurationError(
                "remoteUri is required unless useLocalBackend is set"
            )
        if not self.api_key:
            raise ConfigurationError("apiKey is required with remoteUri")
        return self
