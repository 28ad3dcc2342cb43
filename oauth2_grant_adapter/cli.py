"""
Command line tools for the grant adapter.

These commands talk to the remote authorization proxy and help with setup,
debugging and manual token operations. Configuration comes from the
``OAUTH2_ADAPTER_*`` environment variables unless overridden.
"""

import asyncio
import json
import logging
import sys

import click
import httpx

from .adapter import GrantAdapter
from .backends import API_KEY_HEADER, RemoteBackend
from .config import AdapterConfig
from .errors import BackendResponseError, ConfigurationError, GrantError


def _print_json(data):
    click.echo(json.dumps(data, indent=2, sort_keys=True))


def _build_config(ctx) -> AdapterConfig:
    config = AdapterConfig.from_env()
    uri = ctx.obj.get("uri") or config.remote_uri
    api_key = ctx.obj.get("api_key") or config.api_key
    return AdapterConfig(use_local_backend=config.use_local_backend, remote_uri=uri, api_key=api_key)


def _run(ctx, operation):
    """Run ``operation(adapter)`` against the remote proxy and print the result."""
    config = _build_config(ctx)
    if config.use_local_backend:
        click.echo("The local backend is only available in-process", err=True)
        sys.exit(2)
    try:
        adapter = GrantAdapter.from_config(config)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    try:
        result = asyncio.run(operation(adapter))
    except GrantError as e:
        click.echo(json.dumps(e.result, indent=2, sort_keys=True), err=True)
        sys.exit(1)
    except (httpx.HTTPError, BackendResponseError) as e:
        click.echo(f"[FAIL] Authorization proxy: {e}", err=True)
        sys.exit(1)

    if isinstance(result, str):
        click.echo(result)
    else:
        _print_json(result)


@click.group("oauth2-adapter")
@click.option("--uri", help="Authorization proxy URI (overrides OAUTH2_ADAPTER_REMOTE_URI)")
@click.option("--api-key", help="Proxy API key (overrides OAUTH2_ADAPTER_API_KEY)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def oauth2_cli(ctx, uri, api_key, debug):
    """OAuth2 grant adapter commands."""
    ctx.ensure_object(dict)
    ctx.obj["uri"] = uri
    ctx.obj["api_key"] = api_key
    if debug:
        logging.basicConfig(level=logging.DEBUG)


@oauth2_cli.command("show-config")
@click.pass_context
def show_config(ctx):
    """Display current adapter configuration."""
    config = _build_config(ctx)

    click.echo("=== Grant Adapter Configuration ===")
    click.echo(f"Backend: {'local' if config.use_local_backend else 'remote'}")
    click.echo(f"Remote URI: {config.remote_uri or 'Not configured'}")
    click.echo(f"API Key: {'Configured' if config.api_key else 'Not configured'}")


@oauth2_cli.command("validate-config")
@click.pass_context
def validate_config(ctx):
    """Validate the current configuration."""
    config = _build_config(ctx)
    try:
        config.validate()
    except ConfigurationError as e:
        click.echo(f"  x {e}")
        click.echo("\nConfiguration validation failed")
        sys.exit(1)

    click.echo("[OK] Configuration is valid!")


@oauth2_cli.command("client-credentials")
@click.option("--client-id", required=True)
@click.option("--client-secret", required=True)
@click.option("--scope", default=None)
@click.option("--lifetime", type=int, default=None, help="Token lifetime in milliseconds")
@click.pass_context
def client_credentials(ctx, client_id, client_secret, scope, lifetime):
    """Issue a token with the client_credentials grant."""
    options = {"clientId": client_id, "clientSecret": client_secret}
    if scope:
        options["scope"] = scope
    if lifetime:
        options["tokenLifetime"] = lifetime
    _run(ctx, lambda adapter: adapter.create_token_client_credentials(options))


@oauth2_cli.command("password")
@click.option("--client-id", required=True)
@click.option("--client-secret", required=True)
@click.option("--username", required=True)
@click.option("--password", prompt=True, hide_input=True)
@click.option("--scope", default=None)
@click.pass_context
def password_grant(ctx, client_id, client_secret, username, password, scope):
    """Issue a token with the password grant."""
    options = {
        "clientId": client_id,
        "clientSecret": client_secret,
        "username": username,
        "password": password,
    }
    if scope:
        options["scope"] = scope
    _run(ctx, lambda adapter: adapter.create_token_password_credentials(options))


@oauth2_cli.command("refresh")
@click.option("--client-id", required=True)
@click.option("--client-secret", required=True)
@click.option("--refresh-token", required=True)
@click.option("--scope", default=None)
@click.pass_context
def refresh(ctx, client_id, client_secret, refresh_token, scope):
    """Exchange a refresh token for a new token set."""
    options = {
        "clientId": client_id,
        "clientSecret": client_secret,
        "refreshToken": refresh_token,
    }
    if scope:
        options["scope"] = scope
    _run(ctx, lambda adapter: adapter.refresh_token(options))


@oauth2_cli.command("revoke")
@click.option("--client-id", required=True)
@click.option("--client-secret", required=True)
@click.option("--token", required=True)
@click.option(
    "--token-type-hint",
    type=click.Choice(["access_token", "refresh_token"]),
    default="access_token",
)
@click.pass_context
def revoke(ctx, client_id, client_secret, token, token_type_hint):
    """Invalidate an access or refresh token."""
    options = {
        "clientId": client_id,
        "clientSecret": client_secret,
        "token": token,
        "tokenTypeHint": token_type_hint,
    }
    _run(ctx, lambda adapter: adapter.invalidate_token(options))


@oauth2_cli.command("verify-token")
@click.argument("token")
@click.option("--scope", "scopes", multiple=True, help="Required scope (repeatable)")
@click.pass_context
def verify_token(ctx, token, scopes):
    """Verify an access token."""
    _run(ctx, lambda adapter: adapter.verify_token(token, list(scopes)))


@oauth2_cli.command("verify-api-key")
@click.argument("api_key")
@click.pass_context
def verify_api_key(ctx, api_key):
    """Verify an API key."""
    _run(ctx, lambda adapter: adapter.verify_api_key(api_key))


@oauth2_cli.command("test-connection")
@click.pass_context
def test_connection(ctx):
    """Test connectivity to the authorization proxy."""
    config = _build_config(ctx)
    if not config.remote_uri:
        click.echo("[SKIP] Remote URI not configured")
        return

    url = RemoteBackend(config.remote_uri, config.api_key).url_for("verifyApiKey")
    click.echo("=== Testing Authorization Proxy Connectivity ===\n")
    try:
        with httpx.Client() as client:
            resp = client.post(url, json={}, headers={API_KEY_HEADER: config.api_key}, timeout=10)
        click.echo(f"[OK] Proxy reachable: {config.remote_uri} (HTTP {resp.status_code})")
    except httpx.HTTPError as e:
        click.echo(f"[FAIL] Proxy: {e}")
        sys.exit(1)


def main():
    oauth2_cli(obj={})


if __name__ == "__main__":
    main()
