"""Tests for the OAuth 2.0 endpoints in :mod:`oauth2_grant_adapter.blueprint`."""

import base64
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from flask import Flask

from tests.helpers import StubCapability
from oauth2_grant_adapter import blueprint
from oauth2_grant_adapter.adapter import GrantAdapter
from oauth2_grant_adapter.backends import LocalBackend
from oauth2_grant_adapter.plugin import OAuth2AdapterPlugin

TOKEN = {"access_token": "t1", "token_type": "bearer", "expires_in": 3600}


@pytest.fixture
def capability():
    return StubCapability({"generate_access_token": dict(TOKEN)})


@pytest.fixture
def client(capability):
    app = Flask(__name__)
    app.config["TESTING"] = True
    OAuth2AdapterPlugin(app, adapter=GrantAdapter(LocalBackend(capability)))
    yield app.test_client()
    blueprint.set_adapter(None)


def _basic(client_id, secret):
    raw = base64.b64encode(f"{client_id}:{secret}".encode()).decode()
    return {"Authorization": f"Basic {raw}"}


class TestTokenEndpoint:
    def test_client_credentials_with_basic_auth(self, client, capability):
        resp = client.post(
            "/oauth2/token",
            data={"grant_type": "client_credentials", "scope": "read"},
            headers=_basic("c1", "s1"),
        )
        assert resp.status_code == 200
        assert resp.get_json() == TOKEN
        assert resp.headers["Cache-Control"] == "no-store"
        assert capability.calls[-1][1] == {
            "clientId": "c1",
            "clientSecret": "s1",
            "scope": "read",
            "grantType": "client_credentials",
        }

    def test_password_with_form_credentials(self, client, capability):
        resp = client.post("/oauth2/token", data={
            "grant_type": "password",
            "client_id": "c1",
            "client_secret": "s1",
            "username": "alice",
            "password": "pw",
        })
        assert resp.status_code == 200
        body = capability.calls[-1][1]
        assert body["grantType"] == "password"
        assert body["username"] == "alice"

    def test_authorization_code_error(self, client, capability):
        capability.responses["generate_access_token"] = {
            "error": "invalid_request",
            "error_description": "Invalid Authorization Code",
        }
        resp = client.post("/oauth2/token", data={
            "grant_type": "authorization_code",
            "client_id": "c1",
            "client_secret": "s1",
            "code": "bad",
            "redirect_uri": "https://app/cb",
        })
        assert resp.status_code == 400
        assert resp.get_json() == {
            "error": "invalid_grant",
            "error_description": "Invalid Authorization Code",
        }

    def test_invalid_client_is_401(self, client, capability):
        capability.responses["generate_access_token"] = {"error": "invalid_client"}
        resp = client.post("/oauth2/token", data={"grant_type": "refresh_token", "refresh_token": "r1"})
        assert resp.status_code == 401

    def test_unsupported_grant_type(self, client):
        resp = client.post("/oauth2/token", data={"grant_type": "device_code"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "unsupported_grant_type"

    def test_missing_grant_type(self, client):
        resp = client.post("/oauth2/token", data={})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_request"

    def test_backend_failure_is_502(self, client, capability):
        request = httpx.Request("POST", "https://proxy.example.com")
        capability.responses["generate_access_token"] = httpx.ConnectError("refused", request=request)
        resp = client.post("/oauth2/token", data={"grant_type": "client_credentials"})
        assert resp.status_code == 502
        assert resp.get_json()["error"] == "server_error"


class TestAuthorizeEndpoint:
    def test_code_flow_redirects_with_query(self, client, capability):
        capability.responses["generate_authorization_code"] = {"code": "abc", "state": "s1"}
        resp = client.get("/oauth2/authorize", query_string={
            "response_type": "code",
            "client_id": "c1",
            "redirect_uri": "https://app/cb",
            "state": "s1",
        })
        assert resp.status_code == 302
        assert resp.headers["Location"] == "https://app/cb?code=abc&state=s1"

    def test_implicit_flow_redirects_with_fragment(self, client):
        resp = client.get("/oauth2/authorize", query_string={
            "response_type": "token",
            "client_id": "c1",
            "redirect_uri": "https://app/cb",
        })
        assert resp.status_code == 302
        fragment = parse_qs(urlparse(resp.headers["Location"]).fragment)
        assert fragment["access_token"] == ["t1"]

    def test_errors_are_redirected(self, client, capability):
        capability.responses["generate_authorization_code"] = {
            "error": "access_denied",
            "error_description": "User denied access",
        }
        resp = client.get("/oauth2/authorize", query_string={
            "response_type": "code",
            "client_id": "c1",
            "redirect_uri": "https://app/cb",
            "state": "s1",
        })
        assert resp.status_code == 302
        query = parse_qs(urlparse(resp.headers["Location"]).query)
        assert query == {
            "state": ["s1"],
            "error": ["access_denied"],
            "error_description": ["User denied access"],
        }

    def test_rejected_redirect_uri_is_not_followed(self, client, capability):
        capability.responses["generate_authorization_code"] = {
            "error": "invalid_request",
            "error_description": "Invalid redirect_uri https://evil.example",
        }
        resp = client.get("/oauth2/authorize", query_string={
            "response_type": "code",
            "client_id": "c1",
            "redirect_uri": "https://evil.example/steal",
        })
        assert resp.status_code == 400
        assert "Location" not in resp.headers
        assert resp.get_json() == {
            "error": "invalid_grant",
            "error_description": "Invalid redirect_uri https://evil.example",
        }

    @pytest.mark.parametrize("error", ["invalid_client", "unauthorized_client"])
    def test_unknown_client_is_not_redirected(self, client, capability, error):
        capability.responses["generate_access_token"] = {
            "error": error,
            "error_description": "Unknown client",
        }
        resp = client.get("/oauth2/authorize", query_string={
            "response_type": "token",
            "client_id": "c1",
            "redirect_uri": "https://evil.example/steal",
            "state": "s1",
        })
        assert resp.status_code == 400
        assert "Location" not in resp.headers
        assert resp.get_json()["error"] == error

    def test_missing_redirect_uri(self, client):
        resp = client.get("/oauth2/authorize", query_string={"response_type": "code", "client_id": "c1"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_request"

    def test_unsupported_response_type(self, client):
        resp = client.get("/oauth2/authorize", query_string={
            "response_type": "id_token",
            "client_id": "c1",
            "redirect_uri": "https://app/cb",
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "unsupported_response_type"


class TestRevokeEndpoint:
    def test_revoke(self, client, capability):
        resp = client.post(
            "/oauth2/revoke",
            data={"token": "t1", "token_type_hint": "refresh_token"},
            headers=_basic("c1", "s1"),
        )
        assert resp.status_code == 200
        assert resp.get_json() == {}
        assert capability.calls[-1][1] == {
            "clientId": "c1",
            "clientSecret": "s1",
            "token": "t1",
            "tokenTypeHint": "refresh_token",
        }


class TestVerifyEndpoints:
    def test_verify_bearer_token(self, client, capability):
        capability.responses["verify_access_token"] = {"scope": "a b"}
        resp = client.post(
            "/oauth2/verify",
            data={"scope": "a b"},
            headers={"Authorization": "Bearer t1"},
        )
        assert resp.status_code == 200
        assert resp.get_json() == {"scope": "a b"}
        assert capability.calls[-1][1] == {"token": "t1", "scope": ["a", "b"]}

    def test_verify_without_scope_omits_it(self, client, capability):
        capability.responses["verify_access_token"] = {"ok": True}
        client.post("/oauth2/verify", data={"token": "t1"})
        assert capability.calls[-1][1] == {"token": "t1"}

    def test_verify_failure_is_invalid_token(self, client, capability):
        capability.responses["verify_access_token"] = {
            "error": "keymanagement.service.invalid_access_token",
            "error_description": "Invalid Access Token",
        }
        resp = client.post("/oauth2/verify", headers={"Authorization": "Bearer t1"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "invalid_token"
        assert resp.headers["WWW-Authenticate"] == 'Bearer error="invalid_token"'

    def test_verify_missing_token(self, client):
        resp = client.post("/oauth2/verify")
        assert resp.status_code == 400

    def test_verify_api_key(self, client, capability):
        capability.responses["verify_api_key"] = {"developer": "d1"}
        resp = client.post("/oauth2/verify-api-key", headers={"x-api-key": "k1"})
        assert resp.status_code == 200
        assert capability.calls[-1][1] == {"apiKey": "k1"}

    def test_verify_api_key_failure(self, client, capability):
        capability.responses["verify_api_key"] = {"error": "invalid_api_key"}
        resp = client.post("/oauth2/verify-api-key", data={"apikey": "k1"})
        assert resp.status_code == 401


def test_plugin_registers_adapter(capability):
    app = Flask(__name__)
    adapter = GrantAdapter(LocalBackend(capability))
    plugin = OAuth2AdapterPlugin(app, adapter=adapter)
    try:
        assert app.extensions["oauth2_grant_adapter"] is adapter
        assert blueprint.get_adapter() is adapter
        assert plugin.get_name() == "oauth2-grant-adapter"
        assert plugin.get_config_secrets_to_obfuscate() == ["OAUTH2_ADAPTER_API_KEY"]
    finally:
        blueprint.set_adapter(None)


def test_plugin_builds_adapter_from_env(monkeypatch):
    monkeypatch.setenv("OAUTH2_ADAPTER_REMOTE_URI", "https://proxy.example.com")
    monkeypatch.setenv("OAUTH2_ADAPTER_API_KEY", "k1")
    app = Flask(__name__)
    plugin = OAuth2AdapterPlugin(app)
    try:
        assert plugin.adapter.backend.uri == "https://proxy.example.com"
        assert plugin.config.api_key == "k1"
    finally:
        blueprint.set_adapter(None)
