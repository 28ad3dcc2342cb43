"""Test doubles shared by the grant adapter tests."""

import json

import httpx

PROXY_URI = "https://proxy.example.com"
API_KEY = "test-api-key"


class StubCapability:
    """In-process authorization capability returning canned responses."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def _respond(self, name, body, request=None):
        self.calls.append((name, body, request))
        response = self.responses.get(name)
        if isinstance(response, Exception):
            raise response
        return response

    def generate_access_token(self, body):
        return self._respond("generate_access_token", body)

    def generate_authorization_code(self, body):
        return self._respond("generate_authorization_code", body)

    def revoke_token(self, body):
        return self._respond("revoke_token", body)

    def verify_access_token(self, body, request=None):
        return self._respond("verify_access_token", body, request)

    def verify_api_key(self, body, request=None):
        return self._respond("verify_api_key", body, request)


class RecordingProxy:
    """``httpx.MockTransport`` handler that records requests to the proxy."""

    def __init__(self, status_code=200, body=None, content=None):
        self.status_code = status_code
        self.body = body
        self.content = content
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        if self.body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)

    @property
    def last_path(self) -> str:
        return self.requests[-1].url.path
