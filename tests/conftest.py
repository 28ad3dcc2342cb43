"""Shared fixtures for the grant adapter tests."""

import os

import httpx
import pytest

from tests.helpers import API_KEY, PROXY_URI, RecordingProxy, StubCapability

# Keep the developer's environment out of the configuration tests
for _name in (
    "OAUTH2_ADAPTER_USE_LOCAL_BACKEND",
    "OAUTH2_ADAPTER_REMOTE_URI",
    "OAUTH2_ADAPTER_API_KEY",
):
    os.environ.pop(_name, None)


@pytest.fixture
def capability():
    return StubCapability()


@pytest.fixture
def proxy():
    return RecordingProxy(body={"access_token": "t1", "token_type": "bearer", "expires_in": 3600})


@pytest.fixture
def remote_backend(proxy):
    from oauth2_grant_adapter.backends import RemoteBackend
    return RemoteBackend(PROXY_URI, API_KEY, transport=httpx.MockTransport(proxy))


@pytest.fixture
def remote_adapter(remote_backend):
    from oauth2_grant_adapter.adapter import GrantAdapter
    return GrantAdapter(remote_backend)


@pytest.fixture
def local_adapter(capability):
    from oauth2_grant_adapter.adapter import GrantAdapter
    from oauth2_grant_adapter.backends import LocalBackend
    return GrantAdapter(LocalBackend(capability))
