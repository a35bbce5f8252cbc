"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
import requests
from requests.structures import CaseInsensitiveDict
from unittest.mock import Mock

from clouddb.core.session import CloudDBConfig, Credentials


ACCOUNT_ID = "123456"
MGMT_URL = f"https://servers.api.rackspacecloud.com/v1.0/{ACCOUNT_ID}"
BASE = f"https://ord.databases.api.rackspacecloud.com/v1.0/{ACCOUNT_ID}"


def make_response(status, body=None, headers=None):
    """Build a real requests.Response with the given status, body and headers."""
    r = requests.Response()
    r.status_code = status
    if body is not None and not isinstance(body, (str, bytes)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode("utf-8")
    r._content = body or b""
    r.headers = CaseInsensitiveDict(headers or {})
    r.encoding = "utf-8"
    return r


def auth_response(token="tok-1", mgmt_url=MGMT_URL):
    return make_response(204, headers={
        "X-Auth-Token": token,
        "X-Server-Management-Url": mgmt_url,
    })


@pytest.fixture
def credentials():
    return Credentials("jdoe", "secret-key", "ORD")


@pytest.fixture
def config(credentials):
    return CloudDBConfig(credentials=credentials, verbose=False)


@pytest.fixture
def mock_http():
    """A Mock standing in for requests.Session; script it via request.side_effect."""
    http = Mock()
    http.request = Mock()
    return http


@pytest.fixture
def sample_instance():
    return {
        "id": "692d8418-7a8f-47f1-8060-59846c6e024f",
        "name": "test_instance",
        "hostname": "e09ad9a3.rackspaceclouddb.com",
        "flavor": {"id": "1", "links": []},
        "volume": {"size": 2, "used": 0.16},
        "rootEnabled": False,
        "status": "ACTIVE",
        "created": "2011-12-01T22:44:17Z",
        "updated": "2011-12-01T22:44:21Z",
        "links": [{"href": f"{BASE}/instances/692d8418", "rel": "self"}],
    }


@pytest.fixture
def sample_flavors():
    return [
        {"id": 1, "name": "m1.tiny", "ram": 512, "vcpus": 1,
         "links": [{"href": f"{BASE}/flavors/1", "rel": "self"}]},
        {"id": 2, "name": "m1.small", "ram": 1024, "vcpus": 2,
         "links": [{"href": f"{BASE}/flavors/2", "rel": "self"}]},
    ]


@pytest.fixture(name="make_response")
def make_response_fixture():
    return make_response


@pytest.fixture(name="auth_response")
def auth_response_fixture():
    return auth_response


@pytest.fixture
def base_url():
    """Service root the fixtures' credentials resolve to."""
    return BASE


@pytest.fixture
def connect(mock_http, auth_response):
    """Build a Connection whose HTTP client replays the given responses after auth."""
    from clouddb.core.connection import Connection

    def _connect(*responses, retry_on_expiry=True):
        mock_http.request.side_effect = [auth_response(), *responses]
        return Connection(
            username="jdoe",
            api_key="secret-key",
            region="ord",
            retry_on_expiry=retry_on_expiry,
            http=mock_http,
        )

    return _connect
