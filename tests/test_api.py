"""
Tests for clouddb.api gateway.
"""

import pytest
from unittest.mock import Mock

from fastapi.testclient import TestClient

from clouddb.api.gateway import CloudDBGateway, create_app
from clouddb.core.connection import Connection
from clouddb.core.exceptions import AuthenticationError, ItemNotFound, ServiceFault


API_KEY = "gw-key"
HEADERS = {"x-api-key": API_KEY}


@pytest.fixture
def fake_conn():
    return Mock()


@pytest.fixture
def client(fake_conn):
    gw = CloudDBGateway(
        username="jdoe",
        api_key="secret-key",
        region="ord",
        gateway_api_key=API_KEY,
        connection_factory=lambda **kwargs: fake_conn,
    )
    return TestClient(create_app(gateway=gw))


class TestGatewayConfig:

    def test_validate_requires_gateway_key(self):
        gw = CloudDBGateway(username="u", api_key="k", region="ord", gateway_api_key="")
        gw.gateway_api_key = ""
        with pytest.raises(RuntimeError, match="GATEWAY_API_KEY"):
            gw.validate()

    def test_connection_is_created_once(self):
        factory = Mock()
        gw = CloudDBGateway(
            username="u", api_key="k", region="ord", gateway_api_key="x",
            connection_factory=factory,
        )

        assert gw.connection is gw.connection
        factory.assert_called_once()
        assert factory.call_args.kwargs["region"] == "ord"


class TestGatewayEndpoints:

    def test_health(self, client):
        assert client.get("/health").json()["ok"] is True

    def test_requires_api_key(self, client):
        r = client.get("/instances", headers={"x-api-key": "wrong"})
        assert r.status_code == 401

    def test_list_instances(self, client, fake_conn):
        fake_conn.list_instances.return_value = [
            {"id": "a", "name": "one", "status": "ACTIVE", "links": []},
        ]

        r = client.get("/instances", headers=HEADERS)

        assert r.status_code == 200
        body = r.json()
        assert body["count"] == 1
        assert body["items"][0]["id"] == "a"

    def test_list_instances_detail(self, client, fake_conn):
        fake_conn.list_instances_detail.return_value = []

        r = client.get("/instances", params={"detail": True}, headers=HEADERS)

        assert r.status_code == 200
        fake_conn.list_instances_detail.assert_called_once()

    def test_get_instance(self, client, fake_conn):
        fake_conn.get_instance.return_value.to_dict.return_value = {
            "id": "a", "name": "one", "status": "ACTIVE", "volume_size": 2,
        }

        r = client.get("/instances/a", headers=HEADERS)

        assert r.status_code == 200
        assert r.json()["volume_size"] == 2
        fake_conn.get_instance.assert_called_once_with("a")

    def test_instance_not_found(self, client, fake_conn):
        fake_conn.get_instance.side_effect = ItemNotFound("not found", 404, "{}")

        r = client.get("/instances/missing", headers=HEADERS)

        assert r.status_code == 404
        assert r.json()["detail"]["fault"] == "ItemNotFound"

    def test_upstream_fault(self, client, fake_conn):
        fake_conn.list_flavors.side_effect = ServiceFault("broken", 500, "{}")

        r = client.get("/flavors", headers=HEADERS)

        assert r.status_code == 502
        assert r.json()["detail"] == {"fault": "ServiceFault", "upstream_status": 500, "error": "broken"}

    def test_list_databases(self, client, fake_conn):
        fake_conn.get_instance.return_value.list_databases.return_value = [{"name": "testdb"}]

        r = client.get("/instances/a/databases", headers=HEADERS)

        assert r.json() == {"instance_id": "a", "count": 1, "items": [{"name": "testdb"}]}

    def test_list_users(self, client, fake_conn):
        fake_conn.get_instance.return_value.list_users.return_value = [{"name": "test"}]

        r = client.get("/instances/a/users", headers=HEADERS)

        assert r.json()["items"] == [{"name": "test"}]

    def test_get_flavor(self, client, fake_conn):
        fake_conn.get_flavor.return_value.to_dict.return_value = {
            "id": 1, "name": "m1.tiny", "ram": 512, "vcpus": 1, "links": [],
        }

        r = client.get("/flavors/1", headers=HEADERS)

        assert r.json()["ram"] == 512

    def test_authentication_failure(self):
        def factory(**kwargs):
            raise AuthenticationError("Authentication failed with response code 401", status=401)

        gw = CloudDBGateway(
            username="u", api_key="k", region="ord", gateway_api_key=API_KEY,
            connection_factory=factory,
        )
        client = TestClient(create_app(gateway=gw))

        r = client.get("/flavors", headers=HEADERS)

        assert r.status_code == 502
        assert r.json()["detail"]["fault"] == "AuthenticationError"

    def test_rejected_token_refresh(self, mock_http, make_response, auth_response):
        rows = [{"id": "a", "name": "one", "status": "ACTIVE", "links": []}]
        mock_http.request.side_effect = [
            auth_response(),
            make_response(401),
            make_response(503),
            auth_response("tok-2"),
            make_response(200, {"instances": rows}),
        ]
        gw = CloudDBGateway(
            username="u", api_key="k", region="ord", gateway_api_key=API_KEY,
            connection_factory=lambda **kwargs: Connection(http=mock_http, **kwargs),
        )
        client = TestClient(create_app(gateway=gw))

        r = client.get("/instances", headers=HEADERS)

        assert r.status_code == 502
        assert r.json()["detail"]["fault"] == "AuthenticationError"

        r = client.get("/instances", headers=HEADERS)

        assert r.status_code == 200
        assert r.json()["items"][0]["id"] == "a"

    def test_unknown_region(self):
        gw = CloudDBGateway(username="u", api_key="k", region="mars", gateway_api_key=API_KEY)
        client = TestClient(create_app(gateway=gw))

        r = client.get("/flavors", headers=HEADERS)

        assert r.status_code == 503
        assert r.json()["detail"]["fault"] == "ConfigurationError"
        assert "Unknown region" in r.json()["detail"]["error"]
