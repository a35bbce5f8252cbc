"""
Tests for clouddb.resources and the account-level operations on Connection.
"""

import json

import pytest

from clouddb.core.exceptions import (
    ArgumentSyntaxError,
    ItemNotFound,
    MissingArgument,
    Other,
    ServiceUnavailable,
)
from clouddb.resources import Database, Flavor, Instance, User, escape


INSTANCE_ID = "692d8418-7a8f-47f1-8060-59846c6e024f"


def sent(mock_http, index=-1):
    """(method, url, json body) of a recorded request."""
    call = mock_http.request.call_args_list[index]
    data = call.kwargs.get("data")
    return call.args[0], call.args[1], json.loads(data) if data else None


class TestEscape:

    def test_escape(self):
        assert escape("my db/1") == "my%20db%2F1"
        assert escape(42) == "42"


class TestConnectionOperations:

    def test_list_flavors(self, connect, make_response, mock_http, sample_flavors, base_url):
        conn = connect(make_response(200, {"flavors": sample_flavors}))

        assert conn.list_flavors() == sample_flavors
        assert sent(mock_http)[:2] == ("GET", f"{base_url}/flavors")

    def test_list_flavors_detail(self, connect, make_response, mock_http, sample_flavors, base_url):
        conn = connect(make_response(200, {"flavors": sample_flavors}))

        conn.list_flavors_detail()
        assert sent(mock_http)[1] == f"{base_url}/flavors/detail"

    def test_list_instances_detail(self, connect, make_response, mock_http, sample_instance, base_url):
        conn = connect(make_response(200, {"instances": [sample_instance]}))

        rows = conn.list_instances_detail()
        assert rows[0]["hostname"] == sample_instance["hostname"]
        assert sent(mock_http)[1] == f"{base_url}/instances/detail"

    def test_list_error_is_classified(self, connect, make_response):
        conn = connect(make_response(503, {"serviceUnavailable": {"message": "down"}}))

        with pytest.raises(ServiceUnavailable, match="down"):
            conn.list_instances()

    def test_create_instance(self, connect, make_response, mock_http, sample_instance, base_url):
        conn = connect(
            make_response(200, {"instance": {"id": INSTANCE_ID}}),
            make_response(200, {"instance": sample_instance}),
        )

        inst = conn.create_instance(
            flavor_ref=f"{base_url}/flavors/1",
            name="test_instance",
            volume=2,
            databases=[{"name": "testdb"}],
        )

        method, url, body = sent(mock_http, 1)
        assert (method, url) == ("POST", f"{base_url}/instances")
        assert body == {"instance": {
            "flavorRef": f"{base_url}/flavors/1",
            "name": "test_instance",
            "volume": {"size": 2},
            "databases": [{"name": "testdb"}],
        }}
        assert isinstance(inst, Instance)
        assert inst.id == INSTANCE_ID
        assert sent(mock_http)[:2] == ("GET", f"{base_url}/instances/{INSTANCE_ID}")

    @pytest.mark.parametrize("kwargs, missing", [
        ({"name": "n", "volume": 1}, "flavor"),
        ({"flavor_ref": "f", "volume": 1}, "name"),
        ({"flavor_ref": "f", "name": "n"}, "size"),
    ])
    def test_create_instance_missing_arguments(self, connect, mock_http, kwargs, missing):
        conn = connect()

        with pytest.raises(MissingArgument, match=missing):
            conn.create_instance(**kwargs)
        assert mock_http.request.call_count == 1

    def test_get_flavor(self, connect, make_response, mock_http, sample_flavors, base_url):
        conn = connect(make_response(200, {"flavor": sample_flavors[1]}))

        flavor = conn.get_flavor(2)

        assert isinstance(flavor, Flavor)
        assert (flavor.name, flavor.ram, flavor.vcpus) == ("m1.small", 1024, 2)
        assert sent(mock_http)[1] == f"{base_url}/flavors/2"


class TestInstance:

    @pytest.fixture
    def instance(self, connect, make_response, sample_instance):
        def _instance(*responses):
            conn = connect(make_response(200, {"instance": sample_instance}), *responses)
            return conn.get_instance(INSTANCE_ID)
        return _instance

    def test_populate(self, instance):
        inst = instance()

        assert inst.name == "test_instance"
        assert inst.flavor_id == "1"
        assert inst.volume_size == 2
        assert inst.volume_used == 0.16
        assert inst.root_enabled is False
        assert inst.status == "ACTIVE"
        assert inst.to_dict()["hostname"] == "e09ad9a3.rackspaceclouddb.com"

    def test_not_found(self, connect, make_response):
        conn = connect(make_response(404, {"itemNotFound": {"message": "not found", "code": 404}}))

        with pytest.raises(ItemNotFound):
            conn.get_instance("nope")

    def test_enable_root(self, instance, make_response, mock_http, base_url):
        inst = instance(make_response(200, {"user": {"name": "root", "password": "pw"}}))

        assert inst.enable_root() == {"name": "root", "password": "pw"}
        assert inst.root_enabled is True
        assert sent(mock_http)[:2] == ("POST", f"{base_url}/instances/{INSTANCE_ID}/root")

    def test_is_root_enabled(self, instance, make_response):
        inst = instance(make_response(200, {"rootEnabled": True}))

        assert inst.is_root_enabled() is True

    def test_list_databases(self, instance, make_response, mock_http, base_url):
        inst = instance(make_response(200, {"databases": [{"name": "testdb"}]}))

        assert inst.list_databases() == [{"name": "testdb"}]
        assert sent(mock_http)[1] == f"{base_url}/instances/{INSTANCE_ID}/databases"

    def test_create_database(self, instance, make_response, mock_http):
        inst = instance(make_response(202, ""))

        assert inst.create_database("testdb", collate="utf8_bin") is True
        assert sent(mock_http)[2] == {"databases": [{"name": "testdb", "collate": "utf8_bin"}]}

    def test_create_database_requires_name(self, instance):
        with pytest.raises(MissingArgument):
            instance().create_database()

    def test_create_user(self, instance, make_response, mock_http, base_url):
        inst = instance(make_response(202, ""))

        inst.create_user("test", "secret", ["testdb", {"name": "other"}])

        method, url, body = sent(mock_http)
        assert (method, url) == ("POST", f"{base_url}/instances/{INSTANCE_ID}/users")
        assert body == {"users": [{
            "name": "test",
            "password": "secret",
            "databases": [{"name": "testdb"}, {"name": "other"}],
        }]}

    def test_create_user_requires_database(self, instance):
        inst = instance()
        with pytest.raises(ArgumentSyntaxError):
            inst.create_user("test", "secret", [])
        with pytest.raises(MissingArgument):
            inst.create_user("test", None, ["db"])

    def test_list_users(self, instance, make_response):
        inst = instance(make_response(200, {"users": [{"name": "test"}]}))
        assert inst.list_users() == [{"name": "test"}]

    def test_destroy_requires_202(self, instance, make_response, mock_http, base_url):
        inst = instance(make_response(202, ""))
        assert inst.destroy() is True
        assert sent(mock_http)[:2] == ("DELETE", f"{base_url}/instances/{INSTANCE_ID}")

    def test_destroy_rejects_other_success(self, instance, make_response):
        inst = instance(make_response(200, ""))
        with pytest.raises(Other):
            inst.destroy()

    def test_database_destroy_escapes_name(self, instance, make_response, mock_http, base_url):
        inst = instance(make_response(202, ""))

        db = inst.get_database("my db")
        assert isinstance(db, Database)
        db.destroy()

        assert sent(mock_http)[:2] == (
            "DELETE", f"{base_url}/instances/{INSTANCE_ID}/databases/my%20db"
        )

    def test_user_destroy(self, instance, make_response, mock_http, base_url):
        inst = instance(make_response(202, ""))

        user = inst.get_user("test")
        assert isinstance(user, User)
        user.destroy()

        assert sent(mock_http)[:2] == ("DELETE", f"{base_url}/instances/{INSTANCE_ID}/users/test")
