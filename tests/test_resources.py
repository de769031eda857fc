from __future__ import annotations

import json

import httpx
import pytest

from candlepin_client import BasicAuthClient, ConfigurationError

from conftest import Recorder


@pytest.fixture
def client(mock_transport: httpx.MockTransport) -> BasicAuthClient:
    client = BasicAuthClient(host="example.com", transport=mock_transport)
    client.uuid = "abc"
    return client


def body_of(request: httpx.Request) -> object:
    return json.loads(request.content)


def test_register_builds_consumer_document(client: BasicAuthClient, recorder: Recorder) -> None:
    client.register(
        name="web01",
        owner="acme",
        username="admin",
        facts={"cpu.cpu_socket(s)": "2"},
        activation_keys=["default", "rhel"],
        capabilities=["cores", "ram"],
        hypervisor_id="hv-1",
    )

    request = recorder.last
    assert request.method == "POST"
    assert request.url.path == "/candlepin/consumers"
    assert dict(request.url.params) == {"username": "admin", "owner": "acme", "activation_keys": "default,rhel"}
    assert body_of(request) == {
        "type": {"label": "system"},
        "installedProducts": [],
        "name": "web01",
        "facts": {"cpu.cpu_socket(s)": "2"},
        "uuid": "abc",
        "hypervisorId": {"hypervisorId": "hv-1"},
        "capabilities": [{"name": "cores"}, {"name": "ram"}],
    }


def test_register_into_environment(client: BasicAuthClient, recorder: Recorder) -> None:
    client.register(name="web01", environment="dev", type="hypervisor")

    request = recorder.last
    assert request.url.path == "/candlepin/environments/dev/consumers"
    assert dict(request.url.params) == {}
    body = body_of(request)
    assert body["type"] == {"label": "hypervisor"}
    assert "hypervisorId" not in body
    assert "capabilities" not in body


def test_register_rejects_unknown_option(client: BasicAuthClient, recorder: Recorder) -> None:
    with pytest.raises(ConfigurationError, match="activation_key"):
        client.register(name="web01", activation_key="default")
    assert recorder.requests == []


def test_update_consumer_camelizes_body(client: BasicAuthClient, recorder: Recorder) -> None:
    client.update_consumer(service_level="Premium", guest_ids=["g1"], capabilities=["cores"], autoheal=False)

    request = recorder.last
    assert request.method == "PUT"
    assert request.url.path == "/candlepin/consumers/abc"
    assert body_of(request) == {
        "uuid": "abc",
        "facts": {},
        "installedProducts": [],
        "hypervisorId": None,
        "guestIds": [{"guestId": "g1"}],
        "autoheal": False,
        "serviceLevel": "Premium",
        "capabilities": [{"name": "cores"}],
    }


def test_guest_id_operations(client: BasicAuthClient, recorder: Recorder) -> None:
    client.update_all_guest_ids(guest_ids=["g1", "g2"])
    client.update_guest_id(guest_id="g1")
    client.get_guest_id(uuid="other", guest_id="g1")
    client.delete_guest_id(guest_id="g1", unregister=True)

    put_all, put_one, get_one, delete_one = recorder.requests
    assert put_all.url.path == "/candlepin/consumers/abc/guestids"
    assert body_of(put_all) == [{"guestId": "g1"}, {"guestId": "g2"}]
    assert put_one.url.path == "/candlepin/consumers/abc/guestids/g1"
    assert body_of(put_one) == {"guestId": "g1"}
    assert get_one.url.path == "/candlepin/consumers/other/guestids/g1"
    assert delete_one.method == "DELETE"
    assert dict(delete_one.url.params) == {"unregister": "true"}


def test_hypervisor_check_in(client: BasicAuthClient, recorder: Recorder) -> None:
    client.post_hypervisor_check_in(owner="acme", host_guest_mapping={"host1": ["g1"]}, create_missing=True)

    request = recorder.last
    assert request.url.path == "/candlepin/hypervisors"
    assert dict(request.url.params) == {"owner": "acme", "create_missing": "true"}
    assert body_of(request) == {"host1": ["g1"]}


def test_deleted_consumers_and_deletion_record(client: BasicAuthClient, recorder: Recorder) -> None:
    client.get_deleted_consumers(date="2024-01-01")
    client.delete_deletion_record("gone")

    listing, deletion = recorder.requests
    assert listing.url.path == "/candlepin/deleted_consumers"
    assert dict(listing.url.params) == {"date": "2024-01-01"}
    assert deletion.url.path == "/candlepin/consumers/gone/deletionrecord"


def test_entitlement_updates(client: BasicAuthClient, recorder: Recorder) -> None:
    client.update_entitlement(id="ent1", quantity=3)
    client.update_entitlement_consumer(id="ent1", to_consumer="def")

    update, move = recorder.requests
    assert update.url.path == "/candlepin/entitlements/ent1"
    assert body_of(update) == {"id": "ent1", "quantity": 3}
    assert body_of(move) == {"to_consumer": "def", "quantity": 1}


def test_user_operations(client: BasicAuthClient, recorder: Recorder) -> None:
    client.create_user(username="bob", password="pw", super_admin=True)
    client.update_user(username="bob", password="new")
    client.get_user_roles("bob")
    client.delete_user("bob")
    client.get_all_users()

    create, update, roles, delete, listing = recorder.requests
    assert create.url.path == "/candlepin/users"
    assert body_of(create) == {"username": "bob", "password": "pw", "superAdmin": True}
    assert update.method == "PUT"
    assert update.url.path == "/candlepin/users/bob"
    assert body_of(update) == {"username": "bob", "password": "new", "superAdmin": False}
    assert roles.url.path == "/candlepin/users/bob/roles"
    assert delete.method == "DELETE"
    assert listing.url.path == "/candlepin/users"


def test_role_operations(client: BasicAuthClient, recorder: Recorder) -> None:
    client.create_role(name="admins")
    client.add_role_user(role_id="r1", username="bob")
    client.add_role_permission(role_id="r1", owner={"key": "acme"})
    client.delete_role_permission(role_id="r1", permission_id="p1")
    client.get_role("r1")

    create, add_user, add_permission, delete_permission, get_role = recorder.requests
    assert body_of(create) == {"name": "admins", "permissions": []}
    assert add_user.url.path == "/candlepin/roles/r1/users/bob"
    assert add_user.content == b""
    assert add_permission.url.path == "/candlepin/roles/r1/permissions"
    assert body_of(add_permission) == {"owner": {"key": "acme"}, "access": "READ_ONLY"}
    assert delete_permission.url.path == "/candlepin/roles/r1/permissions/p1"
    assert get_role.method == "GET"


def test_path_segments_are_quoted(client: BasicAuthClient, recorder: Recorder) -> None:
    client.get_user("bob/../admin")
    assert recorder.last.url.raw_path == b"/candlepin/users/bob%2F..%2Fadmin"


def test_responses_are_returned_decoded(recorder: Recorder, client: BasicAuthClient) -> None:
    recorder.responder = lambda request: httpx.Response(200, json=[{"key": "acme"}])
    assert client.get_all_owners() == [{"key": "acme"}]


def test_consumer_operations_need_a_uuid(mock_transport: httpx.MockTransport, recorder: Recorder) -> None:
    client = BasicAuthClient(host="example.com", transport=mock_transport)

    with pytest.raises(ConfigurationError, match="identifier is required"):
        client.get_all_guest_ids()
    with pytest.raises(ConfigurationError, match="identifier is required"):
        client.get_guest_id(uuid="abc")

    assert recorder.requests == []
