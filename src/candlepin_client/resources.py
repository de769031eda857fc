"""REST operations grouped by server resource.

Conventions:

* Operations taking one parameter use a plain argument; operations taking more
  use keyword options checked against their declared defaults, so a misspelt
  option fails before anything is sent.
* GET operations start with ``get_``, DELETE with ``delete_``, POST with
  ``create_``, ``add_`` or ``post_`` and PUT with ``update_``.
* Consumer operations default ``uuid`` to the client's own ``uuid``.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Mapping
from urllib.parse import quote

from .exceptions import ConfigurationError
from .options import camelize_keys, merge_defaults, select_subset


def _segment(value: Any) -> str:
    if value is None:
        raise ConfigurationError("a path identifier is required; pass it or set the client uuid")
    return quote(str(value), safe="")


class _Resource:
    uuid: str | None = None

    # Provided by the client the resource is composed into.
    get: Callable[..., Any]
    post: Callable[..., Any]
    put: Callable[..., Any]
    delete: Callable[..., Any]


class ConsumerResource(_Resource):
    def register(self, **options: Any) -> Any:
        defaults = {
            "name": None,
            "type": "system",
            "uuid": self.uuid,
            "facts": {},
            "username": None,
            "owner": None,
            "activation_keys": [],
            "installed_products": [],
            "environment": None,
            "capabilities": [],
            "hypervisor_id": None,
        }
        opts = merge_defaults(options, defaults)

        def add_derived(subset: dict[Hashable, Any], source: Mapping[Hashable, Any]) -> None:
            if source["hypervisor_id"]:
                subset["hypervisorId"] = {"hypervisorId": source["hypervisor_id"]}
            if source["capabilities"]:
                subset["capabilities"] = [{"name": name} for name in source["capabilities"]]

        consumer = {
            "type": {"label": opts["type"]},
            "installedProducts": opts["installed_products"],
        }
        consumer.update(select_subset(opts, "name", "facts", "uuid", hook=add_derived))

        if opts["environment"] is None:
            path = "/consumers"
        else:
            path = f"/environments/{_segment(opts['environment'])}/consumers"

        query = select_subset(opts, "username", "owner")
        keys = ",".join(opts["activation_keys"])
        if keys:
            query["activation_keys"] = keys

        return self.post(path, consumer, query=query)

    def update_consumer(self, **options: Any) -> Any:
        defaults = {
            "uuid": self.uuid,
            "facts": {},
            "installed_products": [],
            "hypervisor_id": None,
            "guest_ids": [],
            "autoheal": True,
            "service_level": None,
            "capabilities": [],
        }
        opts = merge_defaults(options, defaults)

        body = dict(opts)
        body["capabilities"] = [{"name": name} for name in opts["capabilities"]]
        body["guest_ids"] = [{"guestId": guest_id} for guest_id in opts["guest_ids"]]

        return self.put(f"/consumers/{_segment(opts['uuid'])}", camelize_keys(body))

    def delete_deletion_record(self, deleted_uuid: str) -> Any:
        return self.delete(f"/consumers/{_segment(deleted_uuid)}/deletionrecord")

    def update_all_guest_ids(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"uuid": self.uuid, "guest_ids": []})
        body = [{"guestId": guest_id} for guest_id in opts["guest_ids"]]
        return self.put(f"/consumers/{_segment(opts['uuid'])}/guestids", body)

    def update_guest_id(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"uuid": self.uuid, "guest_id": None})
        path = f"/consumers/{_segment(opts['uuid'])}/guestids/{_segment(opts['guest_id'])}"
        return self.put(path, camelize_keys(opts, "guest_id"))

    def get_all_guest_ids(self, uuid: str | None = None) -> Any:
        return self.get(f"/consumers/{_segment(uuid or self.uuid)}/guestids")

    def get_guest_id(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"uuid": self.uuid, "guest_id": None})
        return self.get(f"/consumers/{_segment(opts['uuid'])}/guestids/{_segment(opts['guest_id'])}")

    def delete_guest_id(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"uuid": self.uuid, "guest_id": None, "unregister": False})
        path = f"/consumers/{_segment(opts['uuid'])}/guestids/{_segment(opts['guest_id'])}"
        return self.delete(path, query=select_subset(opts, "unregister"))


class HypervisorResource(_Resource):
    def post_hypervisor_check_in(self, **options: Any) -> Any:
        defaults = {
            "owner": None,
            "host_guest_mapping": {},
            "create_missing": None,
        }
        opts = merge_defaults(options, defaults)
        return self.post(
            "/hypervisors",
            opts["host_guest_mapping"],
            query=select_subset(opts, "owner", "create_missing"),
        )


class DeletedConsumerResource(_Resource):
    def get_deleted_consumers(self, date: str | None = None) -> Any:
        return self.get("/deleted_consumers", query={"date": date})


class EntitlementResource(_Resource):
    def update_entitlement(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"id": None, "quantity": 1})
        return self.put(f"/entitlements/{_segment(opts['id'])}", opts)

    def update_entitlement_consumer(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"id": None, "to_consumer": None, "quantity": 1})
        return self.put(
            f"/entitlements/{_segment(opts['id'])}",
            select_subset(opts, "to_consumer", "quantity"),
        )


class UserResource(_Resource):
    user_defaults = {
        "username": None,
        "password": None,
        "super_admin": False,
    }

    def create_user(self, **options: Any) -> Any:
        opts = merge_defaults(options, self.user_defaults)
        return self.post("/users", camelize_keys(opts))

    def update_user(self, **options: Any) -> Any:
        opts = merge_defaults(options, self.user_defaults)
        return self.put(f"/users/{_segment(opts['username'])}", camelize_keys(opts))

    def get_user(self, username: str) -> Any:
        return self.get(f"/users/{_segment(username)}")

    def get_user_roles(self, username: str) -> Any:
        return self.get(f"/users/{_segment(username)}/roles")

    def get_user_owners(self, username: str) -> Any:
        return self.get(f"/users/{_segment(username)}/owners")

    def delete_user(self, username: str) -> Any:
        return self.delete(f"/users/{_segment(username)}")

    def get_all_users(self) -> Any:
        return self.get("/users")


class RoleResource(_Resource):
    def create_role(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"name": None, "permissions": []})
        return self.post("/roles", opts)

    def update_role(self, **options: Any) -> Any:
        defaults = {
            "role_id": None,
            "users": [],
            "permissions": [],
            "name": None,
        }
        opts = merge_defaults(options, defaults)
        return self.put(f"/roles/{_segment(opts['role_id'])}", opts)

    def get_role(self, role_id: str) -> Any:
        return self.get(f"/roles/{_segment(role_id)}")

    def delete_role(self, role_id: str) -> Any:
        return self.delete(f"/roles/{_segment(role_id)}")

    def add_role_user(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"role_id": None, "username": None})
        return self.post(f"/roles/{_segment(opts['role_id'])}/users/{_segment(opts['username'])}")

    def delete_role_user(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"role_id": None, "username": None})
        return self.delete(f"/roles/{_segment(opts['role_id'])}/users/{_segment(opts['username'])}")

    def add_role_permission(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"role_id": None, "owner": None, "access": "READ_ONLY"})
        permission = select_subset(opts, "owner", "access")
        return self.post(f"/roles/{_segment(opts['role_id'])}/permissions", permission)

    def delete_role_permission(self, **options: Any) -> Any:
        opts = merge_defaults(options, {"role_id": None, "permission_id": None})
        return self.delete(
            f"/roles/{_segment(opts['role_id'])}/permissions/{_segment(opts['permission_id'])}"
        )


class OwnerResource(_Resource):
    def get_all_owners(self) -> Any:
        return self.get("/owners")


class CandlepinAPI(
    ConsumerResource,
    HypervisorResource,
    DeletedConsumerResource,
    EntitlementResource,
    UserResource,
    RoleResource,
    OwnerResource,
):
    """Every resource operation, for composition into a client."""
