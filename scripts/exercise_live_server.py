#!/usr/bin/env python3
"""Walk the resource operations against a running Candlepin server.

Expects a development deployment with the stock ``admin``/``admin`` account
and the ``admin`` owner. Host and port come from CANDLEPIN_* variables.
"""

from __future__ import annotations

import sys
import uuid

from candlepin_client import (
    BasicAuthClient,
    CandlepinError,
    CertificateClient,
    ServerError,
    configure_logging,
    options_from_env,
)

OWNER = "admin"

passed: list[str] = []
failed: list[tuple[str, str]] = []
skipped: list[tuple[str, str]] = []


def ok(name: str, result: object = None) -> None:
    tag = type(result).__name__ if result is not None else "None"
    print(f"  PASS  {name}  -> {tag}")
    passed.append(name)


def fail(name: str, err: Exception) -> None:
    msg = str(err)[:200]
    print(f"  FAIL  {name}  -> {msg}")
    failed.append((name, msg))


def skip(name: str, reason: str) -> None:
    print(f"  SKIP  {name}  ({reason})")
    skipped.append((name, reason))


def run(name: str, fn, *, allowed: set[int] | None = None):
    """Run fn(), record pass/fail/expected-error."""
    try:
        result = fn()
        ok(name, result)
        return result
    except ServerError as e:
        if allowed and e.status_code in allowed:
            ok(name, e)
        else:
            fail(name, e)
        return None
    except CandlepinError as e:
        fail(name, e)
        return None


def main() -> None:
    configure_logging("WARNING")
    options = options_from_env()
    admin = BasicAuthClient(**options)
    suffix = uuid.uuid4().hex[:8]

    print("\n=== Owners / users ===")

    run("get_all_owners", admin.get_all_owners)
    username = f"sdk-user-{suffix}"
    run("create_user", lambda: admin.create_user(username=username, password="redhat"))
    run("get_user", lambda: admin.get_user(username))
    run("update_user", lambda: admin.update_user(username=username, password="changed"))
    run("get_user_roles", lambda: admin.get_user_roles(username))
    run("get_user_owners", lambda: admin.get_user_owners(username))

    print("\n=== Roles ===")

    role = run("create_role", lambda: admin.create_role(name=f"sdk-role-{suffix}"))
    role_id = role.get("id") if isinstance(role, dict) else None
    if role_id:
        run("get_role", lambda: admin.get_role(role_id))
        run("add_role_user", lambda: admin.add_role_user(role_id=role_id, username=username))
        run("add_role_permission", lambda: admin.add_role_permission(role_id=role_id, owner={"key": OWNER}))
        run("delete_role_user", lambda: admin.delete_role_user(role_id=role_id, username=username))
        run("delete_role", lambda: admin.delete_role(role_id))
    else:
        for m in ("get_role", "add_role_user", "add_role_permission", "delete_role_user", "delete_role"):
            skip(m, "no role created")

    print("\n=== Consumers ===")

    consumer = run(
        "register",
        lambda: admin.register(name=f"sdk-system-{suffix}", owner=OWNER, username="admin", facts={"uname.machine": "x86_64"}),
    )
    if isinstance(consumer, dict) and consumer.get("idCert"):
        system = CertificateClient.from_registration(consumer, **options)
        run("update_consumer", lambda: system.update_consumer(autoheal=False))
        run("update_all_guest_ids", lambda: system.update_all_guest_ids(guest_ids=["guest-1"]))
        run("get_all_guest_ids", system.get_all_guest_ids)
        run("get_guest_id", lambda: system.get_guest_id(guest_id="guest-1"), allowed={404})
        run("delete_guest_id", lambda: system.delete_guest_id(guest_id="guest-1"), allowed={404})
        run("delete consumer", lambda: admin.delete(f"/consumers/{system.uuid}"))
        run("get_deleted_consumers", admin.get_deleted_consumers)
        run("delete_deletion_record", lambda: admin.delete_deletion_record(system.uuid), allowed={404})
        system.close()
    else:
        for m in ("update_consumer", "update_all_guest_ids", "get_all_guest_ids", "get_guest_id", "delete_guest_id"):
            skip(m, "no consumer registered")

    print("\n=== Hypervisors ===")

    run(
        "post_hypervisor_check_in",
        lambda: admin.post_hypervisor_check_in(owner=OWNER, host_guest_mapping={f"host-{suffix}": []}, create_missing=True),
    )

    print("\n=== Cleanup ===")

    run("delete_user", lambda: admin.delete_user(username), allowed={404})
    admin.close()

    print("\n" + "=" * 60)
    print(f"PASSED: {len(passed)}   FAILED: {len(failed)}   SKIPPED: {len(skipped)}")
    if failed:
        print("\nFailed methods:")
        for name, err in failed:
            print(f"  - {name}: {err}")
    if skipped:
        print("\nSkipped methods:")
        for name, reason in skipped:
            print(f"  - {name}: {reason}")
    print("=" * 60)

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
