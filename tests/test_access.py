import json
import logging
from typing import Any

import pytest

from aclguard.access import AccessControl
from aclguard.acl import PermissionRegistry
from aclguard.audit import AuditLogger
from aclguard.exceptions import AccessDenied
from aclguard.types import ANONYMOUS, AccessDecision


def make_access(**kwargs: Any) -> AccessControl:
    authenticated = PermissionRegistry()
    authenticated.add_resource("Admin")
    authenticated.grant("admin", "Admin", "*")
    authenticated.grant("editor", "Admin", "read")
    unauthenticated = PermissionRegistry()
    unauthenticated.add_resource("Home", actions=["read"])
    unauthenticated.grant(ANONYMOUS, "Home", "read")
    return AccessControl(authenticated, unauthenticated, **kwargs)


def test_requires_registries() -> None:
    with pytest.raises(TypeError, match="authenticated_acl"):
        AccessControl(None, PermissionRegistry())  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="unauthenticated_acl"):
        AccessControl(PermissionRegistry(), {})  # type: ignore[arg-type]


def test_create_session() -> None:
    access = make_access(session_key="member")
    events: list = []
    access.add_listener("session", events.append)
    session: dict = {}
    user = {"id": "alice", "roles": ["admin"]}
    access.create_session(session, user)
    assert session["member"] is user
    assert session["member_just_logged_in"] is True
    assert events == [user]
    assert access.is_authenticated(session)


def test_no_principal_is_denied() -> None:
    access = make_access()
    assert not access.is_authenticated({})
    assert not access.is_allowed({}, "Home", "read")
    with pytest.raises(AccessDenied):
        access.check(None, "Home", "read")


def test_roles_use_authenticated_registry() -> None:
    access = make_access()
    session = {"user": {"id": "alice", "roles": ["guest", "editor"]}}
    assert access.is_allowed(session, "Admin", "read")
    assert not access.is_allowed(session, "Admin", "update")
    assert not access.is_allowed(session, "Home", "read")
    decision = access.check(session, "Admin", "read")
    assert decision == AccessDecision(
        allowed=True, resource="Admin", action="read", realm="authenticated", reason="Allowed"
    )


def test_single_role_string() -> None:
    access = make_access()
    assert access.is_allowed({"user": {"roles": "admin"}}, "Admin", "delete")


def test_no_roles_use_unauthenticated_registry() -> None:
    access = make_access()
    session = {"user": {"id": "guest"}}
    assert access.is_allowed(session, "Home", "read")
    assert not access.is_allowed(session, "Admin", "read")
    assert access.check(session, "Home", "read").realm == "unauthenticated"


def test_denial_emits_and_audits(caplog: pytest.LogCaptureFixture) -> None:
    access = make_access(audit=AuditLogger())
    denied: list[AccessDecision] = []
    access.add_listener("denied", denied.append)
    session = {"user": {"id": "alice", "roles": ["editor"]}}
    with caplog.at_level(logging.INFO, logger="aclguard.audit"):
        with pytest.raises(AccessDenied, match="Unauthorized: Admin / update") as excinfo:
            access.check(session, "Admin", "update")
    assert excinfo.value.http_status == 403
    assert denied[0].realm == "authenticated"
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["decision"] == "deny"
    assert payload["targets"] == ["editor"]
    assert payload["resource"] == "Admin"


def test_unknown_listener_event() -> None:
    access = make_access()
    with pytest.raises(ValueError):
        access.add_listener("authenticate", print)


def test_remove_listener() -> None:
    access = make_access()
    events: list = []
    access.add_listener("session", events.append)
    access.remove_listener("session", events.append)
    access.create_session({}, {"id": "alice"})
    assert events == []


@pytest.mark.asyncio
async def test_required_access_allows() -> None:
    access = make_access()

    @access.required_access("Admin", "update")
    async def update(session: dict, value: int) -> int:
        return value * 2

    assert await update({"user": {"roles": ["admin"]}}, 21) == 42


@pytest.mark.asyncio
async def test_required_access_denies_and_records_url() -> None:
    access = make_access()
    called = False

    @access.required_access("Admin", "update")
    async def update(session: dict, **kwargs: str) -> None:
        nonlocal called
        called = True

    session = {"user": {"id": "guest"}}
    with pytest.raises(AccessDenied):
        await update(session, url="/admin/settings")
    assert not called
    assert access.get_last_blocked_url(session) == "/admin/settings"


def test_required_access_rejects_sync_handlers() -> None:
    access = make_access()
    with pytest.raises(TypeError):
        access.required_access("Admin", "read")(lambda session: None)


def test_destroy() -> None:
    access = make_access()
    destroyed: list = []
    access.add_listener("destroy", destroyed.append)
    session: dict = {}
    user = {"id": "alice", "roles": ["admin"]}
    access.create_session(session, user)
    access.set_blocked_request(session, "/admin")
    access.destroy(session)
    assert destroyed == [user]
    assert session == {}
    assert access.get_last_blocked_url(session) is None
    assert not access.is_authenticated(session)


@pytest.mark.asyncio
async def test_required_access_route_failure() -> None:
    calls: list[tuple] = []

    def default(session: dict, resource: str, action: str, exc: AccessDenied) -> str:
        return "default"

    async def on_denied(session: dict, resource: str, action: str, exc: AccessDenied) -> dict[str, str]:
        calls.append((resource, action, exc.http_status))
        return {"redirect": "/login"}

    access = make_access(default_failure=default)

    @access.required_access("Admin", "update", failure=on_denied)
    async def update(session: dict, **kwargs: str) -> str:
        return "updated"

    session = {"user": {"id": "guest"}}
    assert await update(session, url="/admin") == {"redirect": "/login"}
    assert calls == [("Admin", "update", 403)]
    assert access.get_last_blocked_url(session) == "/admin"
    assert await update({"user": {"roles": ["admin"]}}) == "updated"


@pytest.mark.asyncio
async def test_required_access_default_failure() -> None:
    seen: list[AccessDenied] = []

    def default(session: dict, resource: str, action: str, exc: AccessDenied) -> None:
        seen.append(exc)

    access = make_access(default_failure=default)

    @access.required_access("Admin", "delete")
    async def delete(session: dict) -> str:
        return "deleted"

    assert await delete({"user": {"roles": ["editor"]}}) is None
    assert str(seen[0]) == "Unauthorized: Admin / delete"
