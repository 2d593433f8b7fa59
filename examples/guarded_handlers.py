"""Example handlers protected by aclguard."""

import asyncio

from aclguard.access import AccessControl
from aclguard.audit import AuditLogger
from aclguard.exceptions import AccessDenied
from aclguard.policy import load_policy

policy = load_policy("examples/policy.yaml")
access = AccessControl(
    policy.authenticated.build_registry(),
    policy.unauthenticated.build_registry(),
    session_key=policy.session_key,
    audit=AuditLogger(policy.logging, policy.version),
)


@access.required_access("Admin", "update")
async def update_settings(session: dict, **kwargs: str) -> dict[str, str]:
    return {"status": "updated"}


@access.required_access("Home", "read")
async def home(session: dict, **kwargs: str) -> dict[str, str]:
    return {"page": "home"}


async def main() -> None:
    admin_session: dict = {}
    access.create_session(admin_session, {"id": "alice", "roles": ["admin"]})
    print(await update_settings(admin_session))

    guest_session: dict = {}
    access.create_session(guest_session, {"id": "guest"})
    print(await home(guest_session))
    try:
        await update_settings(guest_session, url="/admin/settings")
    except AccessDenied as exc:
        print("DENY:", exc, "->", access.get_last_blocked_url(guest_session))


if __name__ == "__main__":
    asyncio.run(main())
