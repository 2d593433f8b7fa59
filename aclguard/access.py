"""Session-facing access control built on two permission registries."""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, MutableMapping

from .acl import PermissionRegistry
from .audit import AuditLogger
from .exceptions import AccessDenied
from .types import ANONYMOUS, AccessDecision

Session = MutableMapping[str, Any]
Listener = Callable[..., Any]
GuardedHandler = Callable[..., Awaitable[Any]]
FailureHandler = Callable[[Any, str, str, AccessDenied], Any]

EVENTS = ("session", "destroy", "denied")


class AccessControl:
    """Chooses a realm per principal and enforces registry decisions.

    Principals carrying roles are checked against ``authenticated_acl``
    using their roles as targets. Principals without roles are checked
    against ``unauthenticated_acl`` as :data:`ANONYMOUS`.
    """

    def __init__(
        self,
        authenticated_acl: PermissionRegistry,
        unauthenticated_acl: PermissionRegistry,
        *,
        session_key: str = "user",
        audit: AuditLogger | None = None,
        default_failure: FailureHandler | None = None,
    ) -> None:
        if not isinstance(authenticated_acl, PermissionRegistry):
            raise TypeError("authenticated_acl is required and must be a PermissionRegistry")
        if not isinstance(unauthenticated_acl, PermissionRegistry):
            raise TypeError("unauthenticated_acl is required and must be a PermissionRegistry")
        self.authenticated_acl = authenticated_acl
        self.unauthenticated_acl = unauthenticated_acl
        self.session_key = session_key
        self.audit = audit
        self.default_failure = default_failure
        self.logger = logging.getLogger("aclguard.access")
        self._listeners: dict[str, list[Listener]] = {event: [] for event in EVENTS}

    @property
    def _just_logged_in_key(self) -> str:
        return f"{self.session_key}_just_logged_in"

    @property
    def _last_url_key(self) -> str:
        return f"{self.session_key}_last_url"

    def add_listener(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)

    def create_session(self, session: Session, user: MutableMapping[str, Any]) -> None:
        session[self.session_key] = user
        session[self._just_logged_in_key] = True
        self.logger.info("Session created for %s", user.get("id", ANONYMOUS))
        if self.audit is not None:
            self.audit.log(event="session", targets=list(user.get("roles") or []))
        self._emit("session", user)

    def is_authenticated(self, session: Session | None) -> bool:
        return bool(session) and session.get(self.session_key) is not None

    def _resolve(self, user: MutableMapping[str, Any]) -> tuple[str, PermissionRegistry, list[Any]]:
        roles = user.get("roles")
        if roles:
            if isinstance(roles, str):
                roles = [roles]
            return "authenticated", self.authenticated_acl, list(roles)
        return "unauthenticated", self.unauthenticated_acl, [ANONYMOUS]

    def is_allowed(self, session: Session | None, resource: str, action: str) -> bool:
        if not self.is_authenticated(session):
            return False
        _, registry, targets = self._resolve(session[self.session_key])
        return registry.allowed(targets, resource, action)

    def check(self, session: Session | None, resource: str, action: str) -> AccessDecision:
        """Return the decision for the session's principal or raise AccessDenied."""

        if not self.is_authenticated(session):
            realm, targets, allowed = "none", [], False
        else:
            realm, registry, targets = self._resolve(session[self.session_key])
            allowed = registry.allowed(targets, resource, action)
        if allowed:
            if self.audit is not None:
                self.audit.log(
                    event="access",
                    targets=targets,
                    resource=resource,
                    action=action,
                    realm=realm,
                    decision="allow",
                    level=logging.DEBUG,
                )
            return AccessDecision(allowed=True, resource=resource, action=action, realm=realm, reason="Allowed")

        self.logger.debug("Unauthorized: %s / %s", resource, action)
        if self.audit is not None:
            self.audit.log(
                event="access",
                targets=targets,
                resource=resource,
                action=action,
                realm=realm,
                decision="deny",
            )
        decision = AccessDecision(allowed=False, resource=resource, action=action, realm=realm, reason="Unauthorized")
        self._emit("denied", decision)
        raise AccessDenied(
            message=f"Unauthorized: {resource} / {action}",
            details={"resource": resource, "action": action, "realm": realm},
        )

    def required_access(self, resource: str, action: str, failure: FailureHandler | None = None):
        """Wrap an async handler whose first argument is the session.

        On denial ``failure`` (or the instance ``default_failure``) is called
        with the session, resource, action and the AccessDenied error, and its
        result, awaited if needed, is returned in place of the handler's.
        With neither set the error is raised.
        """

        def decorator(inner: Callable[..., Awaitable[Any]]) -> GuardedHandler:
            if not inspect.iscoroutinefunction(inner):
                raise TypeError("Wrapped handler must be async")

            @wraps(inner)
            async def wrapper(session: Session, *args: Any, **kwargs: Any) -> Any:
                try:
                    self.check(session, resource, action)
                except AccessDenied as exc:
                    url = kwargs.get("url")
                    if url is not None and session is not None:
                        self.set_blocked_request(session, url)
                    on_failure = failure or self.default_failure
                    if on_failure is None:
                        raise
                    result = on_failure(session, resource, action, exc)
                    if inspect.isawaitable(result):
                        result = await result
                    return result
                return await inner(session, *args, **kwargs)

            return wrapper

        return decorator

    def destroy(self, session: Session) -> None:
        user = session.get(self.session_key)
        self._emit("destroy", user)
        self.logger.info("Session destroyed")
        if self.audit is not None:
            self.audit.log(event="destroy")
        session.pop(self.session_key, None)
        session.pop(self._just_logged_in_key, None)
        session.pop(self._last_url_key, None)

    def set_blocked_request(self, session: Session, url: str) -> None:
        session[self._last_url_key] = url

    def get_last_blocked_url(self, session: Session) -> str | None:
        return session.get(self._last_url_key)
