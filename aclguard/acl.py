"""Resource Access Control Lists."""

from __future__ import annotations

import logging
import threading
from typing import AbstractSet, Any, Sequence

from .exceptions import InvalidActionList, UnknownAction, UnknownResource
from .types import DEFAULT_ACTIONS, WILDCARD, ResourceEntry, Target


def _as_targets(targets: Any) -> list[Any]:
    if isinstance(targets, (list, tuple, set, frozenset)):
        return list(targets)
    return [targets]


def _same(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


def _index(granted: Sequence[Any], target: Any) -> int:
    for idx, each in enumerate(granted):
        if _same(each, target):
            return idx
    return -1


class PermissionRegistry:
    """In-memory ACL mapping resource -> action -> granted targets.

    The registry always holds a root ``*`` resource with a single ``*``
    action. Targets granted there are allowed every action on every
    resource, including resources that were never added.

    Mutations raise on unknown resources or actions; :meth:`allowed` never
    raises and reports anything it cannot match as ``False``.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("aclguard.acl")
        self._lock = threading.RLock()
        self._resources: dict[str, ResourceEntry] = {
            WILDCARD: ResourceEntry(actions={WILDCARD: []}),
        }

    @classmethod
    def create(cls, *, logger: logging.Logger | None = None) -> "PermissionRegistry":
        return cls(logger=logger)

    def add_resource(
        self,
        name: str,
        actions: Sequence[str] | None = None,
        description: str | None = None,
    ) -> None:
        """Register a resource. Re-registering an existing name does nothing.

        The action list defaults to create, read, update, delete and ``*``.
        """

        with self._lock:
            if name in self._resources:
                self.logger.debug("Resource '%s' already added", name)
                return
            if actions is None:
                actions = DEFAULT_ACTIONS
            if not isinstance(actions, (list, tuple)):
                raise InvalidActionList(
                    message=(
                        "actions is expected to be a list of action names that can be "
                        f"performed on the resource '{name}'"
                    ),
                    details={"resource": name, "actions": repr(actions)},
                )
            entry = ResourceEntry(actions={action: [] for action in actions})
            if description:
                entry.description = description
            self.logger.info("Adding resource '%s' to access control list", name)
            self._resources[name] = entry

    def _entry(self, resource: str) -> ResourceEntry:
        entry = self._resources.get(resource)
        if entry is None:
            raise UnknownResource(
                message=f"Unknown resource: {resource}",
                details={"resource": resource},
            )
        return entry

    def grant(self, target: Target, resource: str, action: str) -> None:
        """Grant ``target`` permission to perform ``action`` on ``resource``.

        Actions missing from the resource are created on demand.
        """

        with self._lock:
            entry = self._entry(resource)
            granted = entry.actions.get(action)
            if granted is None:
                entry.actions[action] = [target]
            elif _index(granted, target) == -1:
                granted.append(target)

    def revoke(self, target: Target, resource: str, action: str) -> None:
        with self._lock:
            entry = self._entry(resource)
            granted = entry.actions.get(action)
            if granted is None:
                raise UnknownAction(
                    message=f"Unknown action: {action}",
                    details={"resource": resource, "action": action},
                )
            idx = _index(granted, target)
            if idx != -1:
                del granted[idx]

    def clear_grants(self) -> None:
        """Empty every grant list, the root wildcard included. Keys are kept."""

        with self._lock:
            for entry in self._resources.values():
                for action in entry.actions:
                    entry.actions[action] = []

    def _target_allowed(self, target: Target, resource: str, action: str) -> bool:
        entry = self._resources.get(resource)
        if entry is None:
            return False
        granted = entry.actions.get(action)
        if granted is None:
            return False
        return _index(granted, target) != -1 or _index(entry.actions.get(WILDCARD, ()), target) != -1

    def allowed(self, targets: Target | Sequence[Target] | AbstractSet[Target], resource: str, action: str) -> bool:
        """Return True if any of ``targets`` may perform ``action`` on ``resource``."""

        with self._lock:
            superusers = self._resources[WILDCARD].actions[WILDCARD]
            for target in _as_targets(targets):
                if _index(superusers, target) != -1:
                    return True
                if self._target_allowed(target, resource, action):
                    return True
            return False

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._resources

    def resource_names(self) -> list[str]:
        with self._lock:
            return list(self._resources)

    def actions(self, name: str) -> list[str]:
        with self._lock:
            return list(self._entry(name).actions)

    def describe(self, name: str) -> str | None:
        with self._lock:
            return self._entry(name).description

    def targets(self, name: str, action: str) -> list[Any]:
        with self._lock:
            granted = self._entry(name).actions.get(action)
            if granted is None:
                raise UnknownAction(
                    message=f"Unknown action: {action}",
                    details={"resource": name, "action": action},
                )
            return list(granted)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Return a plain-dict copy of the whole registry."""

        with self._lock:
            return {name: entry.to_dict() for name, entry in self._resources.items()}
