"""Shared data structures for aclguard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable, Optional

Target = Hashable

WILDCARD = "*"
DEFAULT_ACTIONS: tuple[str, ...] = ("create", "read", "update", "delete", WILDCARD)
ANONYMOUS = "anonymous"


@dataclass(slots=True)
class ResourceEntry:
    """A registered resource: its action lists and optional description."""

    actions: dict[str, list[Any]] = field(default_factory=dict)
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "actions": {action: list(targets) for action, targets in self.actions.items()},
        }
        if self.description:
            data["description"] = self.description
        return data


@dataclass(slots=True)
class AccessDecision:
    """Result of an access control check."""

    allowed: bool
    resource: str
    action: str
    realm: str
    reason: str
