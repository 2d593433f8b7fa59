"""Policy loading and validation for aclguard."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .acl import PermissionRegistry
from .exceptions import BadPolicy
from .types import WILDCARD


class ResourceSettings(BaseModel):
    name: str
    description: str | None = None
    actions: list[str] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value:
            raise ValueError("resource name must not be empty")
        return value


class GrantSettings(BaseModel):
    target: str
    resource: str
    action: str


class RealmPolicy(BaseModel):
    resources: list[ResourceSettings] = Field(default_factory=list)
    grants: list[GrantSettings] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_grants(self) -> "RealmPolicy":
        names: set[str] = set()
        for resource in self.resources:
            if resource.name in names:
                raise ValueError(f"duplicate resource: {resource.name}")
            names.add(resource.name)
        for grant in self.grants:
            if grant.resource != WILDCARD and grant.resource not in names:
                msg = f"grant for {grant.target!r} references unknown resource {grant.resource!r}"
                raise ValueError(msg)
        return self

    def build_registry(self, logger: logging.Logger | None = None) -> PermissionRegistry:
        """Create a registry holding this realm's resources and grants."""

        registry = PermissionRegistry(logger=logger)
        for resource in self.resources:
            registry.add_resource(
                resource.name,
                actions=resource.actions,
                description=resource.description,
            )
        for grant in self.grants:
            registry.grant(grant.target, grant.resource, grant.action)
        return registry


class LoggingSettings(BaseModel):
    level: str = "INFO"
    output: Literal["stderr", "file"] = "stderr"
    file_path: str = "aclguard.log"
    rotate_bytes: int = 10_485_760

    @field_validator("rotate_bytes")
    @classmethod
    def validate_rotate_bytes(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("rotate_bytes must be positive")
        return value


class Policy(BaseModel):
    version: int = 1
    session_key: str = "user"
    authenticated: RealmPolicy = Field(default_factory=RealmPolicy)
    unauthenticated: RealmPolicy = Field(default_factory=RealmPolicy)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Policy":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise BadPolicy(message=str(exc)) from exc

    def realm(self, name: str) -> RealmPolicy:
        if name == "authenticated":
            return self.authenticated
        if name == "unauthenticated":
            return self.unauthenticated
        raise BadPolicy(message=f"Unknown realm: {name}")


def load_policy(path: str | Path) -> Policy:
    """Load a policy from a YAML file."""

    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise BadPolicy(message=f"Failed to read policy: {exc}") from exc
    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - YAML parse errors
        raise BadPolicy(message=f"Failed to parse policy YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise BadPolicy(message="Policy must be a mapping")
    return Policy.from_dict(data)
