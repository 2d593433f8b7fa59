"""aclguard package providing an in-memory access control list."""

from .acl import PermissionRegistry
from .access import AccessControl
from .policy import Policy, load_policy
from .exceptions import AccessDenied, BadPolicy, InvalidActionList, NotFound, UnknownAction, UnknownResource

__all__ = [
    "PermissionRegistry",
    "AccessControl",
    "Policy",
    "load_policy",
    "AccessDenied",
    "BadPolicy",
    "InvalidActionList",
    "NotFound",
    "UnknownAction",
    "UnknownResource",
]
