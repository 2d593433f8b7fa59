"""Structured audit logging."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from .policy import LoggingSettings


class AuditLogger:
    """Writes access decisions and session events as JSON lines."""

    def __init__(self, settings: LoggingSettings | None = None, policy_version: int = 1) -> None:
        settings = settings or LoggingSettings()
        self.logger = logging.getLogger("aclguard.audit")
        if not self.logger.handlers:
            handler: logging.Handler
            if settings.output == "file":
                handler = RotatingFileHandler(
                    settings.file_path,
                    maxBytes=settings.rotate_bytes,
                    backupCount=3,
                )
            else:
                handler = logging.StreamHandler()
            formatter = logging.Formatter("%(message)s")
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
        self.logger.setLevel(getattr(logging, settings.level.upper(), logging.INFO))
        self.policy_version = policy_version

    def log(
        self,
        *,
        event: str,
        targets: list[Any] | None = None,
        resource: Optional[str] = None,
        action: Optional[str] = None,
        realm: Optional[str] = None,
        decision: Optional[str] = None,
        level: int = logging.INFO,
    ) -> None:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "targets": targets or [],
            "resource": resource,
            "action": action,
            "realm": realm,
            "decision": decision,
            "policy_version": self.policy_version,
        }
        self.logger.log(level, json.dumps(payload, default=str))
