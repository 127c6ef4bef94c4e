from __future__ import annotations

from typing import Protocol

from .model import AuditEvent


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None:
        raise NotImplementedError
