"""Orchestration layer - run driver and per-audit state machine."""

from pageaudit.orchestration.runner import AuditRunner
from pageaudit.orchestration.state_machine import AuditState, AuditStateTracker

__all__ = [
    "AuditRunner",
    "AuditState",
    "AuditStateTracker",
]
