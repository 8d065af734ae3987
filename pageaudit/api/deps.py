"""
FastAPI dependencies for configuration, the audit registry and the run driver.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from pageaudit.config import Settings, get_settings
from pageaudit.engines.audit.registry import AuditRegistry
from pageaudit.orchestration.runner import AuditRunner
from pageaudit.plugins.audits import create_default_registry


@lru_cache
def get_audit_registry() -> AuditRegistry:
    """Process-wide registry of built-in audits."""
    return create_default_registry()


AppSettings = Annotated[Settings, Depends(get_settings)]
Registry = Annotated[AuditRegistry, Depends(get_audit_registry)]


def get_runner(registry: Registry, settings: AppSettings) -> AuditRunner:
    """A run driver configured from application settings."""
    return AuditRunner.from_settings(registry, settings)


Runner = Annotated[AuditRunner, Depends(get_runner)]
