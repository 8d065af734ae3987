"""
Audit Registry - the open set of pluggable audits.

An audit is any object with a `meta` (AuditMeta) and an `audit(artifacts, context)`
method returning an AuditProduct (or a dict shaped like one), directly or as an
awaitable. `default_options` is optional. The pipeline depends on this contract
only, never on concrete audit classes.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    Any,
    Awaitable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

from pageaudit.kernel.context import AuditContext
from pageaudit.kernel.errors import UnknownAuditError
from pageaudit.schemas.audit import AuditMeta, AuditProduct
from pageaudit.schemas.run import AuditSelection, RunSettings

ProductLike = Union[AuditProduct, Mapping[str, Any]]


@runtime_checkable
class Audit(Protocol):
    """Capability contract every audit satisfies."""

    meta: AuditMeta

    def audit(
        self,
        artifacts: Mapping[str, Any],
        context: AuditContext,
    ) -> Union[ProductLike, Awaitable[ProductLike]]:
        ...


def _empty_options() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class AuditDefinition:
    """An audit scheduled for a run, with its configured options."""

    implementation: Audit
    options: Mapping[str, Any] = field(default_factory=_empty_options)

    @property
    def meta(self) -> AuditMeta:
        return self.implementation.meta

    @property
    def id(self) -> str:
        return self.implementation.meta.id

    def merged_options(self) -> Dict[str, Any]:
        """Audit defaults with configured options layered on top."""
        merged = dict(getattr(self.implementation, "default_options", None) or {})
        merged.update(self.options)
        return merged


class AuditRegistry:
    """
    Registered audits, keyed by id, in registration order.

    Usage:
        registry = AuditRegistry()
        registry.register(DomSizeAudit())
        definitions = registry.definitions()
    """

    def __init__(self, audits: Iterable[Audit] = ()):
        self._audits: Dict[str, Audit] = {}
        for audit in audits:
            self.register(audit)

    def register(self, audit: Audit) -> Audit:
        """Add an audit. Accepts an instance or a class with a no-arg constructor."""
        if isinstance(audit, type):
            audit = audit()
        meta = getattr(audit, "meta", None)
        if not isinstance(meta, AuditMeta):
            raise TypeError(f"{type(audit).__name__} has no AuditMeta `meta` attribute")
        if not callable(getattr(audit, "audit", None)):
            raise TypeError(f"{type(audit).__name__} has no audit() method")
        if meta.id in self._audits:
            raise ValueError(f"Audit already registered: {meta.id}")
        self._audits[meta.id] = audit
        return audit

    def get(self, audit_id: str) -> Audit:
        try:
            return self._audits[audit_id]
        except KeyError:
            raise UnknownAuditError(audit_id) from None

    def ids(self) -> List[str]:
        return list(self._audits)

    def metas(self) -> List[AuditMeta]:
        return [audit.meta for audit in self._audits.values()]

    def definitions(
        self,
        selection: Optional[Sequence[AuditSelection]] = None,
    ) -> List[AuditDefinition]:
        """
        Definitions for a run.

        With no selection every registered audit runs with its default options,
        in registration order. Otherwise the selection's order is the run order.

        Raises:
            UnknownAuditError: a selected id is not registered
        """
        if selection is None:
            return [AuditDefinition(audit) for audit in self._audits.values()]
        return [
            AuditDefinition(self.get(item.id), MappingProxyType(dict(item.options)))
            for item in selection
        ]

    def __contains__(self, audit_id: object) -> bool:
        return audit_id in self._audits

    def __len__(self) -> int:
        return len(self._audits)


def filter_definitions(
    definitions: Sequence[AuditDefinition],
    settings: RunSettings,
) -> List[AuditDefinition]:
    """
    Drop audits the run settings exclude: only/skip lists and gather modes the
    audit does not support.
    """
    only = set(settings.only_audits) if settings.only_audits is not None else None
    skip = set(settings.skip_audits or ())
    return [
        definition
        for definition in definitions
        if (only is None or definition.id in only)
        and definition.id not in skip
        and definition.meta.supports(settings.gather_mode)
    ]
