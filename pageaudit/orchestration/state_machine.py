"""
State machine for audit execution within a run.

Every scheduled audit starts PENDING and moves exactly once to a terminal
state. There are no retries, so terminal states have no outgoing transitions.
"""

from enum import Enum
from typing import Dict, Iterable, List, Set

from pageaudit.logging_config import get_logger
from pageaudit.schemas.audit import AuditResult

logger = get_logger(__name__)


class AuditState(str, Enum):
    """Lifecycle of one audit in one run."""
    PENDING = "pending"
    SCORED = "scored"
    ERROR = "error"
    NOT_APPLICABLE = "not_applicable"


TERMINAL_STATES = frozenset({AuditState.SCORED, AuditState.ERROR, AuditState.NOT_APPLICABLE})

# Valid transitions: from_state -> allowed target states
_TRANSITIONS: Dict[AuditState, Set[AuditState]] = {
    AuditState.PENDING: set(TERMINAL_STATES),
}


def valid_transitions(from_state: AuditState) -> List[AuditState]:
    """Return list of valid target states from given state."""
    return sorted(_TRANSITIONS.get(from_state, set()), key=lambda s: s.value)


def can_transition(from_state: AuditState, to_state: AuditState) -> bool:
    return to_state in _TRANSITIONS.get(from_state, set())


def state_for_result(result: AuditResult) -> AuditState:
    """Terminal state a result represents. Informative and manual results count as scored."""
    if result.is_error:
        return AuditState.ERROR
    if result.is_not_applicable:
        return AuditState.NOT_APPLICABLE
    return AuditState.SCORED


class AuditStateTracker:
    """Tracks the state of every audit scheduled in one run."""

    def __init__(self, audit_ids: Iterable[str]):
        self._states: Dict[str, AuditState] = {
            audit_id: AuditState.PENDING for audit_id in audit_ids
        }

    def state(self, audit_id: str) -> AuditState:
        return self._states[audit_id]

    def transition(self, audit_id: str, to_state: AuditState) -> None:
        """
        Raises:
            KeyError: audit was never scheduled
            ValueError: audit already reached a terminal state
        """
        from_state = self._states[audit_id]
        if not can_transition(from_state, to_state):
            raise ValueError(
                f"Invalid transition for {audit_id}: {from_state.value} -> {to_state.value}"
            )
        self._states[audit_id] = to_state

    def record(self, result: AuditResult) -> AuditState:
        state = state_for_result(result)
        self.transition(result.id, state)
        return state

    def pending(self) -> List[str]:
        return [audit_id for audit_id, state in self._states.items() if state == AuditState.PENDING]

    def counts(self) -> Dict[str, int]:
        counts = {state.value: 0 for state in AuditState}
        for state in self._states.values():
            counts[state.value] += 1
        return counts
