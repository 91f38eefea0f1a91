"""
Status workflows for orders, quotes and chats.

Each workflow is an explicit transition table. Anything that is not listed
is rejected with InvalidTransitionError.
"""
from typing import Dict, FrozenSet, Iterable

from errors import InvalidTransitionError, ValidationError


class StatusWorkflow:
    """Finite state machine over string statuses"""

    def __init__(self, entity: str, initial: str, transitions: Dict[str, Iterable[str]]):
        self.entity = entity
        self.initial = initial
        self.transitions: Dict[str, FrozenSet[str]] = {
            state: frozenset(targets) for state, targets in transitions.items()
        }
        for targets in self.transitions.values():
            unknown = targets - set(self.transitions)
            if unknown:
                raise ValueError(f"{entity} workflow references unknown states: {sorted(unknown)}")

    @property
    def states(self):
        return tuple(self.transitions)

    def _check_state(self, state: str):
        if not isinstance(state, str) or state not in self.transitions:
            raise ValidationError(
                f"Invalid {self.entity.lower()} status '{state}'",
                field='status'
            )

    def allowed_transitions(self, current: str) -> FrozenSet[str]:
        self._check_state(current)
        return self.transitions[current]

    def can_transition(self, current: str, new: str) -> bool:
        self._check_state(current)
        self._check_state(new)
        return new in self.transitions[current]

    def require_transition(self, current: str, new: str) -> str:
        """Return ``new`` if the move is allowed, raise otherwise"""
        if not self.can_transition(current, new):
            raise InvalidTransitionError(
                self.entity, current, new, self.transitions[current]
            )
        return new

    def is_terminal(self, state: str) -> bool:
        return not self.allowed_transitions(state)


ORDER_WORKFLOW = StatusWorkflow('Order', 'pending', {
    'pending': ['payment_confirmed', 'cancelled'],
    'payment_confirmed': ['in_progress', 'cancelled', 'refunded'],
    'in_progress': ['under_review', 'cancelled', 'refunded'],
    'under_review': ['completed', 'cancelled', 'refunded'],
    'completed': [],
    'cancelled': [],
    'refunded': [],
})

QUOTE_WORKFLOW = StatusWorkflow('Quote', 'pending', {
    'pending': ['accepted', 'rejected', 'expired'],
    'accepted': [],
    'rejected': [],
    'expired': [],
})

CHAT_WORKFLOW = StatusWorkflow('Chat', 'active', {
    'active': ['closed'],
    'closed': ['active', 'archived'],
    'archived': [],
})
