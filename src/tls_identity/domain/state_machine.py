"""Transition-table state machine for the issuance flow.

Enforces "server before client" ordering and records every transition in
logs and metrics.
"""

import logging

from opentelemetry import metrics

from tls_identity.domain.states import IssuanceEvent, IssuanceState
from tls_identity.errors import InvalidStateError

logger = logging.getLogger(__name__)

meter = metrics.get_meter("tls_identity.state_machines")

state_transitions_total = meter.create_counter(
    name="tls_identity_state_transitions_total",
    description="Total issuance state transitions",
    unit="1",
)


class InvalidTransitionError(InvalidStateError):
    """Raised when an event is not allowed in the current issuance state."""

    def __init__(self, entity_id: str, current_state: str, event: str):
        self.entity_id = entity_id
        self.current_state = current_state
        self.event = event
        super().__init__(f"{entity_id}: event {event} is not allowed in state {current_state}")


class IssuanceStateMachine:
    """Tracks how far an issuance run has progressed.

    Transition Table:
        (UNINITIALIZED, SERVER_IDENTITY_ISSUED) -> SERVER_ISSUED
        (SERVER_ISSUED, CLIENT_IDENTITY_ISSUED) -> CLIENT_ISSUED
    """

    TRANSITIONS: dict[tuple[IssuanceState, IssuanceEvent], IssuanceState] = {
        (
            IssuanceState.UNINITIALIZED,
            IssuanceEvent.SERVER_IDENTITY_ISSUED,
        ): IssuanceState.SERVER_ISSUED,
        (
            IssuanceState.SERVER_ISSUED,
            IssuanceEvent.CLIENT_IDENTITY_ISSUED,
        ): IssuanceState.CLIENT_ISSUED,
        # CLIENT_ISSUED is terminal
    }

    def __init__(self, entity_id: str) -> None:
        """Initialize the machine for one artifact directory.

        Args:
            entity_id: Label used in logs and metrics (the base directory).
        """
        self._entity_id = entity_id
        self._state = IssuanceState.UNINITIALIZED

    @property
    def state(self) -> IssuanceState:
        return self._state

    def can_transition(self, event: IssuanceEvent) -> bool:
        return (self._state, event) in self.TRANSITIONS

    def transition(self, event: IssuanceEvent) -> IssuanceState:
        """Apply an event and return the new state.

        Raises:
            InvalidTransitionError: If the table has no entry for (state, event).
        """
        current_state = self._state
        new_state = self.TRANSITIONS.get((current_state, event))
        if new_state is None:
            logger.warning(
                "invalid_transition_attempted",
                extra={
                    "entity_id": self._entity_id,
                    "current_state": current_state.value,
                    "event": event.value,
                },
            )
            raise InvalidTransitionError(self._entity_id, current_state.value, event.value)

        self._state = new_state

        logger.info(
            "state_transition",
            extra={
                "entity_id": self._entity_id,
                "from_state": current_state.value,
                "to_state": new_state.value,
                "event": event.value,
            },
        )
        state_transitions_total.add(
            1,
            {"from_state": current_state.value, "to_state": new_state.value},
        )
        return new_state
