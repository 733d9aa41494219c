"""
Finite state machine keeping a booking's end time consistent.

Three states with explicit transitions:

    tracking_by_services  --booking_loaded-->  tracking_by_original_duration
    tracking_by_services  --end_time_edited--> frozen
    tracking_by_original_duration --end_time_edited--> frozen

Which basis recomputes the end time for a given input is declared in
``RECOMPUTE_RULES`` rather than left to the order in which handlers run.
Frozen is terminal for the session; a new session builds a new deriver.

Usage:
    deriver = EndTimeDeriver()
    deriver.services_changed("10:00", 45)        # -> "10:45"
    deriver.end_time_edited()
    deriver.services_changed("10:00", 90)        # -> None, end time untouched
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from booking_engine.logging_context import get_session_logger
from booking_engine.utils import format_minutes, parse_hhmm

logger = get_session_logger(__name__)


class DerivationState(str, Enum):
    """Where the end time currently comes from."""
    TRACKING_BY_SERVICES = "tracking_by_services"
    TRACKING_BY_ORIGINAL_DURATION = "tracking_by_original_duration"
    FROZEN = "frozen"


class DerivationTrigger(str, Enum):
    """Events that change the derivation state."""
    BOOKING_LOADED = "booking_loaded"
    END_TIME_EDITED = "end_time_edited"


class DerivationInput(str, Enum):
    """Inputs that may recompute the end time without changing state."""
    SERVICES_CHANGED = "services_changed"
    START_TIME_CHANGED = "start_time_changed"


class DurationBasis(str, Enum):
    SERVICES = "services"
    ORIGINAL = "original"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: DerivationState
    to_state: DerivationState
    trigger: DerivationTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: DerivationState
    entered_at: datetime
    trigger: Optional[DerivationTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


# (state, input) -> duration basis; missing pairs never recompute.
RECOMPUTE_RULES: dict[tuple[DerivationState, DerivationInput], DurationBasis] = {
    (DerivationState.TRACKING_BY_SERVICES, DerivationInput.SERVICES_CHANGED):
        DurationBasis.SERVICES,
    (DerivationState.TRACKING_BY_SERVICES, DerivationInput.START_TIME_CHANGED):
        DurationBasis.SERVICES,
    (DerivationState.TRACKING_BY_ORIGINAL_DURATION, DerivationInput.SERVICES_CHANGED):
        DurationBasis.SERVICES,
    # A moved start in edit mode keeps the operator's original allocation.
    (DerivationState.TRACKING_BY_ORIGINAL_DURATION, DerivationInput.START_TIME_CHANGED):
        DurationBasis.ORIGINAL,
}


class EndTimeDeriver:
    """
    Session-scoped end-time derivation.

    Inputs return the new end time, or None when the end time must be left
    as it is.
    """

    TRANSITIONS: list[Transition] = [
        Transition(DerivationState.TRACKING_BY_SERVICES,
                   DerivationState.TRACKING_BY_ORIGINAL_DURATION,
                   DerivationTrigger.BOOKING_LOADED),
        Transition(DerivationState.TRACKING_BY_SERVICES, DerivationState.FROZEN,
                   DerivationTrigger.END_TIME_EDITED),
        Transition(DerivationState.TRACKING_BY_ORIGINAL_DURATION, DerivationState.FROZEN,
                   DerivationTrigger.END_TIME_EDITED),
        Transition(DerivationState.FROZEN, DerivationState.FROZEN,
                   DerivationTrigger.END_TIME_EDITED),
    ]

    def __init__(self) -> None:
        self._current_state = DerivationState.TRACKING_BY_SERVICES
        self._history: list[StateEntry] = [
            StateEntry(state=self._current_state, entered_at=datetime.now(timezone.utc))
        ]
        self._original_duration: Optional[int] = None
        self._previous_start: Optional[str] = None

    @property
    def current_state(self) -> DerivationState:
        return self._current_state

    @property
    def original_duration(self) -> Optional[int]:
        return self._original_duration

    @property
    def user_modified_end_time(self) -> bool:
        return self._current_state == DerivationState.FROZEN

    def transition(self, trigger: DerivationTrigger) -> DerivationState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "End time derivation: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.trigger.value for t in self.TRANSITIONS if t.from_state == self._current_state]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def load_booking(self, start_time: str, end_time: str) -> None:
        """Capture the stored booking's duration once, entering edit-mode tracking.

        A booking whose times cannot be read (or whose end is not after its
        start) keeps plain services tracking.
        """
        self._previous_start = start_time
        start, end = parse_hhmm(start_time), parse_hhmm(end_time)
        if start is None or end is None or end <= start:
            logger.debug("No original duration from %r-%r", start_time, end_time)
            return
        self.transition(DerivationTrigger.BOOKING_LOADED)
        self._original_duration = end - start

    def end_time_edited(self) -> None:
        """The user picked an end time by hand; stop deriving for this session."""
        self.transition(DerivationTrigger.END_TIME_EDITED)

    def services_changed(self, start_time: str, total_duration: int) -> Optional[str]:
        return self._recompute(DerivationInput.SERVICES_CHANGED, start_time, total_duration)

    def start_time_changed(self, start_time: str, total_duration: int) -> Optional[str]:
        if start_time == self._previous_start:
            return None
        self._previous_start = start_time
        return self._recompute(DerivationInput.START_TIME_CHANGED, start_time, total_duration)

    def _recompute(
        self, event: DerivationInput, start_time: str, total_duration: int
    ) -> Optional[str]:
        basis = RECOMPUTE_RULES.get((self._current_state, event))
        start = parse_hhmm(start_time)
        if basis is None or start is None:
            return None

        duration = total_duration if basis == DurationBasis.SERVICES else self._original_duration
        # An emptied selection keeps the last end time instead of collapsing it onto the start.
        if not duration or duration <= 0:
            return None

        end_time = format_minutes(start + duration)
        logger.debug(
            "End time %s = %s + %d min (%s, basis: %s)",
            end_time, start_time, duration, event.value, basis.value,
        )
        return end_time

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]
