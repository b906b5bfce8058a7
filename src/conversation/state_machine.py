"""
Finite state machine for the per-session dialogue.

A session is IDLE until the agent asks a question that needs a specific
reply: a choice between several orders (AWAITING_SELECTION) or a yes/no
on one order (AWAITING_CONFIRMATION). Consuming the pending question
returns the session to IDLE. ESCALATED is terminal for the session.

Usage:
    sm = DialogueStateMachine()
    sm.transition(DialogueTrigger.SELECTION_REQUESTED)
    assert sm.current_state == DialogueState.AWAITING_SELECTION
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class DialogueState(str, Enum):
    """All states a support session can be in."""
    IDLE = "idle"
    AWAITING_SELECTION = "awaiting_selection"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    ESCALATED = "escalated"


class DialogueTrigger(str, Enum):
    """Events that cause state transitions."""
    SELECTION_REQUESTED = "selection_requested"
    CONFIRMATION_REQUESTED = "confirmation_requested"
    PENDING_CONSUMED = "pending_consumed"
    PENDING_CLEARED = "pending_cleared"
    ESCALATED = "escalated"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: DialogueState
    to_state: DialogueState
    trigger: DialogueTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: DialogueState
    entered_at: datetime
    trigger: Optional[DialogueTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


_S = DialogueState
_T = DialogueTrigger


class DialogueStateMachine:
    """
    Deterministic state machine mirroring a session's pending intent.

    The session store fires a trigger every time it sets, consumes or
    clears the pending intent, so the state always agrees with it.
    """

    TRANSITIONS: list[Transition] = [
        # --- Asking a question ---
        Transition(_S.IDLE, _S.AWAITING_SELECTION, _T.SELECTION_REQUESTED),
        Transition(_S.IDLE, _S.AWAITING_CONFIRMATION, _T.CONFIRMATION_REQUESTED),

        # --- Reading the answer ---
        Transition(_S.AWAITING_SELECTION, _S.IDLE, _T.PENDING_CONSUMED),
        Transition(_S.AWAITING_CONFIRMATION, _S.IDLE, _T.PENDING_CONSUMED),

        # --- Dropping an unanswered question ---
        Transition(_S.AWAITING_SELECTION, _S.IDLE, _T.PENDING_CLEARED),
        Transition(_S.AWAITING_CONFIRMATION, _S.IDLE, _T.PENDING_CLEARED),

        # --- Escalation (sticky) ---
        Transition(_S.IDLE, _S.ESCALATED, _T.ESCALATED),
        Transition(_S.AWAITING_SELECTION, _S.ESCALATED, _T.ESCALATED),
        Transition(_S.AWAITING_CONFIRMATION, _S.ESCALATED, _T.ESCALATED),
        Transition(_S.ESCALATED, _S.ESCALATED, _T.ESCALATED),
    ]

    def __init__(self) -> None:
        self._current_state = DialogueState.IDLE
        self._history: list[StateEntry] = [
            StateEntry(state=DialogueState.IDLE, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> DialogueState:
        return self._current_state

    def transition(self, trigger: DialogueTrigger) -> DialogueState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new dialogue state.

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
                    "Dialogue transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[DialogueTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full state transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the session has been handed to a human."""
        return self._current_state == DialogueState.ESCALATED
