"""Finite State Machine for the episode controller's run states."""

from enum import Enum, auto
from typing import Dict, Callable, Optional


class RunState(Enum):
    """States of the episode controller."""
    IDLE = auto()
    RUNNING = auto()
    PAUSED = auto()
    SINGLE_STEP = auto()


class RunStateMachine:
    """State machine for managing continuous runs and manual stepping."""

    def __init__(self):
        self.current_state = RunState.IDLE
        self._enter_callbacks: Dict[RunState, Callable[[Optional[Dict]], None]] = {}

        # Define valid state transitions
        self._valid_transitions = {
            RunState.IDLE: {RunState.RUNNING, RunState.SINGLE_STEP},
            RunState.RUNNING: {RunState.PAUSED, RunState.IDLE},
            RunState.PAUSED: {RunState.RUNNING, RunState.IDLE},
            RunState.SINGLE_STEP: {RunState.IDLE},
        }

    def on_state_enter(self, state: RunState, callback: Callable[[Optional[Dict]], None]):
        """Register callback for state entry."""
        self._enter_callbacks[state] = callback

    def can_transition(self, to_state: RunState) -> bool:
        """Check if transition to target state is valid."""
        return to_state in self._valid_transitions.get(self.current_state, set())

    def transition(self, to_state: RunState, context: Optional[Dict] = None) -> bool:
        """Attempt to transition to target state."""
        if not self.can_transition(to_state):
            return False

        self.current_state = to_state

        if to_state in self._enter_callbacks:
            self._enter_callbacks[to_state](context)

        return True

    # Convenience methods for common transitions

    def start(self, context: Optional[Dict] = None) -> bool:
        """Start a continuous run."""
        return self.transition(RunState.RUNNING, context)

    def pause(self, context: Optional[Dict] = None) -> bool:
        """Pause the continuous run."""
        return self.transition(RunState.PAUSED, context)

    def resume(self, context: Optional[Dict] = None) -> bool:
        """Resume from paused state."""
        if self.current_state == RunState.PAUSED:
            return self.transition(RunState.RUNNING, context)
        return False

    def begin_single_step(self, context: Optional[Dict] = None) -> bool:
        """Enter the manual one-step pseudo-state."""
        return self.transition(RunState.SINGLE_STEP, context)

    def reset_to_idle(self, context: Optional[Dict] = None) -> bool:
        """Return to idle state. Every non-idle state may do this."""
        return self.transition(RunState.IDLE, context)

    # State checking methods

    def is_idle(self) -> bool:
        return self.current_state == RunState.IDLE

    def is_running(self) -> bool:
        return self.current_state == RunState.RUNNING

    def is_paused(self) -> bool:
        return self.current_state == RunState.PAUSED

    def is_single_step(self) -> bool:
        return self.current_state == RunState.SINGLE_STEP

    def is_active(self) -> bool:
        """Check if a continuous run exists, paused or not."""
        return self.current_state in {RunState.RUNNING, RunState.PAUSED}

    def get_state_description(self) -> str:
        """Get human-readable state description."""
        descriptions = {
            RunState.IDLE: "Ready - press Start to learn or Step to advance once",
            RunState.RUNNING: "Running episodes with Q-learning",
            RunState.PAUSED: "Run paused",
            RunState.SINGLE_STEP: "Executing a single step",
        }
        return descriptions.get(self.current_state, "Unknown state")
