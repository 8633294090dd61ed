"""Tabular Q-learning agent with an epsilon-greedy behavior policy."""

import numpy as np
from typing import Optional, Dict, List, Tuple

from .gridworld import GridWorld
from .types import (
    Cell, ActionInt, PolicyType, ACTIONS, EXPLORATION, EXPLOITATION
)
from ..utils import rng as rng_utils
from ..utils.rng import SeededRNG


class QLearningAgent:
    """
    Q-learning agent over a GridWorld.

    The agent only talks to the world through its public queries
    (valid actions and cell enumeration). Hyperparameters are plain
    attributes and may be changed between decisions; the new values
    apply from the next call onwards.
    """

    def __init__(self, world: GridWorld, learning_rate: float = 0.1,
                 discount_factor: float = 0.9, epsilon: float = 0.1,
                 rng: Optional[SeededRNG] = None):
        self.world = world
        self.learning_rate = learning_rate
        self.discount_factor = discount_factor
        self.epsilon = epsilon
        self.rng = rng if rng is not None else rng_utils.default_rng

        self.q_table: Dict[Cell, np.ndarray] = {}
        self.last_policy: Optional[PolicyType] = None
        self.reset_q_table()

    def reset_q_table(self):
        """Reset every cell's Q-values to zero."""
        self.q_table = {
            cell: np.zeros(len(ACTIONS), dtype=float) for cell in self.world.cells()
        }
        self.last_policy = None

    def get_q_value(self, state: Tuple[int, int], action: ActionInt) -> float:
        """Get Q-value for state-action pair."""
        return float(self.q_table[Cell(*state)][action])

    def set_q_value(self, state: Tuple[int, int], action: ActionInt, value: float):
        """Set Q-value for state-action pair."""
        self.q_table[Cell(*state)][action] = value

    def q_values(self, state: Tuple[int, int]) -> Tuple[float, ...]:
        """Return the four Q-values of a cell, in action order."""
        return tuple(float(v) for v in self.q_table[Cell(*state)])

    def get_best_action(self, state: Tuple[int, int], valid_actions: List[ActionInt]) -> ActionInt:
        """Valid action with the highest Q-value; ties go to the first in action order."""
        q_values = self.q_table[Cell(*state)]
        valid_q_values = [q_values[action] for action in valid_actions]
        best_idx = np.argmax(valid_q_values)
        return valid_actions[int(best_idx)]

    def select_action(self, row: int, col: int) -> Optional[ActionInt]:
        """
        Select an action using the epsilon-greedy policy.

        Returns:
            The chosen action index, or None if the agent is boxed in.
        """
        valid_actions = self.world.valid_actions(row, col)
        if not valid_actions:
            return None

        if self.rng.random() < self.epsilon:
            self.last_policy = EXPLORATION
            return self.rng.choice(valid_actions)

        self.last_policy = EXPLOITATION
        return self.get_best_action((row, col), valid_actions)

    def update(self, state: Tuple[int, int], action: ActionInt,
               reward: float, next_state: Tuple[int, int]) -> float:
        """
        Apply the one-step Q-learning rule and return the new value.

        The bootstrap maximum runs over all four stored slots of the next
        state, including slots for moves that are invalid from there.
        """
        current_q = self.get_q_value(state, action)
        next_q_max = float(np.max(self.q_table[Cell(*next_state)]))

        target = reward + self.discount_factor * next_q_max
        new_q = current_q + self.learning_rate * (target - current_q)

        self.set_q_value(state, action, new_q)
        return new_q

    def greedy_action(self, state: Tuple[int, int]) -> Optional[ActionInt]:
        """Action a policy overlay would show for a cell, or None if nothing positive was learned."""
        q_values = self.q_table[Cell(*state)]
        best = int(np.argmax(q_values))
        if q_values[best] > 0:
            return best
        return None

    def table_snapshot(self) -> Dict[Cell, Tuple[float, ...]]:
        """Copy of the Q-table as plain tuples."""
        return {cell: tuple(float(v) for v in values) for cell, values in self.q_table.items()}
