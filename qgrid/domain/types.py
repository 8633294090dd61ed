"""Core type definitions for the grid-world Q-learning simulation."""

from dataclasses import dataclass
from typing import Optional, Tuple, Literal, Dict, NamedTuple


class Cell(NamedTuple):
    """A grid cell addressed by row and column."""
    row: int
    col: int


# Actions the agent can take, in Q-table slot order
Action = Literal["Up", "Down", "Left", "Right"]
ActionInt = Literal[0, 1, 2, 3]

UP: ActionInt = 0
DOWN: ActionInt = 1
LEFT: ActionInt = 2
RIGHT: ActionInt = 3

ACTIONS: Tuple[Action, ...] = ("Up", "Down", "Left", "Right")

ACTION_DELTAS: Dict[ActionInt, Tuple[int, int]] = {
    0: (-1, 0),  # up
    1: (1, 0),   # down
    2: (0, -1),  # left
    3: (0, 1)    # right
}

ACTION_ARROWS: Dict[ActionInt, str] = {
    0: "↑",
    1: "↓",
    2: "←",
    3: "→"
}

# Label of the rule used for the last decision
PolicyType = Literal["Exploration (Random)", "Exploitation (Greedy)"]
EXPLORATION: PolicyType = "Exploration (Random)"
EXPLOITATION: PolicyType = "Exploitation (Greedy)"

# Advisory convergence verdicts
ConvergenceStatus = Literal["Ready", "Learning...", "Converged"]
STATUS_READY: ConvergenceStatus = "Ready"
STATUS_LEARNING: ConvergenceStatus = "Learning..."
STATUS_CONVERGED: ConvergenceStatus = "Converged"


@dataclass
class QLearningConfig:
    """Configuration for the environment, the learner and the run loop."""
    grid_size: int = 5
    start: Tuple[int, int] = (0, 0)
    goal: Tuple[int, int] = (4, 4)
    obstacles: Tuple[Tuple[int, int], ...] = ((1, 1), (2, 3), (3, 2))

    learning_rate: float = 0.1
    discount_factor: float = 0.9
    epsilon: float = 0.1
    max_steps: int = 100
    animation_speed: int = 5  # 1 (slowest) .. 10 (fastest)

    reward_goal: float = 100.0
    reward_obstacle: float = -10.0
    reward_step: float = -1.0

    # Convergence heuristic over recent episode rewards
    convergence_window: int = 10
    convergence_threshold: float = 100.0


def step_delay_ms(animation_speed: int) -> int:
    """Map an animation speed to the pause between two ticks, in milliseconds."""
    return max(50, 1000 - (animation_speed - 1) * 100)


@dataclass(frozen=True)
class StepResult:
    """One observed transition, as reported to observers."""
    state: Cell
    action: ActionInt
    reward: float
    next_state: Cell
    policy: PolicyType

    @property
    def action_name(self) -> Action:
        return ACTIONS[self.action]

    @property
    def bumped(self) -> bool:
        """Whether the move was rejected and the agent stayed in place."""
        return self.state == self.next_state


@dataclass(frozen=True)
class Episode:
    """Represents a single completed episode."""
    number: int
    steps: int
    total_reward: float
    reached_goal: bool
    trapped: bool = False


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only view of the simulation handed to renderers."""
    agent_pos: Cell
    goal: Cell
    obstacles: frozenset
    q_table: Dict[Cell, Tuple[float, ...]]
    path: Tuple[Cell, ...]
    step_index: int
    episode_index: int
    total_reward: float
    episode_rewards: Tuple[float, ...]
    convergence_status: ConvergenceStatus
    state_name: str
    last_step: Optional[StepResult] = None
