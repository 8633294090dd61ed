"""Episode controller connecting observers and the Q-learning domain logic."""

import logging
from typing import Optional, List, Tuple

from PySide6.QtCore import QObject, QTimer, Signal

from ..domain.types import (
    Cell, QLearningConfig, StepResult, Episode, SimulationSnapshot,
    ConvergenceStatus, STATUS_READY, step_delay_ms
)
from ..domain.gridworld import GridWorld
from ..domain.qlearning import QLearningAgent
from ..domain.convergence import assess_convergence, ConvergenceReport
from ..utils.grid_factory import create_world
from ..utils.rng import SeededRNG
from .fsm import RunStateMachine, RunState

logger = logging.getLogger(__name__)

# Settings that may change while a run is in progress
LIVE_SETTINGS = (
    "learning_rate", "discount_factor", "epsilon", "max_steps", "animation_speed",
    "convergence_window", "convergence_threshold",
)


class EpisodeController(QObject):
    """
    Drives episodes of Q-learning one tick at a time.

    A QTimer paces the continuous run; pausing stops the timer and
    resuming restarts it, so a paused run keeps its mid-episode state.
    Observers read state through properties and ``snapshot()`` and
    listen to the signals below; they never mutate learning state.

    Signals:
        state_changed: Emitted with the new RunState
        step_completed: Emitted with a StepResult after every move
        episode_completed: Emitted with an Episode at every episode end
        convergence_changed: Emitted with the new convergence status
        environment_changed: Emitted after obstacle edits and resets
    """

    state_changed = Signal(object)  # RunState
    step_completed = Signal(object)  # StepResult
    episode_completed = Signal(object)  # Episode
    convergence_changed = Signal(str)
    environment_changed = Signal()

    def __init__(self, config: Optional[QLearningConfig] = None,
                 world: Optional[GridWorld] = None,
                 rng: Optional[SeededRNG] = None):
        super().__init__()

        self._config = config or QLearningConfig()
        self._world = world or create_world(self._config)
        self._agent = QLearningAgent(
            self._world,
            learning_rate=self._config.learning_rate,
            discount_factor=self._config.discount_factor,
            epsilon=self._config.epsilon,
            rng=rng,
        )
        self._state_machine = RunStateMachine()

        self._timer = QTimer(self)
        self._timer.setInterval(self.step_delay)
        self._timer.timeout.connect(self.tick)

        # Episode state
        self._agent_pos: Cell = self._world.start
        self._path: List[Cell] = []
        self._step_index = 0
        self._total_reward = 0.0

        # Run state
        self._episode_index = 0
        self._episode_rewards: List[float] = []
        self._last_step: Optional[StepResult] = None
        self._convergence_status: ConvergenceStatus = STATUS_READY
        self._last_report: Optional[ConvergenceReport] = None

        self._setup_state_callbacks()

    def _setup_state_callbacks(self):
        """Setup callbacks for state machine transitions."""
        self._state_machine.on_state_enter(RunState.RUNNING, self._on_running_entered)
        self._state_machine.on_state_enter(RunState.PAUSED, self._on_paused_entered)
        self._state_machine.on_state_enter(RunState.IDLE, self._on_idle_entered)
        self._state_machine.on_state_enter(RunState.SINGLE_STEP, self._on_single_step_entered)

    # Properties

    @property
    def config(self) -> QLearningConfig:
        return self._config

    @property
    def world(self) -> GridWorld:
        return self._world

    @property
    def agent(self) -> QLearningAgent:
        return self._agent

    @property
    def current_state(self) -> RunState:
        return self._state_machine.current_state

    @property
    def agent_pos(self) -> Cell:
        return self._agent_pos

    @property
    def path(self) -> Tuple[Cell, ...]:
        return tuple(self._path)

    @property
    def step_index(self) -> int:
        return self._step_index

    @property
    def episode_index(self) -> int:
        return self._episode_index

    @property
    def total_reward(self) -> float:
        return self._total_reward

    @property
    def episode_rewards(self) -> Tuple[float, ...]:
        return tuple(self._episode_rewards)

    @property
    def last_step(self) -> Optional[StepResult]:
        return self._last_step

    @property
    def convergence_status(self) -> ConvergenceStatus:
        return self._convergence_status

    @property
    def step_delay(self) -> int:
        """Milliseconds between two ticks of a continuous run."""
        return step_delay_ms(self._config.animation_speed)

    @property
    def is_timer_active(self) -> bool:
        return self._timer.isActive()

    # Control commands

    def start(self) -> bool:
        """Start a continuous run from the current episode state."""
        if not self._state_machine.start():
            logger.debug("Start ignored in state %s", self.current_state.name)
            return False
        return True

    def pause(self) -> bool:
        """Pause the continuous run before its next tick."""
        return self._state_machine.pause()

    def resume(self) -> bool:
        """Resume a paused run exactly where it stopped."""
        return self._state_machine.resume()

    def toggle_pause(self) -> bool:
        """Switch between running and paused."""
        if self._state_machine.is_paused():
            return self.resume()
        return self.pause()

    def stop(self) -> bool:
        """End the continuous run. Learning and episode state are kept."""
        if not self._state_machine.is_active():
            return False
        return self._state_machine.reset_to_idle()

    def step(self) -> bool:
        """
        Execute exactly one step or episode boundary.

        Only allowed while idle; ignored during a continuous run.
        """
        if not self._state_machine.begin_single_step():
            logger.debug("Step ignored in state %s", self.current_state.name)
            return False

        self._advance()
        self._state_machine.reset_to_idle()
        return True

    def reset(self):
        """Stop everything and forget all learning."""
        self._state_machine.reset_to_idle()
        self._timer.stop()

        self._agent.reset_q_table()
        self._episode_index = 0
        self._episode_rewards = []
        self._last_step = None
        self._last_report = None
        self._begin_episode()

        if self._convergence_status != STATUS_READY:
            self._convergence_status = STATUS_READY
            self.convergence_changed.emit(STATUS_READY)

        logger.info("Simulation reset")
        self.environment_changed.emit()

    def tick(self):
        """Advance the continuous run by one step; no-op unless running."""
        if not self._state_machine.is_running():
            return
        self._advance()

    # Configuration

    def update_config(self, **kwargs) -> bool:
        """
        Update live settings; they apply from the next decision onwards.

        Hyperparameters are not range-checked; a convergence window below
        one is refused. Returns True if every key was applied.
        """
        applied = True
        for key, value in kwargs.items():
            if key not in LIVE_SETTINGS:
                logger.debug("Ignoring setting %s, it cannot change at runtime", key)
                applied = False
                continue
            if key == "convergence_window" and value < 1:
                logger.debug("Ignoring convergence window %s, it must be at least 1", value)
                applied = False
                continue
            setattr(self._config, key, value)

        # Update agent hyperparameters
        self._agent.learning_rate = self._config.learning_rate
        self._agent.discount_factor = self._config.discount_factor
        self._agent.epsilon = self._config.epsilon

        if "animation_speed" in kwargs:
            self._timer.setInterval(self.step_delay)

        return applied

    def set_animation_speed(self, speed: int) -> bool:
        return self.update_config(animation_speed=speed)

    def toggle_obstacle(self, row: int, col: int) -> bool:
        """Flip an obstacle. Rejected on the agent's cell, the goal and the start."""
        changed = self._world.toggle_obstacle((row, col), self._agent_pos)
        if changed:
            self.environment_changed.emit()
        else:
            logger.debug("Obstacle toggle at (%d, %d) rejected", row, col)
        return changed

    # Queries

    def q_values(self, row: int, col: int) -> Tuple[float, ...]:
        return self._agent.q_values((row, col))

    def snapshot(self) -> SimulationSnapshot:
        """Copy of everything a renderer needs for one frame."""
        return SimulationSnapshot(
            agent_pos=self._agent_pos,
            goal=self._world.goal,
            obstacles=frozenset(self._world.obstacles),
            q_table=self._agent.table_snapshot(),
            path=tuple(self._path),
            step_index=self._step_index,
            episode_index=self._episode_index,
            total_reward=self._total_reward,
            episode_rewards=tuple(self._episode_rewards),
            convergence_status=self._convergence_status,
            state_name=self.current_state.name,
            last_step=self._last_step,
        )

    def get_statistics(self) -> dict:
        """Get current run statistics."""
        stats = {
            "episode": self._episode_index,
            "step": self._step_index,
            "total_reward": self._total_reward,
            "current_state": self.current_state.name,
            "state_description": self._state_machine.get_state_description(),
            "convergence_status": self._convergence_status,
            "learning_rate": self._agent.learning_rate,
            "discount_factor": self._agent.discount_factor,
            "epsilon": self._agent.epsilon,
        }
        if self._last_report is not None:
            stats["recent_mean_reward"] = self._last_report.mean
            stats["recent_reward_variance"] = self._last_report.variance
        return stats

    def cleanup(self):
        """Stop the timer before the controller is discarded."""
        self._timer.stop()

    # Episode logic

    def _advance(self) -> Optional[StepResult]:
        """One transition: either a move or an episode boundary."""
        pos = self._agent_pos

        if self._world.is_goal(*pos) or self._step_index >= self._config.max_steps:
            self._end_episode(reached_goal=self._world.is_goal(*pos))
            return None

        action = self._agent.select_action(*pos)
        if action is None:
            # Boxed in on every side
            self._end_episode(reached_goal=False, trapped=True)
            return None

        attempted = self._world.destination(pos, action)
        reward = self._world.reward(*attempted)
        next_state = attempted if self._world.is_valid_position(*attempted) else pos

        self._agent.update(pos, action, reward, next_state)

        self._agent_pos = next_state
        self._path.append(next_state)
        self._total_reward += reward
        self._step_index += 1

        result = StepResult(
            state=pos,
            action=action,
            reward=reward,
            next_state=next_state,
            policy=self._agent.last_policy,
        )
        self._last_step = result
        self.step_completed.emit(result)
        return result

    def _end_episode(self, reached_goal: bool, trapped: bool = False):
        self._episode_index += 1
        self._episode_rewards.append(self._total_reward)

        episode = Episode(
            number=self._episode_index,
            steps=self._step_index,
            total_reward=self._total_reward,
            reached_goal=reached_goal,
            trapped=trapped,
        )
        logger.debug("Episode %d finished: %d steps, reward %.1f, goal=%s",
                     episode.number, episode.steps, episode.total_reward, reached_goal)
        self.episode_completed.emit(episode)

        self._begin_episode()
        self._check_convergence()

    def _begin_episode(self):
        self._agent_pos = self._world.start
        self._path = []
        self._step_index = 0
        self._total_reward = 0.0

    def _check_convergence(self):
        report = assess_convergence(
            self._episode_rewards,
            window=self._config.convergence_window,
            threshold=self._config.convergence_threshold,
        )
        if report is None:
            return

        self._last_report = report
        if report.status != self._convergence_status:
            logger.info("Convergence status %s -> %s (mean %.2f, variance %.2f)",
                        self._convergence_status, report.status, report.mean, report.variance)
            self._convergence_status = report.status
            self.convergence_changed.emit(report.status)

    # State Machine Callbacks

    def _on_running_entered(self, context):
        """Called when entering RUNNING state."""
        self._timer.start(self.step_delay)
        self.state_changed.emit(RunState.RUNNING)

    def _on_paused_entered(self, context):
        """Called when entering PAUSED state."""
        self._timer.stop()
        self.state_changed.emit(RunState.PAUSED)

    def _on_idle_entered(self, context):
        """Called when entering IDLE state."""
        self._timer.stop()
        self.state_changed.emit(RunState.IDLE)

    def _on_single_step_entered(self, context):
        """Called when entering SINGLE_STEP state."""
        self.state_changed.emit(RunState.SINGLE_STEP)
