"""Deterministic grid-world environment: bounds, obstacles, goal and rewards."""

from typing import Iterable, Iterator, List, Optional, Set, Tuple

from .types import Cell, ActionInt, ACTION_DELTAS


class GridWorld:
    """Square grid with a goal cell and a mutable set of obstacles."""

    def __init__(self, size: int, goal: Tuple[int, int],
                 obstacles: Iterable[Tuple[int, int]] = (),
                 start: Tuple[int, int] = (0, 0),
                 reward_goal: float = 100.0,
                 reward_obstacle: float = -10.0,
                 reward_step: float = -1.0):
        if size <= 0:
            raise ValueError(f"Grid size must be positive, got {size}")

        self.size = size
        self.goal = Cell(*goal)
        self.start = Cell(*start)
        self.reward_goal = reward_goal
        self.reward_obstacle = reward_obstacle
        self.reward_step = reward_step

        for name, cell in (("goal", self.goal), ("start", self.start)):
            if not self.in_bounds(*cell):
                raise ValueError(f"{name.capitalize()} {tuple(cell)} is outside a {size}x{size} grid")

        self.obstacles: Set[Cell] = set()
        for obstacle in obstacles:
            cell = Cell(*obstacle)
            if not self.in_bounds(*cell):
                raise ValueError(f"Obstacle {tuple(cell)} is outside a {size}x{size} grid")
            if cell == self.goal or cell == self.start:
                raise ValueError(f"Obstacle {tuple(cell)} overlaps the start or goal cell")
            self.obstacles.add(cell)

    def in_bounds(self, row: int, col: int) -> bool:
        """Check if coordinate is within grid bounds."""
        return 0 <= row < self.size and 0 <= col < self.size

    def is_valid_position(self, row: int, col: int) -> bool:
        """Check if the agent may occupy a cell: in bounds and not an obstacle."""
        return self.in_bounds(row, col) and Cell(row, col) not in self.obstacles

    def is_obstacle(self, row: int, col: int) -> bool:
        return Cell(row, col) in self.obstacles

    def is_goal(self, row: int, col: int) -> bool:
        return self.goal == (row, col)

    def destination(self, cell: Tuple[int, int], action: ActionInt) -> Cell:
        """Cell reached by applying an action's delta, without any clamping."""
        d_row, d_col = ACTION_DELTAS[action]
        return Cell(cell[0] + d_row, cell[1] + d_col)

    def valid_actions(self, row: int, col: int) -> List[ActionInt]:
        """Get list of actions whose destination is a valid position."""
        valid_actions = []
        for action in range(len(ACTION_DELTAS)):
            next_pos = self.destination((row, col), action)
            if self.is_valid_position(*next_pos):
                valid_actions.append(action)
        return valid_actions

    def reward(self, dest_row: int, dest_col: int) -> float:
        """
        Reward for attempting to move into a cell.

        The destination is the attempted one, so bumping into an obstacle
        is penalised even though the agent never occupies it.
        """
        if self.is_goal(dest_row, dest_col):
            return self.reward_goal
        if self.is_obstacle(dest_row, dest_col):
            return self.reward_obstacle
        return self.reward_step

    def can_toggle(self, cell: Tuple[int, int], agent_pos: Optional[Tuple[int, int]] = None) -> bool:
        """Check if a cell's obstacle flag may be flipped."""
        cell = Cell(*cell)
        if not self.in_bounds(*cell):
            return False
        if cell == self.goal or cell == self.start:
            return False
        return agent_pos is None or cell != tuple(agent_pos)

    def toggle_obstacle(self, cell: Tuple[int, int], agent_pos: Optional[Tuple[int, int]] = None) -> bool:
        """
        Flip a cell between obstacle and free.

        Edits on the goal, the agent's cell and the start cell are refused.
        The start cell is included because every episode puts the agent
        back there.

        Args:
            cell: Cell to edit
            agent_pos: The agent's current cell, which may never become an obstacle

        Returns:
            True if the layout changed, False if the edit was rejected
        """
        if not self.can_toggle(cell, agent_pos):
            return False

        cell = Cell(*cell)
        if cell in self.obstacles:
            self.obstacles.remove(cell)
        else:
            self.obstacles.add(cell)
        return True

    def cells(self) -> Iterator[Cell]:
        """Iterate over every cell in row-major order."""
        for row in range(self.size):
            for col in range(self.size):
                yield Cell(row, col)

    def __repr__(self) -> str:
        return (f"GridWorld(size={self.size}, goal={tuple(self.goal)}, "
                f"obstacles={sorted(tuple(c) for c in self.obstacles)})")
