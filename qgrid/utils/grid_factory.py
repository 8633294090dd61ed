"""Grid factory for building grid worlds from configuration or at random."""

from collections import deque
from typing import Optional, List

from ..domain.gridworld import GridWorld
from ..domain.types import Cell, QLearningConfig, ACTION_DELTAS
from .rng import SeededRNG, default_rng


def create_world(config: QLearningConfig) -> GridWorld:
    """
    Create the grid world described by a configuration.

    Raises:
        ValueError: If the size is not positive or a cell is misplaced
    """
    return GridWorld(
        size=config.grid_size,
        goal=config.goal,
        obstacles=config.obstacles,
        start=config.start,
        reward_goal=config.reward_goal,
        reward_obstacle=config.reward_obstacle,
        reward_step=config.reward_step,
    )


def create_empty_world(size: int, goal: Optional[Cell] = None) -> GridWorld:
    """Create an obstacle-free world with the goal in the far corner by default."""
    if size <= 0:
        raise ValueError(f"Grid size must be positive, got {size}")
    if goal is None:
        goal = Cell(size - 1, size - 1)
    return GridWorld(size=size, goal=goal)


def is_goal_reachable(world: GridWorld) -> bool:
    """Breadth-first search from the start cell to the goal over valid cells."""
    frontier = deque([world.start])
    seen = {world.start}
    while frontier:
        cell = frontier.popleft()
        if cell == world.goal:
            return True
        for d_row, d_col in ACTION_DELTAS.values():
            nxt = Cell(cell.row + d_row, cell.col + d_col)
            if nxt not in seen and world.is_valid_position(*nxt):
                seen.add(nxt)
                frontier.append(nxt)
    return False


def add_random_obstacles(world: GridWorld, density: float,
                         rng: Optional[SeededRNG] = None,
                         keep_solvable: bool = True) -> List[Cell]:
    """
    Add random obstacles to the world.

    Args:
        world: World to modify
        density: Obstacle density (0.0 to 1.0) relative to all cells
        rng: Random number generator to use (uses default if None)
        keep_solvable: Skip obstacles that would cut the start off from the goal

    Returns:
        The cells that became obstacles
    """
    if not (0.0 <= density <= 1.0):
        raise ValueError(f"Density must be between 0.0 and 1.0, got {density}")

    if rng is None:
        rng = default_rng

    num_obstacles = int(world.size * world.size * density)

    free_cells = [cell for cell in world.cells()
                  if cell not in world.obstacles and world.can_toggle(cell)]
    num_obstacles = min(num_obstacles, len(free_cells))

    placed = []
    for cell in rng.sample(free_cells, len(free_cells)):
        if len(placed) >= num_obstacles:
            break
        world.toggle_obstacle(cell)
        if keep_solvable and not is_goal_reachable(world):
            world.toggle_obstacle(cell)
            continue
        placed.append(cell)

    return placed


def generate_world(config: QLearningConfig, density: float,
                   seed: Optional[int] = None) -> GridWorld:
    """Create a world of the configured size with random obstacles instead of the preset ones."""
    rng = SeededRNG(seed)
    world = GridWorld(
        size=config.grid_size,
        goal=config.goal,
        start=config.start,
        reward_goal=config.reward_goal,
        reward_obstacle=config.reward_obstacle,
        reward_step=config.reward_step,
    )
    add_random_obstacles(world, density, rng)
    return world
