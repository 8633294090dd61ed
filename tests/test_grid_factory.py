import pytest

from qgrid.domain.types import Cell, QLearningConfig
from qgrid.utils.grid_factory import (
    create_world, create_empty_world, add_random_obstacles, generate_world,
    is_goal_reachable
)
from qgrid.utils.rng import SeededRNG


def test_create_world_from_default_config():
    world = create_world(QLearningConfig())
    assert world.size == 5
    assert world.goal == Cell(4, 4)
    assert world.start == Cell(0, 0)
    assert world.obstacles == {Cell(1, 1), Cell(2, 3), Cell(3, 2)}
    assert world.reward(4, 4) == 100


def test_create_world_rejects_goal_obstacle():
    with pytest.raises(ValueError):
        create_world(QLearningConfig(obstacles=((4, 4),)))


def test_create_empty_world():
    world = create_empty_world(4)
    assert world.goal == Cell(3, 3)
    assert world.obstacles == set()
    with pytest.raises(ValueError):
        create_empty_world(0)


def test_reachability():
    world = create_empty_world(3)
    assert is_goal_reachable(world)
    world.toggle_obstacle((0, 1))
    world.toggle_obstacle((1, 0))
    assert not is_goal_reachable(world)


def test_random_obstacles_keep_world_solvable():
    world = create_empty_world(6)
    placed = add_random_obstacles(world, 0.4, SeededRNG(3))

    assert placed
    assert len(placed) <= int(36 * 0.4)
    assert set(placed) == world.obstacles
    assert world.start not in world.obstacles
    assert world.goal not in world.obstacles
    assert is_goal_reachable(world)


def test_random_obstacles_are_reproducible():
    first = generate_world(QLearningConfig(grid_size=6, goal=(5, 5)), 0.3, seed=11)
    second = generate_world(QLearningConfig(grid_size=6, goal=(5, 5)), 0.3, seed=11)
    assert first.obstacles == second.obstacles


def test_density_bounds():
    with pytest.raises(ValueError):
        add_random_obstacles(create_empty_world(3), 1.5)
