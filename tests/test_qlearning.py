from collections import Counter

import pytest

from qgrid.domain.gridworld import GridWorld
from qgrid.domain.qlearning import QLearningAgent
from qgrid.domain.types import (
    Cell, UP, DOWN, LEFT, RIGHT, EXPLORATION, EXPLOITATION
)
from qgrid.utils.rng import SeededRNG


@pytest.fixture
def agent(world, rng):
    return QLearningAgent(world, learning_rate=0.1, discount_factor=0.9, epsilon=0.0, rng=rng)


def test_table_starts_at_zero(agent, world):
    assert set(agent.q_table) == set(world.cells())
    for cell in world.cells():
        assert agent.q_values(cell) == (0.0, 0.0, 0.0, 0.0)


def test_first_update_from_start(agent):
    new_q = agent.update((0, 0), DOWN, -1, (1, 0))
    assert new_q == pytest.approx(-0.1)
    assert agent.get_q_value((0, 0), DOWN) == pytest.approx(-0.1)
    assert agent.q_values((0, 0)) == pytest.approx((0.0, -0.1, 0.0, 0.0))


def test_update_rule(agent):
    agent.set_q_value((1, 0), DOWN, 2.0)
    agent.set_q_value((2, 0), RIGHT, 4.0)
    agent.set_q_value((2, 0), UP, -3.0)

    old = 2.0
    expected = old + 0.1 * (5.0 + 0.9 * 4.0 - old)
    assert agent.update((1, 0), DOWN, 5.0, (2, 0)) == pytest.approx(expected)


def test_bootstrap_uses_all_slots(agent):
    # Up and Left are walls from (0,0) but still feed the maximum
    agent.set_q_value((0, 0), UP, 7.0)
    agent.set_q_value((0, 0), LEFT, 3.0)

    new_q = agent.update((1, 0), UP, -1.0, (0, 0))
    assert new_q == pytest.approx(0.1 * (-1.0 + 0.9 * 7.0))


def test_hyperparameter_change_applies_to_next_update(agent):
    agent.update((0, 0), DOWN, -1, (1, 0))
    agent.learning_rate = 1.0
    agent.discount_factor = 0.0
    assert agent.update((0, 1), RIGHT, 10.0, (0, 2)) == pytest.approx(10.0)
    # Earlier values are not touched retroactively
    assert agent.get_q_value((0, 0), DOWN) == pytest.approx(-0.1)


def test_greedy_picks_highest_valid_action(agent):
    agent.set_q_value((0, 0), UP, 50.0)  # invalid from the corner
    agent.set_q_value((0, 0), RIGHT, 2.0)
    agent.set_q_value((0, 0), DOWN, 1.0)

    assert agent.select_action(0, 0) == RIGHT
    assert agent.last_policy == EXPLOITATION


def test_greedy_tie_goes_to_first_action(agent):
    assert agent.select_action(0, 0) == DOWN
    assert agent.select_action(2, 2) == UP


def test_greedy_value_dominates_valid_actions(world, rng):
    agent = QLearningAgent(world, epsilon=0.0, rng=rng)
    values = SeededRNG(7)
    for cell in world.cells():
        for action in range(4):
            agent.set_q_value(cell, action, values.random() * 10 - 5)

    for cell in world.cells():
        valid = world.valid_actions(*cell)
        if not valid:
            continue
        chosen = agent.select_action(*cell)
        assert chosen in valid
        assert all(agent.get_q_value(cell, chosen) >= agent.get_q_value(cell, a) for a in valid)


def test_exploration_is_uniform_over_valid_actions(rng):
    world = GridWorld(size=5, goal=(4, 4))
    agent = QLearningAgent(world, epsilon=1.0, rng=rng)
    agent.set_q_value((2, 2), RIGHT, 100.0)

    counts = Counter(agent.select_action(2, 2) for _ in range(4000))

    assert set(counts) == {UP, DOWN, LEFT, RIGHT}
    for action in (UP, DOWN, LEFT, RIGHT):
        assert 850 <= counts[action] <= 1150
    assert agent.last_policy == EXPLORATION


def test_exploration_never_picks_invalid_actions(world, rng):
    agent = QLearningAgent(world, epsilon=1.0, rng=rng)
    picks = {agent.select_action(2, 2) for _ in range(200)}
    assert picks == {UP, LEFT}


def test_boxed_in_returns_none(rng):
    world = GridWorld(size=3, goal=(2, 2), obstacles=[(0, 1), (1, 0)])
    agent = QLearningAgent(world, epsilon=0.5, rng=rng)
    assert agent.select_action(0, 0) is None


def test_reset_q_table(agent, world):
    agent.update((0, 0), DOWN, -1, (1, 0))
    agent.select_action(0, 0)
    agent.reset_q_table()
    assert all(v == 0.0 for cell in world.cells() for v in agent.q_values(cell))
    assert agent.last_policy is None


def test_greedy_action_only_for_positive_values(agent):
    assert agent.greedy_action((0, 0)) is None
    agent.set_q_value((0, 0), LEFT, 0.5)
    assert agent.greedy_action((0, 0)) == LEFT


def test_table_snapshot_is_a_copy(agent):
    snapshot = agent.table_snapshot()
    agent.update((0, 0), DOWN, -1, (1, 0))
    assert snapshot[Cell(0, 0)] == (0.0, 0.0, 0.0, 0.0)
