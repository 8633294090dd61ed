import pytest
from PySide6.QtCore import QCoreApplication

from qgrid.app.controller import EpisodeController
from qgrid.domain.gridworld import GridWorld
from qgrid.domain.types import QLearningConfig
from qgrid.utils.rng import SeededRNG


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """QTimer needs a core application, even without a running event loop."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def rng():
    return SeededRNG(1234)


@pytest.fixture
def world():
    """The default 5x5 layout."""
    return GridWorld(size=5, goal=(4, 4), obstacles=[(1, 1), (2, 3), (3, 2)])


@pytest.fixture
def greedy_config():
    return QLearningConfig(epsilon=0.0)


@pytest.fixture
def controller(greedy_config, rng):
    ctrl = EpisodeController(greedy_config, rng=rng)
    yield ctrl
    ctrl.cleanup()
