"""Grid-world Q-learning simulator.

This package implements a tabular Q-learning agent that learns to walk from
a start cell to a goal cell on a small grid with obstacles, together with an
episode controller that drives the learning step by step for observers.
"""

__version__ = "1.0.0"
__author__ = "QGrid Simulation"
