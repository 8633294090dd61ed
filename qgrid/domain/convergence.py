"""Heuristic convergence check over recent episode rewards."""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence

from .types import ConvergenceStatus, STATUS_CONVERGED, STATUS_LEARNING


@dataclass(frozen=True)
class ConvergenceReport:
    """Statistics of the most recent window of episode rewards."""
    mean: float
    variance: float
    status: ConvergenceStatus


def assess_convergence(episode_rewards: Sequence[float], window: int = 10,
                       threshold: float = 100.0) -> Optional[ConvergenceReport]:
    """
    Judge whether recent rewards have settled.

    Uses the population variance of the last ``window`` rewards.

    Returns:
        None while fewer than ``window`` episodes exist or the window is
        empty, else a report.
    """
    if window < 1 or len(episode_rewards) < window:
        return None

    recent = np.asarray(episode_rewards[-window:], dtype=float)
    mean = float(np.mean(recent))
    variance = float(np.var(recent))
    status = STATUS_CONVERGED if variance < threshold else STATUS_LEARNING
    return ConvergenceReport(mean=mean, variance=variance, status=status)
