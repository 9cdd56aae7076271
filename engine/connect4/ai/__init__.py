"""AI components: Monte Carlo playout engine."""

from .montecarlo import (
    SimulationEngine, MonteCarloConfig, SimulationStats, TrialResult,
    ILLEGAL_SCORE, play_trial, select_move, play_move,
)
