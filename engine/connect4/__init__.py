"""Connect Four with Monte Carlo move selection."""

__version__ = "0.1.0"
