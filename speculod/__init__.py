"""In-memory prediction-market state machine: markets, order matching, positions and genesis state."""

__version__ = "0.1.0"