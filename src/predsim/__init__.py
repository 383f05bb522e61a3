"""PredSim - simulated prediction market trading client."""

__version__ = "0.1.0"
