"""Background market simulation."""

from predsim.simulation.price_simulator import PriceSimulator

__all__ = ["PriceSimulator"]
