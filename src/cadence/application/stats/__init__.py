# Application Stats Package
from .basics import clamp, mean, slope, standard_deviation, trend, variance

__all__ = ["clamp", "mean", "slope", "standard_deviation", "trend", "variance"]
