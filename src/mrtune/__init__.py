"""mrtune -- what-if simulation and configuration tuning for map/reduce jobs."""

__version__ = "0.1.0"
