"""goalroute: target-distance route matching engine."""

__version__ = "0.1.0"
