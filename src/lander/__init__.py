"""Chat-driven landing page generator."""

__version__ = "0.1.0"
