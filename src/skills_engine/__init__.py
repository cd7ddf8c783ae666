"""Skills Engine - per-user competency coverage from exam results."""

__version__ = "0.1.0"
