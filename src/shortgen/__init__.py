"""Short-form vertical video generator."""

__version__ = "0.1.0"
