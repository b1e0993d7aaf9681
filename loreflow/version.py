"""Version information for LoreFlow."""

__version__ = "0.1.0"
