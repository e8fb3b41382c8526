"""Version information for cms-transfer."""

__version__ = "0.1.0"
