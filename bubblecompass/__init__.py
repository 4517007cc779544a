"""Bubble compass: points a device toward Tottenham Hotspur Stadium."""

__version__ = "0.1.0"
