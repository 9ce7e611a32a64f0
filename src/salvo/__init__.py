"""Salvo: a probabilistic naval-combat player for the 10x10 ten-ship game."""

__version__ = "0.1.0"
