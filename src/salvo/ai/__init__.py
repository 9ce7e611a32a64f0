"""Decision engine: opponent tracking, probability heatmaps and shot/placement strategies."""

from .player import Player, RandomPlayer, SmartPlayer

__all__ = ["Player", "RandomPlayer", "SmartPlayer"]
