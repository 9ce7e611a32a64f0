"""Network relay to a tournament server."""

from .config import ClientConfig
from .tournament import TournamentClient, TournamentSession

__all__ = ["ClientConfig", "TournamentClient", "TournamentSession"]
