"""Per-game text log of placements, shots and the final result."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from .ship import Coordinate, ShipPlacement, ShotResult

logger = logging.getLogger(__name__)


class MoveLog:
    """Buffers one game's moves and writes them to ``ships-game-<timestamp>.log``."""

    def __init__(
        self, directory: str | Path = ".", now: datetime | None = None, suffix: str = ""
    ) -> None:
        started = now or datetime.now()
        self.path = Path(directory) / f"ships-game-{started:%Y%m%d-%H%M%S}{suffix}.log"
        self.lines: list[str] = []

    def _append(self, text: str) -> None:
        stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        self.lines.append(f"{stamp} {text}")

    @staticmethod
    def _describe(placement: ShipPlacement) -> str:
        pos = placement.position
        return f"size={placement.size} pos=({pos.x},{pos.y}) dir={placement.direction.value}"

    def ship_placement(self, placement: ShipPlacement) -> None:
        self._append(f"place-ship: {self._describe(placement)}")

    def shot(self, position: Coordinate, result: ShotResult) -> None:
        self._append(f"shot: pos=({position.x},{position.y}) {result.to_log_string()}")

    def enemy_shot(self, position: Coordinate, result: ShotResult) -> None:
        self._append(f"enemy-shot: pos=({position.x},{position.y}) {result.to_log_string()}")

    def game_over(self, won: bool, total_shots: int, enemy_total_shots: int) -> None:
        outcome = "win" if won else "loss"
        self._append(
            f"game-over: result={outcome} total-shots={total_shots} "
            f"enemy-total-shots={enemy_total_shots}"
        )

    def enemy_ship(self, placement: ShipPlacement) -> None:
        self._append(f"enemy-ship: {self._describe(placement)}")

    def flush(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("\n".join(self.lines), encoding="utf-8")
        logger.info("move_log_written", extra={"path": str(self.path), "lines": len(self.lines)})
        return self.path
