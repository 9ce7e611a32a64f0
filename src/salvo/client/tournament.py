"""Tournament client: HTTP registration plus a WebSocket move relay."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Callable, Literal

import requests
import websocket
from pydantic import BaseModel, Field, ValidationError

from salvo.ai.placement import PlacementStrategy, blocked_mask
from salvo.ai.player import SmartPlayer
from salvo.engine.ship import Coordinate, ShipPlacement, ShotResult

from .config import ClientConfig

logger = logging.getLogger(__name__)

GameId = Annotated[str, Field(min_length=1)]


class Position(BaseModel):
    x: int
    y: int

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.x, self.y)


class PlacementData(BaseModel):
    size: int
    position: Position
    direction: Literal["HORIZONTAL", "VERTICAL"]


class ShotData(BaseModel):
    position: Position


class Move(BaseModel):
    gameId: str
    type: Literal["SHIP_PLACEMENT", "SHOT"]
    data: PlacementData | ShotData


class MoveMessage(BaseModel):
    type: Literal["move"] = "move"
    move: Move


# Incoming frames


class ServerEvent(BaseModel):
    eventType: str
    data: dict[str, Any] = Field(default_factory=dict)


class ServerMessage(BaseModel):
    type: str
    clientId: str | None = None
    event: ServerEvent | None = None
    error: str | None = None
    message: str | None = None


class WaitForStart(BaseModel):
    connectedPlayers: int = 0
    totalPlayers: int = 0


class TournamentStart(BaseModel):
    totalPlayers: int = 0
    totalGames: int = 0


class GameSetup(BaseModel):
    gameId: GameId
    opponentId: str = "?"


class PlacementResponse(BaseModel):
    gameId: GameId
    status: Literal["ACCEPTED", "REJECTED"]
    shipsRemaining: int = 0
    error: str | None = None


class GameStart(BaseModel):
    gameId: GameId
    yourTurn: bool = False


class SunkShip(BaseModel):
    size: int = 2


class ShotAck(BaseModel):
    gameId: GameId
    position: Position
    result: Literal["MISS", "HIT", "SUNK", "INVALID"]
    sunkShip: SunkShip | None = None
    yourTurn: bool = False
    error: str | None = None


class EnemyShot(BaseModel):
    gameId: GameId
    position: Position
    result: str
    yourTurn: bool = False


class GameEnd(BaseModel):
    gameId: str | None = None
    result: str | None = None
    yourTotalShots: int = 0
    enemyTotalShots: int = 0


class Standing(BaseModel):
    rank: int = 0
    clientId: str = "?"
    wins: int = 0
    losses: int = 0
    disqualifications: int = 0
    winRate: float = 0.0


class TournamentEnd(BaseModel):
    standings: list[Standing] = Field(default_factory=list)


EVENT_PAYLOADS: dict[str, type[BaseModel]] = {
    "CONNECTED_WAIT_FOR_START": WaitForStart,
    "TOURNAMENT_START": TournamentStart,
    "GAME_SETUP": GameSetup,
    "SHIP_PLACEMENT_RESPONSE": PlacementResponse,
    "GAME_START": GameStart,
    "SHOT_ACK": ShotAck,
    "ENEMY_SHOT": EnemyShot,
    "GAME_END": GameEnd,
    "TOURNAMENT_END": TournamentEnd,
}


def placement_message(game_id: str, placement: ShipPlacement) -> str:
    data = PlacementData(
        size=placement.size,
        position=Position(x=placement.position.x, y=placement.position.y),
        direction=placement.direction.name,
    )
    return MoveMessage(move=Move(gameId=game_id, type="SHIP_PLACEMENT", data=data)).model_dump_json()


def shot_message(game_id: str, coord: Coordinate) -> str:
    data = ShotData(position=Position(x=coord.x, y=coord.y))
    return MoveMessage(move=Move(gameId=game_id, type="SHOT", data=data)).model_dump_json()


class TournamentSession:
    """Turns server events into player decisions; transport-agnostic.

    ``send`` delivers one outgoing text frame. ``done`` becomes True on
    ``TOURNAMENT_END``. Frames or payloads that fail validation are logged
    and dropped.
    """

    def __init__(self, player: SmartPlayer, send: Callable[[str], None]) -> None:
        self.player = player
        self.send = send
        self.current_game_id: str | None = None
        self.pending_placements: list[ShipPlacement] = []
        self.placement_index = 0
        self.standings: list[Standing] = []
        self.done = False

    def handle_message(self, text: str) -> None:
        logger.debug("frame_received", extra={"frame": text})
        try:
            root = ServerMessage.model_validate_json(text)
        except ValidationError as exc:
            logger.error("frame_unparseable", extra={"frame": text, "errors": exc.error_count()})
            return

        if root.type == "connected":
            logger.info("Connected to server (id=%s)", root.clientId)
        elif root.type == "event" and root.event is not None:
            self.handle_event(root.event.eventType, root.event.data)
        elif root.type == "error":
            logger.error("Server error %s: %s", root.error, root.message)

    def handle_event(self, event_type: str, data: dict[str, Any]) -> None:
        payload_model = EVENT_PAYLOADS.get(event_type)
        if payload_model is None:
            logger.debug("event_ignored", extra={"event_type": event_type})
            return
        try:
            payload = payload_model.model_validate(data)
        except ValidationError as exc:
            logger.warning(
                "event_invalid", extra={"event_type": event_type, "errors": exc.error_count()}
            )
            return
        getattr(self, f"_on_{event_type.lower()}")(payload)

    def _on_connected_wait_for_start(self, data: WaitForStart) -> None:
        logger.info("Waiting for players: %s/%s", data.connectedPlayers, data.totalPlayers)

    def _on_tournament_start(self, data: TournamentStart) -> None:
        logger.info(
            "Tournament started: %s players, %s games", data.totalPlayers, data.totalGames
        )

    def _on_game_setup(self, data: GameSetup) -> None:
        logger.info("New game %s vs %s", data.gameId, data.opponentId)
        self.current_game_id = data.gameId
        self.player.reset_for_new_game()
        self.pending_placements = self.player.place_fleet()
        self.placement_index = 0
        self.send(placement_message(data.gameId, self.pending_placements[0]))

    def _on_ship_placement_response(self, data: PlacementResponse) -> None:
        if data.status == "ACCEPTED":
            logger.info("Placement accepted, %d ships remaining", data.shipsRemaining)
            if data.shipsRemaining > 0 and self.placement_index + 1 < len(self.pending_placements):
                self.placement_index += 1
                self.send(placement_message(data.gameId, self.pending_placements[self.placement_index]))
            return

        failed = self.pending_placements[self.placement_index]
        logger.warning(
            "Placement rejected (%s), regenerating size %d", data.error or "UNKNOWN", failed.size
        )
        alternative = self.regenerate_placement(failed.size)
        if alternative is None:
            logger.error("No room left for a ship of size %d", failed.size)
            return
        self.pending_placements[self.placement_index] = alternative
        self.send(placement_message(data.gameId, alternative))

    def _on_game_start(self, data: GameStart) -> None:
        logger.info("Firing phase started, our turn: %s", data.yourTurn)
        if data.yourTurn:
            self.fire_shot(data.gameId)

    def _on_shot_ack(self, data: ShotAck) -> None:
        coord = data.position.to_coordinate()
        if data.result == "MISS":
            self.player.on_own_shot_result(coord, ShotResult.miss())
        elif data.result == "HIT":
            self.player.on_own_shot_result(coord, ShotResult.hit())
        elif data.result == "SUNK":
            size = data.sunkShip.size if data.sunkShip is not None else 2
            self.player.on_own_shot_result(coord, ShotResult.sunk(size))
        else:
            logger.warning("Shot %s rejected: %s", coord, data.error)
        logger.info("Shot %s -> %s", coord, data.result)

        if data.yourTurn:
            self.fire_shot(data.gameId)

    def _on_enemy_shot(self, data: EnemyShot) -> None:
        logger.info("Enemy shot at %s: %s", data.position.to_coordinate(), data.result)
        if data.yourTurn:
            self.fire_shot(data.gameId)

    def _on_game_end(self, data: GameEnd) -> None:
        logger.info(
            "Game %s finished: %s (our shots: %s, enemy shots: %s)",
            data.gameId,
            data.result,
            data.yourTotalShots,
            data.enemyTotalShots,
        )
        self.current_game_id = None

    def _on_tournament_end(self, data: TournamentEnd) -> None:
        self.standings = data.standings
        for entry in self.standings:
            logger.info(
                "%s. %-22s W:%s L:%s DQ:%s (%d%%)",
                entry.rank,
                entry.clientId,
                entry.wins,
                entry.losses,
                entry.disqualifications,
                int(entry.winRate * 100),
            )
        self.done = True

    def fire_shot(self, game_id: str) -> Coordinate:
        coord = self.player.next_shot()
        logger.info("Firing at %s", coord)
        self.send(shot_message(game_id, coord))
        return coord

    def regenerate_placement(self, size: int) -> ShipPlacement | None:
        """First legal placement of ``size`` given the ships the server already accepted."""
        blocked = blocked_mask(self.pending_placements[: self.placement_index])
        options = PlacementStrategy.legal_placements(size, blocked)
        return options[0] if options else None


class TournamentClient:
    """Registers over HTTP, then plays every game the server schedules over one WebSocket."""

    def __init__(self, config: ClientConfig, player: SmartPlayer | None = None) -> None:
        self.config = config
        self.player = player or SmartPlayer()
        self.http = requests.Session()
        self._ws: websocket.WebSocketApp | None = None
        self.session = TournamentSession(self.player, self._send)

    def run(self) -> TournamentSession:
        client_id = self.register()
        logger.info("Registered as %s", client_id)
        self.connect(client_id)
        logger.info("Session finished")
        return self.session

    def register(self) -> str:
        url = f"{self.config.server_url.rstrip('/')}/api/register"
        response = self.http.post(
            url, json={"name": self.config.player_name}, timeout=self.config.request_timeout
        )
        if response.status_code == 200:
            return response.json()["clientId"]
        if response.status_code == 409:
            logger.warning("Name %r already taken, reconnecting with it", self.config.player_name)
            return self.config.player_name
        logger.error(
            "registration_failed", extra={"status": response.status_code, "body": response.text}
        )
        raise RuntimeError(f"Registration failed: {response.status_code} {response.text}")

    def connect(self, client_id: str) -> None:
        url = f"{self.config.websocket_base}/api/client/ws?clientId={client_id}"
        logger.info("Connecting to %s", url)
        self._ws = websocket.WebSocketApp(
            url,
            on_open=lambda ws: logger.info("WebSocket open"),
            on_message=self._on_message,
            on_error=lambda ws, error: logger.error("WebSocket error: %s", error),
            on_close=lambda ws, code, reason: logger.info("WebSocket closed: %s %s", code, reason),
        )
        self._ws.run_forever()

    def _on_message(self, ws: websocket.WebSocketApp, message: str) -> None:
        self.session.handle_message(message)
        if self.session.done:
            ws.close()

    def _send(self, message: str) -> None:
        if self._ws is None:
            raise RuntimeError("WebSocket is not connected.")
        logger.debug("frame_sent", extra={"frame": message})
        self._ws.send(message)
