"""Tournament client configuration."""

from __future__ import annotations

import os
import random
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_SERVER = "http://localhost:8080"


def _default_name() -> str:
    return f"SmartAI-{random.randint(1000, 9999)}"


class ClientConfig(BaseModel):
    server_url: str = DEFAULT_SERVER
    player_name: str = Field(default_factory=_default_name)
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """Read `SALVO_SERVER` and `SALVO_PLAYER_NAME`; non-None ``overrides`` win."""
        data: dict[str, Any] = {}
        server = os.getenv("SALVO_SERVER")
        name = os.getenv("SALVO_PLAYER_NAME")
        if server:
            data["server_url"] = server
        if name:
            data["player_name"] = name
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)

    @property
    def websocket_base(self) -> str:
        return self.server_url.replace("https://", "wss://").replace("http://", "ws://").rstrip("/")
