"""Runtime settings for the HTTP service, read from the environment."""

from __future__ import annotations

from dataclasses import dataclass
import os

from trivia_app.constants.network_constants import DEFAULT_ADMIN_PASSWORD, DEFAULT_HOST, DEFAULT_PORT
from trivia_app.constants.quiz_constants import RESULT_DISPLAY_SECONDS


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    result_display_seconds: float = RESULT_DISPLAY_SECONDS

    @classmethod
    def from_environment(cls) -> "ServerConfig":
        return cls(
            host=os.environ.get("TRIVIA_HOST", DEFAULT_HOST),
            port=int(os.environ.get("TRIVIA_PORT", DEFAULT_PORT)),
            admin_password=os.environ.get("TRIVIA_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
            result_display_seconds=float(
                os.environ.get("TRIVIA_RESULT_DISPLAY_SECONDS", RESULT_DISPLAY_SECONDS)
            ),
        )
