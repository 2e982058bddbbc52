"""Application entry point for the Trivia Rush service."""

from __future__ import annotations

import socket

from trivia_app.core.trivia_manager import TriviaManager
from trivia_app.server.api_server import run_api_server
from trivia_app.server.server_config import ServerConfig
from trivia_app.utils.logging_config import configure_logging


def _determine_participant_url(port: int) -> str:
    """Best-effort determination of the local IP for the participant-facing URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Initialize logging and serve the participant and admin API."""
    logger = configure_logging()
    config = ServerConfig.from_environment()
    logger.info("Starting Trivia Rush…")

    manager = TriviaManager(result_display_seconds=config.result_display_seconds)
    logger.info("Participant page available at %s", _determine_participant_url(config.port))
    run_api_server(manager, config)


if __name__ == "__main__":
    main()
