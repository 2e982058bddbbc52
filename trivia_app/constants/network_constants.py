"""Network configuration constants for the trivia service."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
DEFAULT_ADMIN_PASSWORD: str = "admin"
ADMIN_PASSWORD_HEADER: str = "X-Admin-Password"
PARTICIPANT_COOKIE: str = "trivia_participant_id"
