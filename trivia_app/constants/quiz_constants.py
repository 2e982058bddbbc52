"""Quiz-related constants shared across the scoring engine and the stores."""

DEFAULT_TIME_LIMIT_SECONDS: int = 30
MIN_TIME_LIMIT_SECONDS: int = 5
MAX_TIME_LIMIT_SECONDS: int = 120

DEFAULT_POINTS: int = 100
MIN_POINTS: int = 10
MAX_POINTS: int = 1000

DEFAULT_SPEED_BONUS_PCT: int = 50
MIN_SPEED_BONUS_PCT: int = 0
MAX_SPEED_BONUS_PCT: int = 100

OPTION_KEYS: tuple[str, ...] = ("A", "B", "C", "D")
# Recorded instead of an option key when the countdown expires first.
TIMEOUT_SENTINEL: str = "TIMEOUT"

TICK_INTERVAL_SECONDS: float = 1.0
RESULT_DISPLAY_SECONDS: float = 2.5

PARTICIPANTS_PAGE_SIZE: int = 50
LEADERBOARD_DEFAULT_LIMIT: int = 100
