"""Static metadata describing the trivia service."""

APP_NAME = "Trivia Rush"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Trivia Rush runs timed multiple-choice quizzes in the browser. Participants register, "
    "race the clock for speed bonuses and compare their scores on a live leaderboard."
)
