"""Static metadata describing Quiz Master."""

APP_NAME = "Quiz Master"
APP_VERSION = "1.0.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Quiz Master is a quiz service: author multiple-choice quizzes, take them, "
    "earn XP on first attempts and compare results on per-quiz and per-category leaderboards."
)
