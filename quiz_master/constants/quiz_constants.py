"""Quiz-related constants shared across the core and the API layer."""

OPTIONS_PER_QUESTION: int = 4
MIN_QUESTIONS_PER_QUIZ: int = 1
MAX_QUESTIONS_PER_QUIZ: int = 20
DEFAULT_TIME_LIMIT_SECONDS: int = 30

XP_PER_CORRECT_ANSWER: int = 10
QUIZ_CREATION_XP: int = 50
XP_PER_LEVEL: int = 100
STARTING_LEVEL: int = 1
