"""Domain models for the quiz service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from quiz_master.constants.quiz_constants import STARTING_LEVEL


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


@dataclass(slots=True)
class Question:
    """Multiple-choice question with exactly four options."""

    id: str
    text: str
    options: list[str]
    correct_option_index: int
    order: int
    time_limit_seconds: int | None = None


@dataclass(slots=True)
class Category:
    id: str
    name: str
    description: str = ""
    color: str = ""
    icon: str = ""


@dataclass(slots=True)
class Quiz:
    """A published quiz. Questions are kept sorted by their ``order``."""

    id: str
    category_id: str
    title: str
    difficulty: Difficulty
    questions: list[Question]
    description: str = ""
    creator_id: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def total_questions(self) -> int:
        return len(self.questions)


@dataclass(slots=True)
class User:
    """Ranking-relevant view of a registered user."""

    id: str
    username: str
    email: str | None = None
    level: int = STARTING_LEVEL
    xp: int = 0
    created_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True, frozen=True)
class SubmittedAnswer:
    """One selected option for one question of an attempt."""

    question_id: str
    selected_option: int


@dataclass(slots=True)
class Attempt:
    """A single submission of answers for a quiz. Attempts are append-only."""

    id: str
    user_id: str
    quiz_id: str
    answers: list[SubmittedAnswer]
    score: int
    started_at: datetime
    ended_at: datetime | None = None

    @property
    def completed_at(self) -> datetime:
        return self.ended_at if self.ended_at is not None else self.started_at


@dataclass(slots=True)
class ParticipantAttempt:
    """An attempt joined with the user fields a leaderboard displays."""

    attempt: Attempt
    user: User
