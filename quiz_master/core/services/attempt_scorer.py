"""Scoring of quiz submissions and the XP/level rules tied to them.

Only a user's first attempt at a quiz earns XP. Whether an attempt is the
first is decided from the prior attempts the caller fetched for the same
(user, quiz) pair; the scorer never queries storage itself.

Leveling note:
    The incremental rule adds ``floor(delta / 100)`` levels per XP event, which
    discards the remainder of every small award (five 50 XP awards give no
    level at all, one 250 XP award gives two). ``LevelingPolicy.CUMULATIVE``
    derives the level from total XP instead. ``INCREMENTAL`` stays the
    default so existing level values keep their meaning.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from quiz_master.constants.quiz_constants import (
    QUIZ_CREATION_XP,
    STARTING_LEVEL,
    XP_PER_CORRECT_ANSWER,
    XP_PER_LEVEL,
)
from quiz_master.core.models import Attempt, Quiz, SubmittedAnswer, User


class LevelingPolicy(str, Enum):
    INCREMENTAL = "incremental"
    CUMULATIVE = "cumulative"


@dataclass(slots=True)
class AttemptScore:
    """Outcome of scoring one submission."""

    score: int
    total_questions: int
    xp_gained: int
    is_first_attempt: bool


@dataclass(slots=True)
class XpAward:
    """Change applied to a user by a single XP event."""

    xp_gained: int
    levels_gained: int
    new_xp: int
    new_level: int


def count_correct_answers(quiz: Quiz, answers: Iterable[SubmittedAnswer]) -> int:
    """Count answers whose selected option matches the answer key.

    Answers for question ids that are not part of the quiz are ignored.
    """
    answer_key = {question.id: question.correct_option_index for question in quiz.questions}
    score = 0
    for answer in answers:
        correct_index = answer_key.get(answer.question_id)
        if correct_index is not None and answer.selected_option == correct_index:
            score += 1
    return score


def score_attempt(
    quiz: Quiz,
    answers: Sequence[SubmittedAnswer],
    prior_attempts: Sequence[Attempt],
) -> AttemptScore:
    """Score a submission and decide whether it is XP eligible."""
    score = count_correct_answers(quiz, answers)
    is_first_attempt = not prior_attempts
    return AttemptScore(
        score=score,
        total_questions=quiz.total_questions,
        xp_gained=score * XP_PER_CORRECT_ANSWER if is_first_attempt else 0,
        is_first_attempt=is_first_attempt,
    )


def level_increment(xp_delta: int) -> int:
    return xp_delta // XP_PER_LEVEL


def level_for_total_xp(total_xp: int) -> int:
    return total_xp // XP_PER_LEVEL + STARTING_LEVEL


def apply_xp(
    user: User,
    xp_delta: int,
    policy: LevelingPolicy = LevelingPolicy.INCREMENTAL,
) -> XpAward:
    """Add ``xp_delta`` to the user in place and update the level per ``policy``."""
    if xp_delta < 0:
        raise ValueError("XP awards cannot be negative.")

    previous_level = user.level
    user.xp += xp_delta
    if policy is LevelingPolicy.CUMULATIVE:
        user.level = max(previous_level, level_for_total_xp(user.xp))
    else:
        user.level += level_increment(xp_delta)

    return XpAward(
        xp_gained=xp_delta,
        levels_gained=user.level - previous_level,
        new_xp=user.xp,
        new_level=user.level,
    )


def award_quiz_creation(
    user: User,
    policy: LevelingPolicy = LevelingPolicy.INCREMENTAL,
) -> XpAward:
    return apply_xp(user, QUIZ_CREATION_XP, policy)
