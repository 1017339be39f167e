from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quiz_master.core.models import (
    Attempt,
    Category,
    Difficulty,
    ParticipantAttempt,
    Question,
    Quiz,
    SubmittedAnswer,
    User,
)
from quiz_master.core.quiz_manager import QuizManager
from quiz_master.core.services.quiz_repository import QuestionDraft

BASE_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def make_quiz(quiz_id: str, correct_indices: list[int], category_id: str = "cat-1") -> Quiz:
    questions = [
        Question(
            id=f"{quiz_id}-q{position}",
            text=f"Question {position}",
            options=["A", "B", "C", "D"],
            correct_option_index=correct,
            order=position,
        )
        for position, correct in enumerate(correct_indices, start=1)
    ]
    return Quiz(
        id=quiz_id,
        category_id=category_id,
        title=f"Quiz {quiz_id}",
        difficulty=Difficulty.MEDIUM,
        questions=questions,
    )


def make_attempt(
    attempt_id: str,
    user: User,
    quiz_id: str,
    score: int,
    started: int,
    ended: int | None = None,
) -> ParticipantAttempt:
    attempt = Attempt(
        id=attempt_id,
        user_id=user.id,
        quiz_id=quiz_id,
        answers=[],
        score=score,
        started_at=at(started),
        ended_at=at(ended) if ended is not None else None,
    )
    return ParticipantAttempt(attempt=attempt, user=user)


def answers_for(quiz: Quiz, selections: list[int]) -> list[SubmittedAnswer]:
    return [
        SubmittedAnswer(question_id=question.id, selected_option=selected)
        for question, selected in zip(quiz.questions, selections)
    ]


def drafts(correct_indices: list[int]) -> list[QuestionDraft]:
    return [
        QuestionDraft(
            text=f"What is option {correct}?",
            options=["First", "Second", "Third", "Fourth"],
            correct_option_index=correct,
            time_limit_seconds=20,
        )
        for correct in correct_indices
    ]


@pytest.fixture
def category() -> Category:
    return Category(id="cat-1", name="Science", description="Physics and more", color="#1f9aa5")


@pytest.fixture
def users() -> dict[str, User]:
    return {
        name: User(id=f"user-{name}", username=name, level=level, xp=xp)
        for name, level, xp in [("alice", 3, 240), ("bob", 1, 40), ("carol", 2, 130)]
    }


@pytest.fixture
def manager() -> QuizManager:
    return QuizManager()
