"""Request schemas and JSON serializers for the HTTP API.

Field names are camelCase on the wire and snake_case in Python.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from quiz_master.constants.quiz_constants import (
    MAX_QUESTIONS_PER_QUIZ,
    MIN_QUESTIONS_PER_QUIZ,
    OPTIONS_PER_QUESTION,
)
from quiz_master.core.models import Category, Difficulty, Question, Quiz, SubmittedAnswer, User
from quiz_master.core.quiz_manager import AttemptResult, CategoryListing
from quiz_master.core.services.leaderboard import (
    CategoryQuizAttempt,
    CategoryRankEntry,
    CategoryRanking,
    MainCategory,
    QuizRanking,
    RankEntry,
    UserRankEntry,
)
from quiz_master.core.services.quiz_repository import QuestionDraft


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterPayload(_CamelModel):
    """Payload schema for creating a user."""

    username: str = Field(min_length=3, max_length=30)
    email: str | None = Field(default=None, max_length=64)


class UpdateProfilePayload(_CamelModel):
    """Payload schema for changing the current user's username and email."""

    username: str = Field(min_length=3, max_length=32)
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _email_length(cls, email: object) -> object:
        if isinstance(email, str) and len(email) > 64:
            raise ValueError("Email must be at most 64 characters.")
        return email


class CategoryPayload(_CamelModel):
    name: str = Field(min_length=1, max_length=80)
    description: str = ""
    color: str = ""
    icon: str = ""


class QuestionPayload(_CamelModel):
    text: str = Field(min_length=1)
    options: list[str] = Field(min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    correct_option_index: int = Field(ge=0, lt=OPTIONS_PER_QUESTION)
    time_limit_seconds: int | None = Field(default=None, gt=0)
    order: int | None = Field(default=None, ge=1)

    def to_draft(self) -> QuestionDraft:
        return QuestionDraft(
            text=self.text,
            options=list(self.options),
            correct_option_index=self.correct_option_index,
            time_limit_seconds=self.time_limit_seconds,
            order=self.order,
        )


class QuizPayload(_CamelModel):
    """Payload schema for authoring a quiz."""

    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category_id: str
    difficulty: Difficulty
    questions: list[QuestionPayload] = Field(
        min_length=MIN_QUESTIONS_PER_QUIZ,
        max_length=MAX_QUESTIONS_PER_QUIZ,
    )


class AnswerPayload(_CamelModel):
    question_id: str
    selected_option: int = Field(ge=0, lt=OPTIONS_PER_QUESTION)


class AttemptPayload(_CamelModel):
    """Payload schema for a quiz submission."""

    answers: list[AnswerPayload]

    @field_validator("answers")
    @classmethod
    def _one_answer_per_question(cls, answers: list[AnswerPayload]) -> list[AnswerPayload]:
        question_ids = [answer.question_id for answer in answers]
        if len(set(question_ids)) != len(question_ids):
            raise ValueError("Each question may be answered at most once.")
        return answers

    def to_answers(self) -> list[SubmittedAnswer]:
        return [
            SubmittedAnswer(question_id=answer.question_id, selected_option=answer.selected_option)
            for answer in self.answers
        ]


def isoformat(moment: datetime) -> str:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc).isoformat()
    return moment.astimezone(timezone.utc).isoformat()


def serialize_user(user: User) -> dict[str, object]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "level": user.level,
        "xp": user.xp,
        "createdAt": isoformat(user.created_at),
    }


def serialize_category(category: Category) -> dict[str, object]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "color": category.color,
        "icon": category.icon,
    }


def serialize_category_listing(listing: CategoryListing) -> dict[str, object]:
    payload = serialize_category(listing.category)
    payload["quizzes"] = [
        {
            "id": quiz.id,
            "title": quiz.title,
            "description": quiz.description,
            "difficulty": quiz.difficulty.value,
            "totalQuestions": quiz.total_questions,
        }
        for quiz in listing.quizzes
    ]
    return payload


def _serialize_question(question: Question, include_answer: bool) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": question.id,
        "text": question.text,
        "options": list(question.options),
        "timeLimitSeconds": question.time_limit_seconds,
        "order": question.order,
    }
    if include_answer:
        payload["correctOptionIndex"] = question.correct_option_index
    return payload


def serialize_quiz(quiz: Quiz, include_answers: bool = False) -> dict[str, object]:
    """Serialize a quiz. The answer key is only included when asked for."""
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "categoryId": quiz.category_id,
        "creatorId": quiz.creator_id,
        "difficulty": quiz.difficulty.value,
        "totalQuestions": quiz.total_questions,
        "createdAt": isoformat(quiz.created_at),
        "questions": [_serialize_question(q, include_answers) for q in quiz.questions],
    }


def serialize_attempt_result(result: AttemptResult) -> dict[str, object]:
    attempt = result.attempt
    return {
        "attempt": {
            "id": attempt.id,
            "userId": attempt.user_id,
            "quizId": attempt.quiz_id,
            "score": attempt.score,
            "answers": [
                {"questionId": a.question_id, "selectedOption": a.selected_option}
                for a in attempt.answers
            ],
            "startedAt": isoformat(attempt.started_at),
            "endedAt": isoformat(attempt.completed_at),
        },
        "score": result.score,
        "totalQuestions": result.total_questions,
        "xpGained": result.xp_gained,
        "isFirstAttempt": result.is_first_attempt,
        "level": result.level,
        "xp": result.xp,
    }


def _serialize_rank_entry(entry: RankEntry) -> dict[str, object]:
    return {
        "userId": entry.user_id,
        "username": entry.username,
        "level": entry.level,
        "xp": entry.xp,
        "score": entry.score,
        "maxScore": entry.max_score,
        "percentage": entry.percentage,
        "completedAt": isoformat(entry.completed_at),
    }


def serialize_quiz_ranking(ranking: QuizRanking) -> dict[str, object]:
    return {
        "quiz": {
            "id": ranking.quiz.id,
            "title": ranking.quiz.title,
            "difficulty": ranking.quiz.difficulty.value,
            "totalQuestions": ranking.quiz.total_questions,
        },
        "ranking": [_serialize_rank_entry(entry) for entry in ranking.ranking],
        "totalParticipants": ranking.total_participants,
    }


def _serialize_category_quiz_attempt(attempt: CategoryQuizAttempt) -> dict[str, object]:
    return {
        "quizId": attempt.quiz_id,
        "score": attempt.score,
        "totalQuestions": attempt.total_questions,
        "percentage": attempt.percentage,
        "completedAt": isoformat(attempt.completed_at),
    }


def _serialize_category_rank_entry(entry: CategoryRankEntry) -> dict[str, object]:
    return {
        "userId": entry.user_id,
        "username": entry.username,
        "level": entry.level,
        "xp": entry.xp,
        "totalScore": entry.total_score,
        "totalQuestions": entry.total_questions,
        "averagePercentage": entry.average_percentage,
        "quizCount": entry.quiz_count,
        "quizAttempts": [_serialize_category_quiz_attempt(a) for a in entry.quiz_attempts],
    }


def serialize_category_ranking(ranking: CategoryRanking) -> dict[str, object]:
    category = ranking.category
    return {
        "category": {
            "id": category.id,
            "name": category.name,
            "description": category.description,
            "color": category.color,
            "totalQuizzes": category.total_quizzes,
        },
        "ranking": [_serialize_category_rank_entry(entry) for entry in ranking.ranking],
        "totalParticipants": ranking.total_participants,
    }


def serialize_main_category(main: MainCategory | None) -> dict[str, object] | None:
    if main is None:
        return None
    return {
        "id": main.id,
        "name": main.name,
        "icon": main.icon,
        "color": main.color,
        "quizCount": main.quiz_count,
        "averagePercentage": main.average_percentage,
    }


def serialize_global_ranking(ranking: list[UserRankEntry]) -> list[dict[str, object]]:
    return [
        {"id": entry.user_id, "username": entry.username, "level": entry.level, "xp": entry.xp}
        for entry in ranking
    ]
