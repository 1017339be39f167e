"""In-memory store for users, categories, quizzes and the attempt log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from quiz_master.constants.quiz_constants import (
    DEFAULT_TIME_LIMIT_SECONDS,
    MAX_QUESTIONS_PER_QUIZ,
    MIN_QUESTIONS_PER_QUIZ,
    OPTIONS_PER_QUESTION,
)
from quiz_master.core.errors import ConflictError, NotFoundError, QuizValidationError
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


@dataclass(slots=True)
class QuestionDraft:
    """Question content as submitted by an author, before validation."""

    text: str
    options: list[str]
    correct_option_index: int
    time_limit_seconds: int | None = None
    order: int | None = None


def _new_id() -> str:
    return uuid4().hex


class QuizRepository:
    """Owns stored records. Not thread-safe; callers serialize access."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._categories: dict[str, Category] = {}
        self._quizzes: dict[str, Quiz] = {}
        self._attempts: list[Attempt] = []

    # --- Users ---

    def add_user(self, username: str, email: str | None = None) -> User:
        cleaned_username = username.strip()
        if not cleaned_username:
            raise QuizValidationError("Username must not be empty.")
        cleaned_email = email.strip().lower() if email else None
        self._ensure_unique_identity(cleaned_username, cleaned_email)

        user = User(id=_new_id(), username=cleaned_username, email=cleaned_email)
        self._users[user.id] = user
        return user

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def get_users(self) -> list[User]:
        return list(self._users.values())

    def update_user(self, user_id: str, username: str, email: str | None) -> User:
        """Change a user's username and email, keeping both unique."""
        user = self.get_user(user_id)
        cleaned_username = username.strip()
        if not cleaned_username:
            raise QuizValidationError("Username must not be empty.")
        cleaned_email = email.strip().lower() if email else None
        self._ensure_unique_identity(cleaned_username, cleaned_email, exclude_id=user.id)

        user.username = cleaned_username
        user.email = cleaned_email
        return user

    def _ensure_unique_identity(
        self,
        username: str,
        email: str | None,
        exclude_id: str | None = None,
    ) -> None:
        for existing in self._users.values():
            if existing.id == exclude_id:
                continue
            if existing.username.lower() == username.lower():
                raise ConflictError("User with this email or username already exists")
            if email and existing.email == email:
                raise ConflictError("User with this email or username already exists")

    # --- Categories ---

    def add_category(
        self,
        name: str,
        description: str = "",
        color: str = "",
        icon: str = "",
    ) -> Category:
        cleaned_name = name.strip()
        if not cleaned_name:
            raise QuizValidationError("Category name must not be empty.")
        category = Category(
            id=_new_id(),
            name=cleaned_name,
            description=description.strip(),
            color=color.strip(),
            icon=icon.strip(),
        )
        self._categories[category.id] = category
        return category

    def get_category(self, category_id: str) -> Category:
        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    def get_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: c.name.lower())

    # --- Quizzes ---

    def add_quiz(
        self,
        category_id: str,
        title: str,
        difficulty: Difficulty,
        questions: list[QuestionDraft],
        description: str = "",
        creator_id: str | None = None,
    ) -> Quiz:
        """Validate and store a new quiz. Stored questions are never edited."""
        self.get_category(category_id)
        if creator_id is not None:
            self.get_user(creator_id)

        cleaned_title = title.strip()
        if not cleaned_title:
            raise QuizValidationError("Quiz title must not be empty.")
        if not MIN_QUESTIONS_PER_QUIZ <= len(questions) <= MAX_QUESTIONS_PER_QUIZ:
            raise QuizValidationError(
                f"Quiz must contain between {MIN_QUESTIONS_PER_QUIZ} and "
                f"{MAX_QUESTIONS_PER_QUIZ} questions."
            )

        prepared = [
            self._prepare_question(draft, position)
            for position, draft in enumerate(questions, start=1)
        ]
        orders = [question.order for question in prepared]
        if len(set(orders)) != len(orders):
            raise QuizValidationError("Question order values must be unique.")
        prepared.sort(key=lambda question: question.order)

        quiz = Quiz(
            id=_new_id(),
            category_id=category_id,
            title=cleaned_title,
            difficulty=Difficulty(difficulty),
            questions=prepared,
            description=description.strip(),
            creator_id=creator_id,
        )
        self._quizzes[quiz.id] = quiz
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz", quiz_id)
        return quiz

    def get_quizzes_in_category(self, category_id: str) -> list[Quiz]:
        return sorted(
            (quiz for quiz in self._quizzes.values() if quiz.category_id == category_id),
            key=lambda quiz: quiz.created_at,
        )

    # --- Attempts ---

    def append_attempt(
        self,
        user_id: str,
        quiz_id: str,
        answers: list[SubmittedAnswer],
        score: int,
        started_at: datetime,
        ended_at: datetime | None,
    ) -> Attempt:
        attempt = Attempt(
            id=_new_id(),
            user_id=user_id,
            quiz_id=quiz_id,
            answers=list(answers),
            score=score,
            started_at=started_at,
            ended_at=ended_at,
        )
        self._attempts.append(attempt)
        return attempt

    def get_attempts(self, user_id: str, quiz_id: str) -> list[Attempt]:
        """Return a user's attempts at one quiz, earliest first."""
        return sorted(
            (a for a in self._attempts if a.user_id == user_id and a.quiz_id == quiz_id),
            key=lambda a: a.started_at,
        )

    def get_user_attempts(self, user_id: str) -> list[Attempt]:
        return [attempt for attempt in self._attempts if attempt.user_id == user_id]

    def get_participant_attempts(self, quiz_ids: set[str]) -> list[ParticipantAttempt]:
        """Return attempts for the given quizzes joined with their users, earliest first."""
        joined = [
            ParticipantAttempt(attempt=attempt, user=self._users[attempt.user_id])
            for attempt in self._attempts
            if attempt.quiz_id in quiz_ids and attempt.user_id in self._users
        ]
        joined.sort(key=lambda item: item.attempt.started_at)
        return joined

    # --- Validation ---

    def _prepare_question(self, draft: QuestionDraft, position: int) -> Question:
        """Validate and normalize a question before storage."""
        options = self._validate_options(draft.options)
        if not 0 <= draft.correct_option_index < len(options):
            raise QuizValidationError(
                f"Correct option index must be between 0 and {len(options) - 1}."
            )

        cleaned_text = draft.text.strip()
        if not cleaned_text:
            raise QuizValidationError("Question text must not be empty.")

        order = draft.order if draft.order is not None else position
        if order < 1:
            raise QuizValidationError("Question order must be a positive integer.")

        return Question(
            id=_new_id(),
            text=cleaned_text,
            options=options,
            correct_option_index=draft.correct_option_index,
            order=order,
            time_limit_seconds=self._normalize_time_limit(draft.time_limit_seconds),
        )

    @staticmethod
    def _validate_options(options: list[str]) -> list[str]:
        if len(options) != OPTIONS_PER_QUESTION:
            raise QuizValidationError(
                f"Each question must have exactly {OPTIONS_PER_QUESTION} options."
            )
        cleaned = [option.strip() for option in options]
        if any(not option for option in cleaned):
            raise QuizValidationError("Option text cannot be empty.")
        return cleaned

    @staticmethod
    def _normalize_time_limit(time_limit_seconds: int | None) -> int:
        if time_limit_seconds is None:
            return DEFAULT_TIME_LIMIT_SECONDS
        if not isinstance(time_limit_seconds, int) or isinstance(time_limit_seconds, bool):
            raise QuizValidationError("Time limit must be provided as an integer number of seconds.")
        if time_limit_seconds <= 0:
            raise QuizValidationError("Time limit must be a positive integer.")
        return time_limit_seconds
