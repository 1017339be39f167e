"""Business logic shared by the API routes: storage, scoring and rankings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from threading import Lock

from quiz_master.core.models import Attempt, Category, Difficulty, Quiz, SubmittedAnswer, User, utc_now
from quiz_master.core.services.attempt_scorer import (
    LevelingPolicy,
    XpAward,
    apply_xp,
    award_quiz_creation,
    score_attempt,
)
from quiz_master.core.services.leaderboard import (
    CategoryRanking,
    MainCategory,
    QuizRanking,
    QuizSummary,
    UserRankEntry,
    main_category,
    rank_category,
    rank_quiz,
    rank_users,
)
from quiz_master.core.services.quiz_repository import QuestionDraft, QuizRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AttemptResult:
    """What a submission produced, after it has been persisted."""

    attempt: Attempt
    score: int
    total_questions: int
    xp_gained: int
    is_first_attempt: bool
    level: int
    xp: int


@dataclass(slots=True)
class CategoryListing:
    category: Category
    quizzes: list[Quiz]


class QuizManager:
    """Facade over the quiz store, the attempt scorer and the leaderboards.

    Every public method runs under one lock, so reading prior attempts,
    storing a new attempt and awarding XP happen as a single step.
    """

    def __init__(
        self,
        repository: QuizRepository | None = None,
        leveling_policy: LevelingPolicy = LevelingPolicy.INCREMENTAL,
    ) -> None:
        self._lock = Lock()
        self._repository = repository or QuizRepository()
        self._leveling_policy = leveling_policy

    # --- Users ---

    def register_user(self, username: str, email: str | None = None) -> User:
        with self._lock:
            user = self._repository.add_user(username, email)
            logger.info("Registered user %s (%s)", user.username, user.id)
            return user

    def get_user(self, user_id: str) -> User:
        with self._lock:
            return self._repository.get_user(user_id)

    def update_user(self, user_id: str, username: str, email: str | None) -> User:
        with self._lock:
            user = self._repository.update_user(user_id, username, email)
            logger.info("Updated profile of user %s", user.id)
            return user

    def count_user_attempts(self, user_id: str) -> int:
        with self._lock:
            self._repository.get_user(user_id)
            return len(self._repository.get_user_attempts(user_id))

    def get_main_category(self, user_id: str) -> MainCategory | None:
        with self._lock:
            self._repository.get_user(user_id)
            attempts = self._repository.get_user_attempts(user_id)
            quizzes = {attempt.quiz_id: self._repository.get_quiz(attempt.quiz_id) for attempt in attempts}
            categories = {category.id: category for category in self._repository.get_categories()}
            return main_category(attempts, quizzes, categories)

    # --- Categories & quizzes ---

    def create_category(
        self,
        name: str,
        description: str = "",
        color: str = "",
        icon: str = "",
    ) -> Category:
        with self._lock:
            return self._repository.add_category(name, description, color, icon)

    def list_categories(self) -> list[CategoryListing]:
        with self._lock:
            return [
                CategoryListing(
                    category=category,
                    quizzes=self._repository.get_quizzes_in_category(category.id),
                )
                for category in self._repository.get_categories()
            ]

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            return self._repository.get_quiz(quiz_id)

    def create_quiz(
        self,
        creator_id: str,
        category_id: str,
        title: str,
        difficulty: Difficulty,
        questions: list[QuestionDraft],
        description: str = "",
    ) -> Quiz:
        """Store a quiz and credit its author with the creation bonus."""
        with self._lock:
            creator = self._repository.get_user(creator_id)
            quiz = self._repository.add_quiz(
                category_id=category_id,
                title=title,
                difficulty=difficulty,
                questions=questions,
                description=description,
                creator_id=creator_id,
            )
            award = award_quiz_creation(creator, self._leveling_policy)
            logger.info(
                "User %s created quiz %s with %d questions (+%d XP)",
                creator.username,
                quiz.id,
                quiz.total_questions,
                award.xp_gained,
            )
            self._log_level_up(creator, award)
            return quiz

    # --- Attempts ---

    def submit_attempt(
        self,
        user_id: str,
        quiz_id: str,
        answers: list[SubmittedAnswer],
    ) -> AttemptResult:
        """Score and persist a submission, awarding XP for a first attempt.

        Timestamps are taken here, never from the client, so a retake can
        never sort ahead of the attempt that earned the XP.
        """
        with self._lock:
            user = self._repository.get_user(user_id)
            quiz = self._repository.get_quiz(quiz_id)
            prior_attempts = self._repository.get_attempts(user_id, quiz_id)
            started_at = self._next_start_time(prior_attempts, utc_now())
            ended_at = started_at

            outcome = score_attempt(quiz, answers, prior_attempts)
            attempt = self._repository.append_attempt(
                user_id=user_id,
                quiz_id=quiz_id,
                answers=answers,
                score=outcome.score,
                started_at=started_at,
                ended_at=ended_at,
            )
            if outcome.is_first_attempt:
                award = apply_xp(user, outcome.xp_gained, self._leveling_policy)
                self._log_level_up(user, award)

            logger.info(
                "User %s scored %d/%d on quiz %s (%s attempt, +%d XP)",
                user.username,
                outcome.score,
                outcome.total_questions,
                quiz_id,
                "first" if outcome.is_first_attempt else "repeat",
                outcome.xp_gained,
            )
            return AttemptResult(
                attempt=attempt,
                score=outcome.score,
                total_questions=outcome.total_questions,
                xp_gained=outcome.xp_gained,
                is_first_attempt=outcome.is_first_attempt,
                level=user.level,
                xp=user.xp,
            )

    # --- Rankings ---

    def get_quiz_ranking(self, quiz_id: str) -> QuizRanking:
        with self._lock:
            quiz = self._repository.get_quiz(quiz_id)
            attempts = self._repository.get_participant_attempts({quiz.id})
            return rank_quiz(QuizSummary.from_quiz(quiz), attempts)

    def get_category_ranking(self, category_id: str) -> CategoryRanking:
        with self._lock:
            category = self._repository.get_category(category_id)
            quizzes = self._repository.get_quizzes_in_category(category_id)
            attempts = self._repository.get_participant_attempts({quiz.id for quiz in quizzes})
            return rank_category(category, quizzes, attempts)

    def get_global_ranking(self) -> list[UserRankEntry]:
        with self._lock:
            return rank_users(self._repository.get_users())

    # --- Helpers ---

    @staticmethod
    def _next_start_time(prior_attempts: list[Attempt], now: datetime) -> datetime:
        # Start times stay strictly increasing per (user, quiz) even on a coarse clock.
        if prior_attempts and now <= prior_attempts[-1].started_at:
            return prior_attempts[-1].started_at + timedelta(microseconds=1)
        return now

    @staticmethod
    def _log_level_up(user: User, award: XpAward) -> None:
        if award.levels_gained > 0:
            logger.info("User %s reached level %d", user.username, award.new_level)
