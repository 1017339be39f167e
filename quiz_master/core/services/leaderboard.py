"""Leaderboards built from the attempt log.

Rankings are recomputed on every call from the attempts handed in; nothing is
cached between calls. Only a user's first attempt per quiz (earliest
``started_at``) counts, however the later attempts scored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping, Sequence

from quiz_master.core.models import Attempt, Category, Difficulty, ParticipantAttempt, Quiz, User


def percentage(score: int, total: int) -> int:
    """Return ``score / total`` as a whole percentage, rounding halves up.

    A zero or negative ``total`` yields 0.
    """
    if total <= 0:
        return 0
    return (200 * score + total) // (2 * total)


def _chronological(attempts: Iterable[ParticipantAttempt]) -> list[ParticipantAttempt]:
    # The attempt id breaks started_at ties so the fold does not depend on input order.
    return sorted(attempts, key=lambda item: (item.attempt.started_at, item.attempt.id))


@dataclass(slots=True)
class QuizSummary:
    id: str
    title: str
    difficulty: Difficulty
    total_questions: int

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> "QuizSummary":
        return cls(
            id=quiz.id,
            title=quiz.title,
            difficulty=quiz.difficulty,
            total_questions=quiz.total_questions,
        )


@dataclass(slots=True)
class RankEntry:
    """One user's first attempt at a quiz."""

    user_id: str
    username: str
    level: int
    xp: int
    score: int
    max_score: int
    percentage: int
    completed_at: datetime


@dataclass(slots=True)
class QuizRanking:
    quiz: QuizSummary
    ranking: list[RankEntry]
    total_participants: int


def rank_quiz(quiz: QuizSummary, attempts: Iterable[ParticipantAttempt]) -> QuizRanking:
    """Rank users by the score of their first attempt at ``quiz``.

    Higher scores rank first; equal scores rank by earlier completion.
    """
    first_attempts: dict[str, RankEntry] = {}
    for item in _chronological(attempts):
        if item.attempt.quiz_id != quiz.id or item.user.id in first_attempts:
            continue
        first_attempts[item.user.id] = RankEntry(
            user_id=item.user.id,
            username=item.user.username,
            level=item.user.level,
            xp=item.user.xp,
            score=item.attempt.score,
            max_score=quiz.total_questions,
            percentage=percentage(item.attempt.score, quiz.total_questions),
            completed_at=item.attempt.completed_at,
        )

    ranking = sorted(first_attempts.values(), key=lambda e: (-e.score, e.completed_at))
    return QuizRanking(quiz=quiz, ranking=ranking, total_participants=len(ranking))


@dataclass(slots=True)
class CategorySummary:
    id: str
    name: str
    description: str
    color: str
    total_quizzes: int

    @classmethod
    def from_category(cls, category: Category, total_quizzes: int) -> "CategorySummary":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            color=category.color,
            total_quizzes=total_quizzes,
        )


@dataclass(slots=True)
class CategoryQuizAttempt:
    quiz_id: str
    score: int
    total_questions: int
    percentage: int
    completed_at: datetime


@dataclass(slots=True)
class CategoryEntry:
    """Mutable per-user accumulator used while folding category attempts."""

    user_id: str
    username: str
    level: int
    xp: int
    quiz_attempts: dict[str, CategoryQuizAttempt] = field(default_factory=dict)
    total_score: int = 0
    total_questions: int = 0
    quiz_count: int = 0
    average_percentage: int = 0

    def accept(self, quiz_id: str, score: int, total_questions: int, completed_at: datetime) -> bool:
        """Fold in an attempt if it is the user's first for ``quiz_id``."""
        if quiz_id in self.quiz_attempts:
            return False
        self.quiz_attempts[quiz_id] = CategoryQuizAttempt(
            quiz_id=quiz_id,
            score=score,
            total_questions=total_questions,
            percentage=percentage(score, total_questions),
            completed_at=completed_at,
        )
        self.quiz_count += 1
        self.total_score += score
        self.total_questions += total_questions
        self.average_percentage = percentage(self.total_score, self.total_questions)
        return True


@dataclass(slots=True)
class CategoryRankEntry:
    """Immutable snapshot returned to consumers."""

    user_id: str
    username: str
    level: int
    xp: int
    total_score: int
    total_questions: int
    average_percentage: int
    quiz_count: int
    quiz_attempts: list[CategoryQuizAttempt]


@dataclass(slots=True)
class CategoryRanking:
    category: CategorySummary
    ranking: list[CategoryRankEntry]
    total_participants: int


def rank_category(
    category: Category,
    quizzes: Sequence[Quiz],
    attempts: Iterable[ParticipantAttempt],
) -> CategoryRanking:
    """Rank users across every quiz of a category.

    Each user contributes their first attempt per quiz. Entries are ordered by
    average percentage, then number of quizzes taken, then total score, all
    descending.
    """
    summary = CategorySummary.from_category(category, total_quizzes=len(quizzes))
    if not quizzes:
        return CategoryRanking(category=summary, ranking=[], total_participants=0)

    question_counts = {quiz.id: quiz.total_questions for quiz in quizzes}
    entries: dict[str, CategoryEntry] = {}
    for item in _chronological(attempts):
        total_questions = question_counts.get(item.attempt.quiz_id)
        if total_questions is None:
            continue
        entry = entries.get(item.user.id)
        if entry is None:
            entry = CategoryEntry(
                user_id=item.user.id,
                username=item.user.username,
                level=item.user.level,
                xp=item.user.xp,
            )
            entries[item.user.id] = entry
        entry.accept(
            item.attempt.quiz_id,
            item.attempt.score,
            total_questions,
            item.attempt.completed_at,
        )

    sorted_entries = sorted(
        entries.values(),
        key=lambda e: (-e.average_percentage, -e.quiz_count, -e.total_score),
    )
    ranking = [
        CategoryRankEntry(
            user_id=entry.user_id,
            username=entry.username,
            level=entry.level,
            xp=entry.xp,
            total_score=entry.total_score,
            total_questions=entry.total_questions,
            average_percentage=entry.average_percentage,
            quiz_count=entry.quiz_count,
            quiz_attempts=list(entry.quiz_attempts.values()),
        )
        for entry in sorted_entries
    ]
    return CategoryRanking(category=summary, ranking=ranking, total_participants=len(ranking))


@dataclass(slots=True)
class MainCategory:
    """The category a user has attempted most, with their accuracy in it."""

    id: str
    name: str
    icon: str
    color: str
    quiz_count: int
    average_percentage: float


def main_category(
    attempts: Iterable[Attempt],
    quizzes: Mapping[str, Quiz],
    categories: Mapping[str, Category],
) -> MainCategory | None:
    """Pick the category with the most attempts by one user.

    Every attempt counts here, not only first attempts. Ties go to the
    category attempted earliest. The average is left unrounded.
    """
    totals: dict[str, list[int]] = {}
    for attempt in sorted(attempts, key=lambda a: (a.started_at, a.id)):
        quiz = quizzes.get(attempt.quiz_id)
        if quiz is None or quiz.category_id not in categories:
            continue
        counters = totals.setdefault(quiz.category_id, [0, 0, 0])
        counters[0] += 1
        counters[1] += attempt.score
        counters[2] += quiz.total_questions

    best_id: str | None = None
    best_count = 0
    for category_id, (count, _, _) in totals.items():
        if count > best_count:
            best_id, best_count = category_id, count
    if best_id is None:
        return None

    count, total_score, total_questions = totals[best_id]
    category = categories[best_id]
    return MainCategory(
        id=category.id,
        name=category.name,
        icon=category.icon,
        color=category.color,
        quiz_count=count,
        average_percentage=total_score / total_questions * 100 if total_questions else 0.0,
    )


@dataclass(slots=True)
class UserRankEntry:
    user_id: str
    username: str
    level: int
    xp: int


def rank_users(users: Iterable[User]) -> list[UserRankEntry]:
    """Order all users by XP, highest first; earlier sign-ups win ties."""
    ordered = sorted(users, key=lambda user: (-user.xp, user.created_at, user.id))
    return [
        UserRankEntry(user_id=user.id, username=user.username, level=user.level, xp=user.xp)
        for user in ordered
    ]
