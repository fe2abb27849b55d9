"""Quiz scoring and completion percentages.

All percentages round half up, so 1 of 8 is 13 and 1 of 3 is 33.
"""

from collections.abc import Iterable, Mapping
from typing import NamedTuple

from elearning.courses.models import Lesson, QuizData

from .models import LessonProgress


class QuizResult(NamedTuple):
    correct: int
    total: int
    score: int


def round_ratio(numerator: int, denominator: int) -> int:
    """Round `numerator / denominator` half up; 0 for an empty denominator."""
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def round_percentage(part: int, whole: int) -> int:
    return round_ratio(100 * part, whole)


def score_quiz(quiz: QuizData, answers: Mapping[str, int]) -> QuizResult:
    """Score answers keyed by question id; unanswered questions count as wrong."""
    total = len(quiz.questions)
    correct = sum(
        1
        for question in quiz.questions
        if question.id in answers and answers[question.id] == question.correct_option_index
    )
    return QuizResult(correct=correct, total=total, score=round_percentage(correct, total))


def completion_percentage(lessons: Iterable[Lesson], course_progress: Mapping[str, LessonProgress]) -> int:
    """Share of `lessons` marked completed in `course_progress`."""
    lesson_ids = [lesson.id for lesson in lessons]
    completed = sum(1 for lesson_id in lesson_ids if (entry := course_progress.get(lesson_id)) and entry.completed)
    return round_percentage(completed, len(lesson_ids))
