"""Quiz scoring and completion percentages."""

import pytest

from elearning.courses.models import Lesson, LessonType, QuizData, QuizQuestion
from elearning.progress.models import LessonProgress
from elearning.progress.scoring import completion_percentage, round_percentage, score_quiz


def _quiz(count: int) -> QuizData:
    return QuizData(
        id="quiz",
        title="Quiz",
        questions=[
            QuizQuestion(id=f"q{i}", text=f"Q{i}", options=["a", "b"], correct_option_index=0) for i in range(count)
        ],
    )


def _lessons(count: int) -> list[Lesson]:
    return [Lesson(id=f"l{i}", course_id="c", title=f"L{i}", type=LessonType.VIDEO, video_url="v") for i in range(count)]


@pytest.mark.parametrize(
    ("part", "whole", "expected"),
    [(1, 8, 13), (1, 3, 33), (2, 3, 67), (1, 2, 50), (0, 5, 0), (5, 5, 100), (3, 0, 0)],
)
def test_round_percentage_rounds_half_up(part: int, whole: int, expected: int) -> None:
    assert round_percentage(part, whole) == expected


class TestScoreQuiz:
    def test_all_correct(self) -> None:
        result = score_quiz(_quiz(3), {"q0": 0, "q1": 0, "q2": 0})
        assert result == (3, 3, 100)

    def test_unanswered_questions_are_wrong(self) -> None:
        result = score_quiz(_quiz(3), {"q0": 0})
        assert result.correct == 1
        assert result.score == 33

    def test_answers_for_unknown_questions_are_ignored(self) -> None:
        result = score_quiz(_quiz(2), {"q0": 1, "other": 0})
        assert result.correct == 0

    def test_mixed_answer_key_scores_quarter(self) -> None:
        quiz = QuizData(
            id="quiz",
            title="Quiz",
            questions=[
                QuizQuestion(id=f"q{i}", text=f"Q{i}", options=["a", "b", "c", "d"], correct_option_index=i)
                for i in range(4)
            ],
        )
        result = score_quiz(quiz, {"q0": 0, "q1": 0, "q2": 0, "q3": 0})
        assert result == (1, 4, 25)

    def test_empty_quiz_scores_zero(self) -> None:
        assert score_quiz(_quiz(0), {}).score == 0


class TestCompletionPercentage:
    def test_counts_only_completed_lessons_of_the_course(self) -> None:
        progress = {
            "l0": LessonProgress(completed=True),
            "l1": LessonProgress(completed=False, score=80),
            "stale": LessonProgress(completed=True),
        }
        assert completion_percentage(_lessons(3), progress) == 33

    def test_zero_lessons_is_zero_percent(self) -> None:
        assert completion_percentage([], {"x": LessonProgress(completed=True)}) == 0
