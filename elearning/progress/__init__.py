"""Student lesson progress: scoring and synchronization."""

from .models import LessonProgress
from .scoring import QuizResult, completion_percentage, score_quiz
from .service import ProgressSynchronizer


__all__ = ["LessonProgress", "ProgressSynchronizer", "QuizResult", "completion_percentage", "score_quiz"]
