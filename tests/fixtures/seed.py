"""Seed rows shared by the unit and integration tests."""

TEACHER_ID = "teacher-1"
STUDENT_ID = "student-1"
INVITE_CODE = "CED-2025"
DEFAULT_THUMBNAIL = "https://example.com/default.jpg"


def seed_tables() -> dict[str, list[dict]]:
    """One teacher, one student and one published course with a video and a quiz lesson."""
    return {
        "profiles": [
            {"id": TEACHER_ID, "full_name": "Grace Teacher", "email": "grace@example.com", "role": "teacher"},
            {"id": STUDENT_ID, "full_name": "Ada Student", "email": "ada@example.com", "role": "student"},
        ],
        "courses": [
            {
                "id": "course-1",
                "title": "Intro to Python",
                "description": "Basics",
                "thumbnail": DEFAULT_THUMBNAIL,
                "instructor_id": TEACHER_ID,
                "instructor_name": "Grace Teacher",
                "status": "published",
                "created_at": 1,
            },
            {
                "id": "course-draft",
                "title": "Unreleased",
                "description": "",
                "thumbnail": DEFAULT_THUMBNAIL,
                "instructor_id": TEACHER_ID,
                "instructor_name": "Grace Teacher",
                "status": "draft",
                "created_at": 2,
            },
        ],
        "lessons": [
            {
                "id": "lesson-video",
                "course_id": "course-1",
                "title": "Welcome",
                "description": "",
                "type": "video",
                "video_url": "https://youtu.be/abc",
                "quiz_data": None,
                "duration": 10,
                "order_index": 0,
            },
            {
                "id": "lesson-quiz",
                "course_id": "course-1",
                "title": "Check",
                "description": "",
                "type": "quiz",
                "video_url": None,
                "quiz_data": {
                    "id": "quiz-1",
                    "title": "Check",
                    "questions": [
                        {"id": "q1", "text": "1+1?", "options": ["1", "2"], "correctOptionIndex": 1},
                        {"id": "q2", "text": "2+2?", "options": ["4", "5"], "correctOptionIndex": 0},
                        {"id": "q3", "text": "3+3?", "options": ["6", "7"], "correctOptionIndex": 0},
                    ],
                },
                "duration": None,
                "order_index": 1,
            },
        ],
        "enrollments": [],
        "student_progress": [],
    }
