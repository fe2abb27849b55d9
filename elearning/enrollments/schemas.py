from pydantic import BaseModel


class EnrollmentResponse(BaseModel):
    course_id: str
    enrolled: bool
    created: bool = False


class EnrollmentListResponse(BaseModel):
    course_ids: list[str]
