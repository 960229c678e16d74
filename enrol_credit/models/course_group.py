from beanie import Document
from pydantic import Field


class CourseGroup(Document):
    """Group inside a course; its enrolment_key doubles as a course enrolment key."""
    id: int | None = None
    course_id: int
    name: str
    enrolment_key: str | None = None
    member_ids: list[int] = Field(default_factory=list)

    class Settings:
        name = "course_groups"
        indexes = [[("course_id", 1)]]
