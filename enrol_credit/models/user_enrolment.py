from datetime import datetime

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, IndexModel


class UserEnrolment(Document):
    instance_id: int
    course_id: int
    user_id: int
    status: str = "active"
    cost: int = 0
    time_start: datetime = Field(default_factory=datetime.utcnow)
    time_end: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "user_enrolments"
        indexes = [
            IndexModel([("instance_id", ASCENDING), ("user_id", ASCENDING)], unique=True),
            [("course_id", 1), ("user_id", 1)],
        ]
