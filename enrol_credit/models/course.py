from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field


class Course(Document):
    id: int | None = None
    shortname: Indexed(str, unique=True)
    fullname: str = ""
    visible: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "courses"
