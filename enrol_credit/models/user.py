from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    """Platform identity. role "admin" may view hidden courses and manage credits."""
    id: int | None = None
    username: Indexed(str, unique=True)
    email: str = ""
    name: str = ""
    role: str = "user"  # "user" | "admin"
    session_version: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
