from beanie import Document


class Counter(Document):
    """Integer id sequence per collection (_id = collection name)."""
    id: str
    seq: int = 0

    class Settings:
        name = "counters"
