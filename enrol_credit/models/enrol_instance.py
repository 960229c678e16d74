from datetime import datetime

from beanie import Document
from pydantic import Field

STATUS_ENABLED = "enabled"
STATUS_DISABLED = "disabled"


class EnrolInstance(Document):
    """One credit enrolment method configured on a course."""
    id: int | None = None
    course_id: int
    enrol: str = "credit"
    name: str = ""
    status: str = STATUS_ENABLED  # enabled | disabled
    password: str = ""  # empty = no enrolment key
    use_group_keys: bool = False  # group enrolment keys are accepted as the key
    cost: int = 0  # credits debited per enrolment
    max_enrolled: int = 0  # 0 = unlimited
    new_enrols: bool = True
    enrol_start: datetime | None = None
    enrol_end: datetime | None = None
    enrol_period: int = 0  # seconds; 0 = no end date on the enrolment
    sort_order: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "enrol_instances"
        indexes = [[("course_id", 1), ("sort_order", 1)]]

    @property
    def enabled(self) -> bool:
        return self.status == STATUS_ENABLED
