"""Credit enrolment instances: lookup and admin management."""

from datetime import datetime
from typing import Any

from enrol_credit.core.audit import log_event
from enrol_credit.core.config import get_settings
from enrol_credit.core.exceptions import BadRequestError, NotFoundError
from enrol_credit.core.logging import get_logger
from enrol_credit.core.strings import get_string
from enrol_credit.db.sequence import next_id
from enrol_credit.models.enrol_instance import STATUS_DISABLED, STATUS_ENABLED, EnrolInstance
from enrol_credit.models.user_enrolment import UserEnrolment
from enrol_credit.services.courses import get_course

log = get_logger(__name__)

ENROL_TYPE = "credit"

UPDATABLE_FIELDS = (
    "name",
    "status",
    "password",
    "use_group_keys",
    "cost",
    "max_enrolled",
    "new_enrols",
    "enrol_start",
    "enrol_end",
    "enrol_period",
    "sort_order",
)

# Fields a PATCH may clear with null.
NULLABLE_FIELDS = ("password", "enrol_start", "enrol_end")


async def find_instance(instance_id: int) -> EnrolInstance:
    instance = await EnrolInstance.get(instance_id)
    if not instance or instance.enrol != ENROL_TYPE:
        raise NotFoundError("Enrolment instance not found")
    return instance


async def get_course_instances(course_id: int, enabled_only: bool = False) -> list[EnrolInstance]:
    """Credit instances of a course in display order."""
    query = [EnrolInstance.course_id == course_id, EnrolInstance.enrol == ENROL_TYPE]
    if enabled_only:
        query.append(EnrolInstance.status == STATUS_ENABLED)
    return await EnrolInstance.find(*query).sort(+EnrolInstance.sort_order, +EnrolInstance.id).to_list()


def instance_name(instance: EnrolInstance) -> str:
    return instance.name.strip() or get_string("pluginname")


async def count_enrolments(instance_id: int) -> int:
    return await UserEnrolment.find(UserEnrolment.instance_id == instance_id).count()


async def is_enrolled(instance_id: int, user_id: int) -> bool:
    found = await UserEnrolment.find_one(
        UserEnrolment.instance_id == instance_id,
        UserEnrolment.user_id == user_id,
    )
    return found is not None


def _validate_fields(fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        if value is None and key not in NULLABLE_FIELDS:
            raise BadRequestError(f"{key} must not be null", details={"field": key})
    if fields.get("status") not in (None, STATUS_ENABLED, STATUS_DISABLED):
        raise BadRequestError(f"Invalid status: {fields['status']}")
    for key in ("cost", "max_enrolled", "enrol_period"):
        if fields.get(key) is not None and fields[key] < 0:
            raise BadRequestError(f"{key} must not be negative")
    start, end = fields.get("enrol_start"), fields.get("enrol_end")
    if start and end and end <= start:
        raise BadRequestError("Enrolment end date must be after the start date")


async def create_instance(course_id: int, fields: dict[str, Any], actor_id: int | None = None) -> EnrolInstance:
    """Add a credit enrolment method to a course; unset fields take plugin defaults."""
    await get_course(course_id)
    settings = get_settings()
    values = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
    values.setdefault("cost", settings.default_credit_cost)
    values.setdefault("enrol_period", settings.default_enrol_period)
    _validate_fields(values)
    instance = EnrolInstance(id=await next_id("enrol_instances"), course_id=course_id, **values)
    await instance.insert()
    log.info("instance_created", instance_id=instance.id, course_id=course_id, cost=instance.cost)
    await log_event(actor_id, "instance_created", "enrol_instance", instance.id, {"course_id": course_id})
    return instance


async def update_instance(instance_id: int, fields: dict[str, Any], actor_id: int | None = None) -> EnrolInstance:
    instance = await find_instance(instance_id)
    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    if "password" in changes and changes["password"] is None:
        changes["password"] = ""
    merged = {k: getattr(instance, k) for k in ("enrol_start", "enrol_end")} | changes
    _validate_fields(merged)
    for key, value in changes.items():
        setattr(instance, key, value)
    instance.updated_at = datetime.utcnow()
    await instance.save()
    log.info("instance_updated", instance_id=instance.id, fields=sorted(changes))
    await log_event(actor_id, "instance_updated", "enrol_instance", instance.id, {"fields": sorted(changes)})
    return instance
