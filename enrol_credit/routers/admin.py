from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from enrol_credit.core.exceptions import NotFoundError
from enrol_credit.core.security import create_session_token
from enrol_credit.deps import require_admin, session_payload_for_user
from enrol_credit.models.user import User
from enrol_credit.services import credits as credits_service
from enrol_credit.services import instances as instances_service

router = APIRouter()


# Keeps credit * quantity inside a 64-bit balance.
MAX_ENTRY_VALUE = 2**31 - 1


class CreditEntry(BaseModel):
    userid: int
    credit: int = Field(le=MAX_ENTRY_VALUE)
    quantity: int = Field(le=MAX_ENTRY_VALUE)


class CreditUsersRequest(BaseModel):
    credits: list[CreditEntry]


class InstanceFields(BaseModel):
    name: str | None = None
    status: str | None = None
    password: str | None = None
    use_group_keys: bool | None = None
    cost: int | None = None
    max_enrolled: int | None = None
    new_enrols: bool | None = None
    enrol_start: datetime | None = None
    enrol_end: datetime | None = None
    enrol_period: int | None = None
    sort_order: int | None = None

    @field_validator("enrol_start", "enrol_end")
    @classmethod
    def _naive_utc(cls, v: datetime | None) -> datetime | None:
        # Stored datetimes are naive UTC.
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class CreateInstanceRequest(InstanceFields):
    courseid: int


class SessionRequest(BaseModel):
    userid: int


def _instance_out(instance) -> dict:
    return {
        "id": instance.id,
        "courseid": instance.course_id,
        "name": instances_service.instance_name(instance),
        "status": instance.status,
        "cost": instance.cost,
        "max_enrolled": instance.max_enrolled,
        "use_group_keys": instance.use_group_keys,
        "has_password": bool(instance.password),
        "new_enrols": instance.new_enrols,
        "enrol_start": instance.enrol_start.isoformat() if instance.enrol_start else None,
        "enrol_end": instance.enrol_end.isoformat() if instance.enrol_end else None,
        "enrol_period": instance.enrol_period,
    }


@router.post("/credits")
async def admin_credit_users(body: CreditUsersRequest, admin: User = Depends(require_admin)):
    """Admin: add credit x quantity to each user. One bad entry rejects the whole batch."""
    grants = [credits_service.CreditGrant(e.userid, e.credit, e.quantity) for e in body.credits]
    await credits_service.credit_users(grants, actor_id=admin.id)
    return {"status": True, "warnings": []}


@router.get("/credits/{userid}")
async def admin_user_balance(userid: int, admin: User = Depends(require_admin)):
    """Admin: any user's balance."""
    if not await User.get(userid):
        raise NotFoundError("User not found")
    return {"userid": userid, "balance": await credits_service.get_balance(userid)}


@router.post("/instances")
async def admin_create_instance(body: CreateInstanceRequest, admin: User = Depends(require_admin)):
    fields = body.model_dump(exclude={"courseid"}, exclude_none=True)
    instance = await instances_service.create_instance(body.courseid, fields, actor_id=admin.id)
    return _instance_out(instance)


@router.patch("/instances/{instanceid}")
async def admin_update_instance(instanceid: int, body: InstanceFields, admin: User = Depends(require_admin)):
    fields = body.model_dump(exclude_unset=True)
    instance = await instances_service.update_instance(instanceid, fields, actor_id=admin.id)
    return _instance_out(instance)


@router.get("/courses/{courseid}/instances")
async def admin_course_instances(courseid: int, admin: User = Depends(require_admin)):
    instances = await instances_service.get_course_instances(courseid)
    return {"instances": [_instance_out(i) for i in instances]}


@router.post("/sessions")
async def admin_issue_session(body: SessionRequest, admin: User = Depends(require_admin)):
    """Admin: issue a signed session token for a user (web service token)."""
    user = await User.get(body.userid)
    if not user:
        raise NotFoundError("User not found")
    return {"token": create_session_token(session_payload_for_user(user)), "userid": user.id}
