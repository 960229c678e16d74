from typing import Any

from fastapi import APIRouter, Depends, Form
from pydantic import BaseModel, Field

from enrol_credit.deps import get_current_user
from enrol_credit.models.user import User
from enrol_credit.services import enrol_form as enrol_form_service
from enrol_credit.services import enrolment as enrolment_service
from enrol_credit.services import instances as instances_service

router = APIRouter()


class InstanceInfo(BaseModel):
    id: int
    courseid: int
    type: str
    name: str
    status: bool | str
    enrolpassword: str | None = None


class EnrolWarning(BaseModel):
    item: str
    itemid: int
    warningcode: str
    message: str
    reason: str | None = None


class StatusWithWarnings(BaseModel):
    status: bool
    warnings: list[EnrolWarning] = Field(default_factory=list)


class EnrolUserRequest(BaseModel):
    courseid: int
    password: str = ""
    instanceid: int = 0


@router.get("/instances/{instanceid}", response_model=InstanceInfo, response_model_exclude_none=True)
async def get_instance_info(instanceid: int, user: User = Depends(get_current_user)):
    """Credit enrolment instance information."""
    return await enrolment_service.get_instance_info(user, instanceid)


@router.post("/users", response_model=StatusWithWarnings)
async def enrol_user(body: EnrolUserRequest, user: User = Depends(get_current_user)):
    """Enrol the current user in the course using credits."""
    result = await enrolment_service.enrol_user(user, body.courseid, body.password, body.instanceid)
    return {"status": result.status, "warnings": result.warnings}


@router.get("/form/{instanceid}")
async def enrol_form(instanceid: int, user: User = Depends(get_current_user)):
    """Form definition: checkout text, hidden course/instance ids, submit action."""
    instance = await instances_service.find_instance(instanceid)
    return await enrol_form_service.build_form(instance, user)


@router.post("/form/{instanceid}")
async def enrol_form_submit(
    instanceid: int,
    id: int = Form(...),
    instance: int = Form(...),
    enrolpassword: str = Form(""),
    user: User = Depends(get_current_user),
):
    """Submit the enrol form; errors come back keyed by field."""
    enrol_instance = await instances_service.find_instance(instanceid)
    data: dict[str, Any] = {"id": id, "instance": instance, "enrolpassword": enrolpassword}
    return await enrol_form_service.submit_form(enrol_instance, user, data)
