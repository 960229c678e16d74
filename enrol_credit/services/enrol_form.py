"""Enrol form shown on the course enrol page: definition and submission handling."""

from typing import Any

from pydantic import BaseModel, Field

from enrol_credit.core.strings import get_string
from enrol_credit.models.enrol_instance import EnrolInstance
from enrol_credit.models.user import User
from enrol_credit.services import credits as credits_service
from enrol_credit.services import enrolment as enrolment_service
from enrol_credit.services import instances as instances_service
from enrol_credit.services.gate import GateReject


class FormField(BaseModel):
    name: str
    type: str  # hidden | password | html | submit
    value: Any = None
    label: str | None = None


class EnrolFormDefinition(BaseModel):
    form_id: str
    header: str
    checkout: str
    fields: list[FormField] = Field(default_factory=list)
    too_many: bool = False


class EnrolFormResult(BaseModel):
    enrolled: bool
    errors: dict[str, str] = Field(default_factory=dict)
    courseid: int
    balance: int | None = None


def form_identifier(instance: EnrolInstance) -> str:
    """Unique per instance, so several credit forms can share one page."""
    return f"{instance.id}_enrol_form"


async def build_form(instance: EnrolInstance, user: User) -> EnrolFormDefinition:
    status = await enrolment_service.check_status(instance, user)
    too_many = isinstance(status, GateReject) and status.reason == "too_many"
    balance = await credits_service.get_balance(user.id)
    fields = [
        FormField(name="submitbutton", type="submit", label=get_string("purchase")),
        FormField(name="id", type="hidden", value=instance.course_id),
        FormField(name="instance", type="hidden", value=instance.id),
    ]
    if instance.password:
        fields.insert(0, FormField(name="enrolpassword", type="password", label=get_string("password")))
    return EnrolFormDefinition(
        form_id=form_identifier(instance),
        header=instances_service.instance_name(instance),
        checkout=get_string("checkout", credit_cost=instance.cost, user_credits=balance),
        fields=fields,
        too_many=too_many,
    )


def validate_submission(instance: EnrolInstance, data: dict[str, Any], too_many: bool) -> dict[str, str]:
    """Errors keyed by field; the cap check reports only the generic error."""
    errors: dict[str, str] = {}
    if too_many:
        errors["notice"] = get_string("error")
        return errors
    if data.get("id") != instance.course_id:
        errors["id"] = get_string("error")
    if data.get("instance") != instance.id:
        errors["instance"] = get_string("error")
    return errors


async def submit_form(instance: EnrolInstance, user: User, data: dict[str, Any]) -> EnrolFormResult:
    status = await enrolment_service.check_status(instance, user)
    too_many = isinstance(status, GateReject) and status.reason == "too_many"
    errors = validate_submission(instance, data, too_many)
    if errors:
        return EnrolFormResult(enrolled=False, errors=errors, courseid=instance.course_id)

    outcome = await enrolment_service.try_enrol(instance, user, data.get("enrolpassword") or "")
    if not outcome.enrolled:
        return EnrolFormResult(
            enrolled=False,
            errors={"notice": outcome.rejection.message},
            courseid=instance.course_id,
        )
    return EnrolFormResult(enrolled=True, courseid=instance.course_id, balance=outcome.balance_after)
