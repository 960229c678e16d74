"""Credit enrolment: gate evaluation, debit-and-enrol, remote API operations."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from pymongo.errors import DuplicateKeyError

from enrol_credit.core.audit import log_event
from enrol_credit.core.config import get_settings
from enrol_credit.core.exceptions import CannotEnrolError, CourseHiddenError
from enrol_credit.core.logging import get_logger
from enrol_credit.core.strings import get_string
from enrol_credit.models.course_group import CourseGroup
from enrol_credit.models.enrol_instance import EnrolInstance
from enrol_credit.models.user import User
from enrol_credit.models.user_enrolment import UserEnrolment
from enrol_credit.services import courses as courses_service
from enrol_credit.services import credits as credits_service
from enrol_credit.services import instances as instances_service
from enrol_credit.services.gate import (
    CODE_STATUS,
    STATUS_RULES,
    EnrolContext,
    GateReject,
    GateResult,
    evaluate,
)

log = get_logger(__name__)


@dataclass
class EnrolOutcome:
    enrolled: bool
    enrolment: UserEnrolment | None = None
    balance_after: int | None = None
    rejection: GateReject | None = None


@dataclass
class EnrolUserResult:
    status: bool
    warnings: list[dict[str, Any]] = field(default_factory=list)


def warning_for(instance: EnrolInstance, rejection: GateReject) -> dict[str, Any]:
    return {
        "item": "instance",
        "itemid": instance.id,
        "warningcode": rejection.warningcode,
        "message": rejection.message,
        "reason": rejection.reason,
    }


async def build_context(
    instance: EnrolInstance,
    user: User,
    password: str = "",
    with_credit: bool = True,
) -> EnrolContext:
    """Gather balance, counts and group key match for the rules."""
    password = password or ""
    key_group = None
    if instance.use_group_keys and instance.password and password and password != instance.password:
        key_group = await courses_service.find_group_by_enrolment_key(instance.course_id, password)
    return EnrolContext(
        instance=instance,
        user_id=user.id,
        password=password,
        balance=await credits_service.get_balance(user.id) if with_credit else 0,
        enrolled_count=await instances_service.count_enrolments(instance.id),
        already_enrolled=await instances_service.is_enrolled(instance.id, user.id),
        key_group=key_group,
        show_hint=get_settings().show_hint,
        now=datetime.utcnow(),
    )


async def check_status(instance: EnrolInstance, user: User) -> GateResult:
    """Status rules only (enabled, window, already enrolled, cap)."""
    ctx = await build_context(instance, user, with_credit=False)
    return evaluate(ctx, STATUS_RULES)


async def enrol_with_credit(
    instance: EnrolInstance,
    user: User,
    key_group: CourseGroup | None = None,
) -> EnrolOutcome:
    """
    Debit the instance cost and create the enrolment as one unit.
    The debit is compare-and-swap; if the enrolment insert fails afterwards the
    debit is refunded, so no state with only one half applied survives. An
    enrolment that lands past the cap is taken back the same way.
    """
    reference_id = str(instance.id)
    balance_after = None
    if instance.cost > 0:
        balance_after = await credits_service.debit(user.id, instance.cost, "enrol_instance", reference_id)
        if balance_after is None:
            balance = await credits_service.get_balance(user.id)
            return EnrolOutcome(
                enrolled=False,
                rejection=GateReject(
                    "insufficient_credit",
                    CODE_STATUS,
                    get_string("insufficientcredits", cost=instance.cost, balance=balance),
                ),
            )

    now = datetime.utcnow()
    enrolment = UserEnrolment(
        instance_id=instance.id,
        course_id=instance.course_id,
        user_id=user.id,
        cost=instance.cost,
        time_start=now,
        time_end=now + timedelta(seconds=instance.enrol_period) if instance.enrol_period else None,
    )
    try:
        await enrolment.insert()
    except DuplicateKeyError:
        if instance.cost > 0:
            balance_after = await credits_service.refund(user.id, instance.cost, "enrol_instance", reference_id)
        return EnrolOutcome(
            enrolled=False,
            balance_after=balance_after,
            rejection=GateReject("already_enrolled", CODE_STATUS, get_string("alreadyenrolled")),
        )
    except Exception:
        if instance.cost > 0:
            await credits_service.refund(user.id, instance.cost, "enrol_instance", reference_id)
        log.exception("enrolment_failed", instance_id=instance.id)
        raise

    if instance.max_enrolled > 0 and await instances_service.count_enrolments(instance.id) > instance.max_enrolled:
        # Lost a race for the last seat.
        await enrolment.delete()
        if instance.cost > 0:
            balance_after = await credits_service.refund(user.id, instance.cost, "enrol_instance", reference_id)
        return EnrolOutcome(
            enrolled=False,
            balance_after=balance_after,
            rejection=GateReject("too_many", CODE_STATUS, get_string("maxenrolledreached")),
        )

    if key_group is not None:
        await courses_service.add_group_member(key_group, user.id)
    log.info(
        "user_enrolled",
        instance_id=instance.id,
        course_id=instance.course_id,
        cost=instance.cost,
        balance_after=balance_after,
    )
    await log_event(
        user.id,
        "user_enrolled",
        "enrol_instance",
        instance.id,
        {"course_id": instance.course_id, "cost": instance.cost, "group_id": key_group.id if key_group else None},
    )
    return EnrolOutcome(enrolled=True, enrolment=enrolment, balance_after=balance_after)


async def try_enrol(instance: EnrolInstance, user: User, password: str = "") -> EnrolOutcome:
    """Run the rules, then the debit-and-enrol transaction if they pass."""
    ctx = await build_context(instance, user, password)
    result = evaluate(ctx)
    if isinstance(result, GateReject):
        log.info("enrol_rejected", instance_id=instance.id, reason=result.reason)
        return EnrolOutcome(enrolled=False, rejection=result)
    outcome = await enrol_with_credit(instance, user, key_group=result.key_group)
    if outcome.rejection:
        log.info("enrol_rejected", instance_id=instance.id, reason=outcome.rejection.reason)
    return outcome


async def enrol_user(user: User, course_id: int, password: str = "", instance_id: int = 0) -> EnrolUserResult:
    """
    Enrol user into the course through its credit instances.
    Stops at the first instance that enrols; one warning per instance that refused.
    """
    course = await courses_service.get_course(course_id)
    if not courses_service.can_view_course_info(course, user):
        raise CourseHiddenError(get_string("coursehidden"))

    instances = await instances_service.get_course_instances(course.id)
    if instance_id:
        instances = [i for i in instances if i.id == instance_id]
    if not instances:
        raise CannotEnrolError(get_string("canntenrol"))

    result = EnrolUserResult(status=False)
    for instance in instances:
        outcome = await try_enrol(instance, user, password)
        if outcome.enrolled:
            result.status = True
            break
        result.warnings.append(warning_for(instance, outcome.rejection))
    return result


async def get_instance_info(user: User, instance_id: int) -> dict[str, Any]:
    """Read-only descriptor of an instance; enrolpassword only when revealing is configured."""
    instance = await instances_service.find_instance(instance_id)
    course = await courses_service.get_course(instance.course_id)
    if not await courses_service.can_view_course(course, user):
        raise CourseHiddenError(get_string("coursehidden"))

    status = await check_status(instance, user)
    info: dict[str, Any] = {
        "id": instance.id,
        "courseid": instance.course_id,
        "type": instance.enrol,
        "name": instances_service.instance_name(instance),
        "status": True if status.ok else status.message,
    }
    if instance.password and get_settings().reveal_enrol_password:
        info["enrolpassword"] = instance.password
    return info
