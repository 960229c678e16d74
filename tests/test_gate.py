from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from enrol_credit.models.course_group import CourseGroup
from enrol_credit.models.enrol_instance import EnrolInstance
from enrol_credit.services.gate import (
    ENROL_RULES,
    STATUS_RULES,
    EnrolContext,
    GatePass,
    GateReject,
    evaluate,
)

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 1, 12, 0)


@pytest_asyncio.fixture
async def instance(db):
    return EnrolInstance(id=1, course_id=5, cost=10)


def ctx(instance, **kwargs) -> EnrolContext:
    kwargs.setdefault("balance", 100)
    kwargs.setdefault("now", NOW)
    return EnrolContext(instance=instance, user_id=2, **kwargs)


async def test_passes_when_every_rule_holds(instance):
    assert isinstance(evaluate(ctx(instance)), GatePass)


async def test_rule_order_is_status_then_key_then_credit():
    reasons = [r.reason for r in ENROL_RULES]
    assert reasons.index("disabled") < reasons.index("too_many")
    assert reasons.index("too_many") < reasons.index("bad_group_key")
    assert reasons.index("bad_password") < reasons.index("insufficient_credit")


async def test_disabled_wins_over_everything(instance):
    instance.status = "disabled"
    instance.max_enrolled = 1
    instance.password = "secret"
    result = evaluate(ctx(instance, enrolled_count=5, password="nope", balance=0))
    assert isinstance(result, GateReject)
    assert (result.reason, result.warningcode) == ("disabled", "1")


async def test_too_many_before_password(instance):
    instance.max_enrolled = 2
    instance.password = "secret"
    result = evaluate(ctx(instance, enrolled_count=2, password="nope"))
    assert result.reason == "too_many"
    assert result.warningcode == "1"


async def test_unlimited_cap(instance):
    instance.max_enrolled = 0
    assert evaluate(ctx(instance, enrolled_count=1000)).ok


async def test_bad_password_with_hint(instance):
    instance.password = "secret"
    result = evaluate(ctx(instance, password="wrong", show_hint=True))
    assert (result.reason, result.warningcode) == ("bad_password_hint", "3")
    assert "'s'" in result.message


async def test_bad_password_without_hint(instance):
    instance.password = "secret"
    result = evaluate(ctx(instance, password="wrong", show_hint=False))
    assert (result.reason, result.warningcode) == ("bad_password", "4")
    assert "'s'" not in result.message


async def test_correct_password_passes(instance):
    instance.password = "secret"
    assert evaluate(ctx(instance, password="secret")).ok


async def test_group_key_mode(instance):
    instance.password = "secret"
    instance.use_group_keys = True
    result = evaluate(ctx(instance, password="groupkey", show_hint=True))
    assert (result.reason, result.warningcode) == ("bad_group_key", "2")

    group = CourseGroup(id=3, course_id=5, name="Blue", enrolment_key="groupkey")
    passed = evaluate(ctx(instance, password="groupkey", key_group=group))
    assert isinstance(passed, GatePass)
    assert passed.key_group is group


async def test_insufficient_credit_is_last(instance):
    result = evaluate(ctx(instance, balance=9))
    assert (result.reason, result.warningcode) == ("insufficient_credit", "1")
    assert evaluate(ctx(instance, balance=10)).ok


async def test_enrolment_window(instance):
    instance.enrol_start = NOW + timedelta(days=1)
    assert evaluate(ctx(instance)).reason == "not_started"
    instance.enrol_start = None
    instance.enrol_end = NOW - timedelta(days=1)
    assert evaluate(ctx(instance)).reason == "ended"


async def test_already_enrolled_and_new_enrols(instance):
    assert evaluate(ctx(instance, already_enrolled=True)).reason == "already_enrolled"
    instance.new_enrols = False
    assert evaluate(ctx(instance)).reason == "new_enrols_disabled"


async def test_status_rules_ignore_password_and_balance(instance):
    instance.password = "secret"
    assert evaluate(ctx(instance, password="", balance=0), STATUS_RULES).ok
