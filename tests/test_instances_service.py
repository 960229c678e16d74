from datetime import datetime, timedelta

import pytest

from enrol_credit.core.exceptions import BadRequestError, NotFoundError
from enrol_credit.models.audit_log import AuditLog
from enrol_credit.services import instances as instances_service

pytestmark = pytest.mark.asyncio


async def test_create_instance_uses_defaults(make_course, settings, monkeypatch):
    monkeypatch.setattr(settings, "default_credit_cost", 7)
    await make_course(5)

    instance = await instances_service.create_instance(5, {"name": "Paid"}, actor_id=1)

    assert instance.id == 1
    assert instance.cost == 7
    assert instance.enabled
    assert await AuditLog.find(AuditLog.event_type == "instance_created").count() == 1


async def test_create_instance_ids_increase(make_course):
    await make_course(5)
    first = await instances_service.create_instance(5, {})
    second = await instances_service.create_instance(5, {})
    assert second.id == first.id + 1


async def test_create_instance_unknown_course(db):
    with pytest.raises(NotFoundError):
        await instances_service.create_instance(5, {})


async def test_create_instance_validates(make_course):
    await make_course(5)
    with pytest.raises(BadRequestError):
        await instances_service.create_instance(5, {"cost": -1})
    with pytest.raises(BadRequestError):
        await instances_service.create_instance(5, {"status": "paused"})
    start = datetime(2026, 1, 1)
    with pytest.raises(BadRequestError):
        await instances_service.create_instance(5, {"enrol_start": start, "enrol_end": start - timedelta(days=1)})


async def test_update_instance(make_course, make_instance):
    await make_course(5)
    await make_instance(10, 5, cost=1)

    updated = await instances_service.update_instance(10, {"cost": 9, "course_id": 99})

    assert updated.cost == 9
    assert updated.course_id == 5


async def test_course_instances_in_sort_order(make_course, make_instance):
    await make_course(5)
    await make_instance(10, 5, sort_order=2)
    await make_instance(11, 5, sort_order=1, status="disabled")
    await make_instance(12, 6)

    assert [i.id for i in await instances_service.get_course_instances(5)] == [11, 10]
    assert [i.id for i in await instances_service.get_course_instances(5, enabled_only=True)] == [10]


async def test_update_instance_rejects_null_for_required_fields(make_course, make_instance):
    await make_course(5)
    await make_instance(10, 5, cost=4)

    with pytest.raises(BadRequestError):
        await instances_service.update_instance(10, {"cost": None})
    with pytest.raises(BadRequestError):
        await instances_service.update_instance(10, {"status": None})

    cleared = await instances_service.update_instance(10, {"password": None, "enrol_end": None})
    assert cleared.password == ""
    assert cleared.enrol_end is None
    assert cleared.cost == 4
