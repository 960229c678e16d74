"""Course, group and visibility lookups against platform records."""

from enrol_credit.core.exceptions import NotFoundError
from enrol_credit.models.course import Course
from enrol_credit.models.course_group import CourseGroup
from enrol_credit.models.user import User
from enrol_credit.models.user_enrolment import UserEnrolment


async def get_course(course_id: int) -> Course:
    course = await Course.get(course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


def can_view_course_info(course: Course, user: User) -> bool:
    """Course summary is visible to everyone when the course is visible, else admins only."""
    return course.visible or user.is_admin


async def can_access_course(course: Course, user: User) -> bool:
    """Admins always; others need a visible course and an active enrolment in it."""
    if user.is_admin:
        return True
    if not course.visible:
        return False
    enrolment = await UserEnrolment.find_one(
        UserEnrolment.course_id == course.id,
        UserEnrolment.user_id == user.id,
        UserEnrolment.status == "active",
    )
    return enrolment is not None


async def can_view_course(course: Course, user: User) -> bool:
    return can_view_course_info(course, user) or await can_access_course(course, user)


async def find_group_by_enrolment_key(course_id: int, key: str) -> CourseGroup | None:
    """Return the course group whose enrolment key equals key, if any."""
    if not key:
        return None
    return await CourseGroup.find_one(
        CourseGroup.course_id == course_id,
        CourseGroup.enrolment_key == key,
    )


async def add_group_member(group: CourseGroup, user_id: int) -> None:
    await CourseGroup.get_motor_collection().update_one(
        {"_id": group.id},
        {"$addToSet": {"member_ids": user_id}},
    )
