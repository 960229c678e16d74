from enrol_credit.models.user import User
from enrol_credit.models.course import Course
from enrol_credit.models.course_group import CourseGroup
from enrol_credit.models.enrol_instance import EnrolInstance
from enrol_credit.models.user_enrolment import UserEnrolment
from enrol_credit.models.credit_balance import CreditBalance
from enrol_credit.models.credit_ledger import CreditLedgerEntry
from enrol_credit.models.audit_log import AuditLog
from enrol_credit.models.counter import Counter

__all__ = [
    "User",
    "Course",
    "CourseGroup",
    "EnrolInstance",
    "UserEnrolment",
    "CreditBalance",
    "CreditLedgerEntry",
    "AuditLog",
    "Counter",
]
