"""Ordered enrolment rules for the credit enrolment method.

Rules are evaluated top to bottom; the first rule whose predicate holds rejects
the attempt. Status rules (warning code 1) come first, then the enrolment key
rules, then the balance check.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from enrol_credit.core.security import passwords_match
from enrol_credit.core.strings import get_string
from enrol_credit.models.course_group import CourseGroup
from enrol_credit.models.enrol_instance import EnrolInstance

# Warning codes reported to API callers.
CODE_STATUS = "1"
CODE_BAD_GROUP_KEY = "2"
CODE_BAD_PASSWORD_HINT = "3"
CODE_BAD_PASSWORD = "4"


@dataclass(frozen=True)
class EnrolContext:
    """Everything the rules look at, gathered up front."""
    instance: EnrolInstance
    user_id: int
    password: str = ""
    balance: int = 0
    enrolled_count: int = 0
    already_enrolled: bool = False
    key_group: CourseGroup | None = None  # group whose enrolment key matched the password
    show_hint: bool = False
    now: datetime | None = None

    @property
    def password_mismatch(self) -> bool:
        expected = self.instance.password
        return bool(expected) and not passwords_match(self.password or "", expected)


@dataclass(frozen=True)
class GatePass:
    key_group: CourseGroup | None = None
    ok: bool = True


@dataclass(frozen=True)
class GateReject:
    reason: str
    warningcode: str
    message: str
    ok: bool = False


GateResult = GatePass | GateReject


@dataclass(frozen=True)
class Rule:
    reason: str
    warningcode: str
    applies: Callable[[EnrolContext], bool]
    message: Callable[[EnrolContext], str]


def _fmt_date(value: datetime) -> str:
    return value.strftime("%d %B %Y, %H:%M")


STATUS_RULES: tuple[Rule, ...] = (
    Rule(
        "disabled",
        CODE_STATUS,
        lambda c: not c.instance.enabled,
        lambda c: get_string("canntenrol"),
    ),
    Rule(
        "new_enrols_disabled",
        CODE_STATUS,
        lambda c: not c.instance.new_enrols,
        lambda c: get_string("canntenrol"),
    ),
    Rule(
        "not_started",
        CODE_STATUS,
        lambda c: c.instance.enrol_start is not None and c.now < c.instance.enrol_start,
        lambda c: get_string("canntenrolearly", date=_fmt_date(c.instance.enrol_start)),
    ),
    Rule(
        "ended",
        CODE_STATUS,
        lambda c: c.instance.enrol_end is not None and c.now > c.instance.enrol_end,
        lambda c: get_string("canntenrollate", date=_fmt_date(c.instance.enrol_end)),
    ),
    Rule(
        "already_enrolled",
        CODE_STATUS,
        lambda c: c.already_enrolled,
        lambda c: get_string("alreadyenrolled"),
    ),
    Rule(
        "too_many",
        CODE_STATUS,
        lambda c: c.instance.max_enrolled > 0 and c.enrolled_count >= c.instance.max_enrolled,
        lambda c: get_string("maxenrolledreached"),
    ),
)

KEY_RULES: tuple[Rule, ...] = (
    Rule(
        "bad_group_key",
        CODE_BAD_GROUP_KEY,
        lambda c: c.password_mismatch and c.instance.use_group_keys and c.key_group is None,
        lambda c: get_string("passwordinvalid"),
    ),
    Rule(
        "bad_password_hint",
        CODE_BAD_PASSWORD_HINT,
        lambda c: c.password_mismatch and not c.instance.use_group_keys and c.show_hint,
        lambda c: get_string("passwordinvalidhint", hint=c.instance.password[:1]),
    ),
    Rule(
        "bad_password",
        CODE_BAD_PASSWORD,
        lambda c: c.password_mismatch and not c.instance.use_group_keys,
        lambda c: get_string("passwordinvalid"),
    ),
)

CREDIT_RULES: tuple[Rule, ...] = (
    Rule(
        "insufficient_credit",
        CODE_STATUS,
        lambda c: c.balance < c.instance.cost,
        lambda c: get_string("insufficientcredits", cost=c.instance.cost, balance=c.balance),
    ),
)

ENROL_RULES: tuple[Rule, ...] = STATUS_RULES + KEY_RULES + CREDIT_RULES


def evaluate(ctx: EnrolContext, rules: tuple[Rule, ...] = ENROL_RULES) -> GateResult:
    if ctx.now is None:
        ctx = replace(ctx, now=datetime.utcnow())
    for rule in rules:
        if rule.applies(ctx):
            return GateReject(rule.reason, rule.warningcode, rule.message(ctx))
    key_group = ctx.key_group if ctx.password_mismatch else None
    return GatePass(key_group=key_group)
