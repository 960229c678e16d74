"""User-facing message strings for the credit enrolment method."""

STRINGS: dict[str, str] = {
    "pluginname": "Credit enrolment",
    "canntenrol": "Enrolment is disabled or inactive",
    "canntenrolearly": "You cannot enrol yet; enrolment starts on {date}.",
    "canntenrollate": "You cannot enrol any more, since enrolment ended on {date}.",
    "alreadyenrolled": "You are already enrolled in this course.",
    "maxenrolledreached": "Maximum number of users allowed to enrol was already reached.",
    "passwordinvalid": "Incorrect enrolment key, please try again",
    "passwordinvalidhint": "That enrolment key was incorrect, please try again (Here's a hint - it starts with '{hint}')",
    "insufficientcredits": "You do not have enough credits to enrol: this course costs {cost} and your balance is {balance}.",
    "checkout": "This course costs {credit_cost} credits. You currently have {user_credits} credits.",
    "purchase": "Enrol with credits",
    "password": "Enrolment key",
    "coursehidden": "This course is currently unavailable to users",
    "error": "Error",
}


def get_string(key: str, **params) -> str:
    """Return message for key, formatted with params. Unknown keys come back bracketed."""
    template = STRINGS.get(key)
    if template is None:
        return f"[[{key}]]"
    return template.format(**params) if params else template
