import hashlib
import hmac
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from enrol_credit.core.config import get_settings


def get_session_serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(
        settings.secret_key,
        salt="enrol-credit-session",
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def create_session_token(payload: dict[str, Any]) -> str:
    serializer = get_session_serializer()
    return serializer.dumps(payload)


def load_session_token(value: str) -> dict[str, Any] | None:
    serializer = get_session_serializer()
    try:
        return serializer.loads(value, max_age=get_settings().session_max_age)
    except (BadSignature, SignatureExpired):
        return None


def passwords_match(submitted: str, expected: str) -> bool:
    """Constant-time comparison of an enrolment key."""
    return hmac.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8"))
