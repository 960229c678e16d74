"""Shared FastAPI dependencies."""

from fastapi import Request

from enrol_credit.core.exceptions import ForbiddenError, UnauthorizedError
from enrol_credit.core.logging import bind_user_id
from enrol_credit.core.security import load_session_token
from enrol_credit.models.user import User

SESSION_COOKIE_NAME = "enrol_credit_session"


def session_token_from_request(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE_NAME)


async def get_current_user(request: Request) -> User:
    """Dependency: load session from bearer token or cookie and return User."""
    token = session_token_from_request(request)
    if not token:
        raise UnauthorizedError("Not authenticated")
    payload = load_session_token(token)
    if not payload:
        raise UnauthorizedError("Invalid or expired session")
    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedError("Invalid session")
    user = await User.get(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if payload.get("session_version") != user.session_version:
        raise UnauthorizedError("Session invalidated")
    bind_user_id(user.id)
    return user


async def require_admin(request: Request) -> User:
    """Dependency: require current user to have role admin."""
    user = await get_current_user(request)
    if not user.is_admin:
        raise ForbiddenError("Admin only")
    return user


def session_payload_for_user(user: User) -> dict:
    return {"user_id": user.id, "session_version": user.session_version}
