from fastapi import APIRouter, Depends, Request, Response

from enrol_credit.core.config import get_settings
from enrol_credit.deps import SESSION_COOKIE_NAME, get_current_user, session_token_from_request
from enrol_credit.models.user import User

router = APIRouter()


@router.post("/session")
async def auth_session(request: Request, response: Response, user: User = Depends(get_current_user)):
    """Turn a valid bearer session token into an httpOnly cookie for the enrol form."""
    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token_from_request(request),
        max_age=settings.session_max_age,
        httponly=True,
        secure=settings.env == "production",
        samesite="lax",
        path="/",
    )
    return {"user": {"id": user.id, "username": user.username, "name": user.name}}


@router.post("/logout")
async def auth_logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/me")
async def auth_me(user: User = Depends(get_current_user)):
    """Return current user."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }
