import logging
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from servicecrm.adapters.sqlite.repos import SQLiteUserRepo
from servicecrm.api.auth_utils import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    COOKIE_NAME,
    create_access_token,
    verify_password,
)
from servicecrm.api.deps import Session, get_session, get_user_repo
from servicecrm.api.schemas import LoginRequest, LoginResponse, UserInfo
from servicecrm.domain.entities import User

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        userId=str(user.id),
        email=user.email,
        role=user.role.value,
        name=user.name,
        initials=user.initials,
    )


@router.post("/login", response_model=LoginResponse)
def login(
    response: Response,
    body: LoginRequest,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> LoginResponse:
    """Authenticate user, set the session cookie and return the token."""
    if not body.email or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required",
        )

    user = user_repo.get_by_email(body.email)
    if not user or not verify_password(body.password, user.password_hash):
        logger.info("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status != "active":
        raise HTTPException(status_code=400, detail="User account is inactive")

    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "initials": user.initials,
        },
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    # Set HttpOnly Cookie
    response.set_cookie(
        key=COOKIE_NAME,
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=False,  # Set to True for HTTPS prod
        path="/",
    )

    return LoginResponse(success=True, token=access_token, user=_user_info(user))


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key=COOKIE_NAME, path="/")
    return {"status": "success"}


@router.get("/me")
def read_me(
    session: Session = Depends(get_session),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> dict[str, Any]:
    """Current user. The stored role wins over the token role."""
    user = user_repo.get_by_id(session.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.role is not session.role:
        logger.warning(
            "Role mismatch for user %s: token %s, stored %s",
            user.id,
            session.role.value,
            user.role.value,
        )

    return {"user": _user_info(user).model_dump()}
