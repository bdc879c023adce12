"""Typed access to the browser session (auth token and signed-in profile).

The session lives in Starlette's signed session cookie. Nothing else in the
application reads ``request.session`` directly: routers depend on
``get_session_context`` and go through ``SessionContext``.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
PROFILE_KEY = "profile"

ADMIN_LOGIN_PATH = "/admin/login"


class SessionProfile(BaseModel):
    """Profile of the signed-in admin or member"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    id: int
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str = "member"


class SessionContext:
    """Session state for one request"""

    def __init__(self, session: Dict[str, Any]):
        self._session = session

    @property
    def token(self) -> Optional[str]:
        return self._session.get(TOKEN_KEY)

    @property
    def profile(self) -> Optional[SessionProfile]:
        data = self._session.get(PROFILE_KEY)
        if not data:
            return None
        try:
            return SessionProfile.model_validate(data)
        except ValueError:
            logger.warning("Discarding unreadable session profile")
            self.logout()
            return None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.profile is not None

    @property
    def is_admin(self) -> bool:
        profile = self.profile
        return self.is_authenticated and profile is not None and profile.role == "admin"

    @property
    def owner_id(self) -> str:
        """Stable key for per-user state such as builder drafts"""
        profile = self.profile
        return f"user-{profile.id}" if profile else "anonymous"

    def login(self, token: str, profile: Dict[str, Any]) -> SessionProfile:
        """
        Store a token and profile returned by the backend.

        Raises:
            ValueError: If the token or profile is unusable
        """
        if not isinstance(token, str) or len(token) < 10:
            raise ValueError("Invalid token format")
        if not isinstance(profile, dict):
            raise ValueError("Invalid user data format")

        parsed = SessionProfile.model_validate(profile)
        self._session[TOKEN_KEY] = token
        self._session[PROFILE_KEY] = parsed.model_dump()
        logger.info(f"Signed in {parsed.role} {parsed.id}")
        return parsed

    def logout(self) -> None:
        self._session.pop(TOKEN_KEY, None)
        self._session.pop(PROFILE_KEY, None)


def get_session_context(request: Request) -> SessionContext:
    """FastAPI dependency: session context for the current request"""
    return SessionContext(request.session)


def require_admin_session(
    request: Request, session: SessionContext = Depends(get_session_context)
) -> SessionContext:
    """
    Require a signed-in admin for a web page.

    Raises:
        HTTPException: 307 redirect to the admin login page otherwise
    """
    if not session.is_admin:
        raise HTTPException(
            status_code=status.HTTP_307_TEMPORARY_REDIRECT,
            headers={"Location": f"{ADMIN_LOGIN_PATH}?return_to={request.url.path}"},
        )
    return session


def require_admin_api(
    session: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """
    Require a signed-in admin for a JSON endpoint.

    Raises:
        HTTPException: 401 otherwise
    """
    if not session.is_admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin sign-in required",
        )
    return session
