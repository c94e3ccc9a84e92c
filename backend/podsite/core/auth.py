"""Admin session tokens.

A single shared admin password both authenticates the login and signs the
session token (HS256 JWT ``{"v": 1, "exp": <epoch>}``), which travels in an
HttpOnly cookie. Rotating the password therefore invalidates every session.
"""
from __future__ import annotations

import hmac
import logging
import time
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

TOKEN_VERSION = 1


def _require_password(settings: Settings) -> str:
    password = settings.ADMIN_PASSWORD or ""
    if not password:
        logger.error("[auth] ADMIN_PASSWORD is not configured; refusing admin access")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin password not configured",
        )
    return password


def create_session_token(password: str, max_age_seconds: int, algorithm: str = "HS256", now: Optional[int] = None) -> str:
    issued = int(time.time()) if now is None else now
    return jwt.encode({"v": TOKEN_VERSION, "exp": issued + max_age_seconds}, password, algorithm=algorithm)


def verify_session_token(token: Optional[str], password: str, algorithm: str = "HS256") -> bool:
    """True when ``token`` was signed with ``password`` and has not expired."""
    if not token or not password:
        return False
    try:
        payload = jwt.decode(token, password, algorithms=[algorithm])
    except JWTError:
        return False
    return payload.get("v") == TOKEN_VERSION


def check_password(candidate: str, settings: Settings) -> bool:
    expected = _require_password(settings)
    return hmac.compare_digest((candidate or "").encode("utf-8"), expected.encode("utf-8"))


def is_admin_request(request: Request, settings: Settings) -> bool:
    password = _require_password(settings)
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return verify_session_token(token, password, settings.ALGORITHM)


def require_admin(request: Request, settings: Settings = Depends(get_settings)) -> bool:
    """Dependency guarding admin endpoints: 500 if unconfigured, 401 without a valid session."""
    if not is_admin_request(request, settings):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin session required")
    return True
