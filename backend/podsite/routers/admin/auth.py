from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from ...core.auth import check_password, create_session_token, is_admin_request
from ...core.config import Settings, get_settings

log = logging.getLogger("podsite.admin.auth")

router = APIRouter(tags=["admin"])


class LoginRequest(BaseModel):
    password: str = ""


def _cookie_kwargs(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": not settings.is_dev_mode,
        "samesite": "lax",
        "path": "/",
    }


@router.post("/login")
def login(payload: LoginRequest, response: Response, settings: Settings = Depends(get_settings)):
    if not check_password(payload.password, settings):
        log.warning("[auth] admin login rejected")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")
    token = create_session_token(
        settings.ADMIN_PASSWORD or "",
        settings.SESSION_MAX_AGE_SECONDS,
        settings.ALGORITHM,
    )
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        **_cookie_kwargs(settings),
    )
    log.info("[auth] admin session issued")
    return {"ok": True}


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, **_cookie_kwargs(settings))
    return {"ok": True}


@router.get("/session")
def session_status(request: Request, settings: Settings = Depends(get_settings)):
    return {"authenticated": is_admin_request(request, settings)}
