"""
Refresh-token cookie adapter.

The raw refresh token only ever travels in an HttpOnly cookie scoped to
the auth routes; it is never part of a JSON body.
"""

from typing import Optional

from fastapi import Request, Response

from shared.config import Settings


def set_refresh_cookie(response: Response, refresh_token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite=settings.refresh_cookie_samesite,
        domain=settings.refresh_cookie_domain,
        path=settings.refresh_cookie_path,
        max_age=settings.refresh_token_ttl_days * 24 * 60 * 60,
    )


def clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        domain=settings.refresh_cookie_domain,
        path=settings.refresh_cookie_path,
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite=settings.refresh_cookie_samesite,
    )


def read_refresh_cookie(request: Request, settings: Settings) -> Optional[str]:
    return request.cookies.get(settings.refresh_cookie_name) or None
