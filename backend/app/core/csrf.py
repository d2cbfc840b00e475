"""
CSRF protection for the server-rendered admin pages.

A random token is kept in the signed session cookie and echoed back by
every form as a hidden "_token" field.
"""

import hmac
from fastapi import Form, Request

from app.core.security import generate_csrf_token

CSRF_SESSION_KEY = "_csrf_token"
CSRF_FORM_FIELD = "_token"


class CSRFError(Exception):
    """Submitted form token is missing or does not match the session"""


def get_csrf_token(request: Request) -> str:
    """Return the session's CSRF token, creating one on first use"""
    token = request.session.get(CSRF_SESSION_KEY)
    if not token:
        token = generate_csrf_token()
        request.session[CSRF_SESSION_KEY] = token
    return token


async def verify_csrf(request: Request, token: str = Form("", alias=CSRF_FORM_FIELD)) -> None:
    """Dependency for admin POST routes"""
    expected = request.session.get(CSRF_SESSION_KEY)
    if not expected or not token or not hmac.compare_digest(expected, token):
        raise CSRFError()
