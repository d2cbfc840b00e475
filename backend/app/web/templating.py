"""
Jinja2 environment for the admin pages.

Templates get two helpers besides Starlette's url_for:
- csrf_token(request): hidden "_token" value for POST forms
- get_flashed_messages(request): one-shot messages stored in the session
"""

from typing import List, Tuple
from fastapi import Request
from fastapi.templating import Jinja2Templates

from app.core.config import settings
from app.core.csrf import get_csrf_token, CSRF_FORM_FIELD

FLASH_SESSION_KEY = "_flashes"

templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR))


def flash(request: Request, message: str, category: str = "success") -> None:
    """Queue a message for the next rendered page (Bootstrap alert category)"""
    messages = request.session.get(FLASH_SESSION_KEY, [])
    messages.append([category, message])
    request.session[FLASH_SESSION_KEY] = messages


def get_flashed_messages(request: Request) -> List[Tuple[str, str]]:
    return [tuple(item) for item in request.session.pop(FLASH_SESSION_KEY, [])]


templates.env.globals["csrf_token"] = get_csrf_token
templates.env.globals["csrf_field_name"] = CSRF_FORM_FIELD
templates.env.globals["get_flashed_messages"] = get_flashed_messages
templates.env.globals["app_name"] = settings.APP_NAME
templates.env.globals["institution_name"] = settings.INSTITUTION_NAME


def render_error_page(request: Request, status_code: int, message: str):
    """Render errors/<status>.html"""
    return templates.TemplateResponse(
        request,
        f"errors/{status_code}.html",
        {"message": message},
        status_code=status_code,
    )
