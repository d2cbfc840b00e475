from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime

from app.core.csrf import verify_csrf, CSRF_SESSION_KEY
from app.core.database import get_db
from app.core.logging_config import logger
from app.core.security import verify_password
from app.models.admin import Admin
from app.modules.auth.dependencies import ADMIN_SESSION_KEY
from app.web.templating import templates, flash


router = APIRouter()


@router.get("/login", name="admin.login")
async def login_form(request: Request):
    if request.session.get(ADMIN_SESSION_KEY):
        return RedirectResponse(
            request.url_for("admin.students.index"),
            status_code=status.HTTP_303_SEE_OTHER
        )
    return templates.TemplateResponse(request, "admin/login.html", {"error": None, "username": ""})


@router.post("/login", name="admin.login.submit", dependencies=[Depends(verify_csrf)])
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db)
):
    client_ip = request.client.host if request.client else "unknown"

    result = await db.execute(select(Admin).where(Admin.username == username.strip()))
    admin = result.scalar_one_or_none()

    if not admin or not admin.is_active or not verify_password(password, admin.hashed_password):
        logger.log_auth_event(
            event="admin_login",
            success=False,
            identifier=username,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        return templates.TemplateResponse(
            request,
            "admin/login.html",
            {"error": "Invalid username or password.", "username": username},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    admin.last_login = datetime.utcnow()
    await db.commit()

    # New session: drop the pre-login CSRF token
    request.session.pop(CSRF_SESSION_KEY, None)
    request.session[ADMIN_SESSION_KEY] = str(admin.id)

    logger.log_auth_event(
        event="admin_login",
        success=True,
        identifier=admin.username,
        client_ip=client_ip
    )

    flash(request, f"Welcome back, {admin.full_name or admin.username}.")
    return RedirectResponse(
        request.url_for("admin.students.index"),
        status_code=status.HTTP_303_SEE_OTHER
    )


@router.post("/logout", name="admin.logout", dependencies=[Depends(verify_csrf)])
async def logout(request: Request):
    admin_id = request.session.get(ADMIN_SESSION_KEY)
    request.session.clear()

    if admin_id:
        logger.log_auth_event(event="admin_logout", success=True, identifier=admin_id)

    return RedirectResponse(request.url_for("admin.login"), status_code=status.HTTP_303_SEE_OTHER)
