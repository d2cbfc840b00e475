"""
Admin pages for student records: list, create, edit, delete.

Validation failures re-render the form with status 400, the field
errors and the submitted values (never the password).
"""

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.csrf import verify_csrf
from app.core.database import get_db
from app.core.exceptions import field_errors
from app.core.logging_config import logger
from app.models.admin import Admin
from app.modules.auth.dependencies import get_current_admin
from app.schemas.student import AdminStudentCreate, AdminStudentUpdate
from app.services.student_service import student_service, PROGRAM_NOT_FOUND
from app.utils.pagination import paginate
from app.web.templating import templates, flash, render_error_page


router = APIRouter(prefix="/students")


def _redirect_to_index(request: Request) -> RedirectResponse:
    return RedirectResponse(
        request.url_for("admin.students.index"),
        status_code=status.HTTP_303_SEE_OTHER
    )


def _render_form(
    request: Request,
    template: str,
    admin: Admin,
    old: Dict[str, Any],
    errors: Optional[Dict[str, List[str]]] = None,
    status_code: int = status.HTTP_200_OK,
    **context
):
    return templates.TemplateResponse(
        request,
        template,
        {"admin": admin, "old": old, "errors": errors or {}, **context},
        status_code=status_code,
    )


@router.get("", name="admin.students.index")
async def index(
    request: Request,
    page: int = Query(1, ge=1),
    q: Optional[str] = Query(None, max_length=50),
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    students = await paginate(
        db,
        student_service.search_query(q),
        page=page,
        page_size=settings.ADMIN_PAGE_SIZE,
    )
    return templates.TemplateResponse(
        request,
        "admin/students/index.html",
        {"admin": admin, "students": students, "q": q or ""},
    )


@router.get("/create", name="admin.students.create")
async def create(
    request: Request,
    admin: Admin = Depends(get_current_admin)
):
    return _render_form(request, "admin/students/create.html", admin, old={"is_active": True})


@router.post("", name="admin.students.store")
async def store(
    request: Request,
    admin: Admin = Depends(get_current_admin),
    _csrf: None = Depends(verify_csrf),
    nim: str = Form(""),
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    is_active: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db)
):
    old = {"nim": nim, "name": name, "email": email, "is_active": bool(is_active)}

    try:
        data = AdminStudentCreate(
            nim=nim,
            name=name,
            email=email,
            password=password,
            is_active=bool(is_active),
        )
    except PydanticValidationError as exc:
        return _render_form(
            request, "admin/students/create.html", admin, old,
            errors=field_errors(exc.errors()),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    errors = await student_service.uniqueness_errors(db, data.nim, data.email)
    if "nim" not in errors and await student_service.get_program(db, data.program_code) is None:
        errors["nim"] = [PROGRAM_NOT_FOUND]
    if errors:
        return _render_form(
            request, "admin/students/create.html", admin, old,
            errors=errors,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    student = await student_service.create(db, data)
    await db.commit()

    logger.log_admin_action(admin.username, "created", student.nim)

    flash(request, f"Student {student.nim} has been created.")
    return _redirect_to_index(request)


@router.get("/{nim}/edit", name="admin.students.edit")
async def edit(
    request: Request,
    nim: str,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    student = await student_service.get_by_nim(db, nim)
    if student is None:
        return render_error_page(request, status.HTTP_404_NOT_FOUND, f"Student {nim} was not found.")

    old = {"name": student.name, "email": student.email or "", "is_active": student.is_active}
    return _render_form(request, "admin/students/edit.html", admin, old, student=student)


@router.post("/{nim}", name="admin.students.update")
async def update(
    request: Request,
    nim: str,
    admin: Admin = Depends(get_current_admin),
    _csrf: None = Depends(verify_csrf),
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    is_active: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db)
):
    student = await student_service.get_by_nim(db, nim)
    if student is None:
        return render_error_page(request, status.HTTP_404_NOT_FOUND, f"Student {nim} was not found.")

    old = {"name": name, "email": email, "is_active": bool(is_active)}

    try:
        data = AdminStudentUpdate(
            name=name,
            email=email,
            password=password,
            is_active=bool(is_active),
        )
    except PydanticValidationError as exc:
        return _render_form(
            request, "admin/students/edit.html", admin, old,
            errors=field_errors(exc.errors()),
            status_code=status.HTTP_400_BAD_REQUEST,
            student=student,
        )

    errors = await student_service.uniqueness_errors(db, None, data.email, exclude_nim=student.nim)
    if errors:
        return _render_form(
            request, "admin/students/edit.html", admin, old,
            errors=errors,
            status_code=status.HTTP_400_BAD_REQUEST,
            student=student,
        )

    await student_service.update(db, student, data)
    await db.commit()

    logger.log_admin_action(admin.username, "updated", student.nim)

    flash(request, f"Student {student.nim} has been updated.")
    return _redirect_to_index(request)


@router.post("/{nim}/delete", name="admin.students.destroy")
async def destroy(
    request: Request,
    nim: str,
    admin: Admin = Depends(get_current_admin),
    _csrf: None = Depends(verify_csrf),
    db: AsyncSession = Depends(get_db)
):
    student = await student_service.get_by_nim(db, nim)
    if student is None:
        return render_error_page(request, status.HTTP_404_NOT_FOUND, f"Student {nim} was not found.")

    await student_service.delete(db, student)
    await db.commit()

    logger.log_admin_action(admin.username, "deleted", nim)

    flash(request, f"Student {nim} has been deleted.")
    return _redirect_to_index(request)
