from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

from app.web.admin import auth, students

web_router = APIRouter(prefix="/admin", include_in_schema=False)

web_router.include_router(auth.router)
web_router.include_router(students.router)


@web_router.get("", name="admin.home")
async def admin_home(request: Request):
    return RedirectResponse(
        request.url_for("admin.students.index"),
        status_code=status.HTTP_303_SEE_OTHER
    )
