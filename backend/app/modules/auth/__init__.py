# Authentication module

from app.modules.auth.dependencies import (
    ADMIN_SESSION_KEY,
    AdminLoginRequired,
    get_current_access_token,
    get_current_student,
    get_current_admin,
)

__all__ = [
    "ADMIN_SESSION_KEY",
    "AdminLoginRequired",
    "get_current_access_token",
    "get_current_student",
    "get_current_admin",
]
