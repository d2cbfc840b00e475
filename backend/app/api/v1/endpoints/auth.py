from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional

from app.core.database import get_db
from app.core.exceptions import (
    ValidationError,
    InvalidCredentialsError,
    EmailNotVerifiedError,
    AccountInactiveError,
    InvalidTokenError,
    InvalidResetTokenError,
    InvalidVerificationTokenError,
    InvalidOTPError,
    StudentNotFoundError,
    ProgramOfStudyNotFoundError,
    EmailDeliveryError,
)
from app.core.security import (
    verify_password,
    get_password_hash,
    create_email_verification_token,
    create_password_reset_token,
    decode_token,
    EMAIL_VERIFICATION_TOKEN,
    PASSWORD_RESET_TOKEN,
)
from app.core.logging_config import logger, set_user_id
from app.core.rate_limiter import (
    limiter,
    REGISTER_LIMIT,
    LOGIN_LIMIT,
    FORGOT_PASSWORD_LIMIT,
    VERIFY_OTP_LIMIT,
)
from app.models.access_token import PersonalAccessToken
from app.models.student import Student
from app.schemas.auth import (
    StudentRegister,
    StudentLogin,
    StudentResponse,
    RegisterResponse,
    LoginResponse,
    ResendVerificationRequest,
    VerifyEmailResponse,
    ForgotPasswordRequest,
    VerifyOTPRequest,
    VerifyOTPResponse,
    ResetPasswordRequest,
    MessageResponse,
)
from app.modules.auth.dependencies import get_current_access_token, get_current_student
from app.services.email_service import email_service
from app.services.password_reset_service import password_reset_service
from app.services.student_service import student_service, NIM_TAKEN
from app.services.token_service import access_token_service


router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def send_verification_in_background(to_email: str, student_name: str, nim: str) -> None:
    """Registration side effect; a delivery failure never undoes the registration"""
    token = create_email_verification_token(nim, to_email)
    sent = await email_service.send_verification_email(
        to_email=to_email,
        student_name=student_name,
        verification_token=token
    )
    if not sent:
        logger.warning(f"[Auth] Verification email not delivered to {to_email}")


async def send_password_changed_in_background(to_email: str, student_name: Optional[str]) -> None:
    sent = await email_service.send_password_changed_email(to_email, student_name)
    if not sent:
        logger.warning(f"[Auth] Password changed notice not delivered to {to_email}")


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    student_data: StudentRegister,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Register a new student (rate limited: 3/min)"""
    client_ip = _client_ip(request)

    errors = await student_service.uniqueness_errors(db, student_data.nim, student_data.email)
    if errors:
        logger.log_auth_event(
            event="register",
            success=False,
            identifier=student_data.nim,
            reason="NIM or email already registered",
            client_ip=client_ip
        )
        raise ValidationError(errors)

    program = await student_service.get_program(db, student_data.program_code)
    if program is None:
        logger.log_auth_event(
            event="register",
            success=False,
            identifier=student_data.nim,
            reason=f"Unknown program of study {student_data.program_code}",
            client_ip=client_ip
        )
        raise ProgramOfStudyNotFoundError(student_data.program_code)

    student = Student(
        nim=student_data.nim,
        name=student_data.name,
        email=student_data.email,
        hashed_password=get_password_hash(student_data.password),
        is_active=True,
        program_code=program.code,
    )

    db.add(student)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        await db.rollback()
        errors = await student_service.uniqueness_errors(db, student_data.nim, student_data.email)
        raise ValidationError(errors or {"nim": [NIM_TAKEN]})
    await db.refresh(student)

    logger.log_auth_event(
        event="register",
        success=True,
        identifier=student.nim,
        client_ip=client_ip,
        program_code=student.program_code
    )

    background_tasks.add_task(
        send_verification_in_background,
        student.email,
        student.name,
        student.nim,
    )
    logger.info(f"[Auth] Verification email queued for {student.email}")

    return {
        "message": "Registration successful.",
        "student": StudentResponse.model_validate(student),
    }


@router.get("/verify-email", response_model=VerifyEmailResponse)
async def verify_email(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db)
):
    """Confirm a student's email address from the emailed link"""
    try:
        payload = decode_token(token, EMAIL_VERIFICATION_TOKEN)
    except InvalidTokenError:
        raise InvalidVerificationTokenError()

    nim = payload.get("sub")
    student = await student_service.get_by_nim(db, nim) if nim else None
    if student is None:
        raise StudentNotFoundError(str(nim))

    if not student.email or payload.get("email") != student.email:
        raise InvalidVerificationTokenError()

    if student.has_verified_email:
        return {"message": "Email address is already verified.", "already_verified": True}

    student.email_verified_at = datetime.utcnow()
    await db.commit()

    logger.log_auth_event(event="verify_email", success=True, identifier=student.nim)

    return {"message": "Email address verified.", "already_verified": False}


@router.post("/resend-verification", response_model=MessageResponse)
@limiter.limit(FORGOT_PASSWORD_LIMIT)
async def resend_verification_email(
    request: Request,
    body: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db)
):
    """Send a fresh verification link (rate limited: 3/min)"""
    student = await student_service.get_by_email(db, body.email)
    if student is None:
        raise StudentNotFoundError(body.email)

    if student.has_verified_email:
        return {"message": "Email address is already verified."}

    token = create_email_verification_token(student.nim, student.email)
    sent = await email_service.send_verification_email(
        to_email=student.email,
        student_name=student.name,
        verification_token=token
    )
    if not sent:
        raise EmailDeliveryError("Verification email could not be sent.")

    return {"message": "Verification email sent."}


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: StudentLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login student (rate limited: 5/min)"""
    client_ip = _client_ip(request)

    student = await student_service.get_by_nim(db, credentials.nim)

    if not student or not verify_password(credentials.password, student.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            identifier=credentials.nim,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise InvalidCredentialsError()

    if not student.has_verified_email:
        logger.log_auth_event(
            event="login",
            success=False,
            identifier=student.nim,
            reason="Email not verified",
            client_ip=client_ip
        )
        raise EmailNotVerifiedError()

    if not student.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            identifier=student.nim,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise AccountInactiveError()

    access_token = await access_token_service.issue(db, student)
    student.last_login = datetime.utcnow()
    await db.commit()

    set_user_id(student.nim)

    logger.log_auth_event(
        event="login",
        success=True,
        identifier=student.nim,
        client_ip=client_ip
    )

    return {
        "message": "Login successful.",
        "access_token": access_token,
        "token_type": "bearer",
        "student": StudentResponse.model_validate(student),
    }


@router.get("/me", response_model=StudentResponse)
async def get_current_student_info(
    current_student: Student = Depends(get_current_student)
):
    """Get current student info"""
    return current_student


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    access_token: PersonalAccessToken = Depends(get_current_access_token),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the bearer token used for this request"""
    nim = access_token.student_nim
    await access_token_service.revoke(db, access_token)
    await db.commit()

    logger.log_auth_event(
        event="logout",
        success=True,
        identifier=nim,
        client_ip=_client_ip(request)
    )

    return {"message": "Logout successful."}


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(FORGOT_PASSWORD_LIMIT)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Email a 4-digit reset code (rate limited: 3/min).

    The code is only persisted if the email actually went out.
    """
    student = await student_service.get_by_email(db, body.email)
    if student is None:
        logger.log_auth_event(
            event="forgot_password",
            success=False,
            identifier=body.email,
            reason="Email not registered",
            client_ip=_client_ip(request)
        )
        raise StudentNotFoundError(body.email)

    reset = await password_reset_service.issue_code(db, body.email)

    sent = await email_service.send_otp_email(body.email, student.name, reset.otp)
    if not sent:
        await db.rollback()
        raise EmailDeliveryError("Failed to send OTP code.")

    await db.commit()

    logger.log_auth_event(
        event="forgot_password",
        success=True,
        identifier=student.nim,
        client_ip=_client_ip(request)
    )

    return {"message": "OTP code sent."}


@router.post("/verify-otp", response_model=VerifyOTPResponse)
@limiter.limit(VERIFY_OTP_LIMIT)
async def verify_otp(
    request: Request,
    body: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a valid reset code for a short-lived reset token (rate limited: 5/min)"""
    try:
        reset_id = await password_reset_service.verify_code(db, body.email, body.otp)
    except InvalidOTPError:
        logger.log_auth_event(
            event="verify_otp",
            success=False,
            identifier=body.email,
            reason="No matching code",
            client_ip=_client_ip(request)
        )
        raise
    await db.commit()

    logger.log_auth_event(
        event="verify_otp",
        success=True,
        identifier=body.email,
        client_ip=_client_ip(request)
    )

    return {
        "message": "OTP code is valid.",
        "email": body.email,
        "reset_token": create_password_reset_token(body.email, reset_id),
    }


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using the token returned by verify-otp"""
    try:
        payload = decode_token(body.token, PASSWORD_RESET_TOKEN)
    except InvalidTokenError:
        raise InvalidResetTokenError()

    reset_id = payload.get("rid")
    if payload.get("sub") != body.email or not isinstance(reset_id, int):
        raise InvalidResetTokenError()

    if not await password_reset_service.is_verified(db, body.email, reset_id):
        raise InvalidResetTokenError()

    student = await student_service.get_by_email(db, body.email)
    if student is None:
        raise StudentNotFoundError(body.email)

    student.hashed_password = get_password_hash(body.password)
    await password_reset_service.clear(db, body.email)
    await db.commit()

    logger.log_auth_event(
        event="password_reset",
        success=True,
        identifier=student.nim,
        client_ip=_client_ip(request)
    )

    background_tasks.add_task(send_password_changed_in_background, student.email, student.name)

    return {"message": "Your password has been reset."}
