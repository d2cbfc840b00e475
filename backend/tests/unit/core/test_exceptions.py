"""
Unit Tests for the exception hierarchy and error envelope
"""
from app.core.exceptions import (
    SiakadError,
    ValidationError,
    InvalidCredentialsError,
    EmailNotVerifiedError,
    AccountInactiveError,
    StudentNotFoundError,
    ProgramOfStudyNotFoundError,
    InvalidOTPError,
    InvalidResetTokenError,
    EmailDeliveryError,
    error_response,
    field_errors,
)


class TestStatusCodes:

    def test_status_codes(self):
        assert ValidationError({}).status_code == 400
        assert InvalidResetTokenError().status_code == 400
        assert InvalidCredentialsError().status_code == 401
        assert EmailNotVerifiedError().status_code == 401
        assert AccountInactiveError().status_code == 403
        assert StudentNotFoundError("x").status_code == 404
        assert InvalidOTPError().status_code == 404
        assert EmailDeliveryError().status_code == 500

    def test_distinct_login_messages(self):
        assert InvalidCredentialsError().message != EmailNotVerifiedError().message

    def test_program_not_found_code(self):
        error = ProgramOfStudyNotFoundError("9999")

        assert error.code == "PROGRAM_OF_STUDY_NOT_FOUND"
        assert error.details["resource_id"] == "9999"


class TestErrorResponse:

    def test_envelope(self):
        error = ValidationError({"nim": ["The nim has already been taken."]})

        body = error_response(error)

        assert body["success"] is False
        assert body["message"] == "Validation error."
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["errors"]["nim"] == ["The nim has already been taken."]

    def test_base_error_defaults(self):
        error = SiakadError("Something broke")

        assert error.to_dict() == {"code": "INTERNAL_ERROR", "message": "Something broke", "details": {}}


class TestFieldErrors:

    def test_groups_by_field_and_strips_location(self):
        errors = [
            {"loc": ("body", "email"), "msg": "value is not a valid email address"},
            {"loc": ("body", "email"), "msg": "Value error, The email must be a polban.ac.id address."},
            {"loc": ("body", "nim"), "msg": "Field required"},
        ]

        grouped = field_errors(errors)

        assert grouped["email"] == [
            "value is not a valid email address",
            "The email must be a polban.ac.id address.",
        ]
        assert grouped["nim"] == ["Field required"]

    def test_model_level_location(self):
        grouped = field_errors([{"loc": ("name",), "msg": "Field required"}])

        assert grouped == {"name": ["Field required"]}

    def test_missing_body(self):
        grouped = field_errors([{"loc": ("body",), "msg": "Field required"}])

        assert grouped == {"body": ["Field required"]}
