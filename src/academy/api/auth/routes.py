"""
Auth API routes.

Every endpoint accepts POST (plus OPTIONS for CORS preflight); any other
method answers 405. Handlers are plain functions so the blocking identity
and database calls run in the threadpool.
"""

from typing import Any

from fastapi import APIRouter, Depends, Response

from academy.api.dependencies import (
    get_app_settings,
    get_auth_service,
    get_json_body,
    get_verification_service,
)
from academy.api.models import (
    ErrorResponse,
    LoginResponse,
    MessageResponse,
    SessionResponse,
    SignupResponse,
    UserResponse,
    VerifyEmailResponse,
)
from academy.config.settings import Settings
from academy.domain.accounts import AuthService
from academy.domain.validation import (
    EmailInput,
    LoginInput,
    SignupInput,
    VerifyEmailInput,
    validate,
)
from academy.domain.verification import VerificationService

router = APIRouter(prefix="/auth", tags=["auth"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input or rejected request"},
    405: {"model": ErrorResponse, "description": "Method not allowed"},
    500: {"model": ErrorResponse, "description": "Server error"},
}


def preflight() -> Response:
    """Answer CORS preflight with an empty 200; CORS headers are added by middleware."""
    return Response(status_code=200)


for _path in ("/signup", "/login", "/forgot-password", "/resend-confirmation", "/verify-email"):
    router.add_api_route(_path, preflight, methods=["OPTIONS"], include_in_schema=False)


@router.post(
    "/signup",
    response_model=SignupResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Register a new account",
    description="Register with the identity service and create an unverified "
    "local account. A verification link is emailed to the address.",
)
def signup(
    payload: dict[str, Any] = Depends(get_json_body),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> SignupResponse:
    """
    Register a new account.

    - **email**, **password**, **name**, **agreeToTerms**: required
    - **confirmPassword**, **phone**, **role**: optional
    """
    data = validate(SignupInput, payload)
    outcome = service.sign_up(data)

    debug = None
    if settings.is_development:
        debug = {"verificationLink": outcome.verification_link}

    return SignupResponse(
        user=UserResponse.from_account(outcome.account),
        message="회원가입이 완료되었습니다! 이메일을 확인하여 계정을 활성화해주세요.",
        email_sent=outcome.email_sent,
        debug=debug,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses=ERROR_RESPONSES,
    summary="Log in with email and password",
)
def login(
    payload: dict[str, Any] = Depends(get_json_body),
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    data = validate(LoginInput, payload)
    user, session = service.sign_in(data)
    return LoginResponse(
        user=UserResponse.from_identity(user),
        session=SessionResponse.from_session(session),
        message="로그인이 완료되었습니다.",
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    summary="Request a password reset email",
)
def forgot_password(
    payload: dict[str, Any] = Depends(get_json_body),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    data = validate(EmailInput, payload)
    service.request_password_reset(data)
    return MessageResponse(message="비밀번호 재설정 이메일을 발송했습니다.")


@router.post(
    "/resend-confirmation",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
    summary="Resend the email verification link",
    description="Always succeeds for a well-formed email; the response does not "
    "reveal whether an account exists.",
)
def resend_confirmation(
    payload: dict[str, Any] = Depends(get_json_body),
    verification: VerificationService = Depends(get_verification_service),
) -> MessageResponse:
    data = validate(EmailInput, payload)
    verification.resend(data.email)
    return MessageResponse(message="인증 이메일이 재발송되었습니다. 이메일을 확인해주세요.")


@router.post(
    "/verify-email",
    response_model=VerifyEmailResponse,
    responses=ERROR_RESPONSES,
    summary="Verify an email address",
    description="Error responses carry `code`: MISSING_TOKEN, INVALID_TOKEN_FORMAT, "
    "INVALID_TOKEN or TOKEN_EXPIRED.",
)
def verify_email(
    payload: dict[str, Any] = Depends(get_json_body),
    verification: VerificationService = Depends(get_verification_service),
) -> VerifyEmailResponse:
    data = validate(VerifyEmailInput, payload)
    account = verification.verify(data.token, data.email)
    return VerifyEmailResponse(
        user=UserResponse.from_account(account),
        message="이메일 인증이 완료되었습니다! 이제 로그인할 수 있습니다.",
    )
