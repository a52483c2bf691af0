"""
Domain exceptions - Semantic error types for the auth workflow.

Each carries the user-facing message so the HTTP layer can map the
class to a status code without inspecting provider or driver errors.
"""

from .ports import TokenFailure

GENERIC_FAILURE_MESSAGE = "서버 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


class AcademyError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(AcademyError):
    """Input failed one or more field rules."""

    def __init__(self, field_errors: dict[str, str]) -> None:
        super().__init__("입력 데이터가 올바르지 않습니다")
        self.field_errors = field_errors


class DomainError(AcademyError):
    """Business rule violation, optionally with a stable code."""

    code: str | None = None

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class EmailAlreadyRegistered(DomainError):
    """Email is already present in the account store or identity service."""

    def __init__(self, email: str) -> None:
        super().__init__("이미 가입된 이메일 주소입니다")
        self.email = email


class IdentityRejected(DomainError):
    """The identity service refused the request (bad credentials, rate limit...)."""

    pass


_FAILURE_MESSAGES = {
    TokenFailure.MISSING_TOKEN: "인증 토큰이 필요합니다",
    TokenFailure.INVALID_TOKEN_FORMAT: "유효하지 않은 인증 토큰 형식입니다",
    TokenFailure.INVALID_TOKEN: "유효하지 않거나 이미 사용된 인증 토큰입니다",
    TokenFailure.TOKEN_EXPIRED: (
        "인증 링크가 만료되었습니다. 새로운 인증 이메일을 요청해주세요."
    ),
}


class VerificationFailed(DomainError):
    """Presented verification token was missing, malformed, unknown or expired."""

    def __init__(self, reason: TokenFailure) -> None:
        super().__init__(_FAILURE_MESSAGES[reason], code=reason.value)
        self.reason = reason

    @property
    def expired(self) -> bool:
        return self.reason is TokenFailure.TOKEN_EXPIRED


class TransportError(AcademyError):
    """Identity service or store could not be reached."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE) -> None:
        super().__init__(message)


class AccountSyncFailed(TransportError):
    """Identity registration succeeded but the local mirror insert did not."""

    def __init__(self, email: str, external_id: str) -> None:
        super().__init__()
        self.email = email
        self.external_id = external_id
