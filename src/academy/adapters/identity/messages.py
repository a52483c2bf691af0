"""
Identity service error translation.

The identity service answers in a fixed English vocabulary. Known strings
map to Korean user-facing messages; anything else passes through as-is.
"""

OPERATION_FAILED_MESSAGE = "요청을 처리하지 못했습니다. 잠시 후 다시 시도해주세요."

AUTH_ERROR_MESSAGES: dict[str, str] = {
    "Invalid login credentials": "이메일 또는 비밀번호가 올바르지 않습니다",
    "User not found": "존재하지 않는 사용자입니다",
    "Email not confirmed": "이메일 인증이 완료되지 않았습니다",
    "A user with this email address has already been registered": "이미 가입된 이메일 주소입니다",
    "Password should be at least 6 characters": "비밀번호는 최소 6자 이상이어야 합니다",
    "Unable to validate email address: invalid format": "올바르지 않은 이메일 형식입니다",
    "Email rate limit exceeded": "이메일 발송 한도를 초과했습니다. 잠시 후 다시 시도해주세요",
    "Signup requires a valid password": "유효한 비밀번호가 필요합니다",
    "Password recovery email sent": "비밀번호 재설정 이메일을 발송했습니다",
    "Confirmation email sent": "확인 이메일을 발송했습니다",
}


def translate_auth_error(error: str) -> str:
    """Return the localized message for a known identity error, else `error` unchanged."""
    return AUTH_ERROR_MESSAGES.get(error, error)
