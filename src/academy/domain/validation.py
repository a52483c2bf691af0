"""
Input validation - pydantic models for every auth request body.

Each model checks field shape and normalizes values. `validate()` turns a
pydantic ValidationError into ValidationFailed carrying one localized
message per violated field; every field is checked, nothing short-circuits.

Registration demands a stronger password than login (8+ chars with mixed
case and a digit versus 6+ chars). Accounts created before the stronger
rule must still be able to sign in.
"""

import re
from typing import Annotated, Any, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from .exceptions import ValidationFailed
from .models import SELF_REGISTRABLE_ROLES, Role

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-().]{7,20}$")

REGISTRATION_PASSWORD_MIN = 8
LOGIN_PASSWORD_MIN = 6
NAME_MIN, NAME_MAX = 2, 50

InputT = TypeVar("InputT", bound=BaseModel)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def _check_email(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("이메일을 입력해주세요")
    email = normalize_email(value)
    if not EMAIL_PATTERN.match(email):
        raise ValueError("올바른 이메일 형식을 입력해주세요")
    return email


def _check_present(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(message)
    return value


EmailText = Annotated[str, BeforeValidator(_check_email)]


class _Input(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class SignupInput(_Input):
    """Signup body: email, password, confirmPassword?, name, phone?, role?, agreeToTerms."""

    email: EmailText = Field(default=None, validate_default=True)
    password: str = Field(default=None, validate_default=True)
    confirm_password: str | None = Field(
        default=None, alias="confirmPassword", validate_default=True
    )
    name: str = Field(default=None, validate_default=True)
    phone: str | None = Field(default=None, validate_default=True)
    role: Role = Field(default=None, validate_default=True)
    agree_to_terms: bool = Field(default=None, alias="agreeToTerms", validate_default=True)

    @field_validator("password", mode="before")
    @classmethod
    def password_policy(cls, value: Any) -> str:
        password = _check_present(value, "비밀번호를 입력해주세요")
        if len(password) < REGISTRATION_PASSWORD_MIN:
            raise ValueError("비밀번호는 최소 8자 이상이어야 합니다")
        if not (
            re.search(r"[a-z]", password)
            and re.search(r"[A-Z]", password)
            and re.search(r"\d", password)
        ):
            raise ValueError("비밀번호는 대문자, 소문자, 숫자를 각각 최소 1개씩 포함해야 합니다")
        return password

    @field_validator("confirm_password", mode="before")
    @classmethod
    def passwords_match(cls, value: Any, info: ValidationInfo) -> str | None:
        if value is None or value == "":
            return None
        # Compared only when the password itself passed its rules
        password = info.data.get("password")
        if password is not None and value != password:
            raise ValueError("비밀번호가 일치하지 않습니다")
        return value

    @field_validator("name", mode="before")
    @classmethod
    def name_length(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("이름을 입력해주세요")
        name = value.strip()
        if len(name) < NAME_MIN:
            raise ValueError("이름은 최소 2자 이상이어야 합니다")
        if len(name) > NAME_MAX:
            raise ValueError("이름은 최대 50자까지 입력 가능합니다")
        return name

    @field_validator("phone", mode="before")
    @classmethod
    def phone_format(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        if not isinstance(value, str) or not PHONE_PATTERN.match(value.strip()):
            raise ValueError("올바른 전화번호 형식을 입력해주세요 (예: 010-1234-5678)")
        return value.strip()

    @field_validator("role", mode="before")
    @classmethod
    def self_registrable_role(cls, value: Any) -> Role:
        if value is None or value == "":
            return Role.STUDENT
        for role in SELF_REGISTRABLE_ROLES:
            if value == role.value:
                return role
        raise ValueError("올바른 역할을 선택해주세요")

    @field_validator("agree_to_terms", mode="before")
    @classmethod
    def terms_accepted(cls, value: Any) -> bool:
        if value is not True:
            raise ValueError("이용약관에 동의해주세요")
        return True

    def profile(self) -> dict[str, Any]:
        """Attributes forwarded verbatim to the identity service."""
        return {
            "full_name": self.name,
            "name": self.name,
            "role": self.role.value,
            "phone": self.phone or "",
        }


class LoginInput(_Input):
    """Login body: email, password."""

    email: EmailText = Field(default=None, validate_default=True)
    password: str = Field(default=None, validate_default=True)

    @field_validator("password", mode="before")
    @classmethod
    def password_length(cls, value: Any) -> str:
        password = _check_present(value, "비밀번호를 입력해주세요")
        if len(password) < LOGIN_PASSWORD_MIN:
            raise ValueError("비밀번호는 최소 6자 이상이어야 합니다")
        return password


class EmailInput(_Input):
    """Body holding just an email (forgot-password, resend-confirmation)."""

    email: EmailText = Field(default=None, validate_default=True)


class VerifyEmailInput(_Input):
    """Verify-email body: token, email?. Token rules belong to the workflow."""

    token: str | None = Field(default=None, validate_default=True)
    email: str | None = Field(default=None, validate_default=True)

    @field_validator("token", mode="before")
    @classmethod
    def token_is_text(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise ValueError("유효하지 않은 인증 토큰 형식입니다")
        return value.strip()

    @field_validator("email", mode="before")
    @classmethod
    def optional_email(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return _check_email(value)


def _message(error: dict[str, Any]) -> str:
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    return error["msg"]


def validate(model: type[InputT], payload: Any) -> InputT:
    """
    Validate a decoded JSON body against `model`.

    Non-object payloads are treated as an empty object.

    Raises:
        ValidationFailed: With {field: message} for every violated field
    """
    if not isinstance(payload, dict):
        payload = {}
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        field_errors: dict[str, str] = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else "body"
            field_errors.setdefault(field, _message(error))
        raise ValidationFailed(field_errors) from None
