"""
API request and response models.

Pydantic models for response serialization and OpenAPI schema generation.
Request bodies are validated by academy.domain.validation instead, so a
missing or malformed body yields field errors rather than a parse error.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from academy.domain.models import Account, IdentityUser, Session


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(_CamelModel):
    """Account as exposed to clients."""

    id: str
    email: str
    name: str
    role: str
    phone: str | None = None
    email_verified: bool
    created_at: datetime | str | None = None
    verified_at: str | None = None

    @classmethod
    def from_account(cls, account: Account) -> "UserResponse":
        return cls(
            id=account.id,
            email=account.email,
            name=account.name,
            role=account.role.value,
            phone=account.phone,
            email_verified=account.email_verified,
            created_at=account.created_at,
            verified_at=account.verified_at,
        )

    @classmethod
    def from_identity(cls, user: IdentityUser) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            phone=user.user_metadata.get("phone") or None,
            email_verified=user.email_confirmed_at is not None,
            created_at=user.created_at,
        )


class SessionResponse(BaseModel):
    """Identity service session, handed back for the client to store."""

    access_token: str
    refresh_token: str
    expires_in: int
    expires_at: int
    token_type: str

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(**asdict(session))


class SignupResponse(_CamelModel):
    """Response model for successful signup."""

    success: bool = True
    user: UserResponse
    message: str
    email_sent: bool
    verification_required: bool = True
    debug: dict[str, Any] | None = None


class LoginResponse(_CamelModel):
    """Response model for successful login."""

    success: bool = True
    user: UserResponse
    session: SessionResponse
    message: str


class MessageResponse(_CamelModel):
    """Response model for endpoints that only acknowledge."""

    success: bool = True
    message: str


class VerifyEmailResponse(_CamelModel):
    """Response model for successful email verification."""

    success: bool = True
    user: UserResponse
    verified: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    details: Any | None = None
    code: str | None = None
    expired: bool | None = None
