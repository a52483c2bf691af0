"""
Domain models - Plain data carried between the layers.

Accounts mirror the `users` table. Identity users and sessions are what the
hosted identity service hands back; sessions are never persisted here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Role(str, Enum):
    """Account roles."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


# Roles a visitor may pick for themselves at signup
SELF_REGISTRABLE_ROLES = (Role.STUDENT, Role.INSTRUCTOR)


@dataclass
class Account:
    """Local mirror of a registered user."""

    id: str
    email: str
    name: str
    role: Role
    email_verified: bool = False
    phone: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def verified_at(self) -> str | None:
        return self.metadata.get("verifiedAt")


@dataclass
class IdentityUser:
    """User record as returned by the identity service."""

    id: str
    email: str
    user_metadata: dict[str, Any] = field(default_factory=dict)
    email_confirmed_at: str | None = None
    created_at: str | None = None

    @property
    def name(self) -> str:
        return self.user_metadata.get("full_name") or self.user_metadata.get("name") or ""

    @property
    def role(self) -> str:
        return self.user_metadata.get("role") or Role.STUDENT.value


@dataclass
class Session:
    """Tokens issued by the identity service on login."""

    access_token: str
    refresh_token: str
    expires_in: int
    expires_at: int  # unix seconds
    token_type: str = "bearer"


@dataclass
class GatewayError:
    """
    Normalized identity service failure.

    `message` is already translated for the end user, `raw` keeps the
    provider's text for logs. `transport` marks failures to reach the
    service at all.
    """

    message: str
    raw: str | None = None
    transport: bool = False


@dataclass
class GatewayResult(Generic[T]):
    """Outcome of one identity service call: a value or an error, never both."""

    value: T | None = None
    error: GatewayError | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("GatewayResult needs exactly one of value or error")

    @property
    def ok(self) -> bool:
        return self.error is None
