"""
Domain layer - Pure business logic with zero framework imports.

This package contains the auth and email verification workflow. It
defines its own port interfaces for infrastructure abstraction; pydantic
is used only to describe and validate request input.
"""

from .accounts import AuthService, SignupOutcome
from .exceptions import (
    AcademyError,
    AccountSyncFailed,
    DomainError,
    EmailAlreadyRegistered,
    IdentityRejected,
    TransportError,
    ValidationFailed,
    VerificationFailed,
)
from .models import Account, IdentityUser, Role, Session
from .ports import AccountRepository, EmailSender, IdentityGateway, TokenFailure
from .verification import VerificationService

__all__ = [
    "AcademyError",
    "Account",
    "AccountRepository",
    "AccountSyncFailed",
    "AuthService",
    "DomainError",
    "EmailAlreadyRegistered",
    "EmailSender",
    "IdentityGateway",
    "IdentityRejected",
    "IdentityUser",
    "Role",
    "Session",
    "SignupOutcome",
    "TokenFailure",
    "TransportError",
    "ValidationFailed",
    "VerificationFailed",
    "VerificationService",
]
