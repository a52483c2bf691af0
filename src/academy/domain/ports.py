"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from .models import Account, GatewayResult, IdentityUser, Session


class TokenFailure(str, Enum):
    """
    Reasons a presented verification token is refused.

    The account stays Unverified for every one of them. Values double as
    the machine-readable `code` in error responses.
    """

    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN_FORMAT = "INVALID_TOKEN_FORMAT"
    INVALID_TOKEN = "INVALID_TOKEN"  # no unverified account holds this token
    TOKEN_EXPIRED = "TOKEN_EXPIRED"


class IdentityGateway(Protocol):
    """Port interface for the hosted identity service."""

    def sign_up(
        self, email: str, password: str, profile: dict[str, Any]
    ) -> GatewayResult[IdentityUser]:
        """
        Register credentials with the identity service.

        Args:
            email: Normalized email address
            password: Plaintext password, never stored locally
            profile: Display name, role and phone, forwarded verbatim

        Returns:
            GatewayResult holding the created IdentityUser or a GatewayError
        """
        ...

    def sign_in(
        self, email: str, password: str
    ) -> GatewayResult[tuple[IdentityUser, Session]]:
        """Exchange credentials for a session."""
        ...

    def reset_password(self, email: str) -> GatewayResult[bool]:
        """Ask the identity service to email a password reset link."""
        ...


class AccountRepository(Protocol):
    """Port interface for the local account mirror."""

    def find_by_email(self, email: str) -> Account | None:
        """Return the account with this normalized email, if any."""
        ...

    def insert(
        self,
        email: str,
        name: str,
        role: str,
        phone: str | None,
        metadata: dict[str, Any],
    ) -> Account:
        """
        Insert a new unverified account.

        Raises:
            EmailAlreadyRegistered: If the email is already present
        """
        ...

    def find_by_verification_token(
        self, token: str, email: str | None = None
    ) -> list[Account]:
        """Unverified accounts whose stored token equals `token`."""
        ...

    def mark_verified(self, account_id: str, verified_at: datetime) -> Account | None:
        """
        Flip email_verified to true and clear the stored token.

        Returns:
            The updated account, or None if it was already verified
        """
        ...

    def store_verification_token(
        self, email: str, token: str, expires_at: datetime
    ) -> bool:
        """
        Replace the verification token of an unverified account.

        Returns:
            True if an unverified account with this email was updated
        """
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_email(self, email: str, name: str, link: str) -> None:
        """
        Send the email verification link.

        Args:
            email: Recipient email address
            name: Recipient display name
            link: Verification URL carrying the token
        """
        ...
