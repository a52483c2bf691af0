"""
Auth domain service - signup, login and password reset orchestration.

Signup is a single workflow: the identity service registers the
credentials first, and the local account mirror is written only once
that succeeded. If the mirror insert then fails, nothing is retried; the
failure is logged at ERROR with the identity id so the two stores can be
reconciled, and the caller receives AccountSyncFailed.
"""

import logging
from dataclasses import dataclass
from typing import TypeVar

from .exceptions import (
    AccountSyncFailed,
    EmailAlreadyRegistered,
    IdentityRejected,
    TransportError,
)
from .models import Account, GatewayResult, IdentityUser, Session
from .ports import AccountRepository, IdentityGateway
from .validation import EmailInput, LoginInput, SignupInput
from .verification import VerificationService

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SignupOutcome:
    """Result of a completed signup."""

    account: Account
    email_sent: bool
    verification_link: str


def unwrap(result: GatewayResult[T]) -> T:
    """
    Return the gateway value or raise the matching domain error.

    Raises:
        TransportError: The identity service could not be reached
        IdentityRejected: The identity service refused the request
    """
    if result.error is not None:
        if result.error.transport:
            raise TransportError()
        raise IdentityRejected(result.error.message)
    return result.value


@dataclass
class AuthService:
    """
    Domain service for account authentication.

    Orchestrates the identity gateway, the local account mirror and the
    verification workflow.
    """

    gateway: IdentityGateway
    repository: AccountRepository
    verification: VerificationService
    auth_provider: str = "gotrue"

    def sign_up(self, data: SignupInput) -> SignupOutcome:
        """
        Register a new account.

        Args:
            data: Validated signup input (email already normalized)

        Returns:
            SignupOutcome with the unverified account

        Raises:
            EmailAlreadyRegistered: If the email is already mirrored locally
            IdentityRejected: If the identity service refused the signup
            TransportError: If the identity service was unreachable
            AccountSyncFailed: If the local mirror could not be written
        """
        if self.repository.find_by_email(data.email) is not None:
            raise EmailAlreadyRegistered(data.email)

        identity = unwrap(self.gateway.sign_up(data.email, data.password, data.profile()))

        token, expires_at = self.verification.issue_token()
        metadata = {
            "authProvider": self.auth_provider,
            "externalId": identity.id,
            "registrationSource": "web",
            "verificationToken": token,
            "verificationTokenExpires": expires_at.isoformat(),
        }

        try:
            account = self.repository.insert(
                email=data.email,
                name=data.name,
                role=data.role.value,
                phone=data.phone,
                metadata=metadata,
            )
        except EmailAlreadyRegistered:
            logger.error(
                "Account mirror conflict after identity signup; reconcile email=%s external_id=%s",
                data.email,
                identity.id,
            )
            raise
        except Exception as e:
            logger.error(
                "Account mirror insert failed after identity signup; reconcile email=%s external_id=%s - %s",
                data.email,
                identity.id,
                e,
            )
            raise AccountSyncFailed(data.email, identity.id) from e

        logger.info("Account registered: %s (%s)", account.email, account.role.value)
        email_sent = self.verification.deliver(account.email, account.name, token)
        return SignupOutcome(
            account=account,
            email_sent=email_sent,
            verification_link=self.verification.verification_link(token, account.email),
        )

    def sign_in(self, data: LoginInput) -> tuple[IdentityUser, Session]:
        """
        Exchange credentials for a session issued by the identity service.

        Raises:
            IdentityRejected: Wrong credentials, unconfirmed email, ...
            TransportError: If the identity service was unreachable
        """
        user, session = unwrap(self.gateway.sign_in(data.email, data.password))
        logger.info("Login succeeded: %s", data.email)
        return user, session

    def request_password_reset(self, data: EmailInput) -> None:
        """
        Ask the identity service to mail a password reset link.

        Fire-and-forget: no token comes back to this service.
        """
        unwrap(self.gateway.reset_password(data.email))
        logger.info("Password reset requested: %s", data.email)
