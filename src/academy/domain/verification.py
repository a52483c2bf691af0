"""
Email verification workflow.

Account states
==============

- Unverified: created at signup, holds a verification token and expiry
- Verified: terminal, reached only through `verify()`

Valid transition:
    Unverified -> Verified  (token present, well-formed, matches the
                             stored token, presented before expiry)

Every other presentation leaves the account Unverified and raises
VerificationFailed with one of the TokenFailure reasons. Expiry is
checked at presentation time and never persisted as a state. A token
presented at exactly its expiry instant is expired.

A successful verification clears the stored token, so a replayed token
finds no unverified account and is refused as INVALID_TOKEN.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from .exceptions import VerificationFailed
from .models import Account
from .ports import AccountRepository, EmailSender, TokenFailure

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_expiry(value: object) -> datetime | None:
    """Read a stored ISO-8601 expiry; naive values are taken as UTC."""
    if not isinstance(value, str):
        return None
    try:
        expires_at = datetime.fromisoformat(value)
    except ValueError:
        return None
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


@dataclass
class VerificationService:
    """
    Domain service for email verification.

    Issues tokens, delivers verification links and applies the
    Unverified -> Verified transition.
    """

    repository: AccountRepository
    email_sender: EmailSender
    token_prefix: str = "verify_"
    ttl: timedelta = timedelta(hours=24)
    link_base: str = "http://localhost:3000"
    clock: Callable[[], datetime] = field(default=utcnow)

    def issue_token(self) -> tuple[str, datetime]:
        """
        Generate a fresh verification token and its expiry.

        Uses secrets module for cryptographic randomness; the fixed prefix
        lets malformed tokens be refused before any lookup.
        """
        token = f"{self.token_prefix}{secrets.token_urlsafe(TOKEN_BYTES)}"
        return token, self.clock() + self.ttl

    def verification_link(self, token: str, email: str) -> str:
        query = urlencode({"token": token, "email": email})
        return f"{self.link_base.rstrip('/')}/verify-email?{query}"

    def deliver(self, email: str, name: str, token: str) -> bool:
        """
        Send the verification link.

        Returns:
            False if the sender failed; the failure is logged, not raised,
            so that signup still completes
        """
        link = self.verification_link(token, email)
        try:
            self.email_sender.send_verification_email(email, name, link)
        except Exception:
            logger.exception("Verification email delivery failed: %s", email)
            return False
        return True

    def verify(self, token: str | None, email: str | None = None) -> Account:
        """
        Verify an account by its token.

        Args:
            token: Token from the verification link
            email: Optional normalized email narrowing the lookup

        Returns:
            The account, now verified

        Raises:
            VerificationFailed: MISSING_TOKEN, INVALID_TOKEN_FORMAT,
                INVALID_TOKEN or TOKEN_EXPIRED
        """
        if not token:
            raise VerificationFailed(TokenFailure.MISSING_TOKEN)
        if not token.startswith(self.token_prefix):
            raise VerificationFailed(TokenFailure.INVALID_TOKEN_FORMAT)

        matches = self.repository.find_by_verification_token(token, email)
        if not matches:
            raise VerificationFailed(TokenFailure.INVALID_TOKEN)
        if len(matches) > 1:
            logger.error("Verification token matched %d accounts; refusing", len(matches))
            raise VerificationFailed(TokenFailure.INVALID_TOKEN)

        account = matches[0]
        now = self.clock()
        expires_at = parse_expiry(account.metadata.get("verificationTokenExpires"))
        if expires_at is None or now >= expires_at:
            logger.info("Expired verification token presented for %s", account.email)
            raise VerificationFailed(TokenFailure.TOKEN_EXPIRED)

        verified = self.repository.mark_verified(account.id, now)
        if verified is None:
            # Lost a race with a concurrent verification of the same account
            raise VerificationFailed(TokenFailure.INVALID_TOKEN)

        logger.info("Email verified: %s", verified.email)
        return verified

    def resend(self, email: str) -> None:
        """
        Issue a new token and resend the verification link.

        Always returns normally, whether or not the address belongs to an
        unverified account, so callers cannot probe for registered emails.
        """
        token, expires_at = self.issue_token()

        account = self.repository.find_by_email(email)
        if account is None or account.email_verified:
            logger.info("Verification resend skipped for %s (no pending account)", email)
            return

        if self.repository.store_verification_token(email, token, expires_at):
            self.deliver(email, account.name, token)
