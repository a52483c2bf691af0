"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory account repository (AccountRepository port)
- A recording email sender (EmailSender port)
- A controllable clock for expiry checks
"""

import uuid
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from academy.domain.exceptions import EmailAlreadyRegistered
from academy.domain.models import Account, Role
from academy.domain.verification import VerificationService


class InMemoryAccountRepository:
    """AccountRepository keeping accounts in a dict keyed by email."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}

    def find_by_email(self, email: str) -> Account | None:
        return self.accounts.get(email)

    def insert(
        self,
        email: str,
        name: str,
        role: str,
        phone: str | None,
        metadata: dict[str, Any],
    ) -> Account:
        if email in self.accounts:
            raise EmailAlreadyRegistered(email)
        now = datetime.now(timezone.utc)
        account = Account(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            role=Role(role),
            phone=phone,
            metadata=dict(metadata),
            created_at=now,
            updated_at=now,
        )
        self.accounts[email] = account
        return account

    def find_by_verification_token(
        self, token: str, email: str | None = None
    ) -> list[Account]:
        return [
            account
            for account in self.accounts.values()
            if not account.email_verified
            and account.metadata.get("verificationToken") == token
            and (email is None or account.email == email)
        ]

    def mark_verified(self, account_id: str, verified_at: datetime) -> Account | None:
        for account in self.accounts.values():
            if account.id == account_id and not account.email_verified:
                account.email_verified = True
                account.metadata.pop("verificationToken", None)
                account.metadata.pop("verificationTokenExpires", None)
                account.metadata["verifiedAt"] = verified_at.isoformat()
                account.updated_at = verified_at
                return account
        return None

    def store_verification_token(
        self, email: str, token: str, expires_at: datetime
    ) -> bool:
        account = self.accounts.get(email)
        if account is None or account.email_verified:
            return False
        account.metadata["verificationToken"] = token
        account.metadata["verificationTokenExpires"] = expires_at.isoformat()
        return True

    def seed(
        self,
        email: str,
        token: str | None = None,
        expires_at: datetime | None = None,
        verified: bool = False,
        name: str = "Kim",
    ) -> Account:
        """Insert an account directly, optionally holding a token."""
        metadata: dict[str, Any] = {"authProvider": "fixture"}
        if token is not None:
            metadata["verificationToken"] = token
            metadata["verificationTokenExpires"] = (
                expires_at or datetime.now(timezone.utc) + timedelta(hours=24)
            ).isoformat()
        account = self.insert(email, name, Role.STUDENT.value, None, metadata)
        account.email_verified = verified
        return account


class RecordingEmailSender:
    """EmailSender that records every verification email."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    def send_verification_email(self, email: str, name: str, link: str) -> None:
        self.sent.append((email, name, link))


class FakeClock:
    """Callable returning a fixed, movable UTC time."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def verification(
    repository: InMemoryAccountRepository,
    email_sender: RecordingEmailSender,
    clock: FakeClock,
) -> Iterator[VerificationService]:
    yield VerificationService(
        repository=repository,
        email_sender=email_sender,
        link_base="https://academy.example",
        clock=clock,
    )
