"""
Fixture identity gateway - Implements IdentityGateway protocol in process.

Serves a fixed table of test accounts so the service can run without a
hosted identity API (local development, end-to-end tests). Sessions carry
random tokens and expire 24 hours after issue.
"""

import logging
import secrets
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from academy.domain.models import GatewayError, GatewayResult, IdentityUser, Role, Session

from .messages import translate_auth_error

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 24 * 60 * 60
TEST_PASSWORD = "password123"

# email -> (display name, role, confirmed)
TEST_ACCOUNTS: dict[str, tuple[str, Role, bool]] = {
    "test@example.com": ("테스트 사용자", Role.STUDENT, True),
    "teacher@example.com": ("테스트 강사", Role.INSTRUCTOR, True),
    "admin@example.com": ("관리자", Role.ADMIN, True),
    "unverified@example.com": ("미인증 사용자", Role.STUDENT, False),
}


@dataclass
class _Credential:
    password: str
    user: IdentityUser


def _rejected(raw: str) -> GatewayResult[Any]:
    return GatewayResult(error=GatewayError(message=translate_auth_error(raw), raw=raw))


class FixtureIdentityGateway:
    """
    Implements IdentityGateway protocol against an in-memory account table.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        accounts: dict[str, tuple[str, Role, bool]] | None = None,
        password: str = TEST_PASSWORD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._credentials: dict[str, _Credential] = {}
        for email, (name, role, confirmed) in (accounts or TEST_ACCOUNTS).items():
            self._add(email, password, {"full_name": name, "role": role.value}, confirmed)

    def sign_up(
        self, email: str, password: str, profile: dict[str, Any]
    ) -> GatewayResult[IdentityUser]:
        if email in self._credentials:
            return _rejected("A user with this email address has already been registered")
        if not password:
            return _rejected("Signup requires a valid password")
        user = self._add(email, password, dict(profile), confirmed=False)
        logger.info("Fixture identity account created: %s", email)
        return GatewayResult(value=user)

    def sign_in(
        self, email: str, password: str
    ) -> GatewayResult[tuple[IdentityUser, Session]]:
        credential = self._credentials.get(email)
        if credential is None or not secrets.compare_digest(
            credential.password.encode(), password.encode()
        ):
            return _rejected("Invalid login credentials")
        if credential.user.email_confirmed_at is None:
            return _rejected("Email not confirmed")

        session = Session(
            access_token=secrets.token_urlsafe(32),
            refresh_token=secrets.token_urlsafe(32),
            expires_in=SESSION_TTL_SECONDS,
            expires_at=int(self._clock()) + SESSION_TTL_SECONDS,
            token_type="bearer",
        )
        return GatewayResult(value=(credential.user, session))

    def reset_password(self, email: str) -> GatewayResult[bool]:
        # Same answer for unknown addresses; nothing is actually mailed
        logger.info(
            "Fixture password reset requested: %s (known=%s)",
            email,
            email in self._credentials,
        )
        return GatewayResult(value=True)

    def _add(
        self, email: str, password: str, metadata: dict[str, Any], confirmed: bool
    ) -> IdentityUser:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc).isoformat()
        user = IdentityUser(
            id=str(uuid.uuid4()),
            email=email,
            user_metadata=metadata,
            email_confirmed_at=now if confirmed else None,
            created_at=now,
        )
        self._credentials[email] = _Credential(password=password, user=user)
        return user
