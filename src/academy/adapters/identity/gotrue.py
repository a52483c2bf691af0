"""
GoTrue identity gateway - Implements IdentityGateway protocol over HTTP.

Talks to a GoTrue-compatible identity API (Netlify Identity, Supabase Auth)
through a shared httpx.Client. Every call returns a GatewayResult: provider
errors are translated, transport failures are logged and downgraded to a
generic message. Nothing raised by httpx crosses this boundary.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from academy.domain.models import GatewayError, GatewayResult, IdentityUser, Session

from .messages import OPERATION_FAILED_MESSAGE, translate_auth_error

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600


def _failure(raw: str) -> GatewayResult[Any]:
    return GatewayResult(
        error=GatewayError(message=OPERATION_FAILED_MESSAGE, raw=raw, transport=True)
    )


def _error_text(body: Any) -> str | None:
    """Pull the human-readable error out of a GoTrue error body."""
    if not isinstance(body, dict):
        return None
    for key in ("msg", "error_description", "message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def parse_user(data: dict[str, Any]) -> IdentityUser:
    """Build an IdentityUser from a GoTrue user object."""
    return IdentityUser(
        id=str(data["id"]),
        email=data.get("email", ""),
        user_metadata=data.get("user_metadata") or {},
        email_confirmed_at=data.get("email_confirmed_at") or data.get("confirmed_at"),
        created_at=data.get("created_at"),
    )


class GoTrueIdentityGateway:
    """
    Implements IdentityGateway protocol via the GoTrue REST API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The httpx.Client is owned by the caller, opened once per process.
    """

    def __init__(
        self, client: httpx.Client, clock: Callable[[], float] = time.time
    ) -> None:
        """
        Initialize gateway with an HTTP client.

        Args:
            client: httpx.Client whose base_url points at the GoTrue API
            clock: Source of unix time, used to derive session expiry
        """
        self._client = client
        self._clock = clock

    def sign_up(
        self, email: str, password: str, profile: dict[str, Any]
    ) -> GatewayResult[IdentityUser]:
        result = self._post("/signup", {"email": email, "password": password, "data": profile})
        if result.error is not None:
            return GatewayResult(error=result.error)

        body = result.value
        # Autoconfirming instances answer with a session wrapping the user
        user_data = body.get("user", body) if "access_token" in body else body
        try:
            return GatewayResult(value=parse_user(user_data))
        except (KeyError, TypeError, AttributeError):
            logger.error("Unexpected signup response from identity service: %r", body)
            return _failure("malformed signup response")

    def sign_in(
        self, email: str, password: str
    ) -> GatewayResult[tuple[IdentityUser, Session]]:
        result = self._post(
            "/token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        if result.error is not None:
            return GatewayResult(error=result.error)

        body = result.value
        try:
            expires_in = int(body.get("expires_in") or DEFAULT_EXPIRES_IN)
            session = Session(
                access_token=body["access_token"],
                refresh_token=body.get("refresh_token", ""),
                expires_in=expires_in,
                expires_at=int(body.get("expires_at") or self._clock() + expires_in),
                token_type=(body.get("token_type") or "bearer").lower(),
            )
            user = parse_user(body["user"])
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.error("Unexpected token response from identity service")
            return _failure("malformed token response")
        return GatewayResult(value=(user, session))

    def reset_password(self, email: str) -> GatewayResult[bool]:
        result = self._post("/recover", {"email": email})
        if result.error is not None:
            return GatewayResult(error=result.error)
        return GatewayResult(value=True)

    def _post(
        self,
        path: str,
        payload: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> GatewayResult[dict[str, Any]]:
        """POST to the identity API and normalize the outcome."""
        try:
            response = self._client.post(path, json=payload, params=params)
        except httpx.HTTPError as e:
            logger.error("Identity service unreachable: POST %s - %s", path, e)
            return _failure(str(e))

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = None

        if response.status_code >= 500:
            logger.error(
                "Identity service error: POST %s -> %s", path, response.status_code
            )
            return _failure(f"HTTP {response.status_code}")

        if response.is_error:
            raw = _error_text(body) or response.reason_phrase
            logger.info("Identity service rejected POST %s: %s", path, raw)
            return GatewayResult(
                error=GatewayError(message=translate_auth_error(raw), raw=raw)
            )

        if not isinstance(body, dict):
            logger.error("Identity service returned a non-object body for POST %s", path)
            return _failure("non-object response body")
        return GatewayResult(value=body)
