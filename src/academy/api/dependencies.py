"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
Process-wide resources (connection pool, identity gateway) are created
by the app lifespan and read from app.state.
"""

from datetime import timedelta
from typing import Any

import httpx
from fastapi import Depends, Request
from psycopg_pool import ConnectionPool

from academy.adapters.identity import FixtureIdentityGateway, GoTrueIdentityGateway
from academy.adapters.repository.postgres import PostgresAccountRepository
from academy.adapters.smtp.console import ConsoleEmailSender
from academy.config.settings import Settings
from academy.domain.accounts import AuthService
from academy.domain.ports import AccountRepository, EmailSender, IdentityGateway
from academy.domain.verification import VerificationService

# Module-level singleton - ConsoleEmailSender is stateless
_email_sender = ConsoleEmailSender()


def build_identity_gateway(
    settings: Settings,
) -> tuple[IdentityGateway, httpx.Client | None]:
    """
    Construct the configured identity gateway.

    Returns:
        The gateway and the httpx.Client it owns (None for the fixture
        gateway); the caller closes the client on shutdown
    """
    if settings.identity_provider == "fixture":
        return FixtureIdentityGateway(), None

    headers = {"apikey": settings.identity_api_key} if settings.identity_api_key else {}
    client = httpx.Client(base_url=settings.identity_url, headers=headers)
    return GoTrueIdentityGateway(client), client


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_account_repository(request: Request) -> AccountRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresAccountRepository(pool)


def get_identity_gateway(request: Request) -> IdentityGateway:
    """Get the identity gateway built at startup."""
    return request.app.state.identity_gateway


def get_email_sender() -> EmailSender:
    """Get console email sender (singleton)."""
    return _email_sender


def get_verification_service(
    repository: AccountRepository = Depends(get_account_repository),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_app_settings),
) -> VerificationService:
    """Create verification service with injected dependencies."""
    return VerificationService(
        repository=repository,
        email_sender=email_sender,
        token_prefix=settings.verification_token_prefix,
        ttl=timedelta(hours=settings.verification_ttl_hours),
        link_base=settings.app_base_url,
    )


def get_auth_service(
    gateway: IdentityGateway = Depends(get_identity_gateway),
    repository: AccountRepository = Depends(get_account_repository),
    verification: VerificationService = Depends(get_verification_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    """
    Create auth service with injected dependencies.

    Wires together the identity gateway, the account repository and the
    verification workflow.
    """
    return AuthService(
        gateway=gateway,
        repository=repository,
        verification=verification,
        auth_provider=settings.identity_provider,
    )


async def get_json_body(request: Request) -> dict[str, Any]:
    """
    Decode the JSON request body.

    An absent, undecodable or non-object body is treated as {} so that
    validation reports missing fields instead of a parse failure.
    """
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
