"""
Integration tests for PostgresAccountRepository.

Tests repository operations against a real PostgreSQL database.
Requires PostgreSQL to be running (DATABASE_URL); skipped otherwise.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from academy.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from academy.config.settings import get_settings
from academy.domain.exceptions import EmailAlreadyRegistered
from academy.domain.models import Role

pytestmark = pytest.mark.integration

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="module")
def pool() -> ConnectionPool:
    """Create connection pool for integration tests."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    try:
        pool.open(wait=True, timeout=5)
        run_migrations(pool)
    except (psycopg.Error, RuntimeError) as e:
        pool.close()
        pytest.skip(f"PostgreSQL not available: {e}")
    yield pool
    pool.close()


@pytest.fixture
def repository(pool: ConnectionPool) -> PostgresAccountRepository:
    """Create repository instance for each test."""
    return PostgresAccountRepository(pool)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> None:
    """Clean users table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM users")
        conn.commit()
    yield


def insert_pending(
    repository: PostgresAccountRepository,
    email: str = "kim@example.com",
    token: str = "verify_abc",
    expires_at: datetime = NOW + timedelta(hours=24),
):
    return repository.insert(
        email=email,
        name="Kim",
        role="student",
        phone=None,
        metadata={
            "authProvider": "gotrue",
            "externalId": "ext-1",
            "verificationToken": token,
            "verificationTokenExpires": expires_at.isoformat(),
        },
    )


class TestInsert:
    """Tests for insert method."""

    def test_insert_returns_unverified_account(
        self, repository: PostgresAccountRepository
    ) -> None:
        account = insert_pending(repository)

        assert account.email == "kim@example.com"
        assert account.role is Role.STUDENT
        assert account.email_verified is False
        assert account.metadata["verificationToken"] == "verify_abc"
        assert account.created_at is not None

    def test_duplicate_email_raises(self, repository: PostgresAccountRepository) -> None:
        insert_pending(repository)

        with pytest.raises(EmailAlreadyRegistered):
            insert_pending(repository, token="verify_other")

    def test_concurrent_inserts_exactly_one_succeeds(self, pool: ConnectionPool) -> None:
        """UNIQUE constraint arbitrates racing signups for one email."""

        def attempt(_: int) -> bool:
            try:
                insert_pending(PostgresAccountRepository(pool), email="race@example.com")
                return True
            except EmailAlreadyRegistered:
                return False

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(attempt, range(8)))

        assert results.count(True) == 1


class TestFindByEmail:
    """Tests for find_by_email method."""

    def test_found(self, repository: PostgresAccountRepository) -> None:
        created = insert_pending(repository)

        found = repository.find_by_email("kim@example.com")

        assert found is not None
        assert found.id == created.id

    def test_missing(self, repository: PostgresAccountRepository) -> None:
        assert repository.find_by_email("ghost@example.com") is None


class TestFindByVerificationToken:
    """Tests for find_by_verification_token method."""

    def test_matches_token(self, repository: PostgresAccountRepository) -> None:
        created = insert_pending(repository)

        matches = repository.find_by_verification_token("verify_abc")

        assert [account.id for account in matches] == [created.id]

    def test_email_filter(self, repository: PostgresAccountRepository) -> None:
        insert_pending(repository)

        assert repository.find_by_verification_token("verify_abc", "other@example.com") == []
        assert len(repository.find_by_verification_token("verify_abc", "kim@example.com")) == 1

    def test_verified_accounts_excluded(self, repository: PostgresAccountRepository) -> None:
        created = insert_pending(repository)
        repository.mark_verified(created.id, NOW)

        assert repository.find_by_verification_token("verify_abc") == []


class TestMarkVerified:
    """Tests for mark_verified method."""

    def test_sets_flag_and_drops_token(self, repository: PostgresAccountRepository) -> None:
        created = insert_pending(repository)

        account = repository.mark_verified(created.id, NOW)

        assert account is not None
        assert account.email_verified is True
        assert "verificationToken" not in account.metadata
        assert "verificationTokenExpires" not in account.metadata
        assert account.metadata["verifiedAt"] == NOW.isoformat()
        assert account.metadata["externalId"] == "ext-1"

    def test_second_call_updates_nothing(self, repository: PostgresAccountRepository) -> None:
        created = insert_pending(repository)
        repository.mark_verified(created.id, NOW)

        assert repository.mark_verified(created.id, NOW + timedelta(minutes=1)) is None
        assert repository.find_by_email("kim@example.com").verified_at == NOW.isoformat()


class TestStoreVerificationToken:
    """Tests for store_verification_token method."""

    def test_replaces_token(self, repository: PostgresAccountRepository) -> None:
        insert_pending(repository)
        expires_at = NOW + timedelta(hours=48)

        assert repository.store_verification_token("kim@example.com", "verify_new", expires_at)

        account = repository.find_by_email("kim@example.com")
        assert account.metadata["verificationToken"] == "verify_new"
        assert account.metadata["verificationTokenExpires"] == expires_at.isoformat()
        assert account.metadata["authProvider"] == "gotrue"

    def test_unknown_email(self, repository: PostgresAccountRepository) -> None:
        assert repository.store_verification_token("ghost@example.com", "verify_x", NOW) is False

    def test_verified_account_untouched(self, repository: PostgresAccountRepository) -> None:
        created = insert_pending(repository)
        repository.mark_verified(created.id, NOW)

        assert repository.store_verification_token("kim@example.com", "verify_x", NOW) is False
        assert "verificationToken" not in repository.find_by_email("kim@example.com").metadata
