"""
Unit tests for settings and dependency factories.
"""

from academy.adapters.identity import FixtureIdentityGateway, GoTrueIdentityGateway
from academy.api.dependencies import build_identity_gateway
from academy.config.settings import Settings


class TestSettings:
    """Tests for Settings defaults and environment loading."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.identity_provider == "gotrue"
        assert settings.verification_token_prefix == "verify_"
        assert settings.verification_ttl_hours == 24
        assert settings.is_development is False

    def test_environment_variables(self, monkeypatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "Development")
        monkeypatch.setenv("IDENTITY_PROVIDER", "fixture")

        settings = Settings(_env_file=None)

        assert settings.is_development is True
        assert settings.identity_provider == "fixture"


class TestBuildIdentityGateway:
    """Tests for build_identity_gateway."""

    def test_fixture_provider_owns_no_client(self) -> None:
        gateway, client = build_identity_gateway(
            Settings(identity_provider="fixture", _env_file=None)
        )

        assert isinstance(gateway, FixtureIdentityGateway)
        assert client is None

    def test_gotrue_client_carries_api_key(self) -> None:
        settings = Settings(
            identity_url="https://auth.academy.example",
            identity_api_key="anon-key",
            _env_file=None,
        )

        gateway, client = build_identity_gateway(settings)
        try:
            assert isinstance(gateway, GoTrueIdentityGateway)
            assert client.headers["apikey"] == "anon-key"
            assert str(client.base_url).startswith("https://auth.academy.example")
        finally:
            client.close()
