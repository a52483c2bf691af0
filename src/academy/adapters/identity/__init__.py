"""Identity gateway adapters."""

from .fixture import FixtureIdentityGateway
from .gotrue import GoTrueIdentityGateway
from .messages import translate_auth_error

__all__ = ["FixtureIdentityGateway", "GoTrueIdentityGateway", "translate_auth_error"]
