"""Shared test fixtures for pkjwt."""

import pytest
import structlog

from pkjwt.core.settings import ClientSettings
from pkjwt.crypto.keys import generate_signing_key
from pkjwt.crypto.signer import AssertionSigner
from pkjwt.crypto.types import AssertionClaims, KeyMaterial

ISSUER = "http://localhost:8080/auth/realms/master"
CLIENT_ID = "telemeter"


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("PKJWT_ISSUER_URL", ISSUER)


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Keep structlog in its default, unconfigured state between tests."""
    structlog.reset_defaults()


@pytest.fixture(scope="session")
def key_material() -> KeyMaterial:
    """One RSA signing key shared by the whole test session."""
    return generate_signing_key()


@pytest.fixture
def signer(key_material: KeyMaterial) -> AssertionSigner:
    return AssertionSigner(key_material)


@pytest.fixture
def claims() -> AssertionClaims:
    return AssertionClaims(subject=CLIENT_ID, audience=[ISSUER])


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(poll_interval=0.01, debug_http=False)
