"""Application settings loaded from environment variables."""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KEY_SIZE_DEFAULT = 2048
JWKS_PORT_DEFAULT = 8888
POLL_INTERVAL_DEFAULT = 30.0
CONNECT_TIMEOUT_DEFAULT = 10.0
REQUEST_TIMEOUT_DEFAULT = 20.0
MAX_KEEPALIVE_DEFAULT = 10
KEEPALIVE_EXPIRY_DEFAULT = 30.0
ASSERTION_LIFETIME_DEFAULT = 60
RETRY_MAX_ATTEMPTS_DEFAULT = 5


class ClientSettings(BaseSettings):
    """private_key_jwt client settings."""

    model_config = SettingsConfigDict(env_prefix="PKJWT_")

    issuer_url: str
    client_id: str = "telemeter"
    assertion_issuer: str | None = None
    audience: list[str] = []
    assertion_id: str | None = None
    assertion_lifetime: int = ASSERTION_LIFETIME_DEFAULT
    scope: str | None = None

    signing_algorithm: str = "RS256"
    key_size: int = KEY_SIZE_DEFAULT

    jwks_host: str = "0.0.0.0"
    jwks_port: int = JWKS_PORT_DEFAULT
    jwks_path: str = "/jwks"

    poll_interval: float = POLL_INTERVAL_DEFAULT
    connect_timeout: float = CONNECT_TIMEOUT_DEFAULT
    request_timeout: float = REQUEST_TIMEOUT_DEFAULT
    max_keepalive_connections: int = MAX_KEEPALIVE_DEFAULT
    keepalive_expiry: float = KEEPALIVE_EXPIRY_DEFAULT
    debug_http: bool = True

    log_level: str = "info"
    log_json: bool = False

    retry_policy: Literal["fail_fast", "backoff"] = "fail_fast"
    retry_max_attempts: int = RETRY_MAX_ATTEMPTS_DEFAULT
    retry_base_delay: float = 1.0
    retry_max_delay: float = 60.0

    @model_validator(mode="after")
    def _default_audience(self) -> "ClientSettings":
        # Keycloak requires the assertion audience to name the realm issuer.
        if not self.audience:
            self.audience = [self.issuer_url]
        return self
