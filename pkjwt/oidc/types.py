"""Type definitions for OIDC discovery and token exchange."""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict


class DiscoveryDocument(BaseModel):
    """Subset of .well-known/openid-configuration used by the client."""

    model_config = ConfigDict(extra="ignore")

    issuer: str
    token_endpoint: str
    jwks_uri: str | None = None
    token_endpoint_auth_methods_supported: list[str] = []
    token_endpoint_auth_signing_alg_values_supported: list[str] = []


class TokenResponse(BaseModel):
    """OAuth token endpoint response."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None

    def to_credential(self, now: datetime | None = None) -> "AccessCredential":
        """Convert the wire response into a credential with absolute expiry."""
        now = now or datetime.now(UTC)
        expiry = None
        if self.expires_in:
            expiry = now + timedelta(seconds=self.expires_in)
        return AccessCredential(
            access_token=self.access_token,
            token_type=self.token_type,
            expiry=expiry,
            refresh_token=self.refresh_token,
            scope=self.scope,
        )


class AccessCredential(BaseModel):
    """Access token obtained from the issuer."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "Bearer"
    expiry: datetime | None = None
    refresh_token: str | None = None
    scope: str | None = None

    def __repr__(self) -> str:
        # Token values stay out of reprs and logs.
        refresh = "<set>" if self.refresh_token else None
        return (
            f"AccessCredential(token_type={self.token_type!r}, "
            f"expiry={self.expiry!r}, refresh_token={refresh!r})"
        )

    __str__ = __repr__


class TokenErrorResponse(BaseModel):
    """OAuth error response (RFC 6749 section 5.2)."""

    model_config = ConfigDict(extra="allow")

    error: str
    error_description: str | None = None
