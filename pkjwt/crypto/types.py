"""Type definitions for signing keys, JWKS and client assertion claims."""

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from pydantic import BaseModel, ConfigDict


class JWKEntry(BaseModel):
    """Single public JWK entry in a JWKS response."""

    model_config = ConfigDict(frozen=True)

    kty: str = "RSA"
    use: str = "sig"
    alg: str = "RS256"
    kid: str
    n: str
    e: str


class JWKSResponse(BaseModel):
    """JSON Web Key Set response."""

    model_config = ConfigDict(frozen=True)

    keys: list[JWKEntry]


class KeyMaterial(BaseModel):
    """The process-wide RSA signing key and its identity."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    private_key: RSAPrivateKey
    kid: str
    use: str = "sig"
    algorithm: str = "RS256"

    def __repr__(self) -> str:
        return f"KeyMaterial(kid={self.kid!r}, algorithm={self.algorithm!r})"

    __str__ = __repr__


class AssertionClaims(BaseModel):
    """Claims the client asserts about itself to the token issuer."""

    model_config = ConfigDict(frozen=True)

    issuer: str | None = None
    subject: str
    audience: list[str]
    id: str | None = None
