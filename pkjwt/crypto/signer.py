"""Client assertion signing (RFC 7523 private_key_jwt)."""

import time
from typing import Any

import jwt
import uuid_utils

from pkjwt.core.errors import SigningError
from pkjwt.crypto.types import AssertionClaims, KeyMaterial

ASSERTION_LIFETIME_DEFAULT = 60


class AssertionSigner:
    """Signs client assertions with the process signing key.

    Only the key ID goes into the JWS header. Relying parties must resolve
    the public key through the published JWKS, never from the token itself.
    """

    def __init__(
        self,
        key: KeyMaterial,
        lifetime_seconds: int = ASSERTION_LIFETIME_DEFAULT,
    ) -> None:
        self._key = key
        self._lifetime = lifetime_seconds

    @property
    def kid(self) -> str:
        return self._key.kid

    @property
    def algorithm(self) -> str:
        return self._key.algorithm

    def build_payload(self, claims: AssertionClaims) -> dict[str, Any]:
        """Translate assertion claims into registered JWT claims."""
        if not claims.subject:
            raise SigningError("Client assertion requires a subject")
        if not claims.audience:
            raise SigningError("Client assertion requires an audience")

        now = int(time.time())
        payload: dict[str, Any] = {
            "sub": claims.subject,
            "aud": list(claims.audience),
            "iat": now,
            "jti": claims.id or str(uuid_utils.uuid7()),
        }
        if claims.issuer:
            payload["iss"] = claims.issuer
        if self._lifetime > 0:
            payload["exp"] = now + self._lifetime
        return payload

    def sign(self, claims: AssertionClaims) -> str:
        """Return a compact JWS carrying the claims, issued now."""
        payload = self.build_payload(claims)
        try:
            return jwt.encode(
                payload,
                self._key.private_key,
                algorithm=self._key.algorithm,
                headers={"kid": self._key.kid},
            )
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
            raise SigningError(f"Client assertion signing failed: {exc}") from exc
