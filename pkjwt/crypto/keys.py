"""RSA signing key generation and JWK conversion."""

import base64
import secrets

from cryptography.hazmat.primitives.asymmetric import rsa

from pkjwt.core.errors import KeyGenerationError
from pkjwt.crypto.types import JWKEntry, JWKSResponse, KeyMaterial

RSA_KEY_SIZE = 2048
RSA_MIN_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
KID_BYTES = 10
KEY_USE = "sig"
SUPPORTED_ALGORITHMS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512"}
)


def generate_kid(num_bytes: int = KID_BYTES) -> str:
    """Return a random, URL-safe key identifier."""
    raw = secrets.token_bytes(num_bytes)
    return base64.b32encode(raw).rstrip(b"=").decode()


def generate_signing_key(
    key_size: int = RSA_KEY_SIZE, algorithm: str = "RS256"
) -> KeyMaterial:
    """Generate the RSA keypair and key ID used for client assertions.

    Raises KeyGenerationError when the parameters are unacceptable or when
    the platform cannot supply secure randomness.
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise KeyGenerationError(f"Unsupported signing algorithm: {algorithm}")
    if key_size < RSA_MIN_KEY_SIZE:
        raise KeyGenerationError(
            f"RSA key size {key_size} is below the minimum of {RSA_MIN_KEY_SIZE}"
        )
    try:
        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=key_size,
        )
        kid = generate_kid()
    except (OSError, ValueError) as exc:
        raise KeyGenerationError(f"Signing key generation failed: {exc}") from exc
    return KeyMaterial(
        private_key=private_key, kid=kid, use=KEY_USE, algorithm=algorithm
    )


def _int_to_base64url(value: int) -> str:
    """Encode an integer as base64url without padding."""
    byte_length = (value.bit_length() + 7) // 8
    raw = value.to_bytes(byte_length, byteorder="big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def public_jwk_entry(key: KeyMaterial) -> JWKEntry:
    """Convert the public half of the key material to JWK format."""
    numbers = key.private_key.public_key().public_numbers()
    return JWKEntry(
        use=key.use,
        alg=key.algorithm,
        kid=key.kid,
        n=_int_to_base64url(numbers.n),
        e=_int_to_base64url(numbers.e),
    )


def public_jwks(key: KeyMaterial) -> JWKSResponse:
    """Build the JWKS document publishing the single public key."""
    return JWKSResponse(keys=[public_jwk_entry(key)])
