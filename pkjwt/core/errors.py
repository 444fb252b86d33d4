"""Exception taxonomy for key handling, signing and token exchange."""

RETRYABLE_STATUS_CODES = frozenset({429})
HTTP_SERVER_ERROR = 500


class PkjwtError(Exception):
    """Base exception for the private_key_jwt client."""


class KeyGenerationError(PkjwtError):
    """Signing key material could not be generated."""


class SigningError(PkjwtError):
    """A client assertion could not be signed."""


class RequestTransformError(PkjwtError):
    """An outgoing token request could not be rewritten as a form."""


class DiscoveryError(PkjwtError):
    """The issuer's discovery document is unreachable or invalid."""


class ExchangeError(PkjwtError):
    """The token exchange was rejected or never reached the issuer."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error: str | None = None,
        error_description: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.error_description = error_description
        if retryable is None:
            retryable = status_code is not None and (
                status_code >= HTTP_SERVER_ERROR
                or status_code in RETRYABLE_STATUS_CODES
            )
        self.retryable = retryable
