"""OAuth2 client-credentials token exchange."""

import asyncio

import httpx

from pkjwt.core.errors import ExchangeError
from pkjwt.oidc.types import AccessCredential, TokenErrorResponse, TokenResponse

GRANT_TYPE = "client_credentials"
ERROR_BODY_PREVIEW = 300


def _error_from_response(resp: httpx.Response) -> ExchangeError:
    """Classify a non-2xx token endpoint response."""
    try:
        body = TokenErrorResponse.model_validate(resp.json())
    except ValueError:
        return ExchangeError(
            f"Token endpoint returned {resp.status_code}: "
            f"{resp.text[:ERROR_BODY_PREVIEW]}",
            status_code=resp.status_code,
        )
    message = f"Token endpoint returned {resp.status_code}: {body.error}"
    if body.error_description:
        message += f" ({body.error_description})"
    return ExchangeError(
        message,
        status_code=resp.status_code,
        error=body.error,
        error_description=body.error_description,
    )


class ClientCredentialsTokenSource:
    """Exchanges client credentials for an access token.

    Client authentication is left entirely to the injected client's
    transport, so no client_id or client_secret is sent here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_url: str,
        scope: str | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._token_url = token_url
        self._scope = scope
        self._request_timeout = request_timeout

    async def token(self) -> AccessCredential:
        """Perform one token exchange.

        ``request_timeout`` bounds the whole POST, response body included.
        httpx timeouts alone only bound each connect, read or write step.
        """
        data = {"grant_type": GRANT_TYPE}
        if self._scope:
            data["scope"] = self._scope

        try:
            async with asyncio.timeout(self._request_timeout):
                resp = await self._client.post(
                    self._token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.TransportError as exc:
            raise ExchangeError(
                f"Token request to {self._token_url} failed: {exc!r}",
                retryable=True,
            ) from exc
        except TimeoutError as exc:
            raise ExchangeError(
                f"Token request to {self._token_url} timed out after "
                f"{self._request_timeout}s",
                retryable=True,
            ) from exc

        if not resp.is_success:
            raise _error_from_response(resp)

        try:
            return TokenResponse.model_validate(resp.json()).to_credential()
        except ValueError as exc:
            raise ExchangeError(
                f"Invalid token response from {self._token_url}: {exc}",
                status_code=resp.status_code,
            ) from exc
