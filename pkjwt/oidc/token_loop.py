"""Periodic client-credentials token acquisition."""

import asyncio
import enum
from collections.abc import Callable

from pkjwt.core.errors import ExchangeError
from pkjwt.core.logging import get_logger
from pkjwt.oidc.retry import FailFastPolicy, RetryPolicy
from pkjwt.oidc.token_source import ClientCredentialsTokenSource
from pkjwt.oidc.types import AccessCredential

logger = get_logger(__name__)


class LoopState(enum.StrEnum):
    ACQUIRING = "acquiring"
    IDLE_WAITING = "idle-waiting"
    STOPPED = "stopped"


class TokenAcquisitionLoop:
    """Acquires a fresh access token on a fixed interval.

    Exchange failures are handed to the retry policy; when it gives up the
    error propagates out of ``run``. The default policy gives up at once.
    """

    def __init__(
        self,
        source: ClientCredentialsTokenSource,
        interval: float,
        retry_policy: RetryPolicy | None = None,
        on_credential: Callable[[AccessCredential], None] | None = None,
        log_tokens: bool = False,
    ) -> None:
        self._source = source
        self._interval = interval
        self._retry = retry_policy or FailFastPolicy()
        self._on_credential = on_credential
        self._log_tokens = log_tokens
        self._state = LoopState.IDLE_WAITING
        self.credential: AccessCredential | None = None

    @property
    def state(self) -> LoopState:
        return self._state

    async def acquire(self) -> AccessCredential:
        """Run one exchange and record the resulting credential."""
        self._state = LoopState.ACQUIRING
        credential = await self._source.token()
        self.credential = credential

        extra = {}
        if self._log_tokens:
            extra = {
                "access_token": credential.access_token,
                "refresh_token": credential.refresh_token,
            }
        logger.info(
            "access_token_acquired",
            expiry=credential.expiry.isoformat() if credential.expiry else None,
            has_refresh_token=credential.refresh_token is not None,
            **extra,
        )
        if self._on_credential is not None:
            self._on_credential(credential)
        return credential

    async def _wait(self, stop: asyncio.Event, delay: float) -> bool:
        """Idle for ``delay`` seconds; True if asked to stop meanwhile."""
        self._state = LoopState.IDLE_WAITING
        try:
            await asyncio.wait_for(stop.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Acquire tokens until stopped, cancelled, or an exchange fails for good."""
        stop = stop_event or asyncio.Event()
        failures = 0
        try:
            while not stop.is_set():
                try:
                    await self.acquire()
                except ExchangeError as exc:
                    failures += 1
                    delay = self._retry.next_delay(exc, failures)
                    if delay is None:
                        logger.error(
                            "token_exchange_failed",
                            error=str(exc),
                            status_code=exc.status_code,
                            attempts=failures,
                        )
                        raise
                    logger.warning(
                        "token_exchange_retry",
                        error=str(exc),
                        status_code=exc.status_code,
                        attempt=failures,
                        delay=round(delay, 3),
                    )
                else:
                    failures = 0
                    delay = self._interval
                    logger.info("token_refresh_scheduled", seconds=delay)

                if await self._wait(stop, delay):
                    break
        finally:
            self._state = LoopState.STOPPED
