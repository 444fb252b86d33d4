"""Process entry point: publish the JWKS and keep a fresh access token."""

import argparse
import asyncio

import httpx
import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from pkjwt.core.app import create_app
from pkjwt.core.errors import PkjwtError
from pkjwt.core.logging import configure_logging, get_logger
from pkjwt.core.settings import ClientSettings
from pkjwt.crypto.keys import generate_signing_key
from pkjwt.crypto.signer import AssertionSigner
from pkjwt.oidc.discovery import fetch_discovery
from pkjwt.oidc.retry import policy_from_settings
from pkjwt.oidc.token_loop import TokenAcquisitionLoop
from pkjwt.oidc.token_source import ClientCredentialsTokenSource
from pkjwt.transport.client import build_token_client

logger = get_logger(__name__)

EXIT_FATAL = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def build_server(app: FastAPI, settings: ClientSettings) -> uvicorn.Server:
    """Build the uvicorn server for the JWKS application."""
    config = uvicorn.Config(
        app,
        host=settings.jwks_host,
        port=settings.jwks_port,
        log_config=None,
        access_log=False,
    )
    return uvicorn.Server(config)


async def acquire_tokens(
    settings: ClientSettings,
    signer: AssertionSigner,
    stop: asyncio.Event,
    transport: httpx.AsyncBaseTransport | None = None,
    once: bool = False,
) -> TokenAcquisitionLoop:
    """Discover the token endpoint, then run the acquisition loop."""
    timeout = httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout)
    async with httpx.AsyncClient(transport=transport, timeout=timeout) as plain:
        doc = await fetch_discovery(plain, settings.issuer_url)

    async with build_token_client(settings, signer, transport=transport) as client:
        loop = TokenAcquisitionLoop(
            ClientCredentialsTokenSource(
                client,
                doc.token_endpoint,
                scope=settings.scope,
                request_timeout=settings.request_timeout,
            ),
            interval=settings.poll_interval,
            retry_policy=policy_from_settings(settings),
        )
        if once:
            await loop.acquire()
        else:
            await loop.run(stop)
    return loop


async def serve(settings: ClientSettings, once: bool = False) -> None:
    """Run the JWKS server and the token loop until either finishes."""
    key = generate_signing_key(settings.key_size, settings.signing_algorithm)
    logger.info(
        "signing_key_generated",
        kid=key.kid,
        algorithm=key.algorithm,
        key_size=settings.key_size,
    )
    signer = AssertionSigner(key, lifetime_seconds=settings.assertion_lifetime)
    server = build_server(create_app(key, settings.jwks_path), settings)
    stop = asyncio.Event()

    async def _serve_jwks() -> None:
        try:
            await server.serve()
        finally:
            stop.set()

    async def _run_loop() -> None:
        try:
            await acquire_tokens(settings, signer, stop, once=once)
        finally:
            server.should_exit = True

    logger.info(
        "jwks_listening",
        host=settings.jwks_host,
        port=settings.jwks_port,
        path=settings.jwks_path,
    )
    async with asyncio.TaskGroup() as tg:
        tg.create_task(_serve_jwks())
        tg.create_task(_run_loop())


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Serve a JWKS and obtain OAuth2 tokens via private_key_jwt.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Acquire a single token and exit instead of polling.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = ClientSettings()
    except ValidationError as exc:
        configure_logging()
        logger.error("invalid_configuration", error=str(exc))
        return EXIT_CONFIG

    configure_logging(settings.log_level, settings.log_json)
    exit_code = 0
    try:
        try:
            asyncio.run(serve(settings, once=args.once))
        except* PkjwtError as group:
            for exc in group.exceptions:
                logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
            exit_code = EXIT_FATAL
    except KeyboardInterrupt:
        exit_code = EXIT_INTERRUPTED
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
