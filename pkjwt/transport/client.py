"""HTTP client factory wiring the client assertion transport chain."""

import httpx

from pkjwt.core.settings import ClientSettings
from pkjwt.crypto.signer import AssertionSigner
from pkjwt.crypto.types import AssertionClaims
from pkjwt.transport.assertion import ClientAssertionTransport
from pkjwt.transport.diagnostic import DiagnosticTransport


def claims_from_settings(settings: ClientSettings) -> AssertionClaims:
    """Assertion claims this client presents to the issuer."""
    return AssertionClaims(
        issuer=settings.assertion_issuer,
        subject=settings.client_id,
        audience=settings.audience,
        id=settings.assertion_id,
    )


def build_transport_chain(
    signer: AssertionSigner,
    claims: AssertionClaims,
    transport: httpx.AsyncBaseTransport,
    debug: bool = True,
) -> httpx.AsyncBaseTransport:
    """Wrap ``transport`` with assertion injection and, optionally, diagnostics."""
    chain: httpx.AsyncBaseTransport = ClientAssertionTransport(signer, claims, transport)
    if debug:
        chain = DiagnosticTransport(chain)
    return chain


def build_token_client(
    settings: ClientSettings,
    signer: AssertionSigner,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the client used for token exchanges.

    ``transport`` replaces the network transport at the bottom of the chain.
    """
    if transport is None:
        transport = httpx.AsyncHTTPTransport(
            limits=httpx.Limits(
                max_keepalive_connections=settings.max_keepalive_connections,
                keepalive_expiry=settings.keepalive_expiry,
            ),
        )
    chain = build_transport_chain(
        signer,
        claims_from_settings(settings),
        transport,
        debug=settings.debug_http,
    )
    return httpx.AsyncClient(
        transport=chain,
        timeout=httpx.Timeout(
            settings.request_timeout, connect=settings.connect_timeout
        ),
    )
