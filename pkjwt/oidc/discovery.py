"""OpenID Connect discovery client."""

import httpx

from pkjwt.core.errors import DiscoveryError
from pkjwt.core.logging import get_logger
from pkjwt.oidc.types import DiscoveryDocument

logger = get_logger(__name__)

WELL_KNOWN_PATH = "/.well-known/openid-configuration"


def discovery_url(issuer_url: str) -> str:
    """Return the discovery document URL for an issuer."""
    return issuer_url.rstrip("/") + WELL_KNOWN_PATH


async def fetch_discovery(
    client: httpx.AsyncClient, issuer_url: str
) -> DiscoveryDocument:
    """Fetch and validate the issuer's discovery document.

    The issuer advertised by the document must match ``issuer_url``.
    """
    url = discovery_url(issuer_url)
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        doc = DiscoveryDocument.model_validate(resp.json())
    except httpx.HTTPError as exc:
        raise DiscoveryError(f"Discovery request to {url} failed: {exc}") from exc
    except ValueError as exc:
        raise DiscoveryError(f"Invalid discovery document at {url}: {exc}") from exc

    if doc.issuer.rstrip("/") != issuer_url.rstrip("/"):
        raise DiscoveryError(
            f"Issuer mismatch: expected {issuer_url!r}, discovery returned {doc.issuer!r}"
        )
    logger.info(
        "oidc_discovered",
        issuer=doc.issuer,
        token_endpoint=doc.token_endpoint,
    )
    return doc
