"""JWKS endpoint publishing the client's public signing key."""

from fastapi import APIRouter, Request, Response
from starlette.requests import ClientDisconnect

from pkjwt.core.logging import get_logger
from pkjwt.crypto.types import JWKSResponse

logger = get_logger(__name__)

JWKS_CACHE_CONTROL = "no-store"
JWKS_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def _log_request(request: Request) -> None:
    try:
        body = await request.body()
    except ClientDisconnect:
        logger.debug("jwks_client_disconnected", method=request.method)
        return
    logger.debug(
        "jwks_request",
        method=request.method,
        path=request.url.path,
        headers=dict(request.headers),
        body=body.decode("utf-8", errors="replace"),
    )


def build_jwks_router(jwks: JWKSResponse, path: str = "/jwks") -> APIRouter:
    """Build a router serving the fixed key set on any method."""
    router = APIRouter()

    @router.api_route(path, methods=JWKS_METHODS)
    async def jwks_endpoint(request: Request, response: Response) -> JWKSResponse:
        """JSON Web Key Set endpoint."""
        await _log_request(request)
        response.headers["Cache-Control"] = JWKS_CACHE_CONTROL
        return jwks

    return router
