"""FastAPI application factory for the JWKS publisher."""

from fastapi import FastAPI

from pkjwt.crypto.keys import public_jwks
from pkjwt.crypto.types import KeyMaterial
from pkjwt.jwks.routes import build_jwks_router


def create_app(key: KeyMaterial, jwks_path: str = "/jwks") -> FastAPI:
    """Build the application that serves the public half of ``key``."""
    app = FastAPI(
        title="pkjwt JWKS publisher",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.include_router(build_jwks_router(public_jwks(key), path=jwks_path))

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok", "kid": key.kid}

    return app
