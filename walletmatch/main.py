import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import cache, follow, following, health, overlap
from .config import settings
from .container import ServiceContainer
from .errors import RateLimitExceeded, SignerNotApproved, UpstreamError
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

_logger = logging.getLogger(__name__)


async def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded, try again later", "retry_after": exc.retry_after},
        headers={
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Window": str(exc.window_seconds),
        },
    )


async def _signer_not_approved(request: Request, exc: SignerNotApproved) -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content={"error": str(exc), "status": exc.status, "approvalUrl": exc.approval_url},
    )


async def _upstream_failed(request: Request, exc: UpstreamError) -> JSONResponse:
    _logger.error("Upstream failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"error": str(exc)})


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "container", None) is None:
            setup_logging()
            app.state.container = ServiceContainer.build(settings)
        yield
        app.state.container.shutdown()

    app = FastAPI(
        title="Walletmatch API",
        description="Farcaster follow suggestions ranked by portfolio overlap",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RateLimitExceeded, _rate_limited)
    app.add_exception_handler(SignerNotApproved, _signer_not_approved)
    app.add_exception_handler(UpstreamError, _upstream_failed)

    app.include_router(health.router, tags=["Health"])
    app.include_router(overlap.router, tags=["Overlap"])
    app.include_router(follow.router, tags=["Follow"])
    app.include_router(following.router, tags=["Following"])
    app.include_router(cache.router, tags=["Cache"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "Walletmatch API",
            "version": __version__,
            "docs": "/docs",
            "health": "/healthz"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "walletmatch.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
