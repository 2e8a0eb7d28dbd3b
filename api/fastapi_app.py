"""
FastAPI Application for Vhagar.

Read-only HTTP surface over a bound staking program:
- Pool totals and tier configuration
- Per-wallet lock slots
- Health check

The server never signs. Hosts pass their StakingProgram binding to
create_app(); without one the staking routes answer 503.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.errors import fastapi_error, http_error_code, staking_error_response
from vhagar import __version__
from vhagar.config import VhagarConfig, get_config
from vhagar.errors import StakingError
from vhagar.staking import StakingProgram, create_orchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("vhagar.api")


# =============================================================================
# Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Vhagar API {__version__} starting")
    yield
    orchestrator = app.state.orchestrator
    if orchestrator is not None:
        pending = orchestrator.pipeline.pending
        if pending:
            logger.info(f"Waiting for {pending} audit deliveries")
        await orchestrator.pipeline.drain()
    logger.info("Vhagar API stopped")


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return fastapi_error(http_error_code(exc.status_code), str(exc.detail), http_status=exc.status_code)

    @app.exception_handler(StakingError)
    async def staking_exception_handler(request: Request, exc: StakingError):
        return staking_error_response(exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}")
        return fastapi_error("SYS_003", http_status=500)


# =============================================================================
# Factory
# =============================================================================


def create_app(program: Optional[StakingProgram] = None, config: Optional[VhagarConfig] = None) -> FastAPI:
    """Build the API around ``program`` (the acting wallet's binding)."""
    config = config or get_config()

    app = FastAPI(
        title="Vhagar API",
        description="Vhagar Reward Pool staking API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )
    app.state.config = config
    if program is None:
        logger.warning("No staking program bound; staking routes will return 503")
        app.state.orchestrator = None
    else:
        app.state.orchestrator = create_orchestrator(program, config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    _install_error_handlers(app)

    from api.routes.staking import router as staking_router
    app.include_router(staking_router)

    @app.get("/api/health")
    async def health():
        bound = app.state.orchestrator is not None
        return JSONResponse({
            "status": "healthy" if bound else "degraded",
            "version": __version__,
            "timestamp": time.time(),
            "services": {"staking": bound, "audit_sink": config.audit_sink.enabled},
        })

    return app


if __name__ == "__main__":
    import uvicorn

    # Hosts with a live program binding call create_app(program=...) themselves
    cfg = get_config()
    uvicorn.run(create_app(config=cfg), host=cfg.api.host, port=cfg.api.port)
