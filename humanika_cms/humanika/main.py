"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from humanika import __version__
from humanika.logging_config import configure_logging, get_logger
from humanika.middleware.correlation_id import CorrelationIdMiddleware
from humanika.routers import (
    approvals_router,
    assets_router,
    audit_router,
    health_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: logging."""
    configure_logging()
    logger.info("app_started", version=__version__)
    yield
    logger.info("app_shutdown")


app = FastAPI(
    title="Humanika CMS",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(approvals_router)
app.include_router(assets_router)
app.include_router(audit_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint: app name and version."""
    return {"name": "humanika_cms", "version": __version__}
