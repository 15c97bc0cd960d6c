"""Main FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gutcheck import __version__
from gutcheck.api.endpoints import router
from gutcheck.config import AppConfig
from gutcheck.container import ServiceContainer
from gutcheck.utils.logging import LogConfig, get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build services from the environment unless a container was supplied."""
    owned = getattr(app.state, "container", None) is None
    if owned:
        config = AppConfig.from_env()
        setup_logging(LogConfig(level=config.log_level))
        app.state.container = ServiceContainer(config)
        logger.info(f"GutCheck {__version__} started")

    yield

    if owned:
        await app.state.container.aclose()
        app.state.container = None


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        container: Pre-built services; built from the environment at startup when omitted

    Returns:
        Configured application
    """
    app = FastAPI(
        title="GutCheck",
        description=(
            "A gut health assistant that answers questions with the user's own bowel "
            "tracking data, device health metrics and published research."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Chat",
                "description": "Conversational assistant with tool access scoped to the requesting user.",
            },
            {
                "name": "Analysis",
                "description": "Stool photo classification and narrative insights over logged entries.",
            },
            {
                "name": "Health",
                "description": "Service health monitoring and status checks.",
            },
        ],
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gutcheck.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
