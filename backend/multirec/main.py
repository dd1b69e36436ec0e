"""
Multi-model Recommendation Engine - Main FastAPI Application

Serves product recommendations from one of three strategies:
- Collaborative filtering (Jaccard neighbourhood over purchases)
- Content-based filtering (category, author and keyword overlap)
- Graph-based filtering (co-purchase / co-view traversal)

Each user is stickily assigned a strategy (A/B split) and every shown,
clicked or bought recommendation can be logged back against the model
that produced it.
"""

from fastapi import FastAPI, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from .config import settings
from .api import api_router
from .errors import MultirecError
from .utils.dependencies import ServiceContainer, build_container, get_container
from .utils.logging import setup_logging, get_logger, configure_uvicorn_logging
from .utils.metrics import setup_metrics

# Setup structured logging
setup_logging(log_level=settings.LOG_LEVEL)
configure_uvicorn_logging(environment=settings.ENVIRONMENT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""

    # Startup
    logger.info("Starting Recommendation Engine", version=settings.VERSION)

    if getattr(app.state, "container", None) is None:
        app.state.container = build_container()
    container: ServiceContainer = app.state.container
    container.open()

    logger.info("Recommendation Engine started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Recommendation Engine")
    container.close()


async def multirec_error_handler(request: Request, exc: MultirecError) -> JSONResponse:
    """Render engine errors as {"detail": message} with their status code"""

    if exc.status_code >= 500:
        logger.warning("Request failed", path=request.url.path, error=exc.message, details=exc.details)
    else:
        logger.info("Request rejected", path=request.url.path, error=exc.message)

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    """Build the FastAPI application"""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="""
    # Multi-model Recommendation Engine API

    ## Models

    - `collab`: users who bought what you bought also bought...
    - `content`: products sharing category, author or keywords with your history
    - `graph`: two-hop co-purchase and co-view traversal

    Every model falls back to popularity rankings for users without
    history, and to a clearly marked mock list when its store is down.

    ## A/B assignment

    Users are assigned a model on their first request and keep it.
    `POST /ab/assign-all` backfills everyone round-robin.

    ## Events

    Log impressions, clicks, cart adds and purchases per model and read
    back the per-model counts.
    """,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "recommendations", "description": "Recommendation generation"},
            {"name": "ab", "description": "Sticky per-user model assignment"},
            {"name": "events", "description": "Recommendation event logging and counts"},
        ]
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MultirecError, multirec_error_handler)

    # Setup Prometheus metrics
    setup_metrics(app)

    # Include routers
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Middleware for logging requests
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests"""
        logger.info(
            "Request received",
            method=request.method,
            url=str(request.url),
            client=request.client.host if request.client else None
        )

        response = await call_next(request)

        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code
        )

        return response

    @app.get("/", tags=["root"])
    def root():
        """Root endpoint"""
        return {
            "message": "Multi-model Recommendation Engine API",
            "version": settings.VERSION,
            "docs": "/docs",
            "status": "operational"
        }

    @app.get("/health", tags=["root"], status_code=status.HTTP_200_OK)
    def health_check(container: ServiceContainer = Depends(get_container)):
        """Health check endpoint"""

        stores = container.health()
        overall_healthy = all(state == "connected" for state in stores.values())

        return {
            "status": "healthy" if overall_healthy else "degraded",
            "stores": stores,
            "version": settings.VERSION
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "multirec.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
