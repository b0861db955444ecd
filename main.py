from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine
from redis import asyncio as aioredis

from core.config import Settings, get_settings
from core.logging_config import setup_logging
from core.security import TokenVerifier
from dependencies import log_requests, setup_error_handlers
from routers import posts_router, health_router

logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings):
    url = settings.DATABASE_URL
    connect_args = {}
    engine_kwargs = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # in-memory databases only live as long as their single connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True
    return create_engine(url, echo=settings.DB_ECHO, connect_args=connect_args, **engine_kwargs)

def create_db_and_tables(engine):
    SQLModel.metadata.create_all(engine)

def custom_generate_unique_id(route: APIRoute):
    return f"{route.tags[0] if route.tags else ''}-{route.name}"

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Setup and cleanup tasks for the application lifecycle"""
    settings = app.state.settings
    create_db_and_tables(app.state.engine)

    if settings.RATE_LIMIT_ENABLED:
        # Connection is established on first command
        app.state.redis = aioredis.from_url(
            settings.REDIS_URL, encoding="utf8", decode_responses=True
        )
    try:
        logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")
        yield
    finally:
        if app.state.redis is not None:
            await app.state.redis.aclose()
            app.state.redis = None
        app.state.engine.dispose()

def create_application(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url=settings.DOCS_URL,
        redoc_url=settings.REDOC_URL,
        openapi_url=settings.OPENAPI_URL,
        openapi_tags=settings.OPENAPI_TAGS,
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )

    # Shared state, injected into handlers through dependencies
    app.state.settings = settings
    app.state.engine = create_db_engine(settings)
    app.state.token_verifier = TokenVerifier.from_settings(settings)
    app.state.redis = None

    # Add middleware
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handlers
    setup_error_handlers(app)

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app)\
            .add(metrics.request_size())\
            .add(metrics.response_size())\
            .add(metrics.latency(buckets=[0.1, 0.5, 1.0, 2.0, 3.0, 4.0, 5.0]))\
            .add(metrics.requests(should_include_handler=True))\
            .expose(app, include_in_schema=True, should_gzip=True)

    # Include routers
    app.include_router(posts_router, prefix="/posts", tags=["posts"])
    app.include_router(health_router, tags=["health"])

    return app

# Create the FastAPI application
app = create_application()
