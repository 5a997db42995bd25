"""
CityBasic API -- community features, city content, sitemap and the OAuth callback.

Entrypoint: uvicorn citybasic.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from starlette.responses import JSONResponse

from citybasic.auth.client import SupabaseAuthClient
from citybasic.config import settings
from citybasic.errors import ApiError, error_body
from citybasic.middleware.cors import setup_cors
from citybasic.middleware.rate_limit import RateLimitMiddleware
from citybasic.middleware.sentry import setup_sentry
from citybasic.routers import auth, cities, comments, favorites, health, profiles, reports, sitemap, votes

logger = logging.getLogger(__name__)

# Shared redis reference -- set during lifespan, read by rate limiter
_redis_holder: dict = {"client": None}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    setup_sentry()

    # Redis for edge rate limiting
    redis_client = None
    if settings.redis_url:
        try:
            redis_client = aioredis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
            )
            await redis_client.ping()
        except (RedisError, OSError) as e:
            # Edge limiting degrades gracefully; requests pass through
            logger.warning("redis_unavailable error=%s", e)
            redis_client = None

    _redis_holder["client"] = redis_client
    app.state.redis = redis_client
    app.state.settings = settings

    from citybasic.db.engine import create_engine as create_sa_engine

    sa_engine = None
    app.state.db_session_factory = None
    if settings.database_url:
        try:
            sa_engine = create_sa_engine()
            app.state.db_engine = sa_engine
            # expire_on_commit=False: NullPool returns connection after commit,
            # lazy load on closed connection would fail without this.
            app.state.db_session_factory = async_sessionmaker(
                sa_engine, expire_on_commit=False
            )
        except (SQLAlchemyError, ImportError, ValueError) as e:
            logger.warning("sa_engine_init_failed error=%s", e)

    auth_client = SupabaseAuthClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout_s=settings.auth_http_timeout_s,
    )
    app.state.auth_client = auth_client

    yield

    await auth_client.aclose()
    if sa_engine:
        await sa_engine.dispose()
    if redis_client:
        await redis_client.aclose()


app = FastAPI(
    title="CityBasic API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# -- Routers --

app.include_router(health.router)
app.include_router(comments.router)
app.include_router(votes.router)
app.include_router(reports.router)
app.include_router(favorites.router)
app.include_router(profiles.router)
app.include_router(cities.router)
app.include_router(sitemap.router)
app.include_router(auth.router)


# -- Middleware (order matters: last added = outermost in Starlette) --

# Rate limiting -- uses lazy redis reference from lifespan
class _LazyRateLimitMiddleware(RateLimitMiddleware):
    """Rate limiter that picks up Redis client after lifespan init."""

    def __init__(self, app):
        super().__init__(app, redis_client=None)

    async def dispatch(self, request, call_next):
        self.redis = _redis_holder.get("client")
        return await super().dispatch(request, call_next)


app.add_middleware(_LazyRateLimitMiddleware)


# Request ID injection; wraps the rate limiter so 429s carry the id too
@app.middleware("http")
async def request_envelope_middleware(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# CORS (needs to be outermost to handle preflight)
setup_cors(app)


# -- Exception Handlers --

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", str(uuid.uuid4()))


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("api_error code=%s message=%s path=%s", exc.code, exc.message, request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, _request_id(request)),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = first.get("msg", "Validation error.")
    return JSONResponse(
        status_code=400,
        content=error_body("VALIDATION_ERROR", f"{field}: {message}" if field else message, _request_id(request)),
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=error_body("NOT_FOUND", "Resource not found.", _request_id(request)),
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc) -> JSONResponse:
    logger.exception("unhandled_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred.", _request_id(request)),
    )
