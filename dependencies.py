from typing import Annotated
from uuid import uuid4
import logging
from time import time

from fastapi import Depends, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlmodel import Session
from jwt.exceptions import InvalidTokenError
from redis import asyncio as aioredis
from redis.exceptions import RedisError
import structlog

from core.security import TokenVerifier
from models import Post, PostCreate, PostDetail, PostOwner
from models.post import LEADING_INT

logger = logging.getLogger(__name__)

# Database dependency
def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session

SessionDep = Annotated[Session, Depends(get_session)]

# Authentication dependencies
def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier

TokenVerifierDep = Annotated[TokenVerifier, Depends(get_token_verifier)]

def get_token(request: Request) -> str | None:
    return request.cookies.get(request.app.state.settings.TOKEN_COOKIE_NAME)

async def get_current_user_id(request: Request, verifier: TokenVerifierDep) -> str:
    """Identity of the caller, required for write operations"""
    token = get_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not Authenticated!")
    try:
        payload = verifier.verify(token)
    except InvalidTokenError:
        raise HTTPException(status_code=403, detail="Token is not Valid!")
    return payload["id"]

async def get_optional_user_id(request: Request, verifier: TokenVerifierDep) -> str | None:
    """Identity of the caller when a valid token is present, None otherwise"""
    token = get_token(request)
    if not token:
        return None
    try:
        return verifier.verify(token)["id"]
    except InvalidTokenError as e:
        logger.debug(f"Ignoring invalid token: {e}")
        return None

CurrentUserId = Annotated[str, Depends(get_current_user_id)]
OptionalUserId = Annotated[str | None, Depends(get_optional_user_id)]

# Request validation
def validate_post_payload(post: PostCreate) -> PostCreate:
    if not post.title or not post.price or post.images is None or not post.address:
        raise HTTPException(status_code=400, detail="Required fields are missing.")
    if post.bedroom is None:
        raise HTTPException(status_code=400, detail="Bedroom count is required.")
    return post

ValidPostCreate = Annotated[PostCreate, Depends(validate_post_payload)]

def parse_int_filter(value: str | None) -> int | None:
    """Lenient integer parsing for query filters.

    Uses the leading integer of the value ("3rooms" -> 3). Values without one,
    and zero, mean "no filter". Never raises.
    """
    if value is None:
        return None
    match = LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1)) or None

# Rate limiting dependency
async def rate_limit(redis: aioredis.Redis, key_prefix: str, limit: int, window: int = 60):
    try:
        key = f"rate_limit:{key_prefix}:{int(time() // window)}"

        requests = await redis.incr(key)
        if requests == 1:
            await redis.expire(key, window)
    except RedisError as e:
        logger.error(f"Rate limit error: {str(e)}")
        return

    if requests > limit:
        raise HTTPException(status_code=429, detail="Too many requests")

async def limit_post_creation(request: Request, user_id: CurrentUserId):
    settings = request.app.state.settings
    if not settings.RATE_LIMIT_ENABLED:
        return
    await rate_limit(request.app.state.redis, f"posts:{user_id}", settings.POSTS_PER_MINUTE)

# Middleware
async def log_requests(request: Request, call_next):
    start_time = time()
    response = await call_next(request)
    process_time = time() - start_time

    logger.info(
        f"Path: {request.url.path} | "
        f"Method: {request.method} | "
        f"Status: {response.status_code} | "
        f"Process Time: {process_time:.2f}s"
    )
    return response

# Error handlers
def setup_error_handlers(app):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request data.", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid4())
        structlog.get_logger(__name__).error(
            "Unhandled error",
            error=str(exc),
            error_id=error_id,
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "An unexpected error occurred", "error_id": error_id},
        )


def add_saved_status(post: Post, is_saved: bool) -> PostDetail:
    """Helper function to convert Post to PostDetail with the owner and saved status"""
    post_dict = post.model_dump()
    post_dict["user"] = PostOwner.model_validate(post.user)
    post_dict["isSaved"] = is_saved
    return PostDetail(**post_dict)
