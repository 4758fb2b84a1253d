"""Rate limiting and CORS for the gamification API"""
import hashlib
import logging
import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

# Expo dev server for the student app
DEFAULT_CORS_ORIGINS = "http://localhost:8081"


def rate_limit_key(request: Request) -> str:
    """
    Bucket requests per client application key

    Every student request arrives through the same app backend, so limiting
    by address alone would throttle all students together. Unauthenticated
    requests fall back to the remote address.
    """
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        return "client:" + hashlib.sha256(token.encode()).hexdigest()[:16]
    return get_remote_address(request)


limiter = Limiter(key_func=rate_limit_key)


def setup_cors(app: FastAPI) -> None:
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )
    logger.info(f"CORS configured for origins: {origins}")


def setup_rate_limiting(app: FastAPI) -> None:
    """Attach the shared limiter; exceeded limits answer 429"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
