"""
Rate limiting middleware using slowapi
"""
from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import structlog

from quizforge.config import get_settings

logger = structlog.get_logger()

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour", "100/minute"]
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Log the rejected client, then answer with slowapi's 429 response"""
    logger.warning("rate_limit_exceeded",
                   client_ip=request.client.host if request.client else "unknown",
                   path=request.url.path,
                   limit=str(exc.detail))
    return _rate_limit_exceeded_handler(request, exc)


# Rate limit decorators for different endpoints
def generation_limit():
    """Rate limit for upload parsing and quiz generation endpoints"""
    return limiter.limit(get_settings().generation_rate_limit)


def general_api_limit():
    """Rate limit for lightweight analysis and grading endpoints"""
    return limiter.limit("60/minute")
