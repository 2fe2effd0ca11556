"""
Structured logging configuration
"""
import structlog
import logging
import sys
import time
import uuid
from functools import wraps

from quizforge.config import get_settings


def configure_logging(level: str = None):
    """Configure structlog to emit one JSON object per event on stdout"""
    level = level or get_settings().log_level

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
    # pdfminer and the OpenAI client log every internal step at INFO/DEBUG
    logging.getLogger("pdfminer").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str = None):
    """Get a structured logger"""
    return structlog.get_logger(name)


def _result_size(result):
    questions = getattr(result, "questions", None)
    if questions is not None:
        return len(questions)
    if isinstance(result, (list, tuple)):
        return len(result)
    return None


def log_stage(stage: str):
    """Time a pipeline stage and log its outcome.

    The completion event carries ``items`` when the stage returns a list of
    facts or a quiz, so a single query shows how much each stage produced.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("pipeline")
            start = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "pipeline_stage_failed",
                    stage=stage,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            logger.info(
                "pipeline_stage_completed",
                stage=stage,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                items=_result_size(result),
            )
            return result
        return wrapper
    return decorator


def bind_request_context(request) -> str:
    """Attach a request id to every event logged while this request is handled"""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
    return request_id


def log_api_request(request, response=None, error=None, duration: float = None):
    """Log API requests and responses"""
    logger = get_logger("api")

    log_data = {
        "method": request.method,
        "url": str(request.url),
        "client_ip": request.client.host if request.client else "unknown",
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    if response is not None:
        log_data.update({
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2) if duration is not None else None,
        })
        logger.info("api_request_completed", **log_data)
    elif error is not None:
        log_data.update({
            "error": getattr(error, "user_message", str(error)),
            "error_type": type(error).__name__,
            "status_code": getattr(error, "status_code", 500),
        })
        logger.warning("api_request_rejected", **log_data)
    else:
        logger.info("api_request_started", **log_data)
