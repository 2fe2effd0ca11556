from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import time
import structlog

from quizforge.errors import QuizForgeError
from quizforge.routers import documents as documents_router
from quizforge.routers import quiz as quiz_router
from quizforge.services.logging import bind_request_context, configure_logging, log_api_request
from quizforge.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from quizforge.middleware.rate_limit import limiter, rate_limit_exceeded_handler

# Configure logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="QuizForge",
    description="Turns study documents into graded quizzes",
    version="2.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(QuizForgeError)
async def quizforge_error_handler(request: Request, exc: QuizForgeError):
    log_api_request(request, error=exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    request_id = bind_request_context(request)

    log_api_request(request)

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request_id

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(process_time)

    log_api_request(request, response, duration=process_time)

    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Routers -----------------
app.include_router(documents_router.router)
app.include_router(quiz_router.router)
