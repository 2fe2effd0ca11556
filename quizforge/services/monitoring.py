"""
Health checks and monitoring with Prometheus metrics
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
import time
import psutil
import structlog

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
DOCUMENTS_PARSED = Counter('documents_parsed_total', 'Documents run through acquisition', ['file_type', 'status'])
PDF_STRATEGY_ATTEMPTS = Counter('pdf_strategy_attempts_total', 'PDF extraction strategy attempts', ['strategy', 'status'])
QUIZZES_GENERATED = Counter('quizzes_generated_total', 'Quizzes generated', ['source', 'status'])
QUESTIONS_GENERATED = Counter('questions_generated_total', 'Questions synthesized', ['type', 'origin'])


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_pdf_strategies(self) -> dict:
        """Report which PDF extraction strategies can run on this host"""
        try:
            from quizforge.services.pdf_strategies import default_strategies

            available = {s.name: s.available for s in default_strategies()}
            if any(available.values()):
                return {
                    "status": "healthy",
                    "message": "At least one PDF extraction strategy is available",
                    "strategies": available
                }
            return {
                "status": "unhealthy",
                "message": "No PDF extraction strategy is available",
                "strategies": available
            }
        except Exception as e:
            logger.error("pdf_strategy_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": f"PDF strategy check failed: {str(e)}"
            }

    def check_quiz_backend(self) -> dict:
        """Report whether quizzes come from the live model or offline synthesis"""
        from quizforge.config import get_settings

        settings = get_settings()
        return {
            "status": "healthy",
            "mode": "llm" if settings.llm_enabled else "offline",
            "model": settings.openai_model if settings.llm_enabled else None
        }

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        try:
            cpu_percent = psutil.cpu_percent(interval=None)
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage('/')

            return {
                "cpu_percent": cpu_percent,
                "memory_percent": memory.percent,
                "memory_available_gb": round(memory.available / (1024**3), 2),
                "disk_percent": disk.percent,
                "disk_free_gb": round(disk.free / (1024**3), 2),
                "uptime_seconds": time.time() - self.start_time
            }
        except Exception as e:
            logger.error("system_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self) -> dict:
        """Get overall health status"""
        checks = {
            "pdf_extraction": self.check_pdf_strategies(),
            "quiz_backend": self.check_quiz_backend()
        }

        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        overall_status = "healthy" if not unhealthy_checks else "degraded"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "unhealthy_components": unhealthy_checks
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
