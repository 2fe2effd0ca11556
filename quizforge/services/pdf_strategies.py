"""
PDF text extraction strategies.

Each strategy exposes ``attempt(data) -> Optional[str]``; the chain walks them
in order and keeps the first non-empty result. Strategies that need a real
file on disk go through ``scoped_temp_file`` so nothing is left behind.
"""
import io
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from typing import Iterable, List, Optional

import structlog

from quizforge.config import get_settings
from quizforge.errors import AllExtractionStrategiesFailed, PasswordProtected
from quizforge.services.monitoring import PDF_STRATEGY_ATTEMPTS

# Preferred extractor
try:
    import fitz  # PyMuPDF
    HAS_PYMUPDF = True
except Exception:
    HAS_PYMUPDF = False

try:
    from pypdf import PdfReader
    HAS_PYPDF = True
except Exception:
    HAS_PYPDF = False

try:
    from pdfminer.high_level import extract_text as pdfminer_extract_text
    from pdfminer.pdfdocument import PDFEncryptionError, PDFPasswordIncorrect
    HAS_PDFMINER = True
except Exception:
    HAS_PDFMINER = False

logger = structlog.get_logger()

CORRUPT_PDF_MESSAGE = (
    "The PDF file appears to be corrupted or uses an unsupported format. "
    "Please try saving the PDF again or converting it to a different format."
)


@contextmanager
def scoped_temp_file(data: bytes, suffix: str = ""):
    """Write ``data`` to a temp file and yield its path; the file is removed on exit."""
    tmp = tempfile.NamedTemporaryFile(prefix="quizforge_", suffix=suffix, delete=False)
    try:
        with tmp:
            tmp.write(data)
        yield tmp.name
    finally:
        try:
            os.unlink(tmp.name)
        except FileNotFoundError:
            pass


class PdfExtractionStrategy:
    name = "base"

    @property
    def available(self) -> bool:
        return True

    def attempt(self, data: bytes) -> Optional[str]:
        raise NotImplementedError


class PyMuPDFStrategy(PdfExtractionStrategy):
    name = "pymupdf"

    @property
    def available(self) -> bool:
        return HAS_PYMUPDF

    def attempt(self, data: bytes) -> Optional[str]:
        with fitz.open(stream=data, filetype="pdf") as doc:
            if doc.needs_pass and not doc.authenticate(""):
                raise PasswordProtected()
            return "\n".join(page.get_text("text") or "" for page in doc)


class PypdfStrategy(PdfExtractionStrategy):
    name = "pypdf"

    @property
    def available(self) -> bool:
        return HAS_PYPDF

    def attempt(self, data: bytes) -> Optional[str]:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            try:
                decrypted = reader.decrypt("")
            except Exception as e:
                raise PasswordProtected(detail=str(e)) from e
            if not decrypted:
                raise PasswordProtected()
        return "\n".join((page.extract_text() or "") for page in reader.pages)


class PdfMinerStrategy(PdfExtractionStrategy):
    name = "pdfminer"

    @property
    def available(self) -> bool:
        return HAS_PDFMINER

    def attempt(self, data: bytes) -> Optional[str]:
        with scoped_temp_file(data, ".pdf") as path:
            try:
                return pdfminer_extract_text(path)
            except (PDFPasswordIncorrect, PDFEncryptionError) as e:
                raise PasswordProtected(detail=str(e)) from e


class PdftotextStrategy(PdfExtractionStrategy):
    """Poppler's ``pdftotext`` CLI, reading and writing through temp files."""

    name = "pdftotext"

    def __init__(self, binary: str = None, timeout: int = None):
        settings = get_settings()
        self.binary = binary or settings.pdftotext_bin
        self.timeout = timeout or settings.pdftotext_timeout

    @property
    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def attempt(self, data: bytes) -> Optional[str]:
        with scoped_temp_file(data, ".pdf") as source, scoped_temp_file(b"", ".txt") as target:
            proc = subprocess.run(
                [self.binary, "-enc", "UTF-8", source, target],
                capture_output=True,
                timeout=self.timeout,
            )
            if proc.returncode != 0:
                stderr = proc.stderr.decode("utf-8", errors="replace").strip()
                if "password" in stderr.lower():
                    raise PasswordProtected(detail=stderr)
                raise RuntimeError(f"pdftotext exited with {proc.returncode}: {stderr}")
            with open(target, encoding="utf-8", errors="replace") as fh:
                return fh.read()


def default_strategies() -> List[PdfExtractionStrategy]:
    # Cheapest first: in-memory parsers, then temp-file based ones
    return [PyMuPDFStrategy(), PypdfStrategy(), PdfMinerStrategy(), PdftotextStrategy()]


class PdfStrategyChain:
    def __init__(self, strategies: Iterable[PdfExtractionStrategy] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def extract(self, data: bytes) -> str:
        """Return text from the first strategy that produces any.

        Raises ``PasswordProtected`` if nothing worked and at least one
        strategy reported encryption, otherwise ``AllExtractionStrategiesFailed``.
        """
        encrypted = False
        attempted = 0
        failures = []

        for strategy in self.strategies:
            if not strategy.available:
                PDF_STRATEGY_ATTEMPTS.labels(strategy=strategy.name, status="unavailable").inc()
                logger.info("pdf_strategy_skipped", strategy=strategy.name, reason="unavailable")
                continue

            attempted += 1
            try:
                text = strategy.attempt(data)
            except PasswordProtected:
                encrypted = True
                PDF_STRATEGY_ATTEMPTS.labels(strategy=strategy.name, status="encrypted").inc()
                logger.info("pdf_strategy_encrypted", strategy=strategy.name)
                continue
            except Exception as e:
                failures.append(f"{strategy.name}: {e}")
                PDF_STRATEGY_ATTEMPTS.labels(strategy=strategy.name, status="error").inc()
                logger.warning("pdf_strategy_failed", strategy=strategy.name, error=str(e))
                continue

            if text and text.strip():
                PDF_STRATEGY_ATTEMPTS.labels(strategy=strategy.name, status="success").inc()
                logger.info("pdf_strategy_succeeded", strategy=strategy.name, characters=len(text))
                return text

            PDF_STRATEGY_ATTEMPTS.labels(strategy=strategy.name, status="empty").inc()
            logger.info("pdf_strategy_empty", strategy=strategy.name)

        if encrypted:
            raise PasswordProtected()
        detail = "; ".join(failures) or None
        if attempted and len(failures) == attempted:
            raise AllExtractionStrategiesFailed(CORRUPT_PDF_MESSAGE, detail=detail)
        raise AllExtractionStrategiesFailed(detail=detail)
