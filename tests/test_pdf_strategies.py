"""
Unit tests for the PDF extraction strategies
"""
import os
import subprocess
from unittest.mock import patch

import pytest

from quizforge.errors import PasswordProtected
from quizforge.services import pdf_strategies
from quizforge.services.pdf_strategies import (
    PdfExtractionStrategy, PdfMinerStrategy, PdfStrategyChain, PdftotextStrategy,
    default_strategies, scoped_temp_file,
)


class UnavailableStrategy(PdfExtractionStrategy):
    name = "missing"

    def __init__(self):
        self.calls = 0

    @property
    def available(self):
        return False

    def attempt(self, data):
        self.calls += 1
        return "should never be used"


class FixedStrategy(PdfExtractionStrategy):
    name = "fixed"

    def attempt(self, data):
        return "Extracted text"


class TestScopedTempFile:
    def test_file_removed_after_use(self):
        """The temp file exists inside the block and is gone afterwards"""
        with scoped_temp_file(b"%PDF-1.4", ".pdf") as path:
            assert os.path.exists(path)
            assert path.endswith(".pdf")
            with open(path, "rb") as fh:
                assert fh.read() == b"%PDF-1.4"
        assert not os.path.exists(path)

    def test_file_removed_on_exception(self):
        with pytest.raises(RuntimeError):
            with scoped_temp_file(b"data") as path:
                raise RuntimeError("boom")
        assert not os.path.exists(path)

    def test_file_already_deleted(self):
        """Removing the file inside the block is not an error"""
        with scoped_temp_file(b"data") as path:
            os.unlink(path)
        assert not os.path.exists(path)


class TestPdfMinerStrategy:
    def test_temp_file_removed_when_extraction_fails(self):
        seen = []

        def failing_extract(path):
            seen.append(path)
            raise ValueError("broken xref table")

        with patch.object(pdf_strategies, "HAS_PDFMINER", True), \
                patch.object(pdf_strategies, "pdfminer_extract_text", failing_extract, create=True):
            with pytest.raises(ValueError):
                PdfMinerStrategy().attempt(b"%PDF-1.4 junk")

        assert len(seen) == 1
        assert not os.path.exists(seen[0])


class TestPdftotextStrategy:
    def test_reads_output_file(self):
        paths = []

        def fake_run(cmd, capture_output, timeout):
            paths.extend([cmd[-2], cmd[-1]])
            with open(cmd[-1], "w", encoding="utf-8") as fh:
                fh.write("Text from poppler")
            return subprocess.CompletedProcess(cmd, 0, b"", b"")

        strategy = PdftotextStrategy(binary="pdftotext", timeout=5)
        with patch.object(pdf_strategies.subprocess, "run", fake_run):
            assert strategy.attempt(b"%PDF-1.4") == "Text from poppler"

        assert paths and all(not os.path.exists(p) for p in paths)

    def test_password_error(self):
        def fake_run(cmd, capture_output, timeout):
            return subprocess.CompletedProcess(cmd, 1, b"", b"Command Line Error: Incorrect password")

        with patch.object(pdf_strategies.subprocess, "run", fake_run):
            with pytest.raises(PasswordProtected):
                PdftotextStrategy(binary="pdftotext", timeout=5).attempt(b"%PDF-1.4")

    def test_other_failure(self):
        def fake_run(cmd, capture_output, timeout):
            return subprocess.CompletedProcess(cmd, 1, b"", b"Syntax Error: Couldn't find trailer")

        with patch.object(pdf_strategies.subprocess, "run", fake_run):
            with pytest.raises(RuntimeError):
                PdftotextStrategy(binary="pdftotext", timeout=5).attempt(b"%PDF-1.4")

    def test_unavailable_without_binary(self):
        assert not PdftotextStrategy(binary="definitely-not-a-real-pdftotext-binary").available


class TestStrategyChain:
    def test_default_order(self):
        assert [s.name for s in default_strategies()] == ["pymupdf", "pypdf", "pdfminer", "pdftotext"]

    def test_unavailable_strategies_skipped(self):
        missing = UnavailableStrategy()
        chain = PdfStrategyChain([missing, FixedStrategy()])
        assert chain.extract(b"%PDF") == "Extracted text"
        assert missing.calls == 0
