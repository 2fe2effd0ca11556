import io
import re
import zipfile
from typing import Optional

import docx
import structlog
from docx.opc.exceptions import PackageNotFoundError

from quizforge.config import get_settings
from quizforge.errors import (
    AcquisitionError, CorruptedOrEncrypted, EncodingError, FileTooLarge,
    InsufficientContent, PasswordProtected, UnsupportedFileType,
)
from quizforge.models import AcquisitionResult, ParsedText, QuizRequest, RawDocument
from quizforge.services.monitoring import DOCUMENTS_PARSED
from quizforge.services.pdf_strategies import PdfStrategyChain
from quizforge.services.text_cleaner import clean_text, count_words

logger = structlog.get_logger()

TEXT_TYPES = frozenset({"text/plain", "text/markdown", "text/x-markdown"})
PDF_TYPES = frozenset({"application/pdf"})
WORD_TYPES = frozenset({
    "application/msword",
    "application/vnd.ms-word",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})
ALLOWED_TYPES = TEXT_TYPES | PDF_TYPES | WORD_TYPES

MIN_CHARACTERS = 50
MIN_WORDS = 10

# Single-byte fallback after UTF-8; cp1252 still rejects a handful of bytes
TEXT_ENCODINGS = ("utf-8-sig", "cp1252")

OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
OLE2_ENCRYPTION_STREAM = "EncryptionInfo".encode("utf-16-le")

DEFINITION_CUE_RE = re.compile(r"\b(is|are|means|defined as|refers to)\b", re.I)
ACADEMIC_TERM_RE = re.compile(r"\b(process|method|theory|principle|concept|formula|equation)\b", re.I)


def normalize_content_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";")[0].strip().lower()


class DocumentParser:
    """Turns an uploaded byte stream into cleaned, validated text."""

    def __init__(self, max_bytes: int = None, pdf_chain: PdfStrategyChain = None):
        self.max_bytes = max_bytes or get_settings().max_upload_bytes
        self.pdf_chain = pdf_chain or PdfStrategyChain()

    def parse(self, raw: RawDocument) -> ParsedText:
        content_type = normalize_content_type(raw.content_type)
        logger.info("document_parse_started", filename=raw.filename, file_type=content_type, size=raw.size)

        try:
            if content_type not in ALLOWED_TYPES:
                raise UnsupportedFileType(
                    f"Unsupported file type: {raw.content_type}. "
                    "Please upload .txt, .md, .pdf, .doc, or .docx files."
                )
            if raw.size > self.max_bytes:
                raise FileTooLarge(
                    f"File is too large ({raw.size} bytes). "
                    f"The maximum upload size is {self.max_bytes // (1024 * 1024)} MB."
                )
            if raw.size == 0:
                raise InsufficientContent("The document appears to be empty. Please check the file and try again.")

            if content_type in TEXT_TYPES:
                extracted = self._decode_text(raw.content)
            elif content_type in PDF_TYPES:
                extracted = self.pdf_chain.extract(raw.content)
            else:
                extracted = self._parse_word(raw.content)

            parsed = self._finalize(extracted, raw.filename, content_type)
        except AcquisitionError as e:
            DOCUMENTS_PARSED.labels(file_type=content_type or "unknown", status=e.error_type).inc()
            logger.warning("document_parse_failed", filename=raw.filename, file_type=content_type,
                           error_type=e.error_type, error=e.user_message)
            raise

        DOCUMENTS_PARSED.labels(file_type=content_type, status="success").inc()
        logger.info("document_parse_completed", filename=raw.filename,
                    characters=parsed.character_count, words=parsed.word_count)
        return parsed

    def parse_document(self, raw: RawDocument) -> AcquisitionResult:
        """Same as ``parse`` but returns failures as a value instead of raising."""
        try:
            return AcquisitionResult.ok(self.parse(raw))
        except AcquisitionError as e:
            return AcquisitionResult.failed(e)

    def parse_text(self, text: str, name: str = "pasted-text") -> ParsedText:
        """Pasted text goes through the same cleaning and validation as uploads."""
        return self._finalize(text, name, "text/plain")

    # -------------------- FORMAT HANDLERS --------------------

    def _decode_text(self, data: bytes) -> str:
        for encoding in TEXT_ENCODINGS:
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise EncodingError()

    def _parse_word(self, data: bytes) -> str:
        if data.startswith(OLE2_MAGIC):
            # Encrypted .docx files are wrapped in an OLE2 container
            if OLE2_ENCRYPTION_STREAM in data:
                raise PasswordProtected()
            raise CorruptedOrEncrypted(
                "Legacy .doc files could not be read. "
                "Please save the document as .docx or plain text and try again."
            )

        try:
            document = docx.Document(io.BytesIO(data))
        except (zipfile.BadZipFile, PackageNotFoundError) as e:
            raise CorruptedOrEncrypted(
                "The Word document appears to be corrupted. "
                "Please try saving it again or use a different format.",
                detail=str(e),
            ) from e
        except (KeyError, ValueError, SyntaxError) as e:
            raise CorruptedOrEncrypted(detail=str(e)) from e

        parts = [p.text for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [c.text.strip() for c in row.cells if c.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        if not parts:
            raise InsufficientContent("Word document appears to be empty or contains only images.")
        return "\n\n".join(parts)

    def _finalize(self, extracted: str, filename: str, content_type: str) -> ParsedText:
        cleaned = clean_text(extracted)
        if not cleaned:
            raise InsufficientContent(
                "No readable text found in document. The file may be corrupted or contain only images."
            )
        if len(cleaned) < MIN_CHARACTERS:
            raise InsufficientContent(
                f"Document content is too short ({len(cleaned)} characters). "
                f"Please provide at least {MIN_CHARACTERS} characters of meaningful content."
            )
        word_count = count_words(cleaned)
        if word_count < MIN_WORDS:
            raise InsufficientContent(
                f"Document contains too few words ({word_count}). "
                f"Please provide at least {MIN_WORDS} words of content."
            )
        return ParsedText(
            content=cleaned,
            word_count=word_count,
            character_count=len(cleaned),
            original_name=filename,
            file_type=content_type,
        )


def extract_key_content(content: str, max_length: int = 3000) -> str:
    """Keep the most quiz-worthy paragraphs that fit into ``max_length`` characters."""
    if not content or len(content) <= max_length:
        return content

    paragraphs = [p for p in re.split(r"\n\s*\n", content) if len(p.strip()) > 50]
    if not paragraphs:
        return content[:max_length]

    def score(paragraph: str) -> float:
        value = 0.0
        if DEFINITION_CUE_RE.search(paragraph):
            value += 3
        if re.search(r"\d+", paragraph):
            value += 2
        if ACADEMIC_TERM_RE.search(paragraph):
            value += 2
        return value + min(len(paragraph) / 200, 3)

    selected = ""
    for paragraph in sorted(paragraphs, key=score, reverse=True):
        if len(selected) + len(paragraph) > max_length:
            break
        selected += paragraph + "\n\n"

    return selected.strip() or content[:max_length]


document_parser = DocumentParser()


def clean_quiz_request(request: QuizRequest, parser: Optional[DocumentParser] = None) -> QuizRequest:
    """Return ``request`` with its pasted content cleaned and validated like an upload."""
    parsed = (parser or document_parser).parse_text(request.content)
    return request.model_copy(update={"content": parsed.content})
