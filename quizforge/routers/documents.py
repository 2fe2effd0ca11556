from fastapi import APIRouter, File, Form, Request, UploadFile
from pydantic import BaseModel, Field

from quizforge.middleware.rate_limit import general_api_limit, generation_limit
from quizforge.models import RawDocument
from quizforge.services.analyzer import analyze_document_structure
from quizforge.services.document_parser import document_parser
from quizforge.services.topics import detect_topic


router = APIRouter(prefix="/documents", tags=["documents"])


class AnalyzeBody(BaseModel):
    content: str = Field(..., min_length=1)


@router.post("/upload")
@generation_limit()
def upload_document(request: Request, file: UploadFile = File(...), analyze: bool = Form(False)):
    """Extract cleaned text from an uploaded study document"""
    # Reads one byte past the limit so oversize uploads are rejected without buffering them whole
    data = file.file.read(document_parser.max_bytes + 1)
    raw = RawDocument(
        content=data,
        content_type=file.content_type or "",
        filename=file.filename or "upload",
    )
    parsed = document_parser.parse(raw)

    payload = {"success": True, **parsed.model_dump(by_alias=True)}
    if analyze:
        payload["analysis"] = analyze_document_structure(parsed.content).summary()
        payload["detectedTopic"] = detect_topic(parsed.content)
    return payload


@router.post("/analyze")
@general_api_limit()
def analyze_content(request: Request, body: AnalyzeBody):
    """Structural analysis and topic detection for pasted text"""
    content = document_parser.parse_text(body.content).content
    analysis = analyze_document_structure(content)
    return {
        "success": True,
        "analysis": analysis.model_dump(by_alias=True),
        "detectedTopic": detect_topic(content),
    }
