from __future__ import annotations

import json
from typing import Tuple

import structlog
from openai import OpenAI
from pydantic import ValidationError

from quizforge.config import get_settings
from quizforge.models import Quiz, QuizRequest
from quizforge.services.assembler import QuizAssembler
from quizforge.services.document_parser import clean_quiz_request, extract_key_content
from quizforge.services.monitoring import QUIZZES_GENERATED

logger = structlog.get_logger()


def _get_client() -> OpenAI:
    settings = get_settings()
    if not settings.llm_enabled:
        raise RuntimeError("OPENAI_API_KEY not set")
    return OpenAI(api_key=settings.openai_api_key)


def _clean_json_like(content: str) -> str:
    # Strip common code fences ```json ... ``` or ``` ... ```
    text = content.strip()
    if text.startswith("```"):
        first_nl = text.find("\n")
        if first_nl != -1:
            text = text[first_nl + 1 :]
        if text.endswith("```"):
            text = text[:-3]
    # Try to extract the outermost JSON object if present
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return text


def build_quiz_prompt(content: str, difficulty: str, question_count: int, question_types, subject: str) -> str:
    return f"""
Create a {difficulty} level quiz with {question_count} questions based on the following content for {subject}.

Content to analyze:
\"\"\"
{content}
\"\"\"

Requirements:
- Generate {question_count} questions
- Include these question types: {", ".join(question_types)}
- Difficulty level: {difficulty}
- Cover different topics from the content evenly

Question Types:
- mcq: Multiple choice with exactly 4 distinct options, one of which is the correct answer
- short: Short answer questions (1-3 sentences)
- fillblank: Fill in the blank questions using _____ for the blank

Return ONLY a JSON object in this exact format:
{{
  "title": "Generated Quiz Title",
  "difficulty": "{difficulty}",
  "questions": [
    {{
      "type": "mcq",
      "question": "Question text here?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": "Option A",
      "explanation": "Brief explanation of the correct answer",
      "topic": "Main topic this question covers",
      "difficulty": "medium",
      "keywords": ["key", "words", "for", "grading"]
    }}
  ]
}}"""


def validate_and_format_quiz(data: dict, request: QuizRequest, subject: str) -> Quiz:
    """Coerce model output into a ``Quiz``; raises ValueError on anything malformed."""
    questions = data.get("questions") if isinstance(data, dict) else None
    if not isinstance(questions, list) or not questions:
        raise ValueError("Invalid quiz format: missing questions array")

    formatted = []
    for index, q in enumerate(questions):
        if not isinstance(q, dict) or not q.get("type") or not q.get("question") or not q.get("correctAnswer"):
            raise ValueError(f"Invalid question format at index {index}")
        if q["type"] == "mcq" and (not isinstance(q.get("options"), list) or len(q["options"]) != 4):
            raise ValueError(f"MCQ question at index {index} must have exactly 4 options")

        keywords = q.get("keywords") or []
        if isinstance(keywords, str):
            keywords = [k.strip() for k in keywords.split(",") if k.strip()]

        difficulty = q.get("difficulty")
        if difficulty not in ("easy", "medium", "hard"):
            difficulty = request.difficulty if request.difficulty != "adaptive" else "medium"

        try:
            formatted.append({
                "type": q["type"],
                "question": str(q["question"]).strip(),
                "options": [str(o) for o in q["options"]] if q["type"] == "mcq" else None,
                "correctAnswer": str(q["correctAnswer"]).strip(),
                "explanation": str(q.get("explanation", "")),
                "difficulty": difficulty,
                "topic": str(q.get("topic") or subject),
                "keywords": [str(k) for k in keywords],
            })
        except (TypeError, KeyError) as e:
            raise ValueError(f"Invalid question format at index {index}: {e}") from e

    if len(formatted) < request.question_count:
        raise ValueError(f"Expected {request.question_count} questions, got {len(formatted)}")

    try:
        return Quiz.model_validate({
            "title": request.title or data.get("title") or f"{subject} Quiz",
            "difficulty": request.difficulty,
            "questions": formatted[:request.question_count],
        })
    except ValidationError as e:
        raise ValueError(f"Quiz failed validation: {e.errors()[0].get('msg')}") from e


def generate_quiz_with_llm(request: QuizRequest, subject: str) -> Quiz:
    settings = get_settings()
    client = _get_client().with_options(timeout=settings.openai_timeout)
    prompt = build_quiz_prompt(
        extract_key_content(request.content),
        request.difficulty,
        request.question_count,
        request.question_types,
        subject,
    )
    rsp = client.chat.completions.create(
        model=settings.openai_model,
        messages=[
            {
                "role": "system",
                "content": "You are an expert educator who creates accurate quiz questions. "
                           "Always respond with valid JSON only, no additional text.",
            },
            {"role": "user", "content": prompt},
        ],
        temperature=0.7,
    )
    content = _clean_json_like(rsp.choices[0].message.content or "{}")
    return validate_and_format_quiz(json.loads(content), request, subject)


def generate_quiz(request: QuizRequest, assembler: QuizAssembler = None) -> Tuple[Quiz, str, str]:
    """Return ``(quiz, detected_subject, source)`` where source is ``llm`` or ``offline``."""
    request = clean_quiz_request(request)
    assembler = assembler or QuizAssembler()
    subject = assembler.resolve_subject(request.subject, request.content)

    if get_settings().llm_enabled:
        try:
            quiz = generate_quiz_with_llm(request, subject)
            QUIZZES_GENERATED.labels(source="llm", status="success").inc()
            return quiz, subject, "llm"
        except Exception as e:
            QUIZZES_GENERATED.labels(source="llm", status="error").inc()
            logger.warning("llm_quiz_generation_failed", error=str(e), fallback="offline")

    quiz = assembler.assemble(
        request.question_count,
        request.question_types,
        request.difficulty,
        subject,
        request.content,
        title=request.title,
    )
    QUIZZES_GENERATED.labels(source="offline", status="success").inc()
    return quiz, subject, "offline"
