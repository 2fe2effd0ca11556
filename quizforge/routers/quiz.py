from typing import List

from fastapi import APIRouter, Body, Request
from pydantic import BaseModel, Field

from quizforge.middleware.rate_limit import general_api_limit, generation_limit
from quizforge.models import Quiz, QuizRequest
from quizforge.services import llm
from quizforge.services.grading import grade_quiz


router = APIRouter(prefix="/quiz", tags=["quiz"])


class GradeBody(BaseModel):
    quiz: Quiz
    answers: List[str] = Field(default_factory=list)


@router.post("/generate")
@generation_limit()
def generate_quiz(request: Request, payload: dict = Body(...)):
    """Generate a quiz from study content"""
    quiz_request = QuizRequest.parse(payload)
    quiz, detected_topic, source = llm.generate_quiz(quiz_request)

    body = {
        "success": True,
        "quiz": quiz.model_dump(by_alias=True, exclude_none=True),
        "detectedTopic": detected_topic,
        "source": source,
    }
    if quiz_request.time_limit:
        body["quiz"]["timeLimit"] = quiz_request.time_limit
    return body


@router.post("/grade")
@general_api_limit()
def grade(request: Request, body: GradeBody):
    """Grade answers against a generated quiz"""
    return {"success": True, **grade_quiz(body.quiz, body.answers)}
