from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from quizforge.errors import AcquisitionError, InvalidQuizRequest


Difficulty = Literal["easy", "medium", "hard"]
RequestedDifficulty = Literal["easy", "medium", "hard", "adaptive"]
QuestionType = Literal["mcq", "short", "fillblank"]
FactType = Literal["definition", "process", "numerical", "causal", "formula", "general"]

QUESTION_TYPES = ("mcq", "short", "fillblank")
MCQ_OPTION_COUNT = 4


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RawDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    content_type: str
    filename: str = "upload"

    @property
    def size(self) -> int:
        return len(self.content)


class ParsedText(CamelModel):
    content: str
    word_count: int
    character_count: int
    original_name: str
    file_type: str


class KeyTerm(CamelModel):
    word: str
    frequency: int


class DocumentAnalysis(CamelModel):
    total_words: int = 0
    total_sentences: int = 0
    paragraphs: int = 0
    headings: List[str] = Field(default_factory=list)
    key_terms: List[KeyTerm] = Field(default_factory=list)
    difficulty: Difficulty = "medium"

    def summary(self) -> dict:
        """Trimmed form returned alongside an upload."""
        return {
            "totalWords": self.total_words,
            "totalSentences": self.total_sentences,
            "paragraphs": self.paragraphs,
            "difficulty": self.difficulty,
            "keyTerms": [t.model_dump(by_alias=True) for t in self.key_terms[:5]],
            "headings": self.headings[:3],
        }


class KeyFact(CamelModel):
    text: str
    position: int
    type: FactType = "general"
    score: int = 0
    keywords: List[str] = Field(default_factory=list)


class Question(CamelModel):
    type: QuestionType
    question: str
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: str = ""
    difficulty: Difficulty = "medium"
    topic: str = "General Studies"
    keywords: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_options(self) -> "Question":
        if self.type == "mcq":
            if not self.options or len(self.options) != MCQ_OPTION_COUNT:
                raise ValueError("MCQ questions must have exactly 4 options")
            if len(set(self.options)) != MCQ_OPTION_COUNT:
                raise ValueError("MCQ options must be distinct")
            if self.correct_answer not in self.options:
                raise ValueError("MCQ correct answer must be one of the options")
        elif self.options is not None:
            raise ValueError(f"{self.type} questions do not carry options")
        return self


class Quiz(CamelModel):
    title: str
    difficulty: RequestedDifficulty = "medium"
    questions: List[Question] = Field(default_factory=list)


class QuizRequest(CamelModel):
    subject: str = Field(..., min_length=1, max_length=50)
    content: str = Field(..., min_length=50)
    difficulty: RequestedDifficulty = "medium"
    question_count: int = Field(10, ge=5, le=20)
    question_types: List[QuestionType] = Field(default_factory=lambda: ["mcq", "short"], min_length=1)
    time_limit: Optional[int] = Field(None, ge=5, le=120)
    title: Optional[str] = Field(None, max_length=100)

    @classmethod
    def parse(cls, data: dict) -> "QuizRequest":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise InvalidQuizRequest(f"{field}: {first.get('msg')}" if field else first.get("msg"))


@dataclass(frozen=True)
class AcquisitionResult:
    success: bool
    document: Optional[ParsedText] = None
    error: Optional[AcquisitionError] = None

    @classmethod
    def ok(cls, document: ParsedText) -> "AcquisitionResult":
        return cls(success=True, document=document)

    @classmethod
    def failed(cls, error: AcquisitionError) -> "AcquisitionResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        if self.success and self.document is not None:
            return {"success": True, **self.document.model_dump(by_alias=True)}
        return self.error.to_dict()
