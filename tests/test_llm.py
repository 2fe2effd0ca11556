"""
Unit tests for the optional language-model backend
"""
import json
import random
from unittest.mock import MagicMock, patch

import pytest

from quizforge.config import Settings
from quizforge.models import QuizRequest
from quizforge.services import llm
from quizforge.services.assembler import QuizAssembler


SOFT_WRAPPED = (
    "Mitochondria is the powerhouse\r\nof the cell and it makes energy for the body.\x0c\r\n"
    "Photosynthesis is the process by which green plants\r\nconvert sunlight into chemical energy.\r\n"
    "Ribosomes are small structures\r\nthat build proteins inside every living cell."
)


def llm_payload(count=5):
    questions = []
    for i in range(count):
        questions.append({
            "type": "mcq",
            "question": f"Which organelle is described in statement {i}?",
            "options": ["Mitochondria", "Nucleus", "Ribosome", "Golgi body"],
            "correctAnswer": "Mitochondria",
            "explanation": "It produces ATP.",
            "topic": "Cells",
            "difficulty": "medium",
            "keywords": "mitochondria, energy",
        })
    return {"title": "Cell Quiz", "difficulty": "medium", "questions": questions}


def mock_openai(content):
    client = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    client.with_options.return_value.chat.completions.create.return_value = response
    return MagicMock(return_value=client)


@pytest.fixture
def request_model(biology_text):
    return QuizRequest(subject="Science", content=biology_text, question_count=5, question_types=["mcq"])


@pytest.fixture
def assembler():
    return QuizAssembler(rng=random.Random(11))


class TestGenerateQuiz:
    def test_llm_success(self, request_model, assembler):
        openai_cls = mock_openai("```json\n" + json.dumps(llm_payload()) + "\n```")
        with patch.object(llm, "get_settings", return_value=Settings(openai_api_key="sk-test")), \
                patch.object(llm, "OpenAI", openai_cls):
            quiz, subject, source = llm.generate_quiz(request_model, assembler)

        assert source == "llm"
        assert subject == "Biology"
        assert quiz.title == "Cell Quiz"
        assert len(quiz.questions) == 5
        assert quiz.questions[0].keywords == ["mitochondria", "energy"]
        openai_cls.assert_called_once_with(api_key="sk-test")

    def test_invalid_json_falls_back_to_offline(self, request_model, assembler):
        openai_cls = mock_openai("Sorry, I cannot help with that.")
        with patch.object(llm, "get_settings", return_value=Settings(openai_api_key="sk-test")), \
                patch.object(llm, "OpenAI", openai_cls):
            quiz, subject, source = llm.generate_quiz(request_model, assembler)

        assert source == "offline"
        assert len(quiz.questions) == 5
        assert quiz.title == "Biology Quiz"

    def test_short_reply_falls_back_to_offline(self, request_model, assembler):
        openai_cls = mock_openai(json.dumps(llm_payload(2)))
        with patch.object(llm, "get_settings", return_value=Settings(openai_api_key="sk-test")), \
                patch.object(llm, "OpenAI", openai_cls):
            quiz, _, source = llm.generate_quiz(request_model, assembler)

        assert source == "offline"
        assert len(quiz.questions) == 5

    def test_pasted_content_is_cleaned(self, assembler):
        """Soft-wrapped CRLF text is re-joined before facts are extracted"""
        request = QuizRequest(subject="Science", content=SOFT_WRAPPED, question_count=5, question_types=["short"])
        openai_cls = mock_openai("{}")
        with patch.object(llm, "get_settings", return_value=Settings()), patch.object(llm, "OpenAI", openai_cls):
            quiz, subject, _ = llm.generate_quiz(request, assembler)

        assert subject == "Biology"
        assert len(quiz.questions) == 5
        for question in quiz.questions:
            assert question.correct_answer != "the powerhouse"
            text = question.question + " " + question.correct_answer
            assert "\r" not in text and "\x0c" not in text
            if "powerhouse" in text:
                assert "powerhouse of the cell" in text

    def test_no_key_stays_offline(self, request_model, assembler):
        openai_cls = mock_openai("{}")
        with patch.object(llm, "get_settings", return_value=Settings()), \
                patch.object(llm, "OpenAI", openai_cls):
            _, _, source = llm.generate_quiz(request_model, assembler)

        assert source == "offline"
        openai_cls.assert_not_called()

    def test_offline_only_overrides_key(self, request_model, assembler):
        openai_cls = mock_openai("{}")
        settings = Settings(openai_api_key="sk-test", offline_only=True)
        with patch.object(llm, "get_settings", return_value=settings), patch.object(llm, "OpenAI", openai_cls):
            _, _, source = llm.generate_quiz(request_model, assembler)

        assert source == "offline"
        openai_cls.assert_not_called()


class TestValidateAndFormatQuiz:
    def test_missing_questions(self, request_model):
        with pytest.raises(ValueError):
            llm.validate_and_format_quiz({"title": "x"}, request_model, "Biology")

    def test_mcq_needs_four_options(self, request_model):
        data = llm_payload()
        data["questions"][0]["options"] = ["a", "b", "c"]
        with pytest.raises(ValueError):
            llm.validate_and_format_quiz(data, request_model, "Biology")

    def test_answer_must_be_an_option(self, request_model):
        data = llm_payload()
        data["questions"][0]["correctAnswer"] = "Chloroplast"
        with pytest.raises(ValueError):
            llm.validate_and_format_quiz(data, request_model, "Biology")

    def test_extra_questions_trimmed(self, request_model):
        quiz = llm.validate_and_format_quiz(llm_payload(8), request_model, "Biology")
        assert len(quiz.questions) == 5

    def test_too_few_questions_rejected(self, request_model):
        """A reply shorter than the requested count is treated as malformed"""
        with pytest.raises(ValueError) as exc:
            llm.validate_and_format_quiz(llm_payload(1), request_model, "Biology")
        assert "Expected 5 questions, got 1" in str(exc.value)

    def test_short_answer_options_dropped(self, request_model):
        data = {"questions": [{
            "type": "short",
            "question": "What does mitochondria produce?",
            "options": ["ignored"],
            "correctAnswer": "ATP",
        }] * 5}
        quiz = llm.validate_and_format_quiz(data, request_model, "Biology")
        assert quiz.questions[0].options is None
        assert quiz.questions[0].topic == "Biology"
        assert quiz.title == "Biology Quiz"


class TestCleanJsonLike:
    def test_strips_fences(self):
        assert llm._clean_json_like('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_extracts_object_from_prose(self):
        assert llm._clean_json_like('Here you go: {"a": {"b": 2}} thanks') == '{"a": {"b": 2}}'
