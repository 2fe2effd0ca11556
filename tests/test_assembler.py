"""
Unit tests for quiz assembly
"""
import random

import pytest

from quizforge.models import QuizRequest
from quizforge.services.analyzer import analyze_document_structure
from quizforge.services.assembler import QuizAssembler, distribute_question_types

ONE_FACT = (
    "Mitochondria is the powerhouse of the cell. "
    "Plants grow toward sunlight in spring gardens. "
    "Rivers flow down to the sea every day."
)
NO_FACTS = "Plants grow toward sunlight in spring gardens. Rivers flow down to the sea every day."


@pytest.fixture
def assembler():
    return QuizAssembler(rng=random.Random(42))


class TestDistribution:
    def test_remainder_goes_to_first_types(self):
        assert distribute_question_types(10, ["mcq", "short", "fillblank"]) == [
            ("mcq", 4), ("short", 3), ("fillblank", 3),
        ]
        assert distribute_question_types(5, ["mcq", "short"]) == [("mcq", 3), ("short", 2)]

    def test_no_types(self):
        assert distribute_question_types(5, []) == []


class TestAssemble:
    def test_exact_count_from_rich_text(self, assembler, biology_text):
        quiz = assembler.assemble(10, ["mcq", "short", "fillblank"], "medium", "Biology", biology_text)
        assert len(quiz.questions) == 10
        assert sum(1 for q in quiz.questions if q.type == "mcq") == 4
        assert all(q.topic == "Biology" for q in quiz.questions)

    def test_single_sentence_round_trip(self, assembler):
        quiz = assembler.assemble(1, ["mcq"], "medium", "Biology", "Mitochondria is the powerhouse of the cell.")
        assert len(quiz.questions) == 1
        question = quiz.questions[0]
        assert "powerhouse of the cell" in question.correct_answer
        assert len(set(question.options)) == 4

    def test_single_fact_is_reused(self, assembler):
        """With one fact the cursor wraps around instead of stopping short"""
        quiz = assembler.assemble(6, ["mcq"], "easy", "Biology", ONE_FACT)
        assert len(quiz.questions) == 6
        assert all(q.question == "What is Mitochondria?" for q in quiz.questions)

    def test_fallback_when_no_facts(self, assembler):
        quiz = assembler.assemble(5, ["short"], "medium", "Biology", NO_FACTS)
        assert len(quiz.questions) == 5
        assert all(q.type == "short" for q in quiz.questions)

    def test_mcq_options_always_valid(self, assembler, biology_text):
        quiz = assembler.assemble(20, ["mcq"], "hard", "Biology", biology_text)
        assert len(quiz.questions) == 20
        for question in quiz.questions:
            assert len(set(question.options)) == 4
            assert question.correct_answer in question.options
            assert question.difficulty == "hard"

    def test_default_and_explicit_title(self, assembler, biology_text):
        assert assembler.assemble(5, ["short"], "medium", "Biology", biology_text).title == "Biology Quiz"
        quiz = assembler.assemble(5, ["short"], "medium", "Biology", biology_text, title="Cells Review")
        assert quiz.title == "Cells Review"

    def test_adaptive_difficulty(self, assembler, biology_text):
        quiz = assembler.assemble(5, ["mcq", "short"], "adaptive", "Biology", biology_text)
        expected = analyze_document_structure(biology_text).difficulty
        assert quiz.difficulty == "adaptive"
        assert all(q.difficulty == expected for q in quiz.questions)

    def test_reproducible_with_seed(self, biology_text):
        first = QuizAssembler(rng=random.Random(3)).assemble(8, ["mcq", "fillblank"], "medium", "Biology",
                                                             biology_text)
        second = QuizAssembler(rng=random.Random(3)).assemble(8, ["mcq", "fillblank"], "medium", "Biology",
                                                              biology_text)
        assert first == second


class TestGenerateQuiz:
    def test_resolve_subject(self, assembler, biology_text):
        assert assembler.resolve_subject("Science", biology_text) == "Biology"
        assert assembler.resolve_subject("Cooking", "The quick brown fox jumps over the lazy dog") == "Cooking"

    def test_generate_from_request(self, assembler, biology_text):
        request = QuizRequest(subject="Science", content=biology_text, question_count=5, question_types=["mcq"])
        quiz = assembler.generate_quiz(request)
        assert quiz.title == "Biology Quiz"
        assert len(quiz.questions) == 5
        assert {q.topic for q in quiz.questions} == {"Biology"}
