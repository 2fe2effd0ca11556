import random
from typing import List, Sequence, Tuple

import structlog

from quizforge.config import get_settings
from quizforge.models import Question, Quiz, QuizRequest
from quizforge.services.analyzer import analyze_document_structure
from quizforge.services.document_parser import clean_quiz_request
from quizforge.services.facts import KeyFactExtractor
from quizforge.services.lexicon import DEFAULT_TOPIC
from quizforge.services.logging import log_stage
from quizforge.services.monitoring import QUESTIONS_GENERATED
from quizforge.services.synthesizer import FallbackQuestionGenerator, QuestionSynthesizer
from quizforge.services.topics import TopicClassifier

logger = structlog.get_logger()


def distribute_question_types(total: int, question_types: Sequence[str]) -> List[Tuple[str, int]]:
    """Split ``total`` across types; the first ``total % n`` types get one extra."""
    if not question_types:
        return []
    base, extra = divmod(total, len(question_types))
    return [(qtype, base + (1 if i < extra else 0)) for i, qtype in enumerate(question_types)]


class QuizAssembler:
    def __init__(self, classifier: TopicClassifier = None, extractor: KeyFactExtractor = None,
                 synthesizer: QuestionSynthesizer = None, rng: random.Random = None):
        self.rng = rng or random.Random(get_settings().random_seed)
        self.classifier = classifier or TopicClassifier()
        self.extractor = extractor or KeyFactExtractor()
        self.synthesizer = synthesizer or QuestionSynthesizer(rng=self.rng)

    def resolve_subject(self, subject: str, content: str) -> str:
        """Detected topic wins unless nothing matched, then the caller's subject is kept."""
        detected = self.classifier.classify(content)
        if detected == DEFAULT_TOPIC and subject:
            return subject
        return detected

    def generate_quiz(self, request: QuizRequest) -> Quiz:
        request = clean_quiz_request(request)
        subject = self.resolve_subject(request.subject, request.content)
        return self.assemble(
            request.question_count,
            request.question_types,
            request.difficulty,
            subject,
            request.content,
            title=request.title,
        )

    @log_stage("assemble_quiz")
    def assemble(self, total: int, question_types: Sequence[str], difficulty: str, subject: str,
                 content: str, title: str = None) -> Quiz:
        question_difficulty = difficulty
        if difficulty == "adaptive":
            question_difficulty = analyze_document_structure(content).difficulty

        facts = self.extractor.extract(content, subject, total)
        fallback = FallbackQuestionGenerator(content, self.synthesizer)
        distribution = distribute_question_types(total, question_types)
        logger.info("quiz_assembly_started", subject=subject, total=total,
                    distribution=dict(distribution), facts=len(facts))

        questions: List[Question] = []
        cursor = 0
        for qtype, quota in distribution:
            made = 0
            misses = 0
            # one full pass over the facts without a hit means they are used up for this type
            while made < quota and facts and misses < len(facts):
                fact = facts[cursor % len(facts)]
                cursor += 1
                question = self.synthesizer.synthesize(fact, qtype, question_difficulty, subject, content)
                if question is None:
                    misses += 1
                    continue
                misses = 0
                questions.append(question)
                QUESTIONS_GENERATED.labels(type=question.type, origin="fact").inc()
                made += 1

            while made < quota:
                question = fallback.next_question(qtype, question_difficulty, subject)
                if question is None:
                    break
                questions.append(question)
                QUESTIONS_GENERATED.labels(type=question.type, origin="fallback").inc()
                made += 1

            if made < quota:
                logger.warning("quiz_quota_short", question_type=qtype, requested=quota, produced=made)

        logger.info("quiz_assembly_completed", subject=subject, requested=total, produced=len(questions))
        return Quiz(
            title=title or f"{subject} Quiz",
            difficulty=difficulty if difficulty in ("easy", "medium", "hard", "adaptive") else "medium",
            questions=questions,
        )
