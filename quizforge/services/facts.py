import re
from typing import List, Mapping, Sequence

import structlog

from quizforge.models import KeyFact
from quizforge.services.lexicon import DEFAULT_SUBJECT_KEYWORDS, STOPWORDS
from quizforge.services.logging import log_stage

logger = structlog.get_logger()

SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+|\n+")
TOKEN_RE = re.compile(r"[a-z0-9]+")

# (pattern, points, tag); applied in order, the last match sets the tag
SCORING_RULES = (
    (re.compile(r"\b(is|are|means|defined as|refers to|known as)\b", re.I), 5, "definition"),
    (re.compile(r"\b(process|method|procedure|steps|stages|phases)\b", re.I), 4, "process"),
    (re.compile(r"\d"), 3, "numerical"),
    (re.compile(r"\b(because|since|due to|results in|causes|leads to)\b", re.I), 3, "causal"),
    (re.compile(r"\b(formula|formulas|equation|equations|law|laws|theorem|principle)\b", re.I), 4, "formula"),
)

MIN_SENTENCE_LENGTH = 15
MIN_FACT_SCORE = 2
MAX_KEYWORDS = 5


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in SENTENCE_SPLIT_RE.split(text or "") if s and s.strip()]


def extract_keywords(sentence: str, stopwords=STOPWORDS, limit: int = MAX_KEYWORDS) -> List[str]:
    keywords = []
    for token in TOKEN_RE.findall(sentence.lower()):
        if len(token) > 4 and token not in stopwords and token not in keywords:
            keywords.append(token)
            if len(keywords) == limit:
                break
    return keywords


def fact_cap(requested_count: int) -> int:
    return max(20, 2 * requested_count)


class KeyFactExtractor:
    """Scores sentences for how well they would support a question."""

    def __init__(self, subject_keywords: Mapping[str, Sequence[str]] = DEFAULT_SUBJECT_KEYWORDS):
        self._subject_patterns = {
            subject.lower(): tuple(re.compile(rf"\b{re.escape(k)}\b", re.I) for k in keywords)
            for subject, keywords in subject_keywords.items()
        }

    def score_sentence(self, sentence: str, subject: str = ""):
        score, tag = 0, "general"
        for pattern, points, rule_tag in SCORING_RULES:
            if pattern.search(sentence):
                score += points
                tag = rule_tag

        for pattern in self._subject_patterns.get((subject or "").strip().lower(), ()):
            if pattern.search(sentence):
                score += 2

        if len(sentence) > 80:
            score += 2
        if len(sentence) > 120:
            score += 1
        return score, tag

    @log_stage("extract_key_facts")
    def extract(self, text: str, subject: str = "", requested_count: int = 10) -> List[KeyFact]:
        candidates = [s for s in split_sentences(text) if len(s) > MIN_SENTENCE_LENGTH]

        facts = []
        for position, sentence in enumerate(candidates):
            score, tag = self.score_sentence(sentence, subject)
            if score > MIN_FACT_SCORE:
                facts.append(KeyFact(
                    text=sentence,
                    position=position,
                    type=tag,
                    score=score,
                    keywords=extract_keywords(sentence),
                ))

        # sorted() is stable, so equal scores keep document order
        facts = sorted(facts, key=lambda f: f.score, reverse=True)[:fact_cap(requested_count)]
        logger.info("key_facts_extracted", candidates=len(candidates), facts=len(facts), subject=subject)
        return facts
