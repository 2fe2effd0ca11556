import re
from collections import Counter

import structlog

from quizforge.models import DocumentAnalysis, KeyTerm
from quizforge.services.lexicon import ANALYSIS_STOPWORDS
from quizforge.services.logging import log_stage

logger = structlog.get_logger()

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
NON_WORD_RE = re.compile(r"[^\w]")

MAX_HEADINGS = 10
MAX_KEY_TERMS = 15


def is_heading(line: str) -> bool:
    """Short line, starts with a capital, no terminal punctuation."""
    trimmed = line.strip()
    return (
        5 < len(trimmed) < 100
        and not trimmed.endswith((".", "!", "?"))
        and trimmed[0].isupper()
    )


def rank_key_terms(words, stopwords=ANALYSIS_STOPWORDS, limit: int = MAX_KEY_TERMS):
    counts = Counter()
    for word in words:
        cleaned = NON_WORD_RE.sub("", word.lower())
        if len(cleaned) > 4 and cleaned not in stopwords:
            counts[cleaned] += 1
    # most_common keeps first-seen order among equal counts
    return [KeyTerm(word=w, frequency=f) for w, f in counts.most_common(limit)]


def estimate_difficulty(avg_word_length: float, avg_sentence_length: float) -> str:
    if avg_word_length > 6 or avg_sentence_length > 20:
        return "hard"
    if avg_word_length < 4.5 and avg_sentence_length < 12:
        return "easy"
    return "medium"


@log_stage("analyze_structure")
def analyze_document_structure(content: str) -> DocumentAnalysis:
    if not content or len(content) < 10:
        return DocumentAnalysis()

    words = [w for w in content.split() if w]
    sentences = [s for s in SENTENCE_SPLIT_RE.split(content) if len(s.strip()) > 10]
    paragraphs = [p for p in PARAGRAPH_SPLIT_RE.split(content) if len(p.strip()) > 20]
    headings = [line.strip() for line in content.split("\n") if is_heading(line)][:MAX_HEADINGS]

    avg_word_length = sum(len(w) for w in words) / len(words) if words else 0.0
    # No full sentence: treat the whole text as one
    avg_sentence_length = len(words) / len(sentences) if sentences else float(len(words))

    analysis = DocumentAnalysis(
        total_words=len(words),
        total_sentences=len(sentences),
        paragraphs=len(paragraphs),
        headings=headings,
        key_terms=rank_key_terms(words),
        difficulty=estimate_difficulty(avg_word_length, avg_sentence_length),
    )

    logger.info(
        "document_analyzed",
        words=analysis.total_words,
        sentences=analysis.total_sentences,
        paragraphs=analysis.paragraphs,
        headings=len(analysis.headings),
        key_terms=len(analysis.key_terms),
        difficulty=analysis.difficulty,
    )
    return analysis
