import random
import re
from typing import List, Mapping, Optional, Sequence

import structlog

from quizforge.models import KeyFact, Question
from quizforge.services.facts import extract_keywords, split_sentences
from quizforge.services.lexicon import DEFAULT_DISTRACTOR_BANK, DEFAULT_SUBJECT_KEYWORDS, STOPWORDS

logger = structlog.get_logger()

BLANK = "_____"
FILL_BLANK_PREFIX = "Fill in the blank: "
DIFFICULTIES = ("easy", "medium", "hard")

DISTRACTOR_COUNT = 3
DISTRACTOR_MAX_LENGTH = 100
ANSWER_MAX_LENGTH = 200
MAX_TERM_WORDS = 8
MIN_FILL_BLANK_TOKENS = 6

NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
WORD_RE = re.compile(r"[A-Za-z0-9]+(?:['-][A-Za-z0-9]+)*")
DEFINITION_SPLIT_RE = re.compile(r"\s+(?:is defined as|is known as|refers to|means|is|are)\s+", re.I)
PROCESS_CUE_RE = re.compile(r"\b(process|method|procedure|steps|stages|phases)\b", re.I)
PROCESS_SUBJECT_RE = re.compile(r"\b(process|method|procedure)\s+of\s+(?:the\s+|a\s+|an\s+)?([A-Za-z][\w-]*)", re.I)
TRAILING_PUNCT = " .!?;:,"


def truncate(text: str, limit: int = ANSWER_MAX_LENGTH) -> str:
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.4f}".rstrip("0").rstrip(".")


def split_definition(sentence: str):
    """Split ``"<term> is <definition>."`` into its two halves."""
    if " is " not in sentence:
        return None
    term, definition = sentence.split(" is ", 1)
    term, definition = term.strip(), definition.strip().rstrip(TRAILING_PUNCT)
    if not term or not definition or len(term.split()) > MAX_TERM_WORDS:
        return None
    return term, definition


def fill_blank_answer_fits(question: Question, sentence: str) -> bool:
    """Putting the answer back into the blank must give the source sentence."""
    statement = question.question[len(FILL_BLANK_PREFIX):]
    return statement.replace(BLANK, question.correct_answer, 1) == sentence


class QuestionSynthesizer:
    """Builds typed questions from key facts.

    ``rng`` drives every random choice (distractor picks, option order, blank
    selection); pass a seeded ``random.Random`` for reproducible output.
    """

    def __init__(self, rng: random.Random = None,
                 subject_keywords: Mapping[str, Sequence[str]] = DEFAULT_SUBJECT_KEYWORDS,
                 distractor_bank: Sequence[str] = DEFAULT_DISTRACTOR_BANK):
        self.rng = rng or random.Random()
        self.subject_keywords = subject_keywords
        self.distractor_bank = tuple(distractor_bank)

    def synthesize(self, fact: KeyFact, question_type: str, difficulty: str,
                   subject: str, content: str) -> Optional[Question]:
        """Return a question for ``fact`` or None when the fact cannot support this type."""
        builders = {
            "mcq": self.build_mcq,
            "short": self.build_short_answer,
            "fillblank": self.build_fill_blank,
        }
        if question_type not in builders:
            raise ValueError(f"Unknown question type: {question_type}")
        return builders[question_type](fact, self._difficulty(difficulty), subject, content)

    # -------------------- MULTIPLE CHOICE --------------------

    def build_mcq(self, fact: KeyFact, difficulty: str, subject: str, content: str) -> Question:
        if fact.type == "definition":
            parts = split_definition(fact.text)
            if parts:
                term, definition = parts
                distractors = self.contextual_distractors(definition, content, exclude=(fact.text,))
                return self._mcq(
                    f"What is {term}?", definition, distractors,
                    f'According to the content, "{fact.text}"', difficulty, subject, fact.keywords,
                )

        if fact.type == "numerical":
            question = self._numerical_mcq(fact, difficulty, subject)
            if question:
                return question

        return self.build_statement_mcq(fact, difficulty, subject, content)

    def build_statement_mcq(self, fact: KeyFact, difficulty: str, subject: str, content: str,
                            prompt: str = None) -> Question:
        prompt = prompt or f"Which of the following statements is correct based on the {subject} content?"
        distractors = self.contextual_distractors(fact.text, content, exclude=(fact.text,))
        return self._mcq(
            prompt, fact.text, distractors,
            f'The content states: "{fact.text}"', difficulty, subject, fact.keywords,
        )

    def _numerical_mcq(self, fact: KeyFact, difficulty: str, subject: str) -> Optional[Question]:
        match = NUMBER_RE.search(fact.text)
        if not match:
            return None
        token = match.group(0)
        value = float(token)
        masked = fact.text[:match.start()] + BLANK + fact.text[match.end():]

        distractors = []
        for candidate in (value * 2, value / 2, value + 10, value + 1, value * 3, value + 100):
            formatted = format_number(candidate)
            if formatted != token and formatted not in distractors:
                distractors.append(formatted)
            if len(distractors) == DISTRACTOR_COUNT:
                break

        return self._mcq(
            f"What number correctly completes this statement? {masked}", token, distractors,
            f'The content states: "{fact.text}"', difficulty, subject, fact.keywords,
        )

    def contextual_distractors(self, answer: str, content: str, exclude: Sequence[str] = (),
                               count: int = DISTRACTOR_COUNT) -> List[str]:
        """Pick other sentences of the source text as wrong options."""
        pool = []
        for sentence in split_sentences(content):
            if sentence in exclude or sentence == answer:
                continue
            candidate = sentence[:DISTRACTOR_MAX_LENGTH].rstrip()
            # a truncated sentence can still collide with the answer
            if candidate == answer or candidate in pool:
                continue
            pool.append(candidate)

        picked = self.rng.sample(pool, min(count, len(pool)))
        return self._pad_distractors(picked, answer, count)

    def _pad_distractors(self, distractors: List[str], answer: str, count: int) -> List[str]:
        bank = [s for s in self.distractor_bank if s != answer and s not in distractors]
        self.rng.shuffle(bank)
        while len(distractors) < count and bank:
            distractors.append(bank.pop())
        filler = 1
        while len(distractors) < count:
            candidate = f"None of the above ({filler})"
            if candidate != answer and candidate not in distractors:
                distractors.append(candidate)
            filler += 1
        return distractors

    def _mcq(self, prompt: str, answer: str, distractors: List[str], explanation: str,
             difficulty: str, subject: str, keywords: List[str]) -> Question:
        options = [answer] + list(distractors[:DISTRACTOR_COUNT])
        self.rng.shuffle(options)
        return Question(
            type="mcq",
            question=prompt,
            options=options,
            correct_answer=answer,
            explanation=explanation,
            difficulty=difficulty,
            topic=subject,
            keywords=keywords,
        )

    # -------------------- SHORT ANSWER --------------------

    def build_short_answer(self, fact: KeyFact, difficulty: str, subject: str, content: str,
                           prompt: str = None) -> Question:
        keyword = fact.keywords[0] if fact.keywords else subject
        answer = fact.text
        question = prompt

        if question is None and fact.type == "definition":
            parts = DEFINITION_SPLIT_RE.split(fact.text, maxsplit=1)
            term = parts[0].strip() if len(parts) == 2 else ""
            definition = parts[1].strip().rstrip(TRAILING_PUNCT) if len(parts) == 2 else ""
            if term and definition and len(term.split()) <= MAX_TERM_WORDS:
                question = f"Define {term} in your own words."
                answer = definition

        if question is None and fact.type == "process":
            named = PROCESS_SUBJECT_RE.search(fact.text)
            if named:
                question = f"Describe the {named.group(1).lower()} of {named.group(2).strip()}."
            else:
                cue = PROCESS_CUE_RE.search(fact.text)
                noun = cue.group(1).lower() if cue else "process"
                question = f"Describe the {noun} involving {keyword} as explained in the content."

        if question is None and fact.type == "causal":
            question = f"Explain the cause-and-effect relationship described in the content regarding {keyword}."

        if question is None:
            question = f"Explain {keyword} based on the content."

        return Question(
            type="short",
            question=question,
            correct_answer=truncate(answer),
            explanation=f'A good answer reflects the source statement: "{fact.text}"',
            difficulty=difficulty,
            topic=subject,
            keywords=fact.keywords,
        )

    # -------------------- FILL IN THE BLANK --------------------

    def build_fill_blank(self, fact: KeyFact, difficulty: str, subject: str, content: str) -> Optional[Question]:
        sentence = fact.text
        if len(sentence.split()) < MIN_FILL_BLANK_TOKENS or BLANK in sentence:
            return None

        span = self._subject_keyword_span(sentence, subject) or self._longest_word_span(sentence)
        if span is None:
            return None
        start, end = span
        answer = sentence[start:end]

        return Question(
            type="fillblank",
            question=FILL_BLANK_PREFIX + sentence[:start] + BLANK + sentence[end:],
            correct_answer=answer,
            explanation=f'The complete statement reads: "{sentence}"',
            difficulty=difficulty,
            topic=subject,
            keywords=fact.keywords or [answer.lower()],
        )

    def _subject_keyword_span(self, sentence: str, subject: str):
        keywords = self.subject_keywords.get((subject or "").strip().lower(), ())
        spans = []
        for keyword in keywords:
            match = re.search(rf"\b{re.escape(keyword)}\b", sentence, re.I)
            if match:
                spans.append(match.span())
        return self.rng.choice(spans) if spans else None

    def _longest_word_span(self, sentence: str):
        candidates = [
            m for m in WORD_RE.finditer(sentence)
            if len(m.group(0)) > 4 and m.group(0).lower() not in STOPWORDS
        ]
        if not candidates:
            return None
        longest = max(len(m.group(0)) for m in candidates)
        word = self.rng.choice([m.group(0) for m in candidates if len(m.group(0)) == longest])
        # blank the first whole-word occurrence of the chosen word
        return re.search(rf"\b{re.escape(word)}\b", sentence).span()

    @staticmethod
    def _difficulty(difficulty: str) -> str:
        return difficulty if difficulty in DIFFICULTIES else "medium"


class FallbackQuestionGenerator:
    """Template questions over the raw sentences of the content.

    Sentences are visited round-robin in document order, so none is reused
    until every sentence has been used once; later passes rotate to a
    different template for the same sentence.
    """

    SHORT_TEMPLATES = (
        'Explain the significance of the following statement: "{sentence}"',
        "What does the content tell us about {keyword}?",
        'Summarize the main idea of this statement in your own words: "{sentence}"',
    )
    MCQ_TEMPLATES = (
        "Which of the following statements is supported by the content?",
        "Which statement appears in the {subject} material?",
        "Which of the following is accurate according to the content?",
    )

    def __init__(self, content: str, synthesizer: QuestionSynthesizer):
        self.content = content or ""
        self.synthesizer = synthesizer
        self.sentences = split_sentences(self.content)
        self.position = 0

    @property
    def exhausted(self) -> bool:
        return not self.sentences

    def _fact(self, index: int) -> KeyFact:
        sentence = self.sentences[index]
        return KeyFact(text=sentence, position=index, type="general", score=0,
                       keywords=extract_keywords(sentence))

    def next_question(self, question_type: str, difficulty: str, subject: str) -> Optional[Question]:
        if not self.sentences:
            return None

        index = self.position % len(self.sentences)
        template = (self.position + self.position // len(self.sentences)) % len(self.SHORT_TEMPLATES)
        self.position += 1

        sentence = self.sentences[index]
        fact = self._fact(index)
        difficulty = self.synthesizer._difficulty(difficulty)

        if question_type == "mcq":
            prompt = self.MCQ_TEMPLATES[template].format(subject=subject)
            return self.synthesizer.build_statement_mcq(fact, difficulty, subject, self.content, prompt=prompt)

        if question_type == "fillblank":
            # Sentences too short to blank are skipped; only a text with none left becomes short answer
            for offset in range(len(self.sentences)):
                candidate = (index + offset) % len(self.sentences)
                question = self.synthesizer.build_fill_blank(self._fact(candidate), difficulty, subject,
                                                             self.content)
                if question is not None:
                    self.position += offset
                    return question
            logger.info("fallback_fill_blank_downgraded", sentence_index=index)

        keyword = fact.keywords[0] if fact.keywords else subject
        prompt = self.SHORT_TEMPLATES[template].format(sentence=sentence, keyword=keyword)
        return self.synthesizer.build_short_answer(fact, difficulty, subject, self.content, prompt=prompt)
