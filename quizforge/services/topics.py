import re
from typing import Dict, Mapping, Sequence, Tuple

from quizforge.services.lexicon import DEFAULT_TOPIC, DEFAULT_TOPIC_TABLE

KeywordGroup = Tuple[Sequence[str], int]


class TopicClassifier:
    """Weighted keyword scoring over a topic table.

    The highest total wins; equal totals go to the topic listed first in the
    table, and a text with no hits at all is labelled ``default``.
    """

    def __init__(self, table: Mapping[str, Sequence[KeywordGroup]] = DEFAULT_TOPIC_TABLE,
                 default: str = DEFAULT_TOPIC):
        self.default = default
        self._patterns = []
        for topic, groups in table.items():
            compiled = []
            for keywords, weight in groups:
                alternation = "|".join(re.escape(k.lower()) for k in keywords)
                compiled.append((re.compile(rf"\b(?:{alternation})\b"), weight))
            self._patterns.append((topic, tuple(compiled)))

    def scores(self, text: str) -> Dict[str, int]:
        lowered = (text or "").lower()
        return {
            topic: sum(len(pattern.findall(lowered)) * weight for pattern, weight in groups)
            for topic, groups in self._patterns
        }

    def classify(self, text: str) -> str:
        best_topic, best_score = self.default, 0
        for topic, score in self.scores(text).items():
            if score > best_score:
                best_topic, best_score = topic, score
        return best_topic


_default_classifier = TopicClassifier()


def detect_topic(text: str) -> str:
    return _default_classifier.classify(text)
