import re


CONTROL_CHARS_RE = re.compile(r"[\x00-\x09\x0B-\x1F\x7F]")
SPLIT_SENTENCE_RE = re.compile(r"([a-z,])\n([a-z])")
EXCESS_BLANK_LINES_RE = re.compile(r"\n\s*\n\s*\n+")
PERIOD_CAPITAL_RE = re.compile(r"\.([A-Z])")
COLON_CAPITAL_RE = re.compile(r":([A-Z])")
MULTI_SPACE_RE = re.compile(r"[ \t]+")
TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")


def clean_text(raw_text) -> str:
    """Normalize text coming out of any extractor.

    Line endings become ``\\n``, control characters other than newline are
    dropped, sentences broken across a line are re-joined, runs of blank lines
    collapse to a single blank line, a space is forced after ``.``/``:`` when a
    capital follows, and every line plus the whole string is trimmed.
    """
    if not raw_text or not isinstance(raw_text, str):
        return ""

    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    text = CONTROL_CHARS_RE.sub("", text)
    text = SPLIT_SENTENCE_RE.sub(r"\1 \2", text)
    text = EXCESS_BLANK_LINES_RE.sub("\n\n", text)
    text = PERIOD_CAPITAL_RE.sub(r". \1", text)
    text = COLON_CAPITAL_RE.sub(r": \1", text)
    text = MULTI_SPACE_RE.sub(" ", text)
    text = TRAILING_SPACE_RE.sub("\n", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    return text.strip()


def count_words(text: str) -> int:
    return len([w for w in text.split() if w])
