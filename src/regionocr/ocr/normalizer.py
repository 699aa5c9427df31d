"""Post-processing of raw recognised text and text statistics."""

import re
from dataclasses import dataclass

_SPACE_RUNS = re.compile(r"[ \t]+")
_SPACE_BEFORE_PUNCT = re.compile(r" ([,.!?:;])")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def normalize_text(raw: str | None) -> str:
    """Clean up raw engine output.

    Steps, in order:
        1. Collapse runs of spaces/tabs to one space
        2. Drop the space before , . ! ? : ;
        3. Normalise CRLF / CR line endings to LF
        4. Strip each line
        5. Collapse 3+ consecutive newlines to 2
        6. Strip the whole text

    The function is idempotent: normalize_text(normalize_text(s)) == normalize_text(s).
    """
    if not raw:
        return ""

    text = _SPACE_RUNS.sub(" ", raw)
    text = _SPACE_BEFORE_PUNCT.sub(r"\1", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def count_words(text: str | None) -> int:
    """Number of whitespace-separated tokens."""
    if not text:
        return 0
    return len(text.split())


def count_chars(text: str | None) -> int:
    """Length in Unicode code points."""
    return len(text) if text else 0


def count_lines(text: str | None) -> int:
    if not text:
        return 0
    return len(text.split("\n"))


def looks_like_text(text: str | None) -> bool:
    """Rough readability check: at least 3 characters, 30% of them alphanumeric."""
    if not text or not text.strip() or len(text) < 3:
        return False
    alnum = sum(1 for c in text if c.isalnum())
    return alnum / len(text) >= 0.3


def preview(text: str | None, max_length: int = 50) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


@dataclass(frozen=True)
class TextStatistics:
    chars: int
    words: int
    lines: int
    alphanumeric: int
    whitespace: int

    def summary(self) -> str:
        return f"Text: {self.chars} characters, {self.words} words"


def text_statistics(text: str | None) -> TextStatistics:
    text = text or ""
    return TextStatistics(
        chars=count_chars(text),
        words=count_words(text),
        lines=count_lines(text),
        alphanumeric=sum(1 for c in text if c.isalnum()),
        whitespace=sum(1 for c in text if c.isspace()),
    )
