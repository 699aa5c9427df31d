"""Data passed between the extraction worker and the interactive thread."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from regionocr.ocr.normalizer import count_chars, count_words


@dataclass(frozen=True)
class ExtractionJob:
    """One extraction request. The bitmap is a private copy owned by the job."""

    job_id: int
    bitmap: np.ndarray = field(repr=False)
    is_region: bool
    language: str


@dataclass(frozen=True)
class ExtractionResult:
    """Produced once by the worker, consumed once by the merge step."""

    raw_text: str
    text: str
    word_count: int
    char_count: int

    @classmethod
    def from_text(cls, raw_text: str, text: str) -> ExtractionResult:
        return cls(
            raw_text=raw_text,
            text=text,
            word_count=count_words(text),
            char_count=count_chars(text),
        )


@dataclass
class AccumulatedText:
    """Running merged output since the last clear."""

    text: str = ""
    extraction_count: int = 0

    def merge(self, text: str, is_region: bool) -> bool:
        """Fold one job's normalised text into the buffer.

        Region results are appended (blank line between) when the buffer
        already holds text; anything else replaces the buffer. Empty text
        leaves the buffer untouched.

        Returns:
            True if the buffer changed.
        """
        if not text:
            return False
        if is_region and self.text:
            self.text = f"{self.text}\n\n{text}"
            self.extraction_count += 1
        else:
            self.text = text
            self.extraction_count = 1
        return True

    def clear(self) -> None:
        self.text = ""
        self.extraction_count = 0

    @property
    def word_count(self) -> int:
        return count_words(self.text)

    @property
    def char_count(self) -> int:
        return count_chars(self.text)


@dataclass(frozen=True)
class ExtractionSummary:
    """Accumulated state after a successful job, as handed to the UI."""

    text: str
    word_count: int
    char_count: int
    extraction_count: int
    result: ExtractionResult
    is_region: bool
    merged: bool

    @property
    def found_text(self) -> bool:
        return bool(self.result.text)
