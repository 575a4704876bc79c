"""
Data model shared by the segmentation pipeline.

RU: Модели данных, общие для всех стадий сегментации.

Records produced by a stage are frozen dataclasses: every stage returns new
objects (``dataclasses.replace``) instead of mutating its input. The only
mutable record is ``Block``, which the block grouper fills before handing it
to the formatter.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class RegionKind(str, Enum):
    """Runs of sentences that must never be separated."""

    POEM = "poem"
    MULTILINE_QUOTE = "multilineQuote"
    SPEECH_INTRO = "speechIntro"


@dataclass(frozen=True)
class QuoteState:
    """
    Stack of unclosed opening quote characters.

    ``depth`` is derived from the stack, so it can never disagree with it
    and can never go negative.
    """

    opening_marks: Tuple[str, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.opening_marks)

    def open(self, mark: str) -> "QuoteState":
        return QuoteState(self.opening_marks + (mark,))

    def close(self) -> "QuoteState":
        # over-closing is a no-op
        if not self.opening_marks:
            return self
        return QuoteState(self.opening_marks[:-1])


@dataclass(frozen=True)
class ScannedLine:
    line_number: int
    text: str
    is_blank: bool
    is_heading: bool
    is_potential_poem_line: bool
    quote_state_after: QuoteState


@dataclass(frozen=True)
class ProtectedContent:
    """Placeholder substitution recorded by the markdown protector."""

    placeholder: str
    original: str
    start_offset: int


@dataclass(frozen=True)
class ExtractedHeading:
    text: str
    start_offset: int
    end_offset: int  # includes the trailing newline
    line_number: int


@dataclass(frozen=True)
class DecorationSpan:
    start_offset: int
    end_offset: int
    decoration: str
    content_start: int
    content_end: int


@dataclass(frozen=True)
class SentenceToken:
    text: str
    source_offset: int
    char_count: int
    is_complete: bool


@dataclass(frozen=True)
class AnnotatedSentence(SentenceToken):
    quote_depth: int = 0
    is_poem: bool = False
    starts_new_paragraph: bool = False
    in_region: Optional[RegionKind] = None


@dataclass(frozen=True)
class SentenceGroup:
    """Atomic placement unit for pages."""

    sentences: Tuple[AnnotatedSentence, ...]
    char_count: int
    is_splittable: bool


@dataclass
class Block:
    """
    Atomic unit for block markers.

    RU: Блок: единица, получающая маркер ``^N``. Мутируется только во время
    группировки.
    """

    sentences: List[AnnotatedSentence]
    word_count: int
    char_count: int
    pending_speech_intro: bool = False


@dataclass(frozen=True)
class PageSegment:
    content: str
    page_index: int
    char_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_index": self.page_index,
            "char_count": self.char_count,
            "content": self.content,
        }


@dataclass(frozen=True)
class SourceNameInfo:
    """Parsed basename of the document being split: ``core-suffix1-suffix2``."""

    core_name: str
    suffix: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SegmentationResult:
    pages: List[PageSegment]
    source_core_name: str
    source_suffix: Tuple[str, ...] = ()
    too_short_to_split: bool = False

    @property
    def can_split(self) -> bool:
        """True when splitting would actually produce several pages."""
        return len(self.pages) > 1


@dataclass(frozen=True)
class BlockSplitResult:
    marked_text: str
    block_count: int


@dataclass(frozen=True)
class BlockSplitIntermediate:
    """Block split result together with the blocks it was formatted from."""

    marked_text: str
    block_count: int
    blocks: List[Block] = field(default_factory=list)
