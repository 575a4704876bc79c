"""
Извлечение заголовков и повторная вставка структурных элементов.

RU: Заголовки вырезаются из текста до сегментации (строка очищается, перевод
строки остаётся), а затем вставляются обратно перед первым предложением,
которое идёт после них в исходном тексте. Так же возвращаются горизонтальные
линии и (в режиме блоков) блоки кода.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .language import GERMAN, LanguageConfig
from .line_scanner import scan_lines
from .offsets import OffsetMap, RemovedSpan, make_removal_map
from .types import ExtractedHeading

_FENCE = "```"


def extract_headings(text: str, language: LanguageConfig = GERMAN) -> List[ExtractedHeading]:
    """
    Collect heading lines (``#``..``######``) with offsets into ``text``.
    Lines inside fenced code blocks are not headings.
    """
    headings: List[ExtractedHeading] = []
    offset = 0
    in_fence = False
    for line in scan_lines(text, language):
        line_end = offset + len(line.text)
        has_newline = line_end < len(text)
        if line.text.lstrip().startswith(_FENCE):
            # ```lang ... ``` on a single line does not open a fence
            if not (line.text.count(_FENCE) >= 2 and not in_fence):
                in_fence = not in_fence
        elif not in_fence and line.is_heading:
            headings.append(
                ExtractedHeading(
                    text=line.text,
                    start_offset=offset,
                    end_offset=line_end + (1 if has_newline else 0),
                    line_number=line.line_number,
                )
            )
        offset = line_end + 1
    return headings


def filter_headings_from_text(text: str, headings: Iterable[ExtractedHeading]) -> str:
    """Удаляет текст заголовков, сохраняя перевод строки после каждого."""
    parts: List[str] = []
    cursor = 0
    for h in sorted(headings, key=lambda h: h.start_offset):
        parts.append(text[cursor:h.start_offset])
        cursor = h.start_offset + len(h.text)
    parts.append(text[cursor:])
    return "".join(parts)


def make_heading_offset_map(headings: Iterable[ExtractedHeading]) -> OffsetMap:
    """filtered → original."""
    return make_removal_map(
        RemovedSpan(h.start_offset, h.start_offset + len(h.text)) for h in headings
    )


# ==============================================================================
# Reinsertion
# ==============================================================================
@dataclass(frozen=True)
class InsertableElement:
    kind: str  # "heading" | "hr" | "code"
    text: str
    original_offset: int


def heading_elements(headings: Iterable[ExtractedHeading]) -> List[InsertableElement]:
    return [InsertableElement("heading", h.text.rstrip(), h.start_offset) for h in headings]


class ElementPlacer:
    """
    Хранит ещё не вставленные элементы одного вызова.

    Each element is handed out exactly once: either before the first sentence
    that follows it in the original text, or at the end via ``take_remaining``.
    """

    def __init__(self, elements: Iterable[InsertableElement]):
        self._pending: List[InsertableElement] = sorted(elements, key=lambda e: e.original_offset)
        self._cursor = 0

    def take_preceding(self, original_offset: int) -> List[str]:
        taken: List[str] = []
        while self._cursor < len(self._pending) and self._pending[self._cursor].original_offset < original_offset:
            taken.append(self._pending[self._cursor].text)
            self._cursor += 1
        return taken

    def take_remaining(self) -> List[str]:
        taken = [e.text for e in self._pending[self._cursor:]]
        self._cursor = len(self._pending)
        return taken

    @property
    def remaining_count(self) -> int:
        return len(self._pending) - self._cursor


def split_heading_lines(
    text: str, language: LanguageConfig = GERMAN
) -> Tuple[List[ExtractedHeading], str, OffsetMap]:
    """Shortcut: headings, filtered text and the filtered → original map."""
    headings = extract_headings(text, language)
    return headings, filter_headings_from_text(text, headings), make_heading_offset_map(headings)
