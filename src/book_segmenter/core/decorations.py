"""
Inline emphasis (``***``, ``**``, ``*``, ``~~``, ``==``) around sentence boundaries.

RU: Если выделение охватывает несколько предложений (``*A. B.*``), маркеры
снимаются перед сегментацией, а после неё каждое предложение оборачивается
заново: ``*A.* *B.*``. Соседние одинаковые выделения внутри одного блока
затем склеиваются обратно (``*A. B.*``), так что ни один блок не содержит
незакрытого маркера.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Dict, List, Pattern, Sequence, Tuple, TypeVar

from .patterns import BLANK_LINE_RE
from .offsets import OffsetMap, RemovedSpan, keep_first_non_overlapping, make_removal_map
from .types import DecorationSpan, SentenceToken

S = TypeVar("S", bound=SentenceToken)

# longest first
MARKERS: Tuple[str, ...] = ("***", "**", "*", "~~", "==")

MARKER_RES: Dict[str, Pattern[str]] = {
    "***": re.compile(r"(?<!\*)\*\*\*(?!\*)"),
    "**": re.compile(r"(?<!\*)\*\*(?!\*)"),
    "*": re.compile(r"(?<!\*)\*(?!\*)"),
    "~~": re.compile(r"(?<!~)~~(?!~)"),
    "==": re.compile(r"(?<!=)==(?!=)"),
}

_Q = "[\"»«“”'’]*"
SENTENCE_BOUNDARY_RE = re.compile(
    r"(?:(?<![.])\.(?![.])|[!?]|\.{3}|…)" + _Q + r"\s+\S"
)

MERGE_RULES: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"\*\*\*\s+\*\*\*"), " "),
    (re.compile(r"(?<!\*)\*\*(?!\*)\s+(?<!\*)\*\*(?!\*)"), " "),
    (re.compile(r"(?<!\*)\*(?!\*)\s+(?<!\*)\*(?!\*)"), " "),
    (re.compile(r"~~\s+~~"), " "),
    (re.compile(r"==\s+=="), " "),
)


# ==============================================================================
# Healing
# ==============================================================================
def _heal_line(line: str) -> str:
    trimmed = line.strip()
    for marker in MARKERS:
        if not trimmed.startswith(marker):
            continue
        rest = trimmed[len(marker):]
        # "* пункт списка" / "** ": не выделение
        if not rest or rest[0].isspace() or rest[0] == marker[0]:
            return line
        if trimmed.endswith(marker) or len(MARKER_RES[marker].findall(trimmed)) % 2 == 0:
            return line
        body = line.rstrip()
        return body + marker + line[len(body):]
    return line


def heal_unclosed_decorations(text: str) -> str:
    """
    Close an emphasis opened at the start of a line and never closed on it
    (``*Er sagte.`` → ``*Er sagte.*``).
    """
    return "\n".join(_heal_line(line) for line in text.split("\n"))


# ==============================================================================
# Stripping
# ==============================================================================
def _is_flanking(text: str, start: int, end: int) -> bool:
    """A marker surrounded by whitespace on both sides is not emphasis."""
    before = text[start - 1] if start > 0 else " "
    after = text[end] if end < len(text) else " "
    return not (before.isspace() and after.isspace())


def _marker_positions(text: str, marker: str) -> List[int]:
    return [
        m.start()
        for m in MARKER_RES[marker].finditer(text)
        if _is_flanking(text, m.start(), m.end())
    ]


def _candidate_spans(text: str) -> List[DecorationSpan]:
    candidates: List[DecorationSpan] = []
    for marker in MARKERS:
        n = len(marker)
        positions = _marker_positions(text, marker)
        pairs = [(positions[i], positions[i + 1]) for i in range(0, len(positions) - 1, 2)]
        for idx, (open_pos, close_pos) in enumerate(pairs):
            content = text[open_pos + n:close_pos]
            if not content.strip() or BLANK_LINE_RE.search(content):
                continue
            has_boundary = bool(SENTENCE_BOUNDARY_RE.search(content))
            next_gap = text[close_pos + n:pairs[idx + 1][0]] if idx + 1 < len(pairs) else ""
            prev_gap = text[pairs[idx - 1][1] + n:open_pos] if idx > 0 else ""
            has_sibling = (next_gap != "" and next_gap.isspace()) or (prev_gap != "" and prev_gap.isspace())
            if has_boundary or has_sibling:
                candidates.append(
                    DecorationSpan(
                        start_offset=open_pos,
                        end_offset=close_pos + n,
                        decoration=marker,
                        content_start=open_pos + n,
                        content_end=close_pos,
                    )
                )
    return candidates


def find_strippable_spans(text: str) -> List[DecorationSpan]:
    """Spans to strip, non-overlapping, sorted by start (longer markers win)."""
    return keep_first_non_overlapping(
        _candidate_spans(text), lambda s: (s.start_offset, s.end_offset)
    )


@dataclass(frozen=True)
class StrippedSpan:
    """Payload range of a stripped span in stripped-text coordinates."""

    start: int
    end: int
    decoration: str


class StrippedText:
    """
    Текст без снятых маркеров выделения + обратное отображение позиций.

    ``to_source`` maps stripped offsets back to the input; an offset at the
    start of a payload maps to the payload start (after the opening marker).
    """

    def __init__(self, source: str):
        self.source = source
        self.spans: List[DecorationSpan] = find_strippable_spans(source)

        parts: List[str] = []
        removed: List[RemovedSpan] = []
        stripped: List[StrippedSpan] = []
        cursor = 0
        removed_before = 0
        for span in self.spans:
            n = len(span.decoration)
            parts.append(source[cursor:span.start_offset])
            parts.append(source[span.content_start:span.content_end])
            cursor = span.end_offset
            removed.append(RemovedSpan(span.start_offset, span.content_start))
            removed.append(RemovedSpan(span.content_end, span.end_offset))
            stripped.append(
                StrippedSpan(
                    start=span.start_offset - removed_before,
                    end=span.content_end - n - removed_before,
                    decoration=span.decoration,
                )
            )
            removed_before += 2 * n
        parts.append(source[cursor:])

        self.text = "".join(parts)
        self.stripped_spans = stripped
        self.to_source: OffsetMap = make_removal_map(removed)

    def restore(self, sentences: Sequence[S]) -> List[S]:
        return restore_decorations(sentences, self.stripped_spans)


# ==============================================================================
# Restoring
# ==============================================================================
def _wrap_ranges(text: str, ranges: List[Tuple[int, int, str]]) -> str:
    # справа налево, чтобы не сдвигать ещё не обработанные позиции
    for lo, hi, dec in sorted(ranges, reverse=True):
        segment = text[lo:hi]
        inner = segment.strip()
        if not inner:
            continue
        lead = len(segment) - len(segment.lstrip())
        a = lo + lead
        b = a + len(inner)
        if inner.startswith(dec) and inner.endswith(dec) and len(inner) > 2 * len(dec):
            continue
        text = text[:a] + dec + inner + dec + text[b:]
    return text


def restore_decorations(sentences: Sequence[S], spans: Sequence[StrippedSpan]) -> List[S]:
    """
    Re-wrap every sentence (or the part of it) that lies inside a stripped span.
    Offsets of the sentences are stripped-text offsets.
    """
    if not spans:
        return list(sentences)
    restored: List[S] = []
    for sentence in sentences:
        s_start = sentence.source_offset
        s_end = s_start + len(sentence.text)
        ranges = [
            (max(sp.start, s_start) - s_start, min(sp.end, s_end) - s_start, sp.decoration)
            for sp in spans
            if sp.start < s_end and sp.end > s_start
        ]
        if not ranges:
            restored.append(sentence)
            continue
        text = _wrap_ranges(sentence.text, ranges)
        restored.append(replace(sentence, text=text, char_count=len(text)))
    return restored


def merge_adjacent_decorations(text: str) -> str:
    """``*A.* *B.*`` → ``*A. B.*``."""
    for rx, repl in MERGE_RULES:
        text = rx.sub(repl, text)
    return text
