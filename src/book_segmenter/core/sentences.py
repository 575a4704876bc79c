"""
Sentence segmentation on top of pysbd.

RU: Разбиение на предложения. Каждая строка (``\\n``) заканчивает предложение,
внутри строки границы ищет pysbd. Двоеточие, вводящее прямую речь
(``Er sagte: „…“``), тоже считается границей.
"""
from __future__ import annotations

import logging
import re
from typing import List

import pysbd

from .language import LanguageConfig
from .patterns import SPEECH_BOUNDARY_MARK, ends_with_terminal
from .types import SentenceToken

logger = logging.getLogger(__name__)

_COLON_RE = re.compile(r":[ \t]+")
_DASHES = "-–—"
_TERMINALS_RE = re.compile(r"[.!?…]")
_DECORATION_CHARS = "*_~='"


def mark_speech_boundaries(line: str, language: LanguageConfig) -> str:
    """
    Вставляет zero-width joiner после пробелов за двоеточием, если дальше идёт
    кавычка, заглавная буква или тире.
    """
    quotes = language.all_quotes + "'"
    out: List[str] = []
    cursor = 0
    for m in _COLON_RE.finditer(line):
        nxt = line[m.end():m.end() + 1]
        if nxt and (nxt in quotes or nxt in _DASHES or nxt.isupper()):
            out.append(line[cursor:m.end()])
            out.append(SPEECH_BOUNDARY_MARK)
            cursor = m.end()
    out.append(line[cursor:])
    return "".join(out)


def _is_trailing_fragment(piece: str, language: LanguageConfig) -> bool:
    """``“``, ``***``, ``«*``: closing marks that pysbd cuts off a sentence."""
    tail_chars = language.closing_quotes + language.neutral_quotes + _DECORATION_CHARS
    return all(ch in tail_chars for ch in piece)


def _split_clause(clause: str, segmenter: pysbd.Segmenter, language: LanguageConfig) -> List[str]:
    """Pieces of ``clause`` that concatenate back to it exactly."""
    if not _TERMINALS_RE.search(clause):
        return [clause]

    boundaries = [0]
    cursor = 0
    for segment in segmenter.segment(clause):
        needle = segment.strip()
        if not needle:
            continue
        found = clause.find(needle, cursor)
        if found < 0:
            # pysbd may normalise characters; fall back to what we have
            continue
        cursor = found + len(needle)
        # закрывающие кавычки и выделение остаются у своего предложения
        if _is_trailing_fragment(needle, language):
            continue
        if found > boundaries[-1] and clause[boundaries[-1]:found].strip():
            boundaries.append(found)

    boundaries.append(len(clause))
    return [clause[a:b] for a, b in zip(boundaries, boundaries[1:]) if b > a]


def _split_line(line: str, segmenter: pysbd.Segmenter, language: LanguageConfig) -> List[str]:
    pieces: List[str] = []
    marked = mark_speech_boundaries(line, language)
    for clause in marked.split(SPEECH_BOUNDARY_MARK):
        if clause:
            pieces.extend(_split_clause(clause, segmenter, language))

    # whitespace-only pieces stick to their predecessor
    merged: List[str] = []
    for piece in pieces:
        if merged and not piece.strip():
            merged[-1] += piece
        else:
            merged.append(piece)
    return merged


def segment_sentences(text: str, language: LanguageConfig) -> List[SentenceToken]:
    """
    Split ``text`` into sentence tokens.

    Tokens are contiguous slices of ``text`` (trailing whitespace and the line's
    ``\\n`` stay with the last token of the line); ``source_offset`` is the
    offset of the slice in ``text``. Whitespace-only lines produce no token.
    """
    # pysbd keeps the text of the last call on the instance: one per call
    segmenter = pysbd.Segmenter(language=language.segmenter_language, clean=False)
    tokens: List[SentenceToken] = []
    offset = 0
    lines = text.split("\n")
    for number, line in enumerate(lines):
        raw_line = line + "\n" if number < len(lines) - 1 else line
        line_offset = offset
        offset += len(raw_line)
        if not raw_line.strip():
            continue

        pieces = _split_line(line, segmenter, language)
        if not pieces:
            continue
        pieces[-1] += raw_line[len(line):]

        cursor = line_offset
        for piece in pieces:
            if piece.strip():
                tokens.append(
                    SentenceToken(
                        text=piece,
                        source_offset=cursor,
                        char_count=len(piece),
                        is_complete=ends_with_terminal(piece),
                    )
                )
            cursor += len(piece)

    logger.debug("Сегментация: %d символов → %d предложений", len(text), len(tokens))
    return tokens
