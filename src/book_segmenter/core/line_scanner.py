from __future__ import annotations

from bisect import bisect_right
from typing import List

from .language import LanguageConfig, poem_line_regexes
from .patterns import is_heading_line
from .types import QuoteState, ScannedLine


def advance_quote_state(state: QuoteState, line: str, language: LanguageConfig) -> QuoteState:
    """
    Прогоняет строку через стек кавычек.

    Открывающая кладёт символ в стек, закрывающая снимает (лишняя закрывающая
    игнорируется), нейтральная закрывает при depth > 0, иначе открывает.
    """
    for ch in line:
        if ch in language.opening_quotes:
            state = state.open(ch)
        elif ch in language.closing_quotes:
            state = state.close()
        elif ch in language.neutral_quotes:
            state = state.close() if state.depth > 0 else state.open(ch)
    return state


def is_potential_poem_line(line: str, language: LanguageConfig) -> bool:
    trimmed = line.strip()
    if not trimmed:
        return False
    if any(rx.search(line) for rx in poem_line_regexes(language)):
        return True
    return len(trimmed) < language.poem_max_line_length


def scan_lines(text: str, language: LanguageConfig) -> List[ScannedLine]:
    """
    Один проход O(n) по строкам текста (разделитель ``\\n``).

    Quote state is carried across lines: an unclosed quote on line k keeps
    ``quote_state_after.depth > 0`` for line k and every following line until
    it is closed.
    """
    state = QuoteState()
    scanned: List[ScannedLine] = []
    for number, line in enumerate(text.split("\n")):
        state = advance_quote_state(state, line, language)
        scanned.append(
            ScannedLine(
                line_number=number,
                text=line,
                is_blank=not line.strip(),
                is_heading=is_heading_line(line),
                is_potential_poem_line=is_potential_poem_line(line, language),
                quote_state_after=state,
            )
        )
    return scanned


def line_start_offsets(text: str) -> List[int]:
    starts = [0]
    pos = text.find("\n")
    while pos != -1:
        starts.append(pos + 1)
        pos = text.find("\n", pos + 1)
    return starts


def line_index_at(starts: List[int], offset: int) -> int:
    """Номер строки, содержащей ``offset`` (по списку из ``line_start_offsets``)."""
    return max(bisect_right(starts, offset) - 1, 0)
