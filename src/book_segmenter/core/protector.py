"""
Markdown protector: hides syntax the sentence detector must not look inside.

RU: Код, URL, горизонтальные линии, вики-ссылки, markdown-ссылки и сокращения
заменяются плейсхолдерами вида ``\\ufffcURL0\\ufffc``; после сегментации подставляются
обратно ровно один раз каждый.
"""
from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence, Tuple

from .language import GERMAN, LanguageConfig, abbreviation_regex
from .offsets import OffsetMap, keep_first_non_overlapping, make_replacement_map
from .patterns import PLACEHOLDER_CHAR
from .types import ProtectedContent

# Порядок важен: при равном начале выигрывает более раннее семейство
PATTERN_FAMILIES: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("CB", re.compile(r"```[\s\S]*?```")),
    ("URL", re.compile(r"https?://(?:[^\s\])<>\n()]|\([^\s\])<>\n()]*\))+")),
    ("HR", re.compile(r"^[-*_]{3,}[ \t]*$", re.MULTILINE)),
    ("WL", re.compile(r"\[\[[^\]]+\]\]")),
    ("ML", re.compile(r"\[[^\]]+\]\([^)]+\)")),
)


def make_placeholder(tag: str, counter: int) -> str:
    return f"{PLACEHOLDER_CHAR}{tag}{counter}{PLACEHOLDER_CHAR}"


def _families(language: Optional[LanguageConfig]) -> List[Tuple[str, Pattern[str]]]:
    families = list(PATTERN_FAMILIES)
    abbr = abbreviation_regex(language) if language is not None else None
    if abbr is not None:
        families.append(("ABBR", abbr))
    return families


def protect_markdown(
    text: str, language: Optional[LanguageConfig] = GERMAN
) -> Tuple[str, List[ProtectedContent]]:
    """
    Replace protected syntax with placeholders.

    Returns the protected text and the substitutions, ordered by position.
    Overlapping matches: the one starting first wins (ties: earlier family).
    """
    candidates: List[Tuple[int, int, int, str]] = []
    for rank, (tag, rx) in enumerate(_families(language)):
        for m in rx.finditer(text):
            if m.end() > m.start():
                candidates.append((m.start(), rank, m.end(), tag))
    candidates.sort()

    kept = keep_first_non_overlapping(candidates, lambda c: (c[0], c[2]))

    parts: List[str] = []
    items: List[ProtectedContent] = []
    cursor = 0
    for counter, (start, _rank, end, tag) in enumerate(kept):
        placeholder = make_placeholder(tag, counter)
        parts.append(text[cursor:start])
        parts.append(placeholder)
        items.append(ProtectedContent(placeholder=placeholder, original=text[start:end], start_offset=start))
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts), items


def restore_markdown(text: str, items: Sequence[ProtectedContent]) -> str:
    """Подставляет оригиналы обратно (каждый плейсхолдер заменяется один раз)."""
    for item in items:
        if item.placeholder in text:
            text = text.replace(item.placeholder, item.original, 1)
    return text


class ProtectedText:
    """Result of ``protect`` together with its offset map back to the input."""

    def __init__(self, source: str, language: Optional[LanguageConfig] = GERMAN):
        self.source = source
        self.text, self.items = protect_markdown(source, language)
        self.to_source: OffsetMap = make_replacement_map(self.items)

    def restore(self, fragment: str) -> str:
        if PLACEHOLDER_CHAR not in fragment:
            return fragment
        return restore_markdown(fragment, self.items)
