from __future__ import annotations

import re
from typing import Optional

# Символ-ограничитель плейсхолдеров защищённого markdown (OBJECT REPLACEMENT CHARACTER)
PLACEHOLDER_CHAR = "\ufffc"

# Zero-width joiner: отмечает границу после двоеточия, вводящего прямую речь
SPEECH_BOUNDARY_MARK = "\u200d"

HEADING_RE = re.compile(r"^#{1,6}(?:\s|\*)")
HR_RE = re.compile(r"^[-*_]{3,}[ \t]*$")
PLACEHOLDER_RE = re.compile(PLACEHOLDER_CHAR + r"(CB|URL|HR|WL|ML|ABBR)(\d+)" + PLACEHOLDER_CHAR)
BLOCK_MARKER_RE = re.compile(r" \^\d+(?=[ \t]*$)", re.MULTILINE)
BLANK_LINE_RE = re.compile(r"\n\s*\n")
STANDALONE_URL_RE = re.compile(r"^https?://\S+$")
ORPHAN_DECORATION_RE = re.compile(r"^(?:\*{1,3}|~~|==)$")

_CLOSERS = "\"'»«“”‘’„)\\]*_~="
TERMINAL_RE = re.compile(r"[.!?…][" + re.escape(_CLOSERS) + r"]*\s*$")

# Стихоподобная строка: нет прозаической концовки
_PROSE_ENDING_RE = re.compile(r"[.!?]\s*[\"»«“”]?\s*$")
_EXCLAMATION_ENDING_RE = re.compile(r"![\"»«“”]?\s*$")
_HARD_BREAK_RE = re.compile(r"(?: {2}|\\)\n?$")
VERSE_MAX_CHARS = 80
VERSE_EXCLAMATION_MAX_CHARS = 50


def is_heading_line(line: str) -> bool:
    return bool(HEADING_RE.match(line))


def is_horizontal_rule(text: str) -> bool:
    return bool(HR_RE.match(text.strip()))


def placeholder_kind(text: str) -> Optional[str]:
    """Tag of a placeholder that makes up the whole (trimmed) text, else None."""
    m = PLACEHOLDER_RE.fullmatch(text.strip())
    return m.group(1) if m else None


def is_standalone_url(text: str) -> bool:
    trimmed = text.strip()
    return bool(STANDALONE_URL_RE.match(trimmed)) or placeholder_kind(trimmed) == "URL"


def ends_with_terminal(text: str) -> bool:
    return bool(TERMINAL_RE.search(text))


def ends_with_colon(text: str) -> bool:
    return text.rstrip().endswith(":")


def ends_with_hard_break(text: str) -> bool:
    """Markdown hard line break: two trailing spaces or a backslash."""
    return bool(_HARD_BREAK_RE.search(text.rstrip("\n")))


def looks_like_verse_line(text: str) -> bool:
    trimmed = text.strip()
    if not 0 < len(trimmed) < VERSE_MAX_CHARS:
        return False
    if ends_with_hard_break(text):
        return True
    if not _PROSE_ENDING_RE.search(trimmed):
        return True
    return bool(_EXCLAMATION_ENDING_RE.search(trimmed)) and len(trimmed) < VERSE_EXCLAMATION_MAX_CHARS


def count_words(text: str) -> int:
    return len(text.split())
