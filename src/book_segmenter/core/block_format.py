from __future__ import annotations

from typing import List, Sequence, Tuple

from .decorations import merge_adjacent_decorations
from .headings import ElementPlacer
from .offsets import OffsetMap, identity
from .patterns import BLOCK_MARKER_RE
from .types import Block

PARAGRAPH_SEPARATOR = "\n\n\n\n"
BLOCK_SEPARATOR = "\n\n"


def block_text(block: Block) -> str:
    return merge_adjacent_decorations("".join(s.text for s in block.sentences).strip())


def format_blocks(
    blocks: Sequence[Block],
    placer: ElementPlacer,
    to_original: OffsetMap = identity,
    start_index: int = 0,
) -> Tuple[str, int]:
    """
    Склеивает блоки в текст с маркерами `` ^N``.

    Headings, rules and code blocks go back in front of the first block that
    follows them, without a marker. A block that starts a paragraph is
    separated by three blank lines, any other by one.
    """
    pieces: List[str] = []

    def _emit(piece: str, separator: str) -> None:
        if pieces:
            pieces.append(separator)
        pieces.append(piece)

    for offset, block in enumerate(blocks):
        first = block.sentences[0]
        separator = PARAGRAPH_SEPARATOR if first.starts_new_paragraph else BLOCK_SEPARATOR
        for element in placer.take_preceding(to_original(first.source_offset)):
            _emit(element, separator)
            separator = BLOCK_SEPARATOR
        _emit(f"{block_text(block)} ^{start_index + offset}", separator)

    for element in placer.take_remaining():
        _emit(element, BLOCK_SEPARATOR)

    return "".join(pieces), len(blocks)


def strip_block_markers(text: str) -> str:
    """Удаляет существующие маркеры `` ^N`` (повторная разметка идемпотентна)."""
    return BLOCK_MARKER_RE.sub("", text)
