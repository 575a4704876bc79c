"""
Page accumulation and page text assembly.

RU: Группы предложений набираются в страницы по бюджету символов. Разрыв
страницы ставится только между группами; делимые группы больше целевого
размера заранее режутся по границам предложений. Неделимая группа больше
max × defer_factor тоже режется, чтобы ни одна страница не вышла за этот предел.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .config import SegmentationConfig
from .headings import ElementPlacer
from .offsets import OffsetMap, identity
from .regions import make_group
from .types import AnnotatedSentence, PageSegment, SentenceGroup

logger = logging.getLogger(__name__)


def _chunk_group(group: SentenceGroup, budget: float) -> List[SentenceGroup]:
    out: List[SentenceGroup] = []
    chunk: List[AnnotatedSentence] = []
    size = 0
    for sentence in group.sentences:
        if chunk and size + sentence.char_count > budget:
            out.append(make_group(chunk))
            chunk, size = [], 0
        chunk.append(sentence)
        size += sentence.char_count
    if chunk:
        out.append(make_group(chunk))
    return out


def presplit_groups(groups: Sequence[SentenceGroup], target_chars: int) -> List[SentenceGroup]:
    """Splittable groups above ``target_chars`` are cut at sentence boundaries."""
    out: List[SentenceGroup] = []
    for group in groups:
        if not group.is_splittable or group.char_count <= target_chars or len(group.sentences) < 2:
            out.append(group)
            continue
        out.extend(_chunk_group(group, target_chars))
    return out


def force_split_oversized(groups: Sequence[SentenceGroup], config: SegmentationConfig) -> List[SentenceGroup]:
    """
    Неделимая группа больше ``max × defer_factor`` всё же режется по границам
    предложений на куски не больше ``max_page_size_chars``.
    """
    out: List[SentenceGroup] = []
    for group in groups:
        if group.is_splittable or group.char_count <= config.overflow_limit_chars or len(group.sentences) < 2:
            out.append(group)
            continue
        pieces = _chunk_group(group, config.max_page_size_chars)
        logger.debug("Неделимая группа %d символов разрезана на %d частей", group.char_count, len(pieces))
        out.extend(pieces)
    return out


def should_break_page(current_chars: int, nxt: Optional[SentenceGroup], config: SegmentationConfig) -> bool:
    """
    Break before ``nxt``?

    - never on an empty page or without a next group;
    - always if ``nxt`` would push the page past ``max × defer_factor``;
    - not before the target size is reached;
    - a non-splittable ``nxt`` that still fits under ``max × defer_factor`` is pulled in.
    """
    if nxt is None or current_chars == 0:
        return False
    if current_chars + nxt.char_count > config.overflow_limit_chars:
        return True
    if current_chars < config.target_page_size_chars:
        return False
    if not nxt.is_splittable:
        return False
    return True


def accumulate_pages(groups: Sequence[SentenceGroup], config: SegmentationConfig) -> List[List[SentenceGroup]]:
    pages: List[List[SentenceGroup]] = []
    current: List[SentenceGroup] = []
    size = 0
    for group in presplit_groups(force_split_oversized(groups, config), config.target_page_size_chars):
        if should_break_page(size, group, config):
            pages.append(current)
            current, size = [], 0
        current.append(group)
        size += group.char_count
    if current:
        pages.append(current)
    return pages


def build_page_content(
    groups: Sequence[SentenceGroup],
    placer: ElementPlacer,
    to_original: OffsetMap = identity,
) -> str:
    """
    Собирает текст страницы: перед предложением вставляются ещё не
    использованные заголовки и линии, которые стоят перед ним в оригинале.
    """
    content = ""
    first = True
    for group in groups:
        for sentence in group.sentences:
            elements = placer.take_preceding(to_original(sentence.source_offset))
            prefix = "\n".join(elements) + "\n" if elements else ""
            body = sentence.text.lstrip()
            if first:
                content = prefix + body
                first = False
            elif sentence.starts_new_paragraph:
                content = content.rstrip() + "\n\n" + prefix + body
            elif prefix:
                content = content.rstrip() + "\n" + prefix + body
            else:
                content += sentence.text
    return content


def filter_empty_pages(pages: Sequence[PageSegment]) -> List[PageSegment]:
    kept = [p for p in pages if p.content.strip()]
    return [PageSegment(content=p.content, page_index=i, char_count=p.char_count) for i, p in enumerate(kept)]


def build_pages(
    groups: Sequence[SentenceGroup],
    config: SegmentationConfig,
    placer: ElementPlacer,
    to_original: OffsetMap = identity,
) -> List[PageSegment]:
    contents = [build_page_content(page, placer, to_original) for page in accumulate_pages(groups, config)]

    # всё, что не встало перед предложением, уходит в конец последней страницы
    if placer.remaining_count:
        logger.debug("Элементов после последнего предложения: %d", placer.remaining_count)
        trailing = placer.take_remaining()
        tail = "\n\n".join(trailing)
        if contents:
            contents[-1] = contents[-1].rstrip() + "\n\n" + tail
        else:
            contents.append(tail)

    pages = []
    for idx, text in enumerate(contents):
        text = text.strip("\n").rstrip()
        pages.append(PageSegment(content=text, page_index=idx, char_count=len(text)))
    pages = filter_empty_pages(pages)
    logger.debug(
        "Страницы: %d (размеры: %s)", len(pages), ", ".join(str(p.char_count) for p in pages)
    )
    return pages
