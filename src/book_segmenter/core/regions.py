from __future__ import annotations

from typing import List, Sequence

from .patterns import ends_with_colon, ends_with_hard_break, looks_like_verse_line
from .types import AnnotatedSentence, RegionKind, SentenceGroup


def _keeps_paragraph_together(current: AnnotatedSentence) -> bool:
    # стих, цитата и ввод прямой речи не рвутся на границе абзаца
    return current.is_poem or current.quote_depth > 0 or current.in_region == RegionKind.SPEECH_INTRO


def should_group_together(current: AnnotatedSentence, nxt: AnnotatedSentence) -> bool:
    if nxt.starts_new_paragraph and not _keeps_paragraph_together(current):
        return False
    if current.is_poem and nxt.is_poem:
        return True
    if looks_like_verse_line(current.text) and looks_like_verse_line(nxt.text):
        return True
    if ends_with_hard_break(current.text):
        return True
    if current.in_region == RegionKind.MULTILINE_QUOTE and nxt.in_region == RegionKind.MULTILINE_QUOTE:
        return True
    # цитата, открытая в строке ``current``, продолжается в ``nxt``
    if nxt.in_region == RegionKind.MULTILINE_QUOTE and not nxt.starts_new_paragraph:
        return True
    if current.in_region == RegionKind.SPEECH_INTRO:
        return True
    return ends_with_colon(current.text) and nxt.quote_depth > 0


def _is_splittable(sentences: Sequence[AnnotatedSentence]) -> bool:
    if any(s.is_poem or looks_like_verse_line(s.text) for s in sentences):
        return False
    if all(s.in_region == RegionKind.MULTILINE_QUOTE for s in sentences):
        return False
    return not any(s.in_region == RegionKind.SPEECH_INTRO for s in sentences)


def make_group(sentences: Sequence[AnnotatedSentence]) -> SentenceGroup:
    return SentenceGroup(
        sentences=tuple(sentences),
        char_count=sum(s.char_count for s in sentences),
        is_splittable=_is_splittable(sentences),
    )


def group_into_regions(sentences: Sequence[AnnotatedSentence]) -> List[SentenceGroup]:
    """
    Группирует предложения в неделимые для страницы единицы.

    Every sentence lands in exactly one group, in order.
    """
    groups: List[SentenceGroup] = []
    run: List[AnnotatedSentence] = []
    for sentence in sentences:
        if run and not should_group_together(run[-1], sentence):
            groups.append(make_group(run))
            run = []
        run.append(sentence)
    if run:
        groups.append(make_group(run))
    return groups
