from __future__ import annotations

from typing import List, Optional, Sequence

from .language import LanguageConfig, poem_line_regexes
from .line_scanner import line_index_at, line_start_offsets, scan_lines
from .patterns import ends_with_colon
from .types import AnnotatedSentence, RegionKind, ScannedLine, SentenceToken


def _is_poem(text: str, lines: Sequence[ScannedLine], language: LanguageConfig) -> bool:
    """Hard line break in the sentence, or at least two short lines under it."""
    if any(rx.search(text) for rx in poem_line_regexes(language)):
        return True
    filled = [line for line in lines if not line.is_blank]
    if len(filled) < 2:
        return False
    return sum(1 for line in filled if line.is_potential_poem_line) >= 2


def starts_paragraph(
    scanned: Sequence[ScannedLine], starts: List[int], previous: Optional[SentenceToken], current: SentenceToken
) -> bool:
    """
    Первое предложение или пустая строка между строкой, где кончается
    содержимое предыдущего предложения, и строкой текущего.
    """
    if previous is None:
        return True
    prev_line = line_index_at(starts, previous.source_offset + len(previous.text.rstrip()))
    cur_line = line_index_at(starts, current.source_offset)
    return any(line.is_blank for line in scanned[prev_line + 1:cur_line])


def _region(
    previous: Optional[AnnotatedSentence], is_poem: bool, depth: int, text: str
) -> Optional[RegionKind]:
    if previous is not None:
        if previous.in_region == RegionKind.POEM and previous.is_poem and is_poem:
            return RegionKind.POEM
        if previous.in_region == RegionKind.MULTILINE_QUOTE and depth > 0:
            return RegionKind.MULTILINE_QUOTE
    if is_poem:
        return RegionKind.POEM
    if depth > 0:
        return RegionKind.MULTILINE_QUOTE
    if ends_with_colon(text):
        return RegionKind.SPEECH_INTRO
    return None


def annotate_sentences(
    tokens: Sequence[SentenceToken], text: str, language: LanguageConfig
) -> List[AnnotatedSentence]:
    """
    Adds quote depth, verse flag, paragraph starts and region membership.

    ``text`` is the text the tokens were segmented from; quote depth is the
    depth carried into the line on which a sentence starts.
    """
    scanned = scan_lines(text, language)
    starts = line_start_offsets(text)

    annotated: List[AnnotatedSentence] = []
    previous: Optional[AnnotatedSentence] = None
    for token in tokens:
        line_idx = line_index_at(starts, token.source_offset)
        depth = scanned[line_idx - 1].quote_state_after.depth if line_idx > 0 else 0
        last_idx = line_index_at(starts, token.source_offset + max(len(token.text.rstrip("\n")) - 1, 0))
        is_poem = _is_poem(token.text, scanned[line_idx:last_idx + 1], language)
        sentence = AnnotatedSentence(
            text=token.text,
            source_offset=token.source_offset,
            char_count=token.char_count,
            is_complete=token.is_complete,
            quote_depth=depth,
            is_poem=is_poem,
            starts_new_paragraph=starts_paragraph(scanned, starts, previous, token),
            in_region=_region(previous, is_poem, depth, token.text),
        )
        annotated.append(sentence)
        previous = sentence
    return annotated
