"""
================================================================================
EN: Segmentation pipelines
RU: Конвейеры сегментации
================================================================================

EN: 1. segment_content: split a long document into size-bounded pages
RU: 1. segment_content: делит длинный документ на страницы ограниченного размера

EN: 2. split_str_in_blocks: tag text with sentence-aligned ``^N`` block markers
RU: 2. split_str_in_blocks: размечает текст маркерами блоков ``^N``

EN: Both share the same preparation:
    text → headings removed → markdown protected → (emphasis stripped) →
    sentences → annotated sentences
RU: Оба используют общую подготовку:
    текст → без заголовков → защищённый markdown → (без выделений) →
    предложения → аннотированные предложения

EN: Offsets of a sentence are mapped back stage by stage, in reverse order:
    stripped → protected → filtered → original.
RU: Позиции предложений пересчитываются назад по стадиям в обратном порядке.
================================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .annotator import annotate_sentences
from .block_format import format_blocks, strip_block_markers
from .blocks import group_into_blocks
from .config import BlockMarkerConfig, SegmentationConfig
from .decorations import StrippedText, heal_unclosed_decorations
from .headings import ElementPlacer, InsertableElement, heading_elements, split_heading_lines
from .io import parse_source_name, strip_navigation_backlink
from .language import GERMAN, LanguageConfig
from .offsets import OffsetMap, compose
from .pages import build_pages
from .patterns import ORPHAN_DECORATION_RE, is_horizontal_rule, placeholder_kind
from .protector import ProtectedText
from .regions import group_into_regions
from .sentences import segment_sentences
from .types import (
    AnnotatedSentence,
    BlockSplitIntermediate,
    BlockSplitResult,
    ExtractedHeading,
    PageSegment,
    SegmentationResult,
)

logger = logging.getLogger(__name__)


# ============================================================================
# EN: Shared preparation
# RU: Общая подготовка
# ============================================================================
@dataclass
class PreparedDocument:
    """
    All coordinate spaces of one call.

    ``sentences`` carry offsets in ``segmented_text`` until ``finalize_sentences`` maps
    them back to ``filtered`` space; ``to_original`` maps filtered → original.
    """

    original: str
    headings: List[ExtractedHeading]
    protected: ProtectedText
    stripped: Optional[StrippedText]
    sentences: List[AnnotatedSentence]
    to_original: OffsetMap

    @property
    def segmented_text(self) -> str:
        return self.stripped.text if self.stripped is not None else self.protected.text

    @property
    def segmented_to_filtered(self) -> OffsetMap:
        if self.stripped is None:
            return self.protected.to_source
        return compose(self.stripped.to_source, self.protected.to_source)

    @property
    def segmented_to_original(self) -> OffsetMap:
        return compose(self.segmented_to_filtered, self.to_original)


def prepare_document(text: str, language: LanguageConfig, strip_decorations: bool) -> PreparedDocument:
    headings, filtered, to_original = split_heading_lines(text, language)
    protected = ProtectedText(filtered, language)
    stripped = StrippedText(protected.text) if strip_decorations else None
    segmented = stripped.text if stripped is not None else protected.text

    tokens = segment_sentences(segmented, language)
    sentences = annotate_sentences(tokens, segmented, language)
    logger.debug(
        "Подготовка: %d заголовков, %d защищённых фрагментов, %d снятых выделений, %d предложений",
        len(headings),
        len(protected.items),
        len(stripped.spans) if stripped is not None else 0,
        len(sentences),
    )
    return PreparedDocument(
        original=text,
        headings=headings,
        protected=protected,
        stripped=stripped,
        sentences=sentences,
        to_original=to_original,
    )


def split_out_elements(
    doc: PreparedDocument,
    sentences: Sequence[AnnotatedSentence],
    include_code_blocks: bool,
) -> Tuple[List[AnnotatedSentence], List[InsertableElement]]:
    """
    Removes standalone horizontal rules (and code blocks) from the sentence
    stream; they come back through the element placer. The sentence after a
    removed element always starts a new paragraph.

    A raw ``***`` only counts as a rule when it starts a line; elsewhere it is
    the closer of an emphasis span.
    """
    to_original = doc.segmented_to_original
    segmented = doc.segmented_text
    kept: List[AnnotatedSentence] = []
    elements: List[InsertableElement] = heading_elements(doc.headings)
    force_paragraph = False
    for sentence in sentences:
        trimmed = sentence.text.strip()
        kind = placeholder_kind(trimmed)
        at_line_start = sentence.source_offset == 0 or segmented[sentence.source_offset - 1] == "\n"
        if kind == "HR" or (at_line_start and is_horizontal_rule(trimmed)):
            elements.append(InsertableElement("hr", doc.protected.restore(trimmed), to_original(sentence.source_offset)))
            force_paragraph = True
            continue
        if kind == "CB" and include_code_blocks:
            elements.append(InsertableElement("code", doc.protected.restore(trimmed), to_original(sentence.source_offset)))
            force_paragraph = True
            continue
        if force_paragraph and not sentence.starts_new_paragraph:
            sentence = replace(sentence, starts_new_paragraph=True)
        force_paragraph = False
        kept.append(sentence)
    return kept, elements


def merge_orphan_decorations(sentences: Sequence[AnnotatedSentence]) -> List[AnnotatedSentence]:
    """``Er ging.`` + ``*`` → ``Er ging.*``"""
    merged: List[AnnotatedSentence] = []
    for sentence in sentences:
        trimmed = sentence.text.strip()
        if merged and ORPHAN_DECORATION_RE.match(trimmed):
            prev = merged[-1]
            tail = sentence.text[len(sentence.text.rstrip()):]
            text = prev.text.rstrip() + trimmed + tail
            merged[-1] = replace(prev, text=text, char_count=len(text))
            continue
        merged.append(sentence)
    return merged


def finalize_sentences(doc: PreparedDocument, sentences: Sequence[AnnotatedSentence]) -> List[AnnotatedSentence]:
    """Restores protected content and moves offsets to filtered space."""
    to_filtered = doc.segmented_to_filtered
    out: List[AnnotatedSentence] = []
    for sentence in sentences:
        text = doc.protected.restore(sentence.text)
        out.append(
            replace(
                sentence,
                text=text,
                char_count=len(text),
                source_offset=to_filtered(sentence.source_offset),
            )
        )
    return out


# ============================================================================
# EN: Pages
# RU: Страницы
# ============================================================================
def segment_content(
    content: str,
    source_name: str,
    config: Optional[SegmentationConfig] = None,
    language: Optional[LanguageConfig] = None,
) -> SegmentationResult:
    """
    Split ``content`` into pages.

    A leading navigation backlink is ignored. Bodies shorter than
    ``min_content_size_chars`` come back untouched as a single page with
    ``too_short_to_split=True``.
    """
    config = config or SegmentationConfig()
    language = language or GERMAN
    info = parse_source_name(source_name)

    body = strip_navigation_backlink(content)
    if len(body.strip()) < config.min_content_size_chars:
        logger.debug("Документ %s слишком короткий: %d символов", source_name, len(body.strip()))
        return SegmentationResult(
            pages=[PageSegment(content=content, page_index=0, char_count=len(content))],
            source_core_name=info.core_name,
            source_suffix=info.suffix,
            too_short_to_split=True,
        )

    doc = prepare_document(body, language, strip_decorations=False)
    sentences = merge_orphan_decorations(doc.sentences)
    sentences, elements = split_out_elements(doc, sentences, include_code_blocks=False)
    sentences = finalize_sentences(doc, sentences)

    groups = group_into_regions(sentences)
    placer = ElementPlacer(elements)
    pages = build_pages(groups, config, placer, doc.to_original)
    logger.debug("%s: %d групп → %d страниц", source_name, len(groups), len(pages))

    return SegmentationResult(
        pages=pages,
        source_core_name=info.core_name,
        source_suffix=info.suffix,
    )


# ============================================================================
# EN: Blocks
# RU: Блоки
# ============================================================================
def split_str_in_blocks_with_intermediate(
    text: str,
    start_index: int = 0,
    config: Optional[BlockMarkerConfig] = None,
) -> BlockSplitIntermediate:
    """Как ``split_str_in_blocks``, но дополнительно возвращает сами блоки."""
    if not text.strip():
        return BlockSplitIntermediate(marked_text="", block_count=0)
    config = config or BlockMarkerConfig()

    source = heal_unclosed_decorations(strip_block_markers(text))
    doc = prepare_document(source, config.language, strip_decorations=True)
    sentences = doc.sentences
    if doc.stripped is not None:
        sentences = doc.stripped.restore(sentences)
    sentences = merge_orphan_decorations(sentences)
    sentences, elements = split_out_elements(doc, sentences, include_code_blocks=True)
    sentences = finalize_sentences(doc, sentences)

    blocks = group_into_blocks(sentences, config)
    marked, count = format_blocks(blocks, ElementPlacer(elements), doc.to_original, start_index)
    logger.debug("Блоки: %d предложений → %d блоков (с %d)", len(sentences), count, start_index)
    return BlockSplitIntermediate(marked_text=marked, block_count=count, blocks=blocks)


def split_str_in_blocks(
    text: str,
    start_index: int = 0,
    config: Optional[BlockMarkerConfig] = None,
) -> BlockSplitResult:
    """
    Tag ``text`` with `` ^N`` markers, N = start_index, start_index + 1, ...

    Empty or whitespace-only input gives ``("", 0)``.
    """
    result = split_str_in_blocks_with_intermediate(text, start_index, config)
    return BlockSplitResult(marked_text=result.marked_text, block_count=result.block_count)
