"""
Block grouping for ``^N`` reference markers.

RU: Группировка предложений в блоки по бюджету слов. Состояние группировщика
явное: ``Idle`` (ничего не удерживается), ``HoldingShort`` (короткое
предложение ждёт решения: слиться вперёд или назад) и ``HoldingIntro``
(короткий ввод прямой речи ждёт следующее предложение).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from .config import BlockMarkerConfig
from .patterns import count_words, ends_with_colon, is_standalone_url
from .types import AnnotatedSentence, Block


@dataclass
class Idle:
    pass


@dataclass
class HoldingShort:
    pending: Block


@dataclass
class HoldingIntro:
    intro: Block


GrouperState = Union[Idle, HoldingShort, HoldingIntro]


def new_block(sentence: AnnotatedSentence) -> Block:
    return Block(sentences=[sentence], word_count=count_words(sentence.text), char_count=sentence.char_count)


def extend_block(block: Block, sentences: Sequence[AnnotatedSentence]) -> Block:
    for sentence in sentences:
        block.sentences.append(sentence)
        block.word_count += count_words(sentence.text)
        block.char_count += sentence.char_count
    return block


class BlockGrouper:
    """
    Word-budget grouping of annotated sentences.

    Precedence per sentence:
      1. a new paragraph closes the current block (resolving a held short sentence);
      2. a quoted sentence extends the current block;
      3. a short colon-terminated sentence opens a speech-intro block;
      4. a standalone URL gets its own block;
      5. a short sentence is held and merges forward, else backward, else stands alone;
      6. anything else starts a new block.
    """

    def __init__(self, config: BlockMarkerConfig):
        self.config = config
        self.blocks: List[Block] = []
        self.current: Optional[Block] = None
        self.state: GrouperState = Idle()

    # -- helpers ---------------------------------------------------------------
    def _is_short(self, words: int) -> bool:
        return words <= self.config.short_sentence_words

    def _fits(self, *word_counts: int) -> bool:
        return sum(word_counts) <= self.config.max_merged_words

    def _push_current(self) -> None:
        if self.current is not None:
            self.blocks.append(self.current)
            self.current = None

    def _resolve_pending_backward(self) -> None:
        """Held short sentence joins the current block, or stands alone."""
        if not isinstance(self.state, HoldingShort):
            return
        pending = self.state.pending
        self.state = Idle()
        if self.current is not None and self._fits(self.current.word_count, pending.word_count):
            extend_block(self.current, pending.sentences)
            return
        self._push_current()
        self.current = pending

    def _flush_intro(self) -> None:
        if isinstance(self.state, HoldingIntro):
            self.blocks.append(self.state.intro)
            self.state = Idle()

    # -- transitions -----------------------------------------------------------
    def feed(self, sentence: AnnotatedSentence) -> None:
        words = count_words(sentence.text)
        in_quote = sentence.quote_depth > 0

        if sentence.starts_new_paragraph:
            self._resolve_pending_backward()
            self._flush_intro()
            self._push_current()

        if isinstance(self.state, HoldingShort):
            pending = self.state.pending
            if self._fits(pending.word_count, words):
                self.state = Idle()
                self._push_current()
                self.current = extend_block(pending, [sentence])
                if not in_quote:
                    self._push_current()
                return
            self._resolve_pending_backward()

        if isinstance(self.state, HoldingIntro):
            intro = self.state.intro
            self.state = Idle()
            extend_block(intro, [sentence])
            intro.pending_speech_intro = False
            self.current = intro
            if not in_quote:
                self._push_current()
            return

        if in_quote:
            if self.current is None:
                self.current = new_block(sentence)
            else:
                extend_block(self.current, [sentence])
            return

        if ends_with_colon(sentence.text) and self._is_short(words):
            self._push_current()
            intro = new_block(sentence)
            intro.pending_speech_intro = True
            self.state = HoldingIntro(intro)
            return

        if is_standalone_url(sentence.text):
            self._push_current()
            self.blocks.append(new_block(sentence))
            return

        if self._is_short(words):
            self.state = HoldingShort(new_block(sentence))
            return

        self._push_current()
        self.current = new_block(sentence)

    def finish(self) -> List[Block]:
        self._resolve_pending_backward()
        self._flush_intro()
        self._push_current()
        return self.blocks


def group_into_blocks(sentences: Sequence[AnnotatedSentence], config: BlockMarkerConfig) -> List[Block]:
    grouper = BlockGrouper(config)
    for sentence in sentences:
        grouper.feed(sentence)
    return grouper.finish()
