"""
Offset remapping between the coordinate spaces of the pipeline.

RU: Пересчёт позиций между пространствами координат конвейера.

    original ──(headings removed)──> filtered ──(placeholders)──> protected
             ──(decorations stripped)──> stripped

Every transform is modelled as a sorted list of non-overlapping intervals
with a cumulative shift; the functions below build the backward maps
(later space → earlier space). The pipeline composes them in a fixed order.
"""
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple, TypeVar

from .types import ProtectedContent

OffsetMap = Callable[[int], int]

T = TypeVar("T")


@dataclass(frozen=True)
class RemovedSpan:
    """Range ``[start_offset, end_offset)`` deleted from the earlier text."""

    start_offset: int
    end_offset: int


def identity(offset: int) -> int:
    return offset


def compose(*maps: OffsetMap) -> OffsetMap:
    """``compose(f, g)(x) == g(f(x))``: maps are applied left to right."""

    def _composed(offset: int) -> int:
        for fn in maps:
            offset = fn(offset)
        return offset

    return _composed


def make_removal_map(removed: Iterable[RemovedSpan]) -> OffsetMap:
    """
    Map offsets in the text *after* removal back to the text before removal.

    Removals are walked in original order; a removal applies when its start
    is at or before ``offset + removed_so_far``.
    """
    spans = sorted(removed, key=lambda r: r.start_offset)
    if not spans:
        return identity

    # (original_start, removed length up to and including this span)
    table: List[Tuple[int, int]] = []
    cumulative = 0
    for span in spans:
        cumulative += span.end_offset - span.start_offset
        table.append((span.start_offset, cumulative))

    def _to_original(offset: int) -> int:
        total = 0
        for start, removed_through in table:
            if offset + total >= start:
                total = removed_through
            else:
                break
        return offset + total

    return _to_original


def make_replacement_map(items: Sequence[ProtectedContent]) -> OffsetMap:
    """
    Map offsets in placeholder-substituted text back to the text before
    substitution.

    An offset inside a placeholder collapses to the start of the original
    content (lossy on purpose); an offset after a placeholder is shifted by
    the cumulative ``len(original) - len(placeholder)`` of all earlier ones.
    """
    ordered = sorted(items, key=lambda item: item.start_offset)
    if not ordered:
        return identity

    starts: List[int] = []
    ends: List[int] = []
    originals: List[int] = []
    shifts: List[int] = []
    shift = 0
    for item in ordered:
        protected_start = item.start_offset - shift
        shift += len(item.original) - len(item.placeholder)
        starts.append(protected_start)
        ends.append(protected_start + len(item.placeholder))
        originals.append(item.start_offset)
        shifts.append(shift)

    def _to_filtered(offset: int) -> int:
        idx = bisect_right(starts, offset) - 1
        if idx < 0:
            return offset
        if offset >= ends[idx]:
            return offset + shifts[idx]
        return originals[idx]

    return _to_filtered


def keep_first_non_overlapping(
    candidates: Iterable[T],
    span: Callable[[T], Tuple[int, int]],
) -> List[T]:
    """
    First match wins: walk ``candidates`` in the given order and keep each one
    that does not overlap an already kept interval. Returns the kept items
    sorted by start.
    """
    kept_starts: List[int] = []
    kept_ends: List[int] = []
    kept: List[T] = []

    for cand in candidates:
        start, end = span(cand)
        idx = bisect_right(kept_starts, start)
        if idx > 0 and kept_ends[idx - 1] > start:
            continue
        if idx < len(kept_starts) and kept_starts[idx] < end:
            continue
        kept_starts.insert(idx, start)
        kept_ends.insert(idx, end)
        kept.insert(idx, cand)

    return kept
