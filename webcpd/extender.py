"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, field

from .deadline import NO_DEADLINE, Deadline
from .index import FingerprintIndex, WindowRef
from .models import ClonePair

Span = tuple[int, int, int]

_DEADLINE_CHECK_EVERY = 1024


def extend_match(
    left: Sequence[Hashable],
    right: Sequence[Hashable],
    left_pos: int,
    right_pos: int,
    length: int,
    *,
    same_stream: bool = False,
) -> Span | None:
    """
    Confirm that two token ranges are equal and grow them to maximal size.

    Returns ``(left_start, right_start, length)`` or None when the ranges
    differ (fingerprint collision) or would match a range against itself.
    With ``same_stream`` the two ranges never grow into each other, and
    ``left_pos`` must precede ``right_pos``.
    """
    if same_stream and right_pos < left_pos + length:
        return None
    if left[left_pos : left_pos + length] != right[right_pos : right_pos + length]:
        return None

    left_start, right_start = left_pos, right_pos
    left_end = left_pos + length

    while (
        left_start > 0
        and right_start > 0
        and left[left_start - 1] == right[right_start - 1]
        and (not same_stream or left_end < right_start)
    ):
        left_start -= 1
        right_start -= 1

    right_end = right_start + (left_end - left_start)
    while (
        left_end < len(left)
        and right_end < len(right)
        and left[left_end] == right[right_end]
        and (not same_stream or left_end < right_start)
    ):
        left_end += 1
        right_end += 1

    return left_start, right_start, left_end - left_start


@dataclass(slots=True)
class CloneExtender:
    """Turn candidate window pairs of one index into maximal clone pairs.

    Every emitted extension is remembered per (left stream, right stream,
    diagonal), so the remaining windows of an already extended run are
    skipped without touching their tokens.
    """

    index: FingerprintIndex
    min_lines: int
    _covered: dict[tuple[int, int, int], list[tuple[int, int]]] = field(
        default_factory=dict
    )

    def extend(self, first: WindowRef, second: WindowRef) -> ClonePair | None:
        (left_stream, left_pos), (right_stream, right_pos) = sorted((first, second))
        window = self.index.min_tokens
        same_stream = left_stream == right_stream
        if same_stream and right_pos < left_pos + window:
            return None

        key = (left_stream, right_stream, right_pos - left_pos)
        covered = self._covered.get(key)
        if covered is not None:
            for start, end in covered:
                if start <= left_pos and left_pos + window <= end:
                    return None

        identities = self.index.identities
        span = extend_match(
            identities[left_stream],
            identities[right_stream],
            left_pos,
            right_pos,
            window,
            same_stream=same_stream,
        )
        if span is None:
            return None

        left_start, right_start, length = span
        self._covered.setdefault(key, []).append((left_start, left_start + length))

        left = self.index.occurrence(left_stream, left_start, left_start + length)
        right = self.index.occurrence(right_stream, right_start, right_start + length)
        if left.lines < self.min_lines or right.lines < self.min_lines:
            return None
        return ClonePair(left=left, right=right)


def _token_groups(
    index: FingerprintIndex, refs: list[WindowRef]
) -> Iterable[list[WindowRef]]:
    """Split a bucket into groups of windows holding the same tokens."""
    if len(refs) == 2:
        return (refs,)
    window = index.min_tokens
    ids = index.ids
    groups: dict[tuple[int, ...], list[WindowRef]] = {}
    for stream_index, pos in refs:
        key = tuple(ids[stream_index][pos : pos + window])
        groups.setdefault(key, []).append((stream_index, pos))
    return groups.values()


def find_clone_pairs(
    index: FingerprintIndex,
    min_lines: int,
    *,
    deadline: Deadline = NO_DEADLINE,
) -> list[ClonePair]:
    """
    Pair every window of a bucket with the first window holding the same
    tokens (skipping windows that overlap it in the same stream) and extend
    each pair. Families sharing an anchor are closed transitively by the
    aggregator, so no bucket is compared pairwise. Windows that only share
    a fingerprint land in separate groups, each with its own anchor.
    """
    extender = CloneExtender(index=index, min_lines=min_lines)
    window = index.min_tokens
    pairs: list[ClonePair] = []
    for n, refs in enumerate(index.candidate_buckets()):
        if n % _DEADLINE_CHECK_EVERY == 0:
            deadline.check()
        for group in _token_groups(index, refs):
            anchor = group[0]
            for ref in group[1:]:
                if ref[0] == anchor[0] and ref[1] < anchor[1] + window:
                    continue
                pair = extender.extend(anchor, ref)
                if pair is not None:
                    pairs.append(pair)
    return pairs
