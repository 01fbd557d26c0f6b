"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .deadline import NO_DEADLINE, Deadline
from .fingerprint import identity_ids, window_hashes
from .models import Occurrence, TokenStream

# (stream index, token position of the window start)
WindowRef = tuple[int, int]

_DEADLINE_CHECK_EVERY = 4096


class FingerprintIndex(Mapping[int, Sequence[Occurrence]]):
    """Map window fingerprints to every place the window occurs.

    Windows are exactly ``min_tokens`` tokens long. Buckets keep insertion
    order, i.e. stream order then token position. A bucket may hold unrelated
    windows on a hash collision; callers verify token identity.
    """

    __slots__ = ("_buckets", "_paths", "identities", "ids", "min_tokens", "streams")

    def __init__(self, min_tokens: int) -> None:
        self.min_tokens = min_tokens
        self.streams: list[TokenStream] = []
        self.identities: list[list[tuple[str, str]]] = []
        self.ids: list[list[int]] = []
        self._buckets: dict[int, list[WindowRef]] = {}
        self._paths: dict[str, int] = {}

    def add(self, stream: TokenStream, *, deadline: Deadline = NO_DEADLINE) -> int:
        stream_index = len(self.streams)
        identities = stream.identities()
        ids = identity_ids(identities)
        self.streams.append(stream)
        self._paths.setdefault(stream.filepath, stream_index)
        self.identities.append(identities)
        self.ids.append(ids)

        buckets = self._buckets
        for pos, fp in window_hashes(ids, self.min_tokens):
            if pos % _DEADLINE_CHECK_EVERY == 0:
                deadline.check()
            bucket = buckets.get(fp)
            if bucket is None:
                buckets[fp] = [(stream_index, pos)]
            else:
                bucket.append((stream_index, pos))
        return stream_index

    def merge(self, other: FingerprintIndex) -> None:
        if other.min_tokens != self.min_tokens:
            raise ValueError("Cannot merge indexes built with different window sizes")
        offset = len(self.streams)
        self.streams.extend(other.streams)
        self.identities.extend(other.identities)
        self.ids.extend(other.ids)
        for filepath, stream_index in other._paths.items():
            self._paths.setdefault(filepath, stream_index + offset)
        for fp, refs in other._buckets.items():
            self._buckets.setdefault(fp, []).extend(
                (stream_index + offset, pos) for stream_index, pos in refs
            )

    def occurrence(self, stream_index: int, start: int, end: int) -> Occurrence:
        tokens = self.streams[stream_index].tokens
        return Occurrence(
            filepath=self.streams[stream_index].filepath,
            start_line=tokens[start].line,
            end_line=tokens[end - 1].line,
            start=start,
            end=end,
        )

    def locate(self, filepath: str, start: int, end: int) -> Occurrence:
        return self.occurrence(self._paths[filepath], start, end)

    def windows(self, fingerprint: int) -> list[WindowRef]:
        return self._buckets.get(fingerprint, [])

    def candidate_buckets(self) -> Iterator[list[WindowRef]]:
        for refs in self._buckets.values():
            if len(refs) > 1:
                yield refs

    def __getitem__(self, fingerprint: int) -> list[Occurrence]:
        refs = self._buckets[fingerprint]
        return [
            self.occurrence(stream_index, pos, pos + self.min_tokens)
            for stream_index, pos in refs
        ]

    def __iter__(self) -> Iterator[int]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)


def build_index(
    streams: Iterable[TokenStream],
    min_tokens: int,
    *,
    deadline: Deadline = NO_DEADLINE,
) -> FingerprintIndex:
    index = FingerprintIndex(min_tokens)
    for stream in streams:
        deadline.check()
        index.add(stream, deadline=deadline)
    return index
