"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .index import FingerprintIndex
from .models import Clone, ClonePair, Occurrence

FragmentLoader = Callable[[Occurrence], str]


class _UnionFind:
    __slots__ = ("parent",)

    def __init__(self) -> None:
        self.parent: dict[Occurrence, Occurrence] = {}

    def find(self, item: Occurrence) -> Occurrence:
        root = self.parent.setdefault(item, item)
        while self.parent[root] != root:
            root = self.parent[root]
        while item != root:
            parent = self.parent[item]
            self.parent[item] = root
            item = parent
        return root

    def union(self, a: Occurrence, b: Occurrence) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return
        # lower occurrence becomes the root so families stay deterministic
        if _occurrence_key(root_b) < _occurrence_key(root_a):
            root_a, root_b = root_b, root_a
        self.parent[root_b] = root_a

    def groups(self) -> list[list[Occurrence]]:
        grouped: dict[Occurrence, list[Occurrence]] = {}
        for item in self.parent:
            grouped.setdefault(self.find(item), []).append(item)
        return list(grouped.values())


@dataclass(slots=True)
class _Family:
    members: list[Occurrence]

    @property
    def tokens(self) -> int:
        return self.members[0].tokens


def _occurrence_key(o: Occurrence) -> tuple[str, int, int]:
    return o.filepath, o.start, o.end


def _family_key(family: _Family) -> tuple[int, str, int]:
    first = family.members[0]
    return -family.tokens, first.filepath, first.start_line


def _families(pairs: Iterable[ClonePair]) -> list[_Family]:
    uf = _UnionFind()
    for pair in pairs:
        uf.union(pair.left, pair.right)
    families = [
        _Family(sorted(group, key=_occurrence_key))
        for group in uf.groups()
        if len(group) > 1
    ]
    families.sort(key=_family_key)
    return families


class _Claims:
    """Occurrences already owned by accepted families, per file."""

    __slots__ = ("_by_file",)

    def __init__(self) -> None:
        self._by_file: dict[str, list[tuple[Occurrence, int]]] = {}

    def hit(self, occurrence: Occurrence) -> tuple[Occurrence, int] | None:
        for owned, family_index in self._by_file.get(occurrence.filepath, ()):
            if owned.overlaps(occurrence):
                return owned, family_index
        return None

    def claim(self, occurrence: Occurrence, family_index: int) -> None:
        self._by_file.setdefault(occurrence.filepath, []).append(
            (occurrence, family_index)
        )

    def replace(self, family_index: int, members: list[Occurrence]) -> None:
        for filepath, owned in self._by_file.items():
            self._by_file[filepath] = [
                entry for entry in owned if entry[1] != family_index
            ]
        for occurrence in members:
            self.claim(occurrence, family_index)


def _trim(
    members: Iterable[Occurrence],
    offset: int,
    length: int,
    index: FingerprintIndex,
) -> list[Occurrence]:
    return [
        index.locate(m.filepath, m.start + offset, m.start + offset + length)
        for m in members
    ]


def resolve_overlaps(
    families: list[_Family],
    *,
    index: FingerprintIndex,
    min_lines: int,
) -> list[_Family]:
    """
    Accept families largest first; each occurrence belongs to one family.

    An occurrence overlapping an accepted one is dropped from its (later)
    family. When the two share at least one window, both families hold the
    same tokens over that shared span: the accepted family is trimmed to it
    and absorbs the later family's remaining members, trimmed alike. A later
    family lying fully inside an accepted occurrence is the simplest case.
    """
    accepted: list[_Family] = []
    claims = _Claims()

    for family in families:
        kept: list[Occurrence] = []
        absorb: tuple[int, int, int, int] | None = None
        for occurrence in family.members:
            if any(k.overlaps(occurrence) for k in kept):
                continue
            hit = claims.hit(occurrence)
            if hit is None:
                kept.append(occurrence)
                continue
            owned, family_index = hit
            lo = max(owned.start, occurrence.start)
            shared = min(owned.end, occurrence.end) - lo
            if absorb is None and shared >= index.min_tokens:
                # (family, offset in accepted, offset in later, length)
                absorb = (
                    family_index,
                    lo - owned.start,
                    lo - occurrence.start,
                    shared,
                )

        if absorb is not None and kept:
            family_index, outer_offset, inner_offset, length = absorb
            target = accepted[family_index]
            trimmed = [
                *_trim(target.members, outer_offset, length, index),
                *_trim(kept, inner_offset, length, index),
            ]
            if all(o.lines >= min_lines for o in trimmed):
                target.members = sorted(trimmed, key=_occurrence_key)
                claims.replace(family_index, target.members)
                continue

        if len(kept) > 1:
            accepted.append(_Family(kept))
            for occurrence in kept:
                claims.claim(occurrence, len(accepted) - 1)

    return accepted


def aggregate(
    pairs: Iterable[ClonePair],
    *,
    index: FingerprintIndex,
    min_lines: int,
    fragment_loader: FragmentLoader | None = None,
) -> list[Clone]:
    """
    Merge clone pairs of one language group into clones.

    Occurrences linked by any pair land in one clone (union-find on exact
    occurrence identity). Clones come out ordered by descending token count,
    then by path and line of their first occurrence.
    """
    families = resolve_overlaps(_families(pairs), index=index, min_lines=min_lines)

    clones: list[Clone] = []
    for family in families:
        occurrences = tuple(
            sorted(family.members, key=lambda o: (o.filepath, o.start_line, o.start))
        )
        clones.append(
            Clone(
                tokens=family.tokens,
                lines=min(o.lines for o in occurrences),
                occurrences=occurrences,
                fragment=(
                    fragment_loader(occurrences[0])
                    if fragment_loader is not None
                    else ""
                ),
            )
        )

    clones.sort(key=lambda c: (-c.tokens, c.first.filepath, c.first.start_line))
    return clones
