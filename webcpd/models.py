"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .contracts import DEFAULT_MIN_LINES, DEFAULT_MIN_TOKENS


class TokenKind(str, Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: str
    text: str
    line: int
    filepath: str

    @property
    def identity(self) -> tuple[str, str]:
        return self.kind.value, self.value


@dataclass(frozen=True, slots=True)
class TokenStream:
    filepath: str
    tokens: tuple[Token, ...]
    line_count: int

    def __len__(self) -> int:
        return len(self.tokens)

    def identities(self) -> list[tuple[str, str]]:
        return [t.identity for t in self.tokens]


@dataclass(frozen=True, slots=True)
class Occurrence:
    """One physical location of a duplicated fragment.

    ``start``/``end`` delimit the half-open token range in the file's stream,
    ``start_line``/``end_line`` the inclusive source line range.
    """

    filepath: str
    start_line: int
    end_line: int
    start: int
    end: int

    @property
    def lines(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def tokens(self) -> int:
        return self.end - self.start

    def overlaps(self, other: Occurrence) -> bool:
        return (
            self.filepath == other.filepath
            and self.start < other.end
            and other.start < self.end
        )

    def contains(self, other: Occurrence) -> bool:
        return (
            self.filepath == other.filepath
            and self.start <= other.start
            and other.end <= self.end
        )


@dataclass(frozen=True, slots=True)
class ClonePair:
    left: Occurrence
    right: Occurrence

    @property
    def tokens(self) -> int:
        return self.left.tokens

    @property
    def lines(self) -> int:
        return min(self.left.lines, self.right.lines)


@dataclass(frozen=True, slots=True)
class Clone:
    tokens: int
    lines: int
    occurrences: tuple[Occurrence, ...]
    fragment: str = ""

    @property
    def first(self) -> Occurrence:
        return self.occurrences[0]


@dataclass(frozen=True, slots=True)
class CloneReport:
    group: str
    language: str
    clones: tuple[Clone, ...] = ()
    file_count: int = 0
    line_count: int = 0

    @property
    def duplicated_lines(self) -> int:
        return sum(c.lines * (len(c.occurrences) - 1) for c in self.clones)

    @property
    def files_with_clones(self) -> int:
        return len({o.filepath for c in self.clones for o in c.occurrences})


@dataclass(frozen=True, slots=True)
class DetectionConfig:
    min_lines: int = DEFAULT_MIN_LINES
    min_tokens: int = DEFAULT_MIN_TOKENS
    fuzzy: bool = False


@dataclass(slots=True)
class GroupResult:
    """Outcome of one language group run: its report plus skipped files."""

    report: CloneReport
    files_analyzed: int = 0
    failed_files: list[str] = field(default_factory=list)
    parallel_error: str | None = None
