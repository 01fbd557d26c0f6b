"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Sequence
from fnmatch import fnmatchcase
from pathlib import Path

from .errors import ValidationError

VCS_DIRS = frozenset({".git", ".svn", ".hg", ".bzr", "CVS", "_darcs", ".arch-params"})

_REGEX_DELIMITERS = "#/~!@%|"


def split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def compile_regexps(patterns: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    """
    Compile path-exclusion regexps.

    A pattern wrapped in a delimiter pair (``#vendor/#``, ``/tests?/``) has the
    delimiters stripped; trailing ``i`` after the closing delimiter makes it
    case-insensitive.
    """
    compiled = []
    for pattern in patterns:
        source, flags = pattern, 0
        if len(pattern) >= 2 and pattern[0] in _REGEX_DELIMITERS:
            delimiter = pattern[0]
            body, sep, modifiers = pattern[1:].rpartition(delimiter)
            if sep and set(modifiers) <= {"i"}:
                source = body
                flags = re.IGNORECASE if modifiers else 0
        try:
            compiled.append(re.compile(source, flags))
        except re.error as e:
            raise ValidationError(f"Invalid exclude regexp '{pattern}': {e}") from e
    return tuple(compiled)


def _name_matches(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(name, pattern) for pattern in patterns)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _dir_excluded(rel: str, exclude: Sequence[str]) -> bool:
    return any(rel == ex or rel.startswith(ex + "/") for ex in exclude)


def _iter_dir(
    rootp: Path,
    names: Sequence[str],
    names_exclude: Sequence[str],
    regexps_exclude: Sequence[re.Pattern[str]],
    exclude: Sequence[str],
) -> Iterable[Path]:
    for dirpath, dirnames, filenames in os.walk(rootp):
        current = Path(dirpath)
        rel_dir = current.relative_to(rootp).as_posix()
        rel_prefix = "" if rel_dir == "." else rel_dir + "/"
        dirnames[:] = sorted(
            d
            for d in dirnames
            if d not in VCS_DIRS
            and not _is_hidden(d)
            and not _dir_excluded(rel_prefix + d, exclude)
        )
        for filename in sorted(filenames):
            if _is_hidden(filename):
                continue
            if not _name_matches(filename, names):
                continue
            if _name_matches(filename, names_exclude):
                continue
            rel = rel_prefix + filename
            if any(r.search(rel) for r in regexps_exclude):
                continue
            p = current / filename
            # Verify path is actually under root (prevent symlink attacks)
            try:
                p.resolve().relative_to(rootp)
            except (OSError, ValueError):
                continue
            if p.is_file():
                yield p


def find_files(
    values: Sequence[str],
    names: Sequence[str],
    *,
    names_exclude: Sequence[str] = (),
    regexps_exclude: Sequence[re.Pattern[str]] = (),
    exclude: Sequence[str] = (),
    max_files: int = 100_000,
) -> list[str]:
    """
    Collect the files selected by ``names`` under every path in ``values``.

    Directories are walked recursively (VCS and hidden entries skipped,
    ``exclude`` directories taken relative to each scanned directory). An
    explicitly listed file is kept only when its name matches ``names``.
    The result is deduplicated and sorted.
    """
    exclude_dirs = tuple(ex.strip("/") for ex in exclude if ex.strip("/"))
    found: set[str] = set()

    for value in values:
        try:
            p = Path(value).expanduser().resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ValidationError(f"Invalid path '{value}': {e}") from e

        if p.is_file():
            if _name_matches(p.name, names) and not _name_matches(
                p.name, names_exclude
            ):
                found.add(str(p))
        elif p.is_dir():
            for fp in _iter_dir(p, names, names_exclude, regexps_exclude, exclude_dirs):
                found.add(str(fp))
                if len(found) > max_files:
                    raise ValidationError(
                        f"File count exceeds limit of {max_files}. "
                        "Use more specific paths or exclude directories."
                    )
        else:
            raise ValidationError(f"Not a file or directory: {value}")

    return sorted(found)
