from __future__ import annotations

import os
import re
from pathlib import Path

import pytest

from webcpd.errors import ValidationError
from webcpd.scanner import compile_regexps, find_files, split_csv


def _touch(root: Path, *names: str) -> None:
    for name in names:
        p = root / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("x", "utf-8")


def _rel(root: Path, files: list[str]) -> list[str]:
    base = root.resolve()
    return [Path(f).relative_to(base).as_posix() for f in files]


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    _touch(
        tmp_path,
        "index.php",
        "app/Model.php",
        "app/view.html.twig",
        "app/legacy/Old.php",
        "public/app.js",
        "public/app.min.js",
        "public/style.scss",
        "vendor/lib/Lib.php",
        ".git/hooks/pre.php",
        ".cache/x.php",
        ".hidden.php",
        "README.md",
    )
    return tmp_path


def test_split_csv() -> None:
    assert split_csv("*.php, *.js,,") == ("*.php", "*.js")
    assert split_csv("") == ()
    assert split_csv(None) == ()


def test_find_files_by_names(tree: Path) -> None:
    files = find_files([str(tree)], ["*.php"])
    assert _rel(tree, files) == [
        "app/Model.php",
        "app/legacy/Old.php",
        "index.php",
        "vendor/lib/Lib.php",
    ]


def test_find_files_is_sorted_and_deduplicated(tree: Path) -> None:
    files = find_files([str(tree), str(tree / "app")], ["*.php", "*.js"])
    assert files == sorted(set(files))
    assert len(files) == 6


def test_find_files_names_exclude(tree: Path) -> None:
    files = find_files([str(tree)], ["*.js"], names_exclude=["*.min.js"])
    assert _rel(tree, files) == ["public/app.js"]


def test_find_files_exclude_dirs(tree: Path) -> None:
    files = find_files(
        [str(tree)], ["*.php"], exclude=["vendor", "app/legacy/"]
    )
    assert _rel(tree, files) == ["app/Model.php", "index.php"]


def test_find_files_regexps_exclude(tree: Path) -> None:
    regexps = compile_regexps(["#^VENDOR/#i", "legacy"])
    files = find_files([str(tree)], ["*.php"], regexps_exclude=regexps)
    assert _rel(tree, files) == ["app/Model.php", "index.php"]


def test_find_files_twig_suffix(tree: Path) -> None:
    files = find_files([str(tree)], ["*.twig"])
    assert _rel(tree, files) == ["app/view.html.twig"]


def test_explicit_file_must_match_names(tree: Path) -> None:
    target = str(tree / "public" / "app.js")
    assert _rel(tree, find_files([target], ["*.js"])) == ["public/app.js"]
    assert find_files([target], ["*.php"]) == []


def test_invalid_path(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="Invalid path"):
        find_files([str(tmp_path / "nope")], ["*.php"])


def test_max_files_limit(tree: Path) -> None:
    with pytest.raises(ValidationError, match="File count exceeds limit of 2"):
        find_files([str(tree)], ["*.php"], max_files=2)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_outside_root_is_skipped(tmp_path: Path) -> None:
    root = tmp_path / "root"
    outside = tmp_path / "outside"
    _touch(root, "a.php")
    _touch(outside, "b.php")
    try:
        (root / "b.php").symlink_to(outside / "b.php")
    except OSError:
        pytest.skip("symlinks unavailable")
    assert _rel(root, find_files([str(root)], ["*.php"])) == ["a.php"]


def test_compile_regexps_delimiters() -> None:
    [slashed, hashed, plain] = compile_regexps(["/tests?/", "#Fixtures#i", "a|b"])
    assert slashed.pattern == "tests?"
    assert hashed.pattern == "Fixtures"
    assert hashed.flags & re.IGNORECASE
    assert plain.pattern == "a|b"


def test_compile_regexps_keeps_unterminated_pattern() -> None:
    [pattern] = compile_regexps(["/tmp"])
    assert pattern.pattern == "/tmp"


def test_compile_regexps_invalid() -> None:
    with pytest.raises(ValidationError, match="Invalid exclude regexp"):
        compile_regexps(["#(unclosed#"])
