from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from webcpd.models import Token, TokenKind, TokenStream

# Ten lines, 80 tokens once the open tag is dropped.
PHP_BODY = (
    "function summarize($items, $limit)\n"
    "{\n"
    "    $total = 0; $count = 0; $skipped = 0;\n"
    "    foreach ($items as $item) {\n"
    "        if ($item > $limit) {\n"
    "            $total = $total + $item;\n"
    "            $count = $count + 1;\n"
    "        } else { $skipped = $skipped + 1; }\n"
    "    } $average = $count > 0 ? $total / $count : 0;\n"
    "    return array($total, $count, $skipped); }\n"
)
PHP_BODY_TOKENS = 80
PHP_BODY_LINES = 10

PHP_BODY_RENAMED = (
    "function summarize($rows, $max)\n"
    "{\n"
    "    $sum = 0; $n = 0; $rest = 0;\n"
    "    foreach ($rows as $row) {\n"
    "        if ($row > $max) {\n"
    "            $sum = $sum + $row;\n"
    "            $n = $n + 1;\n"
    "        } else { $rest = $rest + 1; }\n"
    "    } $mean = $n > 0 ? $sum / $n : 0;\n"
    "    return array($sum, $n, $rest); }\n"
)


def write_php_pair(root: Path, *, renamed: bool = False) -> tuple[Path, Path]:
    """Two files sharing the body: a.php at lines 2-11, b.php at lines 3-12."""
    root.mkdir(parents=True, exist_ok=True)
    a = root / "a.php"
    b = root / "b.php"
    a.write_text("<?php\n" + PHP_BODY, "utf-8")
    b.write_text(
        "<?php\n$x = 1;\n" + (PHP_BODY_RENAMED if renamed else PHP_BODY), "utf-8"
    )
    return a, b


def make_stream(
    filepath: str,
    values: Sequence[str],
    *,
    per_line: int = 1,
    kind: TokenKind = TokenKind.IDENTIFIER,
) -> TokenStream:
    """Synthetic stream: ``per_line`` tokens on each consecutive line."""
    tokens = tuple(
        Token(
            kind=kind,
            value=value,
            text=value,
            line=1 + i // per_line,
            filepath=filepath,
        )
        for i, value in enumerate(values)
    )
    line_count = tokens[-1].line if tokens else 0
    return TokenStream(filepath=filepath, tokens=tokens, line_count=line_count)


def words(prefix: str, count: int) -> list[str]:
    return [f"{prefix}{i}" for i in range(count)]
