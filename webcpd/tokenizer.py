"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Final

from .errors import StrategyNotFoundError, TokenizeError
from .models import Token, TokenKind, TokenStream


class Language(str, Enum):
    PHP = "php"
    TWIG = "twig"
    JS = "js"
    CSS = "css"
    SCSS = "scss"


EXTENSION_LANGUAGES: Final[Mapping[str, Language]] = MappingProxyType(
    {
        "php": Language.PHP,
        "phtml": Language.PHP,
        "inc": Language.PHP,
        "twig": Language.TWIG,
        "js": Language.JS,
        "mjs": Language.JS,
        "cjs": Language.JS,
        "jsx": Language.JS,
        "css": Language.CSS,
        "less": Language.CSS,
        "scss": Language.SCSS,
    }
)

# Group names with fixed meaning across all lexicons.
_SKIP_GROUPS = frozenset({"skip", "comment"})
_LITERAL_GROUPS = frozenset({"string", "number", "text", "url", "hash"})
_KEYWORD_GROUPS = frozenset({"keyword", "word", "attr"})
_IDENTIFIER_GROUPS = frozenset({"variable", "custom"})
_OPERATOR_GROUPS = frozenset({"operator", "other"})


def _alternation(symbols: Iterable[str]) -> str:
    return "|".join(re.escape(s) for s in sorted(set(symbols), key=len, reverse=True))


def _lexicon(*groups: tuple[str, str]) -> re.Pattern[str]:
    return re.compile(
        "|".join(f"(?P<{name}>{body})" for name, body in groups),
        re.DOTALL | re.MULTILINE,
    )


@dataclass(frozen=True, slots=True)
class _Mode:
    pattern: re.Pattern[str]
    transitions: Mapping[str, str]


@dataclass(frozen=True, slots=True)
class TokenizerStrategy:
    """Regex lexer for one language.

    Every mode is a single alternation of named groups tried at the current
    offset. Groups listed in a mode's ``transitions`` switch the lexer into
    another mode (PHP code vs. inline HTML, Twig tags vs. markup).
    """

    language: Language
    modes: Mapping[str, _Mode]
    initial_mode: str
    keywords: frozenset[str]
    placeholders: Mapping[str, str]
    keywords_ignore_case: bool = False
    emit_delimiters: bool = True

    def tokenize(
        self, content: bytes, filepath: str, *, fuzzy: bool = False
    ) -> TokenStream:
        text = decode_source(content)
        tokens = tuple(self.iter_tokens(text, filepath, fuzzy=fuzzy))
        return TokenStream(
            filepath=filepath,
            tokens=tokens,
            line_count=len(text.splitlines()),
        )

    def iter_tokens(
        self, text: str, filepath: str, *, fuzzy: bool = False
    ) -> Iterator[Token]:
        mode = self.modes[self.initial_mode]
        pos = 0
        line = 1
        size = len(text)
        while pos < size:
            match = mode.pattern.match(text, pos)
            if match is None or match.end() == pos:
                line += text[pos] == "\n"
                pos += 1
                continue

            group = match.lastgroup or "other"
            lexeme = match.group()
            next_mode = mode.transitions.get(group)
            if group not in _SKIP_GROUPS and (
                next_mode is None or self.emit_delimiters
            ):
                yield self._make_token(group, lexeme, line, filepath, fuzzy)

            line += lexeme.count("\n")
            pos = match.end()
            if next_mode is not None:
                mode = self.modes[next_mode]

    def _make_token(
        self, group: str, lexeme: str, line: int, filepath: str, fuzzy: bool
    ) -> Token:
        kind, value = self._classify(group, lexeme)
        if fuzzy and kind is TokenKind.IDENTIFIER:
            value = self.placeholders.get(group, self.placeholders["name"])
        return Token(
            kind=kind, value=value, text=lexeme, line=line, filepath=filepath
        )

    def _classify(self, group: str, lexeme: str) -> tuple[TokenKind, str]:
        if group == "name":
            folded = lexeme.lower() if self.keywords_ignore_case else lexeme
            if folded in self.keywords:
                return TokenKind.KEYWORD, folded
            return TokenKind.IDENTIFIER, lexeme
        if group in _IDENTIFIER_GROUPS:
            return TokenKind.IDENTIFIER, lexeme
        if group == "tag":
            return TokenKind.KEYWORD, lexeme.lower()
        if group in _KEYWORD_GROUPS:
            if lexeme.startswith("@"):
                return TokenKind.KEYWORD, lexeme.lower()
            return TokenKind.KEYWORD, lexeme
        if group in _LITERAL_GROUPS:
            return TokenKind.LITERAL, lexeme
        if group in _OPERATOR_GROUPS:
            return TokenKind.OPERATOR, lexeme
        # punctuation and mode delimiters; "{{-" and "-}}" equal "{{" and "}}"
        return TokenKind.PUNCTUATION, lexeme.strip().strip("-~")


def decode_source(content: bytes) -> str:
    if b"\x00" in content:
        raise TokenizeError("Binary content")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise TokenizeError(f"Encoding error: {e}") from e


# =========================
# PHP
# =========================

PHP_KEYWORDS: Final = frozenset(
    {
        "abstract", "and", "array", "as", "break", "callable", "case", "catch",
        "class", "clone", "const", "continue", "declare", "default", "do",
        "echo", "else", "elseif", "empty", "enddeclare", "endfor",
        "endforeach", "endif", "endswitch", "endwhile", "enum", "eval", "exit",
        "die", "extends", "false", "final", "finally", "fn", "for", "foreach",
        "function", "global", "goto", "if", "implements", "include",
        "include_once", "instanceof", "insteadof", "interface", "isset",
        "list", "match", "namespace", "new", "null", "or", "print", "private",
        "protected", "public", "readonly", "require", "require_once", "return",
        "self", "parent", "static", "switch", "throw", "trait", "true", "try",
        "unset", "use", "var", "while", "xor", "yield",
    }
)

_PHP_OPERATORS = (
    "<=>", "**=", "...", "<<=", ">>=", "===", "!==", "??=", "?->", "<<", ">>",
    "<=", ">=", "==", "!=", "<>", "&&", "||", "??", "++", "--", "+=", "-=",
    "*=", "/=", ".=", "%=", "&=", "|=", "^=", "->", "=>", "::", "**",
    "-", "+", "*", "/", "%", "=", "<", ">", "!", "&", "|", "^", "~", "?", ":",
    ".", "@",
)

_PHP_HEREDOC = (
    r"<<<[ \t]*(?P<hd_quote>[\"']?)(?P<hd_label>[^\W\d]\w*)(?P=hd_quote)\r?\n"
    r".*?^[ \t]*(?P=hd_label)\b"
)

_PHP_CODE = _lexicon(
    ("skip", r"\s+"),
    ("comment", r"/\*.*?\*/|(?://|\#(?!\[))(?:[^\n?]|\?(?!>))*"),
    ("close", r"\?>\n?"),
    (
        "string",
        _PHP_HEREDOC
        + r"|\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'|`(?:[^`\\]|\\.)*`",
    ),
    (
        "number",
        r"0[xX][0-9a-fA-F_]+|0[bB][01_]+"
        r"|(?:\d[\d_]*)?\.?\d[\d_]*(?:[eE][+-]?\d+)?",
    ),
    ("variable", r"\$+[^\W\d]\w*"),
    ("name", r"\\?[^\W\d]\w*(?:\\[^\W\d]\w*)*"),
    ("operator", _alternation(_PHP_OPERATORS)),
    ("punct", r"#\[|[()\[\]{},;\\#$]"),
    ("other", r"."),
)

_PHP_HTML = _lexicon(
    ("open_php", r"<\?(?!xml)(?:(?i:php)\b|=)?"),
    ("skip", r"(?:[^<]|<(?!\?(?!xml)))+|<"),
)

PHP_STRATEGY: Final = TokenizerStrategy(
    language=Language.PHP,
    modes=MappingProxyType(
        {
            "html": _Mode(_PHP_HTML, MappingProxyType({"open_php": "code"})),
            "code": _Mode(_PHP_CODE, MappingProxyType({"close": "html"})),
        }
    ),
    initial_mode="html",
    keywords=PHP_KEYWORDS,
    placeholders=MappingProxyType({"variable": "$var", "name": "name"}),
    keywords_ignore_case=True,
    emit_delimiters=False,
)


# =========================
# Twig
# =========================

TWIG_KEYWORDS: Final = frozenset(
    {
        "and", "or", "not", "in", "is", "b-and", "b-or", "b-xor", "starts",
        "ends", "matches", "with", "only", "ignore", "missing", "if", "else",
        "elseif", "endif", "for", "endfor", "set", "endset", "block",
        "endblock", "extends", "include", "embed", "endembed", "macro",
        "endmacro", "import", "from", "as", "use", "filter", "endfilter",
        "apply", "endapply", "spaceless", "endspaceless", "autoescape",
        "endautoescape", "verbatim", "endverbatim", "do", "flush", "sandbox",
        "endsandbox", "deprecated", "true", "false", "null", "none", "defined",
        "empty", "even", "odd", "iterable", "same", "divisible", "by",
        "constant",
    }
)

_TWIG_OPERATORS = (
    "..", "??", "?:", "==", "!=", "<=", ">=", "**", "//", "-", "+", "*", "/",
    "%", "~", "<", ">", "=", "?", ":", "|",
)

_TWIG_MARKUP = _lexicon(
    ("skip", r"\s+"),
    ("comment", r"\{\#.*?\#\}|<!--.*?-->"),
    ("open_expr", r"\{\{[-~]?"),
    ("open_stmt", r"\{%[-~]?"),
    ("tag", r"</?[A-Za-z][\w:.-]*"),
    ("punct", r"/?>|="),
    ("attr", r"[A-Za-z_:@][\w:.-]*(?==)"),
    ("text", r"[^\s<>{=\"']+|[<>{\"']"),
)

_TWIG_CODE = _lexicon(
    ("skip", r"\s+"),
    ("close", r"[-~]?(?:\}\}|%\})"),
    ("string", r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'"),
    ("number", r"\d+(?:\.\d+)?"),
    ("name", r"[A-Za-z_]\w*"),
    ("operator", _alternation(_TWIG_OPERATORS)),
    ("punct", r"[()\[\]{},.]"),
    ("other", r"."),
)

TWIG_STRATEGY: Final = TokenizerStrategy(
    language=Language.TWIG,
    modes=MappingProxyType(
        {
            "markup": _Mode(
                _TWIG_MARKUP,
                MappingProxyType({"open_expr": "code", "open_stmt": "code"}),
            ),
            "code": _Mode(_TWIG_CODE, MappingProxyType({"close": "markup"})),
        }
    ),
    initial_mode="markup",
    keywords=TWIG_KEYWORDS,
    placeholders=MappingProxyType({"name": "name"}),
)


# =========================
# JavaScript
# =========================

JS_KEYWORDS: Final = frozenset(
    {
        "async", "await", "break", "case", "catch", "class", "const",
        "continue", "debugger", "default", "delete", "do", "else", "export",
        "extends", "false", "finally", "for", "function", "if", "import", "in",
        "instanceof", "let", "new", "null", "of", "return", "static", "super",
        "switch", "this", "throw", "true", "try", "typeof", "undefined", "var",
        "void", "while", "with", "yield",
    }
)

_JS_OPERATORS = (
    ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=",
    "??=", "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<", ">>", "+",
    "-", "*", "/", "%", "=", "<", ">", "!", "~", "&", "|", "^", "?", ":", ".",
)

_JS_CODE = _lexicon(
    ("skip", r"\s+"),
    ("comment", r"/\*.*?\*/|//[^\n]*|<!--[^\n]*"),
    (
        "string",
        r"\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'|`(?:[^`\\]|\\.)*`",
    ),
    (
        "number",
        r"0[xX][\da-fA-F_]+n?|0[oO][0-7_]+n?|0[bB][01_]+n?"
        r"|(?:\d[\d_]*\.?[\d_]*|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?",
    ),
    ("name", r"(?:[^\W\d]|\$)(?:\w|\$)*"),
    ("operator", _alternation(_JS_OPERATORS)),
    ("punct", r"[()\[\]{},;]"),
    ("other", r"."),
)

JS_STRATEGY: Final = TokenizerStrategy(
    language=Language.JS,
    modes=MappingProxyType({"code": _Mode(_JS_CODE, MappingProxyType({}))}),
    initial_mode="code",
    keywords=JS_KEYWORDS,
    placeholders=MappingProxyType({"name": "name"}),
)


# =========================
# CSS / SCSS
# =========================

_CSS_OPERATORS = ("~=", "|=", "^=", "$=", "*=", "::", ">", "+", "~", "*", "/",
                  "=", "&", "%", "!", "|", "^", "-")


def _css_lexicon(*, line_comments: bool) -> re.Pattern[str]:
    comment = r"/\*.*?\*/"
    if line_comments:
        comment += r"|//[^\n]*"
    return _lexicon(
        ("skip", r"\s+"),
        ("url", r"(?i:url)\(\s*(?:\"[^\"]*\"|'[^']*'|[^)\"']*)\s*\)"),
        ("comment", comment),
        ("string", r"\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'"),
        ("keyword", r"@[\w-]+"),
        ("variable", r"\$[\w-]+"),
        ("custom", r"--[\w-]+"),
        ("hash", r"\#[\w-]+"),
        ("number", r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?(?:%|[A-Za-z]+)?"),
        ("word", r"-?[^\W\d][\w-]*"),
        ("punct", r"\#\{|[{}();,.\[\]:]"),
        ("operator", _alternation(_CSS_OPERATORS)),
        ("other", r"."),
    )


_CSS_PLACEHOLDERS = MappingProxyType(
    {"variable": "$var", "custom": "--var", "name": "name"}
)

CSS_STRATEGY: Final = TokenizerStrategy(
    language=Language.CSS,
    modes=MappingProxyType(
        {"code": _Mode(_css_lexicon(line_comments=False), MappingProxyType({}))}
    ),
    initial_mode="code",
    keywords=frozenset(),
    placeholders=_CSS_PLACEHOLDERS,
)

SCSS_STRATEGY: Final = TokenizerStrategy(
    language=Language.SCSS,
    modes=MappingProxyType(
        {"code": _Mode(_css_lexicon(line_comments=True), MappingProxyType({}))}
    ),
    initial_mode="code",
    keywords=frozenset(),
    placeholders=_CSS_PLACEHOLDERS,
)


STRATEGIES: Final[Mapping[Language, TokenizerStrategy]] = MappingProxyType(
    {
        Language.PHP: PHP_STRATEGY,
        Language.TWIG: TWIG_STRATEGY,
        Language.JS: JS_STRATEGY,
        Language.CSS: CSS_STRATEGY,
        Language.SCSS: SCSS_STRATEGY,
    }
)


def get_strategy(language: Language | str) -> TokenizerStrategy:
    try:
        return STRATEGIES[Language(language)]
    except ValueError as e:
        raise StrategyNotFoundError(
            f"No tokenizer strategy for language '{language}'",
            pattern=str(language),
        ) from e


def language_for_pattern(pattern: str) -> Language:
    """Map a file name glob such as ``*.php`` to the language it selects."""
    name = pattern.strip()
    _, dot, suffix = name.rpartition(".")
    language = EXTENSION_LANGUAGES.get(suffix.lower()) if dot else None
    if language is None:
        raise StrategyNotFoundError(
            f"No tokenizer strategy registered for '{pattern}'", pattern=pattern
        )
    return language
