# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains classes and functions for recognizing comments in JavaScript-like,
stylesheet and markup files, and for deciding which comments are kept in
the output.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommentSyntax:
    """
    Describes the comment delimiters of a family of file types.

    `line` holds the openers of comments that run to the end of the line,
    `block` holds (opener, closer) pairs, and `quotes` the characters that
    start string literals (inside which delimiters are not recognized).
    Strings started by one of `multiline_quotes` may span lines. When
    `regex` is set, a `/` in operand position starts a regular expression
    literal, inside which delimiters are not recognized either.
    """

    name: str
    line: tuple[str, ...] = ()
    block: tuple[tuple[str, str], ...] = ()
    quotes: str = ""
    multiline_quotes: str = ""
    regex: bool = False

    @property
    def openers(self) -> tuple[str, ...]:
        """
        Return the comment openers that may introduce a directive.
        """
        return self.line + tuple(opener for opener, _ in self.block)

    @property
    def closers(self) -> tuple[str, ...]:
        return tuple(closer for _, closer in self.block)


JAVASCRIPT = CommentSyntax(
    "javascript",
    line=("//",),
    block=(("/*", "*/"),),
    quotes="'\"`",
    multiline_quotes="`",
    regex=True,
)
STYLESHEET = CommentSyntax(
    "stylesheet",
    line=("//",),
    block=(("/*", "*/"),),
    quotes="'\"",
)
MARKUP = CommentSyntax("markup", block=(("<!--", "-->"),))

SYNTAXES = {
    "javascript": JAVASCRIPT,
    "stylesheet": STYLESHEET,
    "markup": MARKUP,
}

# Extensions processed by default.
DEFAULT_EXTENSIONS = {
    "js": JAVASCRIPT,
    "mjs": JAVASCRIPT,
    "cjs": JAVASCRIPT,
    "jsx": JAVASCRIPT,
    "es6": JAVASCRIPT,
    "ts": JAVASCRIPT,
    "tsx": JAVASCRIPT,
}

# Extensions that can be enabled by name with the `extensions` option.
KNOWN_EXTENSIONS = {
    **DEFAULT_EXTENSIONS,
    "css": STYLESHEET,
    "scss": STYLESHEET,
    "less": STYLESHEET,
    "html": MARKUP,
    "htm": MARKUP,
    "xml": MARKUP,
    "svg": MARKUP,
    "vue": MARKUP,
}


def extension_table(
    extensions: Iterable[str] | Mapping[str, Any] | None,
) -> dict[str, CommentSyntax]:
    """
    Build the table of accepted extensions from the `extensions` option.

    `extensions` is either a list of extension names known to this module,
    or a mapping from extension to a CommentSyntax (or the name of a
    built-in syntax such as "markup").
    """
    table = dict(DEFAULT_EXTENSIONS)
    if extensions is None:
        return table

    if isinstance(extensions, str):
        raise TypeError("'extensions' must be a list or a mapping.")

    if isinstance(extensions, Mapping):
        for ext, syntax in extensions.items():
            if isinstance(syntax, str):
                if syntax not in SYNTAXES:
                    raise ValueError(f"Unknown comment syntax: '{syntax}'.")
                syntax = SYNTAXES[syntax]
            elif not isinstance(syntax, CommentSyntax):
                raise TypeError(
                    f"Syntax for '{ext}' must be a CommentSyntax or a name.",
                )
            table[_normalize_extension(ext)] = syntax
        return table

    for ext in extensions:
        ext = _normalize_extension(ext)
        if ext not in KNOWN_EXTENSIONS:
            raise ValueError(
                f"No comment syntax known for '{ext}'; "
                + "pass a mapping to 'extensions' instead.",
            )
        table[ext] = KNOWN_EXTENSIONS[ext]
    return table


def _normalize_extension(ext: Any) -> str:
    if not isinstance(ext, str):
        raise TypeError("Each extension must be a string.")
    return ext.lstrip(".").lower()


# Named comment filters, tested against the whole comment text.
FILTERS = {
    "license": re.compile(r"@license\b"),
    "some": re.compile(r"(?:@license|@preserve|@cc_on)\b|^/[/*]!"),
    "eslint": re.compile(r"^/[/*]\s*(?:eslint|global|exported)\b"),
    "flow": re.compile(r"^/[/*]\s*(?:@flow|\$Flow(?:FixMe|Issue|Ignore))"),
    "istanbul": re.compile(r"^/[/*]\s*istanbul\s"),
    "jshint": re.compile(r"^/[/*]\s*(?:jshint|globals|exported)\s"),
    "jscs": re.compile(r"^/[/*]\s*jscs:[ed]"),
    "ts": re.compile(r"^/[/*]\s*@ts-"),
    "ts3s": re.compile(r"^///\s*<(?:reference|amd-)"),
    "srcmaps": re.compile(r"^/[/*][#@]\s*source(?:Mapping)?URL="),
}


@dataclass(eq=False)
class Comment:
    """
    Represents one comment, possibly spanning several lines.
    """

    opener: str
    parts: list[str] = field(default_factory=list)
    closed: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.parts)

    @property
    def body(self) -> str:
        """
        Return the text following the opener, without leading whitespace.
        """
        return self.text[len(self.opener) :].lstrip()


class CommentFilter:
    """
    The comment retention policy: decides which ordinary comments survive
    into the output.

    Selectors are compiled patterns (searched in the full comment text),
    names of the built-in FILTERS, or any other string, which keeps
    comments whose body starts with it. True/"all" keeps every comment and
    False/"none" keeps none.
    """

    def __init__(self, selectors: Any = None) -> None:
        self.keep_all = False
        self.patterns: list[re.Pattern[str]] = []
        self.tags: list[str] = []

        if selectors is None:
            selectors = ["some"]
        if selectors is True or selectors == "all":
            self.keep_all = True
            return
        if selectors is False or selectors == "none":
            return
        if isinstance(selectors, (str, re.Pattern)):
            selectors = [selectors]
        if not isinstance(selectors, Iterable):
            raise TypeError(
                "'comments' must be a bool, a string, a pattern or a list.",
            )

        for selector in selectors:
            if isinstance(selector, re.Pattern):
                self.patterns.append(selector)
            elif not isinstance(selector, str):
                raise TypeError(
                    "Each comment selector must be a string or a pattern.",
                )
            elif selector == "all":
                self.keep_all = True
            elif selector == "none":
                continue
            elif selector in FILTERS:
                self.patterns.append(FILTERS[selector])
            else:
                self.tags.append(selector)

    def keep(self, comment: Comment) -> bool:
        """
        Return True if `comment` must be kept.
        """
        if self.keep_all:
            return True
        text = comment.text
        if any(pattern.search(text) for pattern in self.patterns):
            return True
        body = comment.body
        return any(body.startswith(tag) for tag in self.tags)

    def __repr__(self) -> str:
        return (
            f"CommentFilter(keep_all={self.keep_all!r},"
            + f"patterns={self.patterns!r},tags={self.tags!r})"
        )


# Keywords after which a "/" starts a regular expression.
REGEX_KEYWORDS = {
    "await",
    "case",
    "delete",
    "do",
    "else",
    "in",
    "instanceof",
    "new",
    "of",
    "return",
    "throw",
    "typeof",
    "void",
    "yield",
}

# Characters after which a "/" starts a regular expression.
REGEX_PRECEDERS = "(,=:[!&|?{};+-*%<>~^"


def _is_word(char: str) -> bool:
    return char.isalnum() or char in "_$"


@dataclass
class Piece:
    """
    A run of text within one line: either code, or part of a comment.
    `col` is the column of the run in the original line.
    """

    col: int
    text: str
    comment: Comment | None = None


class CommentScanner:
    """
    Splits lines into code and comment pieces, keeping track of strings and
    block comments across lines. State is kept across physical lines and
    partially cleared with logical_newline.
    """

    def __init__(self, syntax: CommentSyntax) -> None:
        self.syntax = syntax
        self.state = ["TOPLEVEL"]
        self.quote: str | None = None
        self.closer: str | None = None
        self.comment: Comment | None = None
        self.previous: str | None = None
        self.word = ""

    def logical_newline(self) -> None:
        """
        Reset state at the end of a line.
        Line comments, regular expressions and single-line strings end with
        the line.
        """
        if self.state[-1] == "ESCAPING":
            self.state.pop()
        if self.state[-1] in ["REGEX", "REGEX_CLASS"]:
            self.state = ["TOPLEVEL"]
        elif self.state[-1] == "IN_LINE_COMMENT":
            self.state = ["TOPLEVEL"]
            self.comment = None
        elif self.state[-1] == "QUOTATION":
            if self.quote not in self.syntax.multiline_quotes:
                # This probably should give a warning
                self.state = ["TOPLEVEL"]
                self.quote = None

    @staticmethod
    def _match(line: str, pos: int, literals: Iterable[str]) -> str | None:
        for literal in literals:
            if line.startswith(literal, pos):
                return literal
        return None

    def _regex_allowed(self) -> bool:
        """
        Return True if a "/" at this point starts a regular expression
        rather than a division.
        """
        if self.previous is None:
            return True
        if _is_word(self.previous):
            return self.word in REGEX_KEYWORDS
        return self.previous in REGEX_PRECEDERS

    def _significant(self, line: str, pos: int) -> None:
        char = line[pos]
        if char.isspace():
            return
        if _is_word(char):
            if pos > 0 and _is_word(line[pos - 1]):
                self.word += char
            else:
                self.word = char
        else:
            self.word = ""
        self.previous = char

    def process(self, line: str) -> list[Piece]:
        """
        Split one line into pieces.
        """
        state = self.state
        pieces: list[Piece] = []
        start = 0
        pos = 0

        def flush(end: int) -> None:
            if end > start:
                text = line[start:end]
                pieces.append(Piece(start, text, self.comment))
                if self.comment is not None:
                    self.comment.parts.append(text)

        while pos < len(line):
            if state[-1] == "TOPLEVEL":
                opener = self._match(line, pos, self.syntax.line)
                if opener is not None:
                    flush(pos)
                    start = pos
                    self.comment = Comment(opener, closed=True)
                    state.append("IN_LINE_COMMENT")
                    pos = len(line)
                    break

                for opener, closer in self.syntax.block:
                    if line.startswith(opener, pos):
                        flush(pos)
                        start = pos
                        self.comment = Comment(opener)
                        self.closer = closer
                        state.append("IN_BLOCK_COMMENT")
                        pos += len(opener)
                        break
                else:
                    char = line[pos]
                    if char in self.syntax.quotes:
                        state.append("QUOTATION")
                        self.quote = char
                    elif (
                        char == "/"
                        and self.syntax.regex
                        and self._regex_allowed()
                    ):
                        state.append("REGEX")
                    self._significant(line, pos)
                    pos += 1
            elif state[-1] == "QUOTATION":
                if line[pos] == "\\":
                    state.append("ESCAPING")
                elif line[pos] == self.quote:
                    state.pop()
                    self.quote = None
                pos += 1
            elif state[-1] == "REGEX":
                if line[pos] == "\\":
                    state.append("ESCAPING")
                elif line[pos] == "[":
                    state.append("REGEX_CLASS")
                elif line[pos] == "/":
                    # The closing delimiter makes the regex an operand
                    state.pop()
                    self.previous = "/"
                    self.word = ""
                pos += 1
            elif state[-1] == "REGEX_CLASS":
                if line[pos] == "\\":
                    state.append("ESCAPING")
                elif line[pos] == "]":
                    state.pop()
                pos += 1
            elif state[-1] == "ESCAPING":
                state.pop()
                pos += 1
            elif state[-1] == "IN_BLOCK_COMMENT":
                if self.closer is not None and line.startswith(
                    self.closer,
                    pos,
                ):
                    pos += len(self.closer)
                    flush(pos)
                    start = pos
                    if self.comment is not None:
                        self.comment.closed = True
                    self.comment = None
                    self.closer = None
                    state.pop()
                else:
                    pos += 1
            else:
                raise RuntimeError("Unknown scanner state!")

        flush(len(line))
        if not line and self.comment is not None:
            # Keep empty lines inside block comments in the comment text
            self.comment.parts.append("")
        self.logical_newline()
        return pieces


def scan_comments(
    lines: list[str],
    syntax: CommentSyntax,
) -> list[list[Piece]]:
    """
    Split each of `lines` into code and comment pieces.
    Block comments still open after the last line are left unclosed.
    """
    scanner = CommentScanner(syntax)
    return [scanner.process(line) for line in lines]
