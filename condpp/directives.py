# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the Directive record and the scanner that recognizes directive
lines inside comments.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from condpp.comments import CommentSyntax
from condpp.environment import is_variable_name
from condpp.errors import DirectiveSyntaxError

log = logging.getLogger(__name__)


class DirectiveKind(Enum):
    IF = "if"
    ELIF = "elif"
    ELSE = "else"
    ENDIF = "endif"
    IFSET = "ifset"
    IFNSET = "ifnset"
    SET = "set"
    UNSET = "unset"
    ERROR = "error"


KEYWORDS = {kind.value: kind for kind in DirectiveKind}


@dataclass
class Directive:
    """
    Represents one directive line.

    `argument` holds the expression (#if, #elif, #set) or the message
    (#error); `name` holds the variable name (#ifset, #ifnset, #set,
    #unset).
    """

    kind: DirectiveKind
    line: int
    argument: str | None = None
    name: str | None = None

    def spelling(self) -> str:
        """
        Return a normalized spelling of this directive.
        Useful primarily for debugging and generating error messages.
        """
        parts = [f"#{self.kind.value}"]
        if self.name is not None:
            parts.append(self.name)
        if self.argument is not None:
            parts.append(self.argument)
        return " ".join(parts)


class DirectiveScanner:
    """
    Classifies lines as directives or code for one comment syntax.

    A directive line is a comment whose content starts with '#' and a known
    keyword: optional whitespace, a comment opener, optional whitespace,
    '#', the keyword, then whitespace, a comment delimiter or the end of
    the line.
    """

    def __init__(
        self,
        syntax: CommentSyntax,
        filename: str = "<unknown>",
    ) -> None:
        self.syntax = syntax
        self.filename = filename
        # Longest first, so that e.g. "///" would win over "//"
        self.openers = sorted(syntax.openers, key=len, reverse=True)

    def _strip_closer(self, argument: str) -> str:
        for closer in self.syntax.closers:
            if argument.endswith(closer):
                return argument[: -len(closer)].rstrip()
        return argument

    def _ends_keyword(self, text: str) -> bool:
        if not text or text[0].isspace():
            return True
        delimiters = self.syntax.line + self.syntax.closers
        return any(text.startswith(d) for d in delimiters)

    def scan(self, text: str, line: int) -> Directive | None:
        """
        Parse `text` if it is a directive line.
        Return a Directive, or None if the line is code.

        Raises
        ------
        DirectiveSyntaxError
            If the line names a known directive with malformed arguments.
        """
        stripped = text.strip()
        for opener in self.openers:
            if stripped.startswith(opener):
                break
        else:
            return None

        rest = stripped[len(opener) :].lstrip()
        if not rest.startswith("#"):
            return None
        rest = rest[1:]

        end = 0
        while end < len(rest) and rest[end].isalpha():
            end += 1
        keyword = rest[:end]
        if keyword not in KEYWORDS or not self._ends_keyword(rest[end:]):
            return None

        kind = KEYWORDS[keyword]
        argument = self._strip_closer(rest[end:].strip())
        return self._parse(kind, argument, line)

    def _parse(
        self,
        kind: DirectiveKind,
        argument: str,
        line: int,
    ) -> Directive:
        if kind in [DirectiveKind.IF, DirectiveKind.ELIF]:
            if not argument:
                raise DirectiveSyntaxError(
                    f"#{kind.value} requires an expression.",
                    line=line,
                )
            return Directive(kind, line, argument=argument)

        if kind in [DirectiveKind.ELSE, DirectiveKind.ENDIF]:
            if argument and not any(
                argument.startswith(d) for d in self.syntax.openers
            ):
                log.warning(
                    f"{self.filename}:{line}: Additional tokens at end of "
                    + f"directive: #{kind.value} {argument}",
                )
            return Directive(kind, line)

        if kind == DirectiveKind.ERROR:
            return Directive(kind, line, argument=argument)

        if kind in [
            DirectiveKind.IFSET,
            DirectiveKind.IFNSET,
            DirectiveKind.UNSET,
        ]:
            if not is_variable_name(argument):
                raise DirectiveSyntaxError(
                    f"#{kind.value} requires a variable name, "
                    + f"found '{argument}'.",
                    line=line,
                )
            return Directive(kind, line, name=argument)

        # #set <name> [=] [<expression>]
        end = 0
        while end < len(argument) and (
            argument[end].isalnum() or argument[end] in "_$"
        ):
            end += 1
        name = argument[:end]
        if not is_variable_name(name):
            raise DirectiveSyntaxError(
                f"#set requires a variable name, found '{argument}'.",
                line=line,
            )
        expression = argument[end:].strip()
        if expression.startswith("=") and not expression.startswith("=="):
            expression = expression[1:].strip()
        return Directive(kind, line, argument=expression or None, name=name)
