# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the Preprocessor class, which rewrites the text of one file at a
time according to the directives it contains.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from condpp import expression
from condpp.assembler import OutputAssembler, TransformResult, split_lines
from condpp.blocks import BlockStack
from condpp.comments import (
    JAVASCRIPT,
    CommentFilter,
    CommentSyntax,
    extension_table,
)
from condpp.directives import Directive, DirectiveKind, DirectiveScanner
from condpp.environment import Environment
from condpp.errors import PreprocessorError, UserError
from condpp.substitution import Substituter
from condpp.values import UNDEFINED

log = logging.getLogger(__name__)


class Preprocessor:
    """
    Represents a specific instance of a preprocessor, including:
    - The variable environment shared by every file it processes
    - The comment retention policy
    - The comment syntax associated with each file extension

    Files must be transformed one at a time: #set and #unset in one file
    change the environment seen by every later file, so concurrent calls
    on the same instance must be serialized by the caller.
    """

    def __init__(
        self,
        *,
        values: Mapping[str, Any] | None = None,
        comments: Any = None,
        extensions: Iterable[str] | Mapping[str, Any] | None = None,
        root: str | os.PathLike[str] | None = None,
        sourcemap: bool = True,
    ) -> None:
        self.environment = Environment(values)
        self.comment_filter = CommentFilter(comments)
        self._extensions = extension_table(extensions)

        if root is None:
            self.root = Path.cwd()
        elif not isinstance(root, (str, os.PathLike)):
            raise TypeError("'root' must be PathLike.")
        else:
            self.root = Path(root)

        if not isinstance(sourcemap, bool):
            raise TypeError("'sourcemap' must be a bool.")
        self.sourcemap = sourcemap

    @staticmethod
    def _extension(filename: str | os.PathLike[str]) -> str:
        return Path(filename).suffix.lstrip(".").lower()

    def accepts(self, filename: str | os.PathLike[str]) -> bool:
        """
        Returns
        -------
        bool
            True if files with the extension of `filename` are processed
            by this preprocessor.
        """
        return self._extension(filename) in self._extensions

    def comment_syntax(
        self,
        filename: str | os.PathLike[str],
    ) -> CommentSyntax:
        """
        Returns
        -------
        CommentSyntax
            The comment syntax used to recognize directives in `filename`.
            Unknown extensions use the JavaScript syntax.
        """
        return self._extensions.get(self._extension(filename), JAVASCRIPT)

    def relative_path(self, filename: str | os.PathLike[str]) -> str:
        """
        Return the path of `filename` relative to the root directory, with
        forward slashes. This is the value of __FILE.
        """
        try:
            path = os.path.relpath(os.path.abspath(filename), self.root)
        except ValueError:
            # e.g. a different drive on Windows
            path = os.fspath(filename)
        return Path(path).as_posix()

    def _execute(self, directive: Directive, filename: str) -> None:
        """
        Apply a #set, #unset or #error directive on an active path.
        """
        if directive.kind == DirectiveKind.SET:
            value = UNDEFINED
            if directive.argument is not None:
                try:
                    value = expression.evaluate(
                        directive.argument,
                        self.environment,
                    )
                except PreprocessorError as e:
                    raise e.at(filename, directive.line)
            self.environment.set(directive.name, value)
        elif directive.kind == DirectiveKind.UNSET:
            self.environment.unset(directive.name)
        elif directive.kind == DirectiveKind.ERROR:
            raise UserError(
                directive.argument or "#error directive reached",
                filename=filename,
                line=directive.line,
            )

    def transform(
        self,
        source: str,
        filename: str | os.PathLike[str],
    ) -> TransformResult:
        """
        Rewrite the text of one file.

        Parameters
        ----------
        source: str
            The complete text of the file.

        filename: str | os.PathLike[str]
            The path of the file, used for __FILE, for choosing the
            comment syntax and in error messages.

        Returns
        -------
        TransformResult
            The rewritten text, with exactly as many lines as `source`,
            and its source map.

        Raises
        ------
        PreprocessorError
            If a directive or expression is invalid, blocks are unbalanced,
            or an #error directive is reached. No partial output is
            produced.
        """
        if not isinstance(source, str):
            raise TypeError("'source' must be a string.")
        filename = os.fspath(filename)
        log.debug(f"Preprocessing {filename}")

        self.environment.seed_builtin("__FILE", self.relative_path(filename))
        syntax = self.comment_syntax(filename)
        scanner = DirectiveScanner(syntax, filename)
        blocks = BlockStack(self.environment, filename)
        assembler = OutputAssembler(
            syntax,
            self.comment_filter,
            Substituter(self.environment),
            filename=filename,
            source=source,
            sourcemap=self.sourcemap,
        )

        try:
            for line, (text, eol) in enumerate(split_lines(source), start=1):
                directive = scanner.scan(text, line)
                if directive is None:
                    if blocks.active:
                        assembler.code(line, text, eol)
                    else:
                        assembler.blank(line, eol)
                    continue

                # Pending code was substituted before the directive runs
                assembler.blank(line, eol)
                blocks.process(directive)
                if blocks.active:
                    self._execute(directive, filename)
            blocks.close()
        except PreprocessorError as e:
            raise e.at(filename, None)

        return assembler.result()


def transform(
    source: str,
    filename: str | os.PathLike[str],
    **options: Any,
) -> TransformResult:
    """
    Rewrite the text of one file with a new Preprocessor.
    `options` are passed to the Preprocessor constructor.
    """
    return Preprocessor(**options).transform(source, filename)
