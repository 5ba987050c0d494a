# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the exceptions raised while preprocessing a file.

Every error carries a kind, a message and (once known) the file and line
that caused it, so that callers can tell the failure modes apart without
inspecting message strings.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    DIRECTIVE_SYNTAX = "directive-syntax"
    UNBALANCED_BLOCK = "unbalanced-block"
    UNCLOSED_BLOCK = "unclosed-block"
    EXPRESSION_SYNTAX = "expression-syntax"
    EXPRESSION_RUNTIME = "expression-runtime"
    USER = "user"


class PreprocessorError(ValueError):
    """
    Base class for all errors raised by the preprocessor.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        line: int | None = None,
    ) -> None:
        self.message = message
        self.filename = filename
        self.line = line
        super().__init__(message)

    def at(self, filename: str | None, line: int | None) -> PreprocessorError:
        """
        Attribute this error to a location, unless it already has one.
        Return self, so that it can be re-raised directly.
        """
        if self.filename is None:
            self.filename = filename
        if self.line is None:
            self.line = line
        return self

    def __str__(self) -> str:
        if self.filename is None:
            return self.message
        if self.line is None:
            return f"{self.filename}: {self.message}"
        return f"{self.filename}:{self.line}: {self.message}"


class DirectiveSyntaxError(PreprocessorError):
    """
    Represents a directive keyword with malformed arguments.
    """

    kind = ErrorKind.DIRECTIVE_SYNTAX


class UnbalancedBlockError(PreprocessorError):
    """
    Represents an #elif, #else or #endif with no open block.
    """

    kind = ErrorKind.UNBALANCED_BLOCK


class UnclosedBlockError(PreprocessorError):
    """
    Represents blocks still open at the end of the input.
    """

    kind = ErrorKind.UNCLOSED_BLOCK


class ExpressionSyntaxError(PreprocessorError):
    """
    Represents expression text that cannot be parsed.
    """

    kind = ErrorKind.EXPRESSION_SYNTAX


class ExpressionRuntimeError(PreprocessorError):
    """
    Represents a valid expression that failed during evaluation.
    """

    kind = ErrorKind.EXPRESSION_RUNTIME


class UserError(PreprocessorError):
    """
    Raised when an #error directive is reached on an active path.
    """

    kind = ErrorKind.USER
