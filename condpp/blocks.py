# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the state machine that tracks nested conditional blocks and
decides which lines are active.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from condpp import expression
from condpp.directives import Directive, DirectiveKind
from condpp.environment import Environment
from condpp.errors import (
    DirectiveSyntaxError,
    PreprocessorError,
    UnbalancedBlockError,
    UnclosedBlockError,
)

log = logging.getLogger(__name__)

OPENING_KINDS = [DirectiveKind.IF, DirectiveKind.IFSET, DirectiveKind.IFNSET]


@dataclass
class Frame:
    """
    Represents one open #if, #ifset or #ifnset block.

    `matched` records whether any branch of the block has been taken, so
    that later #elif and #else branches are skipped. `parent_active` is
    False when the block is nested inside an inactive branch.
    """

    line: int
    parent_active: bool
    active: bool = False
    matched: bool = False
    seen_else: bool = False


class BlockStack:
    """
    Processes conditional directives in source order and reports whether
    the current line is active.

    Expressions are only evaluated when every enclosing block is active,
    so code inside a dead branch can never raise an evaluation error.
    """

    def __init__(
        self,
        environment: Environment,
        filename: str = "<unknown>",
    ) -> None:
        self.environment = environment
        self.filename = filename
        self.frames: list[Frame] = []

    @property
    def active(self) -> bool:
        """
        True if the top frame and all its ancestors are active.
        """
        if not self.frames:
            return True
        return self.frames[-1].active

    @property
    def depth(self) -> int:
        return len(self.frames)

    def _test(self, directive: Directive) -> bool:
        if directive.kind == DirectiveKind.IFSET:
            return self.environment.has(directive.name)
        if directive.kind == DirectiveKind.IFNSET:
            return not self.environment.has(directive.name)
        try:
            return expression.evaluate_condition(
                directive.argument,
                self.environment,
            )
        except PreprocessorError as e:
            raise e.at(self.filename, directive.line)

    def _top(self, directive: Directive) -> Frame:
        if not self.frames:
            raise UnbalancedBlockError(
                f"#{directive.kind.value} without #if",
                filename=self.filename,
                line=directive.line,
            )
        frame = self.frames[-1]
        if frame.seen_else and directive.kind != DirectiveKind.ENDIF:
            raise DirectiveSyntaxError(
                f"#{directive.kind.value} after #else "
                + f"(block opened on line {frame.line})",
                filename=self.filename,
                line=directive.line,
            )
        return frame

    def process(self, directive: Directive) -> None:
        """
        Update the block state for a conditional directive.
        Other directives are ignored.
        """
        kind = directive.kind
        if kind in OPENING_KINDS:
            parent_active = self.active
            frame = Frame(directive.line, parent_active)
            if parent_active:
                frame.active = self._test(directive)
                frame.matched = frame.active
            self.frames.append(frame)

        elif kind == DirectiveKind.ELIF:
            frame = self._top(directive)
            if frame.matched or not frame.parent_active:
                frame.active = False
            else:
                frame.active = self._test(directive)
                frame.matched = frame.active

        elif kind == DirectiveKind.ELSE:
            frame = self._top(directive)
            frame.seen_else = True
            frame.active = frame.parent_active and not frame.matched
            frame.matched = True

        elif kind == DirectiveKind.ENDIF:
            self._top(directive)
            self.frames.pop()

        log.debug(
            f"{self.filename}:{directive.line}: {directive.spelling()} "
            + f"-> {'active' if self.active else 'inactive'}",
        )

    def close(self) -> None:
        """
        Check that every block has been closed at the end of the input.

        Raises
        ------
        UnclosedBlockError
            If any block is still open.
        """
        if self.frames:
            lines = ", ".join(str(frame.line) for frame in self.frames)
            raise UnclosedBlockError(
                f"Unclosed conditional block(s) opened on line(s) {lines}",
                filename=self.filename,
                line=self.frames[-1].line,
            )
