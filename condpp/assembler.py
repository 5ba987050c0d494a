# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the output assembler, which rebuilds a file from processed lines
while keeping the original line structure intact.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from condpp.comments import CommentFilter, CommentScanner, CommentSyntax, Piece
from condpp.sourcemap import SourceMap, SourceMapBuilder
from condpp.substitution import Replacement, Substituter

log = logging.getLogger(__name__)


def split_lines(source: str) -> list[tuple[str, str]]:
    """
    Split `source` into (text, line ending) pairs.
    Line endings are "\\n", "\\r\\n" or "\\r"; the last line may have none.
    """
    lines = []
    start = 0
    pos = 0
    while pos < len(source):
        char = source[pos]
        if char not in ["\n", "\r"]:
            pos += 1
            continue
        end = pos
        if source[pos : pos + 2] == "\r\n":
            pos += 1
        pos += 1
        lines.append((source[start:end], source[end:pos]))
        start = pos
    if start < len(source):
        lines.append((source[start:], ""))
    return lines


@dataclass
class TransformResult:
    """
    The rewritten text of one file and its source map (if requested).
    """

    code: str
    map: SourceMap | None = None


@dataclass
class Rendered:
    """
    A piece of a line with its final text.
    Code pieces carry the replacements made by substitution.
    """

    piece: Piece
    text: str
    replacements: list[Replacement] = field(default_factory=list)


class OutputAssembler:
    """
    Collects output line by line.

    Every input line produces exactly one output line with the same line
    ending: either processed code, or an empty line for directives and
    inactive code. One comment scanner follows the whole file, so a block
    comment may continue across directive and inactive lines. Lines are
    held back while a comment is open, so that the comment is judged as a
    whole before it is kept or removed. Variables are substituted as soon
    as a line arrives, with the values set at that point.
    """

    def __init__(
        self,
        syntax: CommentSyntax,
        comment_filter: CommentFilter,
        substituter: Substituter,
        *,
        filename: str = "<unknown>",
        source: str | None = None,
        sourcemap: bool = True,
    ) -> None:
        self.syntax = syntax
        self.comment_filter = comment_filter
        self.substituter = substituter
        self.filename = filename
        self.scanner = CommentScanner(syntax)
        self.chunks: list[str] = []
        self.pending: list[tuple[int, str, list[Rendered] | None]] = []
        self.num_lines = 0
        self.map_builder: SourceMapBuilder | None = None
        if sourcemap:
            self.map_builder = SourceMapBuilder(filename, source)

    def code(self, line: int, text: str, eol: str) -> None:
        """
        Add an active code line.
        Output is deferred while a comment is open.
        """
        rendered = []
        for piece in self.scanner.process(text):
            if piece.comment is None:
                output, edits = self.substituter.substitute(piece.text)
                rendered.append(Rendered(piece, output, edits))
            else:
                rendered.append(Rendered(piece, piece.text))
        self.pending.append((line, eol, rendered))
        if self.scanner.comment is None:
            self.flush()

    def blank(self, line: int, eol: str) -> None:
        """
        Add an empty line in place of a directive or inactive line.
        """
        self.pending.append((line, eol, None))
        if self.scanner.comment is None:
            self.flush()
        else:
            log.debug(f"{self.filename}:{line}: Blank line inside a comment")

    def _emit(
        self,
        text: str,
        eol: str,
        segments: list[tuple[int, int, int]],
    ) -> None:
        self.chunks.append(text)
        self.chunks.append(eol)
        self.num_lines += 1
        if self.map_builder is not None:
            self.map_builder.add_line(segments)

    def _keep(self, piece: Piece) -> bool:
        comment = piece.comment
        if comment is None:
            return True
        # A comment left open at the end of the file is not judged
        return not comment.closed or self.comment_filter.keep(comment)

    def _render(
        self,
        line: int,
        rendered: list[Rendered],
    ) -> tuple[str, list[tuple[int, int, int]]]:
        """
        Render one line from its pieces: copy substituted code and kept
        comments and drop the rest.
        Return the text and its source map segments.
        """
        parts: list[str] = []
        segments: list[tuple[int, int, int]] = []
        source_line = line - 1
        generated = 0
        for r in rendered:
            if not self._keep(r.piece):
                continue

            col = r.piece.col
            segments.append((generated, source_line, col))
            shift = 0
            for edit in r.replacements:
                start = generated + edit.col + shift
                segments.append((start, source_line, col + edit.col))
                shift += len(edit.text) - edit.length
                segments.append(
                    (
                        start + len(edit.text),
                        source_line,
                        col + edit.col + edit.length,
                    ),
                )
            parts.append(r.text)
            generated += len(r.text)

        # Drop duplicate and trailing segments
        unique: list[tuple[int, int, int]] = []
        for segment in segments:
            if segment[0] >= generated:
                continue
            if unique and unique[-1][0] == segment[0]:
                unique[-1] = segment
                continue
            unique.append(segment)
        return "".join(parts), unique

    def flush(self) -> None:
        """
        Render and emit every line held back so far.
        """
        for line, eol, rendered in self.pending:
            if rendered is None:
                self._emit("", eol, [])
                continue
            text, segments = self._render(line, rendered)
            self._emit(text, eol, segments)
        self.pending = []

    def result(self) -> TransformResult:
        """
        Return the assembled output.
        """
        self.flush()
        code = "".join(self.chunks)
        sourcemap = None
        if self.map_builder is not None:
            sourcemap = self.map_builder.build()
        return TransformResult(code, sourcemap)
