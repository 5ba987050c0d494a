# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains classes and functions for building version 3 source maps.

Output line N always comes from input line N, so a map only needs to
record column shifts introduced by substitution and comment removal.
"""
from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any

_BASE64 = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
)


def encode_vlq(value: int) -> str:
    """
    Encode a signed integer as a base64 VLQ.
    """
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    chars = []
    while True:
        digit = vlq & 31
        vlq >>= 5
        if vlq:
            digit |= 32
        chars.append(_BASE64[digit])
        if not vlq:
            return "".join(chars)


def decode_vlq(string: str) -> list[int]:
    """
    Decode a run of base64 VLQs into a list of signed integers.
    """
    result = []
    shift = 0
    value = 0
    for char in string:
        digit = _BASE64.index(char)
        value += (digit & 31) << shift
        if digit & 32:
            shift += 5
            continue
        result.append(-(value >> 1) if value & 1 else value >> 1)
        shift = 0
        value = 0
    if shift:
        raise ValueError("Truncated VLQ sequence.")
    return result


def decode_mappings(mappings: str) -> list[list[tuple[int, ...]]]:
    """
    Decode a mappings string into absolute segments per generated line:
    (generated column, source index, source line, source column), all
    zero-based.
    """
    lines = []
    source = source_line = source_col = 0
    for line in mappings.split(";"):
        generated_col = 0
        segments = []
        for segment in filter(None, line.split(",")):
            fields = decode_vlq(segment)
            generated_col += fields[0]
            if len(fields) >= 4:
                source += fields[1]
                source_line += fields[2]
                source_col += fields[3]
                segments.append(
                    (generated_col, source, source_line, source_col),
                )
            else:
                segments.append((generated_col,))
        lines.append(segments)
    return lines


@dataclass
class SourceMap:
    """
    Represents a version 3 source map for a single source file.
    """

    file: str
    sources: list[str]
    mappings: str
    sources_content: list[str | None] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    version: int = 3

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "file": self.file,
            "sources": self.sources,
            "sourcesContent": self.sources_content,
            "names": self.names,
            "mappings": self.mappings,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def to_url(self) -> str:
        """
        Return the map as a data URI, suitable for an inline
        sourceMappingURL comment.
        """
        encoded = base64.b64encode(self.to_json().encode("utf-8"))
        return "data:application/json;charset=utf-8;base64," + encoded.decode(
            "ascii",
        )

    def __str__(self) -> str:
        return self.to_json()


class SourceMapBuilder:
    """
    Accumulates segments line by line and encodes them.
    """

    def __init__(self, filename: str, source: str | None = None) -> None:
        self.filename = filename
        self.source = source
        self.lines: list[list[tuple[int, int, int]]] = []

    def add_line(self, segments: list[tuple[int, int, int]]) -> None:
        """
        Add the next generated line.
        Each segment is (generated column, source line, source column),
        zero-based and in increasing generated column order.
        """
        self.lines.append(segments)

    def build(self) -> SourceMap:
        encoded_lines = []
        source_line = source_col = 0
        for segments in self.lines:
            generated_col = 0
            encoded = []
            for gen, line, col in segments:
                encoded.append(
                    encode_vlq(gen - generated_col)
                    + encode_vlq(0)
                    + encode_vlq(line - source_line)
                    + encode_vlq(col - source_col),
                )
                generated_col, source_line, source_col = gen, line, col
            encoded_lines.append(",".join(encoded))

        return SourceMap(
            file=self.filename,
            sources=[self.filename],
            sources_content=[self.source],
            mappings=";".join(encoded_lines),
        )
