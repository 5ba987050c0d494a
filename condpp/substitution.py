# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the substitution engine that replaces variable references in
active code with the literal spelling of their values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from condpp import values
from condpp.environment import Environment, is_variable_name

log = logging.getLogger(__name__)


def _identifier_char(char: str) -> bool:
    return char.isalnum() or char in ["_", "$"]


@dataclass
class Replacement:
    """
    Records that `length` characters at column `col` of the original text
    were replaced by `text`.
    """

    col: int
    length: int
    text: str


class Substituter:
    """
    Replaces every standalone occurrence of a set variable with its value.

    A reference is an identifier token that is not part of a longer
    identifier and is not a property name (i.e. not preceded by '.').
    References to object values may be followed by a chain of '.name'
    property accesses, which are resolved too. Substitution never adds or
    removes newlines.
    """

    def __init__(self, environment: Environment) -> None:
        self.environment = environment

    def _identifier_end(self, text: str, pos: int) -> int:
        while pos < len(text) and _identifier_char(text[pos]):
            pos += 1
        return pos

    def _resolve_members(
        self,
        text: str,
        end: int,
        value: object,
    ) -> tuple[int, object]:
        """
        Follow '.name' accesses into object values for as long as the
        properties exist.
        """
        while isinstance(value, dict) and text[end : end + 1] == ".":
            name_end = self._identifier_end(text, end + 1)
            name = text[end + 1 : name_end]
            if not name or name not in value:
                break
            value = values.get_member(value, name)
            end = name_end
        return end, value

    def substitute(self, text: str) -> tuple[str, list[Replacement]]:
        """
        Return `text` with variable references replaced, and the list of
        replacements made (in column order).
        """
        out = []
        replacements = []
        last = 0
        pos = 0
        while pos < len(text):
            char = text[pos]
            if not (char.isalpha() or char in ["_", "$"]):
                pos += 1
                continue

            end = self._identifier_end(text, pos)
            previous = text[pos - 1] if pos > 0 else ""
            name = text[pos:end]
            if (
                previous == "."
                or _identifier_char(previous)
                or not is_variable_name(name)
                or not self.environment.has(name)
            ):
                pos = end
                continue

            end, value = self._resolve_members(
                text,
                end,
                self.environment.get(name),
            )
            literal = values.to_literal(value)
            out.append(text[last:pos])
            out.append(literal)
            replacements.append(Replacement(pos, end - pos, literal))
            last = pos = end

        if not replacements:
            return text, replacements
        out.append(text[last:])
        return "".join(out), replacements
