# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the Environment class used to store compile-time variables.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from typing import Any

from condpp.values import UNDEFINED, is_supported

log = logging.getLogger(__name__)

_VARIABLE_NAME = re.compile(r"__[0-9A-Z][0-9A-Z_]*")

BUILTINS = frozenset(["__FILE"])


def is_variable_name(name: str) -> bool:
    """
    Return True if `name` follows the variable naming convention:
    two underscores followed by uppercase letters, digits or underscores.
    """
    return _VARIABLE_NAME.fullmatch(name) is not None


class Environment:
    """
    Represents the variables visible to one preprocessor instance, including:
    - Values supplied by the user at construction
    - Values set or removed by #set and #unset directives
    - Built-in values (e.g. __FILE) seeded for each file

    An Environment is never reset between files: a #set in one file is
    visible in every file processed afterwards.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = {}
        if values is None:
            return
        if not isinstance(values, Mapping):
            raise TypeError("'values' must be a mapping.")
        for name, value in values.items():
            if not isinstance(name, str):
                raise TypeError("Each name in 'values' must be a string.")
            if not is_variable_name(name):
                raise ValueError(f"Invalid variable name: '{name}'.")
            if not is_supported(value):
                raise TypeError(
                    f"Unsupported value for '{name}': {type(value).__name__}.",
                )
            self._values[name] = value

    def get(self, name: str) -> Any:
        """
        Returns
        -------
        Any
            The value associated with `name`, or UNDEFINED.
        """
        return self._values.get(name, UNDEFINED)

    def has(self, name: str) -> bool:
        """
        Returns
        -------
        bool
            True if `name` is set (even to UNDEFINED) and False otherwise.
        """
        return name in self._values

    def set(self, name: str, value: Any) -> None:
        """
        Set a variable, as if the preprocessor encountered #set.
        The value is stored as-is. Built-in variables cannot be changed.

        Parameters
        ----------
        name: str
            The name of the variable.

        value: Any
            The new value.
        """
        if name in BUILTINS:
            log.warning(f"Ignoring attempt to set built-in variable {name}")
            return
        self._values[name] = value

    def unset(self, name: str) -> None:
        """
        Remove a previously set variable, as if the preprocessor encountered
        #unset. Built-in variables cannot be removed.
        """
        if name in BUILTINS:
            log.warning(f"Ignoring attempt to unset built-in variable {name}")
            return
        if name in self._values:
            del self._values[name]

    def seed_builtin(self, name: str, value: Any) -> None:
        """
        (Re)define a built-in variable.
        """
        if name not in BUILTINS:
            raise ValueError(f"'{name}' is not a built-in variable.")
        self._values[name] = value

    def snapshot(self) -> dict[str, Any]:
        """
        Return a shallow copy of the current variables.
        """
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Environment({self._values!r})"
