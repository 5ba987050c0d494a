# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains functions and classes related to preprocessing a sequence of
files with a single Preprocessor.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, KeysView, Mapping

from tqdm import tqdm

from condpp.assembler import TransformResult
from condpp.errors import PreprocessorError
from condpp.preprocessor import Preprocessor

log = logging.getLogger(__name__)


class BuildState:
    """
    Keeps track of the results of preprocessing a sequence of files.
    Contains the rewritten output of every successful file, and the error
    raised by every failed file.
    """

    def __init__(self) -> None:
        self.results: dict[str, TransformResult] = {}
        self.errors: dict[str, PreprocessorError] = {}

    def get_filenames(self) -> KeysView[str]:
        """
        Return all of the filenames processed successfully.
        """
        return self.results.keys()

    def get_result(self, fn: str) -> TransformResult | None:
        """
        Return the TransformResult associated with a filename
        """
        return self.results.get(fn)

    def get_error(self, fn: str) -> PreprocessorError | None:
        """
        Return the error raised while processing a filename
        """
        return self.errors.get(fn)

    def ok(self) -> bool:
        return not self.errors


def preprocess(
    preprocessor: Preprocessor,
    sources: Mapping[str, str] | Iterable[tuple[str, str]],
    *,
    show_progress: bool = False,
    keep_going: bool = False,
) -> BuildState:
    """
    Transform each (filename, source) pair in order, sharing the
    preprocessor's environment between files.

    Files with an extension the preprocessor does not accept are skipped.
    By default the first error is raised; with keep_going, errors are
    logged and recorded in the returned state and processing continues.
    """
    if isinstance(sources, Mapping):
        items: Iterable[tuple[str, str]] = sources.items()
    else:
        items = sources

    state = BuildState()
    for filename, source in tqdm(
        items,
        desc="Preprocessing",
        unit=" file",
        leave=False,
        disable=not show_progress,
    ):
        if not preprocessor.accepts(filename):
            log.debug(f"Skipping {filename}")
            continue

        try:
            state.results[filename] = preprocessor.transform(source, filename)
        except PreprocessorError as e:
            if not keep_going:
                raise
            log.error(str(e))
            state.errors[filename] = e

    return state
