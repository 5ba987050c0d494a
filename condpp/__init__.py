# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
A conditional-compilation preprocessor for JavaScript-like, stylesheet and
markup sources, driven by directives written inside comments.
"""
from __future__ import annotations

from condpp.assembler import TransformResult
from condpp.comments import CommentSyntax
from condpp.environment import Environment
from condpp.errors import (
    DirectiveSyntaxError,
    ErrorKind,
    ExpressionRuntimeError,
    ExpressionSyntaxError,
    PreprocessorError,
    UnbalancedBlockError,
    UnclosedBlockError,
    UserError,
)
from condpp.preprocessor import Preprocessor, transform
from condpp.values import UNDEFINED

__version__ = "1.0.0"

__all__ = [
    "CommentSyntax",
    "DirectiveSyntaxError",
    "Environment",
    "ErrorKind",
    "ExpressionRuntimeError",
    "ExpressionSyntaxError",
    "Preprocessor",
    "PreprocessorError",
    "TransformResult",
    "UNDEFINED",
    "UnbalancedBlockError",
    "UnclosedBlockError",
    "UserError",
    "transform",
]
