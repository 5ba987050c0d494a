# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

import logging
import unittest

from condpp.blocks import BlockStack
from condpp.directives import Directive, DirectiveKind
from condpp.environment import Environment
from condpp.errors import (
    DirectiveSyntaxError,
    ExpressionRuntimeError,
    ExpressionSyntaxError,
    UnbalancedBlockError,
    UnclosedBlockError,
)


def directive(kind, line=1, argument=None, name=None):
    return Directive(DirectiveKind(kind), line, argument=argument, name=name)


class TestBlockStack(unittest.TestCase):
    """
    Test BlockStack class.
    """

    @classmethod
    def setUpClass(self):
        logging.disable()

    def setUp(self):
        self.env = Environment({"__ONE": 1, "__ZERO": 0})
        self.blocks = BlockStack(self.env, "test.js")

    def run_directives(self, *directives):
        """
        Process each directive and return the activity after each one.
        """
        states = []
        for d in directives:
            self.blocks.process(d)
            states.append(self.blocks.active)
        return states

    def test_initial_state(self):
        """Check code outside blocks is active"""
        self.assertTrue(self.blocks.active)
        self.assertEqual(self.blocks.depth, 0)
        self.blocks.close()

    def test_if_elif_else(self):
        """Check exactly one branch is taken"""
        states = self.run_directives(
            directive("if", argument="__ZERO"),
            directive("elif", argument="__ONE"),
            directive("elif", argument="1"),
            directive("else"),
            directive("endif"),
        )
        self.assertEqual(states, [False, True, False, False, True])
        self.assertEqual(self.blocks.depth, 0)

    def test_else_taken(self):
        """Check #else is taken when no other branch was"""
        states = self.run_directives(
            directive("if", argument="__ZERO"),
            directive("elif", argument="false"),
            directive("else"),
            directive("endif"),
        )
        self.assertEqual(states, [False, False, True, True])

    def test_ifset_ifnset(self):
        """Check existence tests"""
        states = self.run_directives(
            directive("ifset", name="__ZERO"),
            directive("endif"),
            directive("ifnset", name="__ZERO"),
            directive("else"),
            directive("endif"),
        )
        self.assertEqual(states, [True, True, False, True, True])

    def test_nested_inactive(self):
        """Check blocks inside inactive branches are never active"""
        states = self.run_directives(
            directive("if", argument="0"),
            directive("if", argument="1"),
            directive("else"),
            directive("endif"),
            directive("else"),
            directive("endif"),
        )
        self.assertEqual(states, [False, False, False, False, True, True])

    def test_dead_code_not_evaluated(self):
        """Check conditions under inactive parents are not evaluated"""
        states = self.run_directives(
            directive("if", argument="0"),
            directive("if", argument="__NOPE.x"),
            directive("elif", argument="1 +"),
            directive("endif"),
            directive("elif", argument="1"),
            directive("elif", argument="__NOPE.x"),
            directive("endif"),
        )
        self.assertEqual(
            states,
            [False, False, False, False, True, False, True],
        )

    def test_other_directives_ignored(self):
        """Check non-conditional directives do not change the state"""
        states = self.run_directives(
            directive("set", name="__A", argument="1"),
            directive("error", argument="x"),
        )
        self.assertEqual(states, [True, True])
        self.assertFalse(self.env.has("__A"))

    def test_condition_errors(self):
        """Check evaluation errors carry the directive location"""
        with self.assertRaises(ExpressionSyntaxError) as cm:
            self.blocks.process(directive("if", line=4, argument="1 +"))
        self.assertEqual(cm.exception.filename, "test.js")
        self.assertEqual(cm.exception.line, 4)

        blocks = BlockStack(self.env)
        with self.assertRaises(ExpressionRuntimeError) as cm:
            blocks.process(directive("if", line=2, argument="__NOPE.x"))
        self.assertEqual(cm.exception.line, 2)

    def test_after_else(self):
        """Check #elif and #else are not allowed after #else"""
        for kind in ["elif", "else"]:
            with self.subTest(kind=kind):
                blocks = BlockStack(self.env)
                blocks.process(directive("if", line=1, argument="1"))
                blocks.process(directive("else", line=2))
                with self.assertRaises(DirectiveSyntaxError) as cm:
                    blocks.process(directive(kind, line=3, argument="1"))
                self.assertEqual(cm.exception.line, 3)

    def test_unbalanced(self):
        """Check closing directives without #if"""
        for kind in ["elif", "else", "endif"]:
            with self.subTest(kind=kind):
                with self.assertRaises(UnbalancedBlockError) as cm:
                    self.blocks.process(directive(kind, line=5, argument="1"))
                self.assertEqual(cm.exception.line, 5)
                self.assertEqual(cm.exception.filename, "test.js")

    def test_unclosed(self):
        """Check open blocks at the end of the input"""
        self.run_directives(
            directive("if", line=1, argument="1"),
            directive("ifset", line=6, name="__A"),
        )
        with self.assertRaises(UnclosedBlockError) as cm:
            self.blocks.close()
        self.assertEqual(cm.exception.line, 6)
        self.assertIn("1, 6", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
