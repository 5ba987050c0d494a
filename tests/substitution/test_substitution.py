# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

import logging
import unittest

from condpp.environment import Environment
from condpp.substitution import Replacement, Substituter
from condpp.values import UNDEFINED


class TestSubstituter(unittest.TestCase):
    """
    Test Substituter class.
    """

    @classmethod
    def setUpClass(self):
        logging.disable()

    def setUp(self):
        env = Environment(
            {
                "__A": 1,
                "__S": "x",
                "__U": UNDEFINED,
                "__O": {"a": {"b": 2}, "c": [1]},
            },
        )
        self.substituter = Substituter(env)

    def test_replacements(self):
        """Check references are replaced and recorded"""
        text, replacements = self.substituter.substitute("__A + __S")
        self.assertEqual(text, '1 + "x"')
        self.assertEqual(
            replacements,
            [Replacement(0, 3, "1"), Replacement(6, 3, '"x"')],
        )

    def test_unchanged(self):
        """Check text without references is returned as-is"""
        for text in [
            "",
            "var a = 1;",
            "obj.__A",
            "x__A",
            "$__A",
            "__A$",
            "__AB",
            "__a",
            "__NOPE",
        ]:
            with self.subTest(text=text):
                self.assertEqual(self.substituter.substitute(text), (text, []))

    def test_boundaries(self):
        """Check references next to punctuation"""
        text, _ = self.substituter.substitute("f(__A,__A)+[__A]")
        self.assertEqual(text, "f(1,1)+[1]")

        text, _ = self.substituter.substitute("'__S'")
        self.assertEqual(text, "'\"x\"'")

    def test_undefined(self):
        """Check variables set to undefined are substituted"""
        text, _ = self.substituter.substitute("__U")
        self.assertEqual(text, "undefined")

    def test_members(self):
        """Check property chains are resolved while they exist"""
        text, replacements = self.substituter.substitute("__O.a.b;")
        self.assertEqual(text, "2;")
        self.assertEqual(replacements, [Replacement(0, 7, "2")])

        text, _ = self.substituter.substitute("__O.a.z")
        self.assertEqual(text, '{"b":2}.z')

        text, _ = self.substituter.substitute("__O.c.length")
        self.assertEqual(text, "[1].length")

        text, _ = self.substituter.substitute("__A.toFixed(2)")
        self.assertEqual(text, "1.toFixed(2)")


if __name__ == "__main__":
    unittest.main()
