# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

import logging
import re
import unittest
from pathlib import Path

from condpp.comments import JAVASCRIPT, MARKUP, STYLESHEET
from condpp.preprocessor import Preprocessor


class TestPreprocessor(unittest.TestCase):
    """
    Test Preprocessor class.
    """

    @classmethod
    def setUpClass(self):
        logging.disable()

    def test_constructor(self):
        """Check arguments are handled correctly"""
        preprocessor = Preprocessor(
            values={"__DEBUG": True},
            comments=["license", re.compile("keep")],
            extensions=["html"],
            root="/path/to/root",
            sourcemap=False,
        )
        self.assertTrue(preprocessor.environment.get("__DEBUG"))
        self.assertEqual(preprocessor.root, Path("/path/to/root"))
        self.assertFalse(preprocessor.sourcemap)
        self.assertEqual(len(preprocessor.comment_filter.patterns), 2)

    def test_constructor_defaults(self):
        """Check default arguments"""
        preprocessor = Preprocessor()
        self.assertEqual(len(preprocessor.environment), 0)
        self.assertEqual(preprocessor.root, Path.cwd())
        self.assertTrue(preprocessor.sourcemap)

    def test_constructor_validation(self):
        """Check arguments are valid"""

        with self.assertRaises(TypeError):
            Preprocessor(values=["__A"])

        with self.assertRaises(ValueError):
            Preprocessor(values={"lowercase": 1})

        with self.assertRaises(TypeError):
            Preprocessor(values={"__A": object()})

        with self.assertRaises(TypeError):
            Preprocessor(comments=1)

        with self.assertRaises(TypeError):
            Preprocessor(extensions="html")

        with self.assertRaises(ValueError):
            Preprocessor(extensions=["cobol"])

        with self.assertRaises(TypeError):
            Preprocessor(root=1)

        with self.assertRaises(TypeError):
            Preprocessor(sourcemap="yes")

    def test_accepts(self):
        """Check implementation of accepts"""
        preprocessor = Preprocessor()
        self.assertTrue(preprocessor.accepts("src/main.js"))
        self.assertTrue(preprocessor.accepts("src/Main.TS"))
        self.assertFalse(preprocessor.accepts("index.html"))
        self.assertFalse(preprocessor.accepts("Makefile"))

        preprocessor = Preprocessor(extensions=["html", ".css"])
        self.assertTrue(preprocessor.accepts("index.html"))
        self.assertTrue(preprocessor.accepts("style.css"))
        self.assertTrue(preprocessor.accepts("main.js"))

    def test_comment_syntax(self):
        """Check the comment syntax chosen for each extension"""
        preprocessor = Preprocessor(
            extensions={"tpl": "markup", "pcss": STYLESHEET},
        )
        self.assertIs(preprocessor.comment_syntax("a.js"), JAVASCRIPT)
        self.assertIs(preprocessor.comment_syntax("a.tpl"), MARKUP)
        self.assertIs(preprocessor.comment_syntax("a.pcss"), STYLESHEET)
        self.assertIs(preprocessor.comment_syntax("a.unknown"), JAVASCRIPT)

    def test_relative_path(self):
        """Check implementation of relative_path"""
        preprocessor = Preprocessor(root="/project")
        self.assertEqual(
            preprocessor.relative_path("/project/src/app.js"),
            "src/app.js",
        )
        self.assertEqual(
            preprocessor.relative_path("/other/app.js"),
            "../other/app.js",
        )

    def test_shared_environment(self):
        """Check variables set in one file are visible in later files"""
        preprocessor = Preprocessor()
        preprocessor.transform("//#set __SHARED 42\n", "a.js")
        result = preprocessor.transform("x = __SHARED;", "b.js")
        self.assertEqual(result.code, "x = 42;")
        self.assertEqual(preprocessor.environment.get("__SHARED"), 42)

    def test_file_reseeded(self):
        """Check __FILE is updated for each file"""
        preprocessor = Preprocessor(root="/project")
        first = preprocessor.transform("__FILE", "/project/a.js")
        second = preprocessor.transform("__FILE", "/project/lib/b.js")
        self.assertEqual(first.code, '"a.js"')
        self.assertEqual(second.code, '"lib/b.js"')

    def test_source_type(self):
        """Check source must be text"""
        preprocessor = Preprocessor()
        with self.assertRaises(TypeError):
            preprocessor.transform(b"//#if 1", "a.js")


if __name__ == "__main__":
    unittest.main()
