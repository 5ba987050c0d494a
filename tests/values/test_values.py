# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

import logging
import math
import unittest

from condpp import values
from condpp.errors import ExpressionRuntimeError
from condpp.values import UNDEFINED


class TestValues(unittest.TestCase):
    """
    Test coercion and rendering of values.
    """

    @classmethod
    def setUpClass(self):
        logging.disable()

    def test_undefined(self):
        """Check undefined is a falsy singleton"""
        self.assertIs(values.Undefined(), UNDEFINED)
        self.assertFalse(UNDEFINED)
        self.assertEqual(repr(UNDEFINED), "undefined")

    def test_type_of(self):
        """Check type tags"""
        self.assertEqual(values.type_of(UNDEFINED), "undefined")
        self.assertEqual(values.type_of(None), "null")
        self.assertEqual(values.type_of(True), "boolean")
        self.assertEqual(values.type_of(1), "number")
        self.assertEqual(values.type_of(1.5), "number")
        self.assertEqual(values.type_of("x"), "string")
        self.assertEqual(values.type_of([1]), "object")
        self.assertEqual(values.type_of({"a": 1}), "object")

    def test_is_supported(self):
        """Check which host values can be stored"""
        self.assertTrue(values.is_supported({"a": [1, None, "x"]}))
        self.assertTrue(values.is_supported(UNDEFINED))
        self.assertFalse(values.is_supported(object()))
        self.assertFalse(values.is_supported({1: "a"}))
        self.assertFalse(values.is_supported([set()]))

    def test_truthy(self):
        """Check truthiness"""
        for value in [True, 1, -0.5, "0", " ", [], {}, math.inf]:
            with self.subTest(value=value):
                self.assertTrue(values.truthy(value))
        for value in [False, 0, 0.0, math.nan, "", None, UNDEFINED]:
            with self.subTest(value=value):
                self.assertFalse(values.truthy(value))

    def test_to_number(self):
        """Check numeric conversion"""
        self.assertEqual(values.to_number(" 12 "), 12)
        self.assertEqual(values.to_number("0x1f"), 31)
        self.assertEqual(values.to_number("1e3"), 1000)
        self.assertEqual(values.to_number(""), 0)
        self.assertEqual(values.to_number(None), 0)
        self.assertEqual(values.to_number(True), 1)
        self.assertEqual(values.to_number([]), 0)
        self.assertEqual(values.to_number([5]), 5)
        self.assertEqual(values.to_number("-Infinity"), -math.inf)
        self.assertTrue(math.isnan(values.to_number(UNDEFINED)))
        self.assertTrue(math.isnan(values.to_number("abc")))
        self.assertTrue(math.isnan(values.to_number("inf")))
        self.assertTrue(math.isnan(values.to_number("1_0")))
        self.assertTrue(math.isnan(values.to_number({})))

    def test_to_int32(self):
        """Check 32-bit integer conversion"""
        self.assertEqual(values.to_int32(2**31), -(2**31))
        self.assertEqual(values.to_int32(-1.5), -1)
        self.assertEqual(values.to_int32(math.nan), 0)
        self.assertEqual(values.to_uint32(-1), 2**32 - 1)

    def test_number_to_string(self):
        """Check numbers are spelled the shortest way"""
        cases = {
            1.0: "1",
            -2.5: "-2.5",
            0.1 + 0.2: "0.30000000000000004",
            -0.0: "0",
            1e20: "100000000000000000000",
            1e21: "1e+21",
            1.5e22: "1.5e+22",
            0.000001: "0.000001",
            1e-7: "1e-7",
            math.nan: "NaN",
            math.inf: "Infinity",
            -math.inf: "-Infinity",
        }
        for number, expected in cases.items():
            with self.subTest(number=number):
                self.assertEqual(values.number_to_string(number), expected)

    def test_to_string(self):
        """Check string conversion"""
        self.assertEqual(values.to_string(UNDEFINED), "undefined")
        self.assertEqual(values.to_string(None), "null")
        self.assertEqual(values.to_string(False), "false")
        self.assertEqual(values.to_string(3), "3")
        self.assertEqual(values.to_string([1, None, "a"]), "1,,a")
        self.assertEqual(values.to_string({"a": 1}), "[object Object]")

    def test_to_literal(self):
        """Check values are rendered as source literals"""
        self.assertEqual(values.to_literal('a"b'), '"a\\"b"')
        self.assertEqual(values.to_literal("é"), '"é"')
        self.assertEqual(values.to_literal(2.0), "2")
        self.assertEqual(values.to_literal(True), "true")
        self.assertEqual(values.to_literal(None), "null")
        self.assertEqual(values.to_literal(UNDEFINED), "undefined")
        self.assertEqual(values.to_literal([1, "x", None]), '[1,"x",null]')
        self.assertEqual(
            values.to_literal({"a": [True], "b": {}}),
            '{"a":[true],"b":{}}',
        )

    def test_equality(self):
        """Check strict and loose equality"""
        self.assertTrue(values.strict_equals(1, 1.0))
        self.assertFalse(values.strict_equals(1, "1"))
        self.assertFalse(values.strict_equals(math.nan, math.nan))
        self.assertFalse(values.strict_equals(None, UNDEFINED))
        self.assertTrue(values.loose_equals(1, "1"))
        self.assertTrue(values.loose_equals(None, UNDEFINED))
        self.assertFalse(values.loose_equals(None, 0))
        self.assertTrue(values.loose_equals(True, "1"))
        self.assertTrue(values.loose_equals([1, 2], "1,2"))

    def test_compare(self):
        """Check relational operators"""
        self.assertTrue(values.compare("<", "10", "9"))
        self.assertFalse(values.compare("<", 10, "9"))
        self.assertTrue(values.compare(">=", 2, 2))
        self.assertFalse(values.compare("<", math.nan, 1))
        self.assertFalse(values.compare(">=", math.nan, 1))

    def test_arithmetic(self):
        """Check arithmetic operators"""
        self.assertEqual(values.arithmetic("+", "a", 1), "a1")
        self.assertEqual(values.arithmetic("+", 1, None), 1)
        self.assertEqual(values.arithmetic("*", "3", "4"), 12)
        self.assertEqual(values.arithmetic("%", -5, 3), -2)
        self.assertEqual(values.arithmetic("/", 1, 0), math.inf)
        self.assertTrue(math.isnan(values.arithmetic("/", 0, 0)))
        self.assertTrue(math.isnan(values.arithmetic("-", UNDEFINED, 1)))

    def test_bitwise(self):
        """Check bitwise operators"""
        self.assertEqual(values.bitwise("&", 6, 3), 2)
        self.assertEqual(values.bitwise("|", 4, 1), 5)
        self.assertEqual(values.bitwise("^", 5, 1), 4)
        self.assertEqual(values.bitwise("<<", 1, 31), -(2**31))
        self.assertEqual(values.bitwise(">>", -8, 1), -4)
        self.assertEqual(values.bitwise(">>>", -1, 0), 2**32 - 1)
        self.assertEqual(values.bitwise("<<", 1, 33), 2)

    def test_get_member(self):
        """Check property access"""
        self.assertEqual(values.get_member("abc", "length"), 3)
        self.assertEqual(values.get_member("abc", 1.0), "b")
        self.assertEqual(values.get_member([1, 2], "1"), 2)
        self.assertEqual(values.get_member({"a": 1}, "a"), 1)
        self.assertIs(values.get_member({"a": 1}, "b"), UNDEFINED)
        self.assertIs(values.get_member("abc", 5), UNDEFINED)
        self.assertIs(values.get_member(1, "x"), UNDEFINED)

        with self.assertRaises(ExpressionRuntimeError):
            values.get_member(UNDEFINED, "x")

        with self.assertRaises(ExpressionRuntimeError):
            values.get_member(None, "x")


if __name__ == "__main__":
    unittest.main()
