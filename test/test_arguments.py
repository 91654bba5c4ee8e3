"""
Arguments module behavioral tests (construction, validation, conversion).

Scope
- Validate Positional and Flag construction, normalization and rejections.
- Validate value conversion for built-in and custom types, and choices.
- Validate defaults derived from arity and repeatability.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from palaver import Positional, Flag, helper


class TestPositional(TestCase):
    """Behavioral tests for Positional specifications."""

    def testDefaults(self):
        p = Positional("name")
        self.assertEqual(p.name, "name")
        self.assertIs(p.type, str)
        self.assertTrue(p.required)
        self.assertFalse(p.variadic)
        self.assertIsNone(p.default)
        self.assertIsNone(p.descr)
        self.assertEqual(p.label, "<name>")

    def testNameIsStripped(self):
        self.assertEqual(Positional("  file ").name, "file")

    def testBadNamesRejected(self):
        for name in ("", "-x", "1st", "two words"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    Positional(name)

    def testNonStringNameRejected(self):
        with self.assertRaises(TypeError):
            Positional(3)

    def testVariadicDefaultsToEmptyTuple(self):
        self.assertEqual(Positional("rest", variadic=True, default="ignored").default, ())

    def testNonCallableTypeRejected(self):
        with self.assertRaises(TypeError):
            Positional("count", type="int")

    def testDuplicateChoicesRejected(self):
        with self.assertRaises(ValueError):
            Positional("mode", choices=["a", "a"])

    def testMetavarWithChoicesRejected(self):
        with self.assertRaises(TypeError):
            Positional("mode", choices=["a", "b"], metavar="MODE")

    def testEmptyDescrRejected(self):
        with self.assertRaises(ValueError):
            Positional("name", descr="   ")

    def testRequiredHiddenRejected(self):
        with self.assertRaises(TypeError):
            Positional("name", hidden=True)

    def testReprNamesTheSpec(self):
        self.assertTrue(repr(Positional("name")).startswith("positional(name='name'"))

    def testPropertiesAreReadOnly(self):
        p = Positional("name")
        with self.assertRaises(AttributeError):
            p.name = "other"


class TestConversion(TestCase):
    """Behavioral tests for convert()/accepts() and expected names."""

    def testIntegerConversion(self):
        p = Positional("count", type=int)
        self.assertEqual(p.convert("42"), 42)
        self.assertEqual(p.convert("-3"), -3)
        self.assertEqual(p.expected, "integer")
        for text in ("4.2", "x", "1_000", " 1"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    p.convert(text)

    def testBooleanConversion(self):
        p = Positional("enabled", type=bool)
        for text in ("true", "YES", "on", "1"):
            self.assertIs(p.convert(text), True)
        for text in ("false", "No", "off", "0"):
            self.assertIs(p.convert(text), False)
        with self.assertRaises(ValueError):
            p.convert("maybe")
        self.assertEqual(p.expected, "boolean")

    def testFloatConversion(self):
        p = Positional("ratio", type=float)
        self.assertEqual(p.convert("0.5"), 0.5)
        self.assertEqual(p.expected, "number")

    def testCustomConverterNamedByFunction(self):
        def hexadecimal(text):
            return int(text, 16)

        p = Positional("color", type=hexadecimal)
        self.assertEqual(p.convert("ff"), 255)
        self.assertEqual(p.expected, "hexadecimal")

    def testChoices(self):
        p = Positional("mode", choices=("fast", "safe"))
        self.assertTrue(p.accepts("fast"))
        self.assertFalse(p.accepts("slow"))
        self.assertEqual(p.expected, "one of: fast, safe")

    def testAcceptsAnythingWithoutChoices(self):
        self.assertTrue(Positional("name").accepts("whatever"))


class TestFlag(TestCase):
    """Behavioral tests for Flag specifications."""

    def testSwitchDefaults(self):
        f = Flag("--loud", "-l")
        self.assertTrue(f.switch)
        self.assertIs(f.default, False)
        self.assertEqual(f.name, "loud")
        self.assertEqual(f.names, ("--loud", "-l"))
        self.assertEqual(f.label, "")

    def testRepeatableSwitchCounts(self):
        self.assertEqual(Flag("--verbose", "-v", repeatable=True).default, 0)

    def testValueFlagDefaults(self):
        f = Flag("--count", type=int, default=3)
        self.assertFalse(f.switch)
        self.assertEqual(f.default, 3)
        self.assertEqual(f.label, "<integer>")
        self.assertIsNone(Flag("--name", type=str).default)

    def testRepeatableValueFlagDefaultsToEmptyTuple(self):
        self.assertEqual(Flag("--tag", "-t", type=str, repeatable=True).default, ())

    def testChoicesImplyStringValue(self):
        f = Flag("--mode", choices=("fast", "safe"))
        self.assertFalse(f.switch)
        self.assertIs(f.type, str)
        self.assertEqual(f.label, "{fast,safe}")

    def testKeywordReplacesDashes(self):
        f = Flag("--dry-run")
        self.assertEqual(f.name, "dry-run")
        self.assertEqual(f.keyword, "dry_run")

    def testMetavarLabel(self):
        self.assertEqual(Flag("--out", type=str, metavar="PATH").label, "PATH")

    def testBadSpellingsRejected(self):
        for long in ("loud", "-loud", "--", "---loud", "--lo ud", "--1st"):
            with self.subTest(long=long):
                with self.assertRaises(ValueError):
                    Flag(long)
        for short in ("l", "--l", "-ab", "-_"):
            with self.subTest(short=short):
                with self.assertRaises(ValueError):
                    Flag("--loud", short)

    def testSwitchMetavarRejected(self):
        with self.assertRaises(TypeError):
            Flag("--loud", metavar="X")

    def testHelperMustBePlainSwitch(self):
        with self.assertRaises(TypeError):
            Flag("--help", type=str, helper=True)
        with self.assertRaises(TypeError):
            Flag("--help", required=True, helper=True)

    def testBuiltinHelper(self):
        f = helper()
        self.assertTrue(f.helper)
        self.assertEqual(f.names, ("--help", "-h"))

    def testSpecsAreGenericOverTheirValue(self):
        self.assertIs(Flag[bool].__origin__, Flag)
        self.assertIs(Positional[int].__origin__, Positional)
        self.assertIsInstance(helper(), Flag)
        self.assertTrue(repr(helper()).startswith("flag("))


if __name__ == "__main__":
    unittest.main()
