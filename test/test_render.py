"""
Renderer behavioral tests (error forms, help layout, help round trip).

Conventions
- Test method names follow CamelCase per project convention.
- Plain-text output is checked literally where the layout is part of the contract.
"""

from __future__ import annotations

import re
import sys
import unittest
from unittest import TestCase, mock

from rich.text import Text

from palaver import Schema, tokenize, resolve, render_error, render_help, error_text, help_text
from palaver.faults import (
    FaultCode,
    MatchError,
    MissingArgumentError,
    UnknownCommandError,
    UnknownFlagError,
    TooManyArgumentsError,
)


def _tool():
    schema = Schema()
    tool = schema.command("tool", descr="do things", examples=("tool a.txt 2 --force",))
    tool.positional("source", descr="input file")
    tool.positional("count", type=int, required=False, default=1)
    tool.flag("--tag", "-t", type=str, repeatable=True)
    tool.flag("--force", "-f", descr="overwrite")
    tool.flag("--mode", choices=("fast", "safe"))
    tool.flag("--level", type=int, required=True)
    tool.flag("--secret", hidden=True)
    remote = tool.command("remote", "rem", descr="manage remotes")
    remote.command("add", descr="add a remote")
    return schema.build()


def _fault(line):
    schema = Schema()
    schema.command("greet").positional("name").flag("--loud")
    try:
        resolve(schema.build(), tokenize(line))
    except MatchError as fault:
        return fault
    raise AssertionError("no fault raised for %r" % line)


class TestRenderError(TestCase):
    """Behavioral tests for render_error()/error_text()."""

    def testCompactForm(self):
        self.assertEqual(
            render_error(_fault("greet")),
            "greet: missing argument 'name' at second position "
            "(add <name> or run 'greet --help' to see the expected usage)",
        )

    def testCompactFormKeepsTitleWhenMessageLacksIt(self):
        fault = MatchError("the line could not be read", path=("greet",))
        self.assertEqual(render_error(fault), "greet: match error: the line could not be read")

    def testLongForm(self):
        self.assertEqual(
            render_error(_fault("greet"), compact=False).splitlines(),
            [
                "[ greet · 11125 | Missing Argument ]",
                "missing argument 'name' at second position",
                " → add <name> or run 'greet --help' to see the expected usage",
            ],
        )

    def testHostCodeLabels(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__codes__", {FaultCode.MISSING_ARGUMENT: "E-ARG"}, create=True):
            self.assertTrue(render_error(_fault("greet"), compact=False).startswith("[ greet · E-ARG |"))

    def testHostDocsAreAppended(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__docs__", {FaultCode.UNKNOWN_FLAG: "see the flags section"}, create=True):
            text = render_error(_fault("greet Ada --lod"), compact=False)
        self.assertTrue(text.endswith("see the flags section"))
        self.assertIn("did you mean '--loud'", text)

    def testFaultWithoutPath(self):
        fault = _fault("hello")
        self.assertIsInstance(fault, UnknownCommandError)
        self.assertTrue(render_error(fault).startswith("unknown command 'hello' at first position"))

    def testPlainTextHasNoControlSequences(self):
        for line in ("greet", "greet Ada extra", "greet Ada --loud=1", 'greet "Ada'):
            with self.subTest(line=line):
                text = render_error(_fault(line), compact=False)
                self.assertNotIn("\x1b", text)

    def testStyledTextAndRich(self):
        fault = _fault("greet")
        self.assertIsInstance(error_text(fault), Text)
        self.assertTrue(error_text(fault).spans)
        self.assertEqual(fault.__rich__().plain, render_error(fault, compact=False))

    def testNonFaultRejected(self):
        with self.assertRaises(TypeError):
            render_error(ValueError("nope"))


class TestRenderHelp(TestCase):
    """Behavioral tests for render_help()/help_text()."""

    def setUp(self):
        self.registry = _tool()
        self.tool = self.registry["tool"]

    def testUsageLine(self):
        self.assertEqual(
            render_help(self.tool).splitlines()[0],
            "usage: tool --level <integer> [flags] <source> [<count>] <command> ...",
        )

    def testSections(self):
        text = render_help(self.tool)
        for header in ("commands:", "arguments:", "flags:", "examples:"):
            self.assertIn("\n%s\n" % header, text)
        self.assertIn("do things", text)
        self.assertRegex(text, r"remote, rem\s+manage remotes")
        self.assertRegex(text, r"<source>\s+input file \(required, string\)")
        self.assertRegex(text, r"\[<count>\]\s+\(optional, integer, default: 1\)")
        self.assertRegex(text, r"-t, --tag <string>\s+\(repeatable, string\)")
        self.assertRegex(text, r"-f, --force\s+overwrite")
        self.assertRegex(text, r"--mode \{fast,safe\}\s+\(one of: fast, safe\)")
        self.assertRegex(text, r"--level <integer>\s+\(required, integer\)")
        self.assertRegex(text, r"-h, --help\s+show this help message")
        self.assertIn("• tool a.txt 2 --force", text)

    def testHiddenArgumentsAreOmitted(self):
        self.assertNotIn("--secret", render_help(self.tool))

    def testLeafHelpHasNoCommandsSection(self):
        text = render_help(self.registry.find("tool", "remote", "add"))
        self.assertTrue(text.startswith("usage: tool remote add [flags]"))
        self.assertNotIn("commands:", text)
        self.assertNotIn("arguments:", text)

    def testStyledHelp(self):
        self.assertIsInstance(help_text(self.tool), Text)
        self.assertEqual(help_text(self.tool).plain, render_help(self.tool))


def _section(text, header):
    lines = text.split("\n%s:\n" % header, 1)[1].split("\n\n", 1)[0].splitlines()
    return [re.split(r"\s{2,}", line.strip(), maxsplit=1) for line in lines]


def _example(row):
    detail = row[1] if len(row) > 1 else ""
    if match := re.search(r"\{([^,}]+)", row[0]):
        return match[1]
    if "integer" in detail:
        return "1"
    if "number" in detail:
        return "1.5"
    if "boolean" in detail:
        return "yes"
    return "x"


class TestHelpRoundTrip(TestCase):
    """Help text re-parsed into an invocation must resolve cleanly."""

    def _roundtrip(self, command):
        text = render_help(command)
        tokens = []
        if "\narguments:\n" in text:
            for row in _section(text, "arguments"):
                tokens.append(_example(row))
        for row in _section(text, "flags"):
            names = re.findall(r"--[\w-]+", row[0])
            if names == ["--help"]:
                continue
            tokens.append(names[0])
            if re.search(r"<[\w-]+>|\{", row[0]):
                tokens.append(_example(row))
        try:
            return resolve(command, tokens)
        except (UnknownFlagError, TooManyArgumentsError) as fault:
            self.fail("help round trip failed for %r: %s" % (tokens, fault))

    def testRoundTripResolves(self):
        invocation = self._roundtrip(_tool()["tool"])
        self.assertEqual(invocation.flags["mode"], "fast")
        self.assertEqual(invocation.flags["level"], 1)
        self.assertEqual(invocation.positionals, ("x", 1))

    def testRoundTripOnVariadicCommand(self):
        schema = Schema()
        cat = schema.command("cat")
        cat.positional("files", variadic=True)
        cat.flag("--number", "-n")
        cat.flag("--width", type=float)
        invocation = self._roundtrip(schema.build()["cat"])
        self.assertEqual(invocation.positionals, ("x",))
        self.assertEqual(invocation.flags["width"], 1.5)


if __name__ == "__main__":
    unittest.main()
