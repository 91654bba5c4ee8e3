"""
Tokenizer behavioral tests (splitting, quoting, escapes, offsets).

Conventions
- Test method names follow CamelCase per project convention.
- Tokens compare equal to plain strings; offsets are checked explicitly.
"""

from __future__ import annotations

import pickle
import unittest
from unittest import TestCase

from palaver import Token, tokenize, lift
from palaver.faults import UnterminatedQuoteError, MatchError, FaultCode


class TestTokenize(TestCase):
    """Behavioral tests for tokenize()."""

    def testQuotedWhitespaceIsKept(self):
        self.assertEqual(tokenize('foo "bar baz" qux'), ["foo", "bar baz", "qux"])

    def testOffsetsPointAtFirstSourceCharacter(self):
        tokens = tokenize('foo "bar baz" qux')
        self.assertEqual([token.offset for token in tokens], [0, 4, 14])

    def testEmptyAndBlankInputYieldNothing(self):
        self.assertEqual(tokenize(""), [])
        self.assertEqual(tokenize("   \t  "), [])

    def testRunsOfWhitespaceSeparate(self):
        self.assertEqual(tokenize("  a \t b\n c  "), ["a", "b", "c"])

    def testSingleQuotes(self):
        self.assertEqual(tokenize("say 'hello world'"), ["say", "hello world"])

    def testAdjacentSegmentsConcatenate(self):
        self.assertEqual(tokenize('a"b c"d'), ["ab cd"])

    def testOtherQuoteIsLiteralInsideQuotes(self):
        self.assertEqual(tokenize("\"it's\" 'say \"hi\"'"), ["it's", 'say "hi"'])

    def testBackslashEscapesQuoteInsideQuotes(self):
        self.assertEqual(tokenize(r'"a \"b\" c"'), ['a "b" c'])

    def testBackslashEscapesOutsideQuotes(self):
        self.assertEqual(tokenize(r"a\ b c\"d"), ["a b", 'c"d'])

    def testTrailingBackslashIsKept(self):
        self.assertEqual(tokenize("end\\"), ["end\\"])

    def testEmptyQuotesYieldEmptyToken(self):
        self.assertEqual(tokenize('a "" b'), ["a", "", "b"])
        self.assertEqual(tokenize("''"), [""])

    def testUnterminatedDoubleQuoteRaises(self):
        with self.assertRaises(UnterminatedQuoteError) as context:
            tokenize('foo "bar baz')
        self.assertEqual(context.exception.offset, 4)
        self.assertEqual(context.exception.index, 2)
        self.assertEqual(context.exception.code, FaultCode.UNTERMINATED_QUOTE)

    def testUnterminatedSingleQuoteRaises(self):
        with self.assertRaises(UnterminatedQuoteError) as context:
            tokenize("it's")
        self.assertEqual(context.exception.offset, 2)
        self.assertIsInstance(context.exception, MatchError)

    def testEscapedQuoteDoesNotOpen(self):
        self.assertEqual(tokenize(r"it\'s"), ["it's"])

    def testUnterminatedQuoteAlwaysRaisesAnError(self):
        for line in ('"', "'", 'a "b', "x 'y z", '"\\"', "''\"", "a\\\\'"):
            with self.subTest(line=line):
                with self.assertRaises(UnterminatedQuoteError):
                    tokenize(line)

    def testNonStringRejected(self):
        with self.assertRaises(TypeError):
            tokenize(["a", "b"])


class TestToken(TestCase):
    """Behavioral tests for Token and lift()."""

    def testTokenBehavesLikeString(self):
        token = Token("abc", 3)
        self.assertEqual(token, "abc")
        self.assertEqual(hash(token), hash("abc"))
        self.assertEqual(token.offset, 3)

    def testTokenRepr(self):
        self.assertEqual(repr(Token("abc", 3)), "Token('abc', offset=3)")

    def testTokenPickles(self):
        token = pickle.loads(pickle.dumps(Token("abc", 7)))
        self.assertEqual(token, "abc")
        self.assertEqual(token.offset, 7)

    def testNegativeOffsetRejected(self):
        with self.assertRaises(ValueError):
            Token("abc", -1)

    def testLiftKeepsVectorUnsplit(self):
        tokens = lift(["hello world", "--loud"])
        self.assertEqual(tokens, ["hello world", "--loud"])
        self.assertTrue(all(token.offset is None for token in tokens))

    def testLiftKeepsExistingTokens(self):
        original = tokenize("a b")
        self.assertEqual([token.offset for token in lift(original)], [0, 2])

    def testLiftRejectsPlainString(self):
        with self.assertRaises(TypeError):
            lift("a b")


if __name__ == "__main__":
    unittest.main()
