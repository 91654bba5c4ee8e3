"""
Palaver tokenizer: split one chat line into shell-like tokens.

Rules
- tokens are separated by runs of whitespace.
- single and double quotes group text; interior whitespace is kept literally.
  quotes may appear anywhere in a token and adjacent pieces concatenate:
  a"b c"d → 'ab cd'.
- a backslash escapes the next character (inside or outside quotes), including
  the quote characters themselves. a trailing lone backslash is kept as-is.
- an empty quoted pair ("" or '') produces an empty token.
- an unmatched quote raises UnterminatedQuoteError pointing at the opening quote.
- empty or blank input yields no tokens.

No schema knowledge lives here; tokenize() is purely lexical and never
raises anything but UnterminatedQuoteError for a string argument.

Example
    >>> tokenize('foo "bar baz" qux')
    [Token('foo', offset=0), Token('bar baz', offset=4), Token('qux', offset=14)]
"""
from collections.abc import Iterable

from .faults import UnterminatedQuoteError
from .utils import ordinal

_QUOTES = frozenset("'\"")


class Token(str):
    """
    One lexical unit: the token text plus where it started in the line.

    A Token compares and hashes exactly like its text, so it can be used
    wherever a plain string is expected. `offset` is the character offset of
    the token's first source character (the opening quote for quoted tokens),
    or None for tokens that did not come from a line (argument vectors).
    """

    def __new__(cls, text, offset=None, /):
        if not isinstance(text, str):
            raise TypeError("Token() text must be a string")
        if offset is not None and (not isinstance(offset, int) or offset < 0):
            raise ValueError("Token() offset must be a non-negative integer or None")
        self = super().__new__(cls, text)
        self._offset = offset
        return self

    @property
    def offset(self):
        return self._offset

    def __repr__(self):
        return "Token(%s, offset=%r)" % (str.__repr__(self), self._offset)

    def __reduce__(self):
        return type(self), (str(self), self._offset)


def tokenize(line, /):
    """
    split `line` into an ordered list of Tokens.

    raises
    - TypeError: when line is not a string.
    - UnterminatedQuoteError: when a quote opened at some offset is never closed.
      options carry offset (of the opening quote), index (1-based position of
      the token being built) and quote (the quote character).
    """
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")

    tokens = []
    buffer = []
    start = None        # offset of the first character of the current token
    quote = None        # active quote character, if any
    opened = None       # offset where the active quote was opened
    escaped = False

    for offset, char in enumerate(line):
        if escaped:
            buffer.append(char)
            escaped = False
            continue

        if char == "\\":
            if start is None:
                start = offset
            escaped = True
            continue

        if quote:
            if char == quote:
                quote = None
            else:
                buffer.append(char)
            continue

        if char in _QUOTES:
            if start is None:
                start = offset
            quote, opened = char, offset
            continue

        if char.isspace():
            if start is not None:
                tokens.append(Token("".join(buffer), start))
                buffer.clear()
                start = None
            continue

        if start is None:
            start = offset
        buffer.append(char)

    if quote:
        raise UnterminatedQuoteError(
            "quote %s opened at column %d (%s position) is never closed" % (
                quote, opened + 1, ordinal(len(tokens) + 1)
            ),
            token=Token(line[start:], start),
            index=len(tokens) + 1,
            offset=opened,
            quote=quote,
            hint="close the quote with a matching %s, or escape it as \\%s" % (quote, quote),
        )

    if escaped:
        # nothing left to escape: keep the backslash literally
        buffer.append("\\")

    # start is set on the first quote too, so "" still yields an empty token
    if start is not None:
        tokens.append(Token("".join(buffer), start))

    return tokens


def lift(items, /):
    """
    wrap an already-split argument vector into Tokens without re-splitting it.

    Tokens passed in keep their offsets; plain strings get offset=None.
    """
    if isinstance(items, str) or not isinstance(items, Iterable):
        raise TypeError("lift() argument must be an iterable of strings")
    tokens = []
    for item in items:
        if isinstance(item, Token):
            tokens.append(item)
        elif isinstance(item, str):
            tokens.append(Token(item))
        else:
            raise TypeError("lift() argument must be an iterable of strings")
    return tokens


__all__ = (
    "Token",
    "tokenize",
    "lift",
)
