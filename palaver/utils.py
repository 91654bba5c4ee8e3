"""
Palaver utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the schema, resolver and renderer layers.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning “value not provided”, distinct from None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but keep legitimate falsey values like None/0/""/[].

- @rename("name")
  • Assign stable __name__/__qualname__ to generated callables for clean tracebacks.

- mirror("attr")
  • Read-only property exposing a private backing field (self._attr) as a fresh copy
    for containers, so spec state cannot be mutated through the public API.

- pluralize(word)
  • Plural forms for help section labels.

- ordinal(number)
  • 1-based position labels ("first", "second", ..., "11th") for position-first messages.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> ordinal(3)
    'third'
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used where None is a legitimate user value (a flag default of None, a
    positional default of None) and the API still needs to tell “not provided”
    apart from “provided as None”.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a per-process singleton.
    """

    def __or__(self, other, /):
        # str | Unset and Unset | str both build a union with UnsetType.
        if isinstance(other, type) or hasattr(other, "__args__"):
            return other | type(self)
        return NotImplemented

    __ror__ = __or__

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns the given object unless it is Unset, in which case `default` is
    returned. Falsey values like None, 0, "" or [] are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(name, /):
    """Decorator giving a generated callable a readable __name__/__qualname__."""
    if not isinstance(name, str):
        raise TypeError("@rename() argument must be a string")

    def decorate(function):
        if not builtins.callable(function):
            raise TypeError("@rename() must be applied to a callable")
        function.__name__ = function.__qualname__ = name
        return function

    return decorate


def _detach(value):
    # Mutable containers come back as fresh copies; tuples and frozensets are shared.
    match value:
        case str() | bytes() | tuple() | frozenset():
            return value
        case Mapping():
            return {key: _detach(item) for key, item in value.items()}
        case Sequence():
            return [_detach(item) for item in value]
        case Set():
            return {_detach(item) for item in value}
    return value


def mirror(name, /):
    """
    Read-only property over the private attribute "_{name}".

    Mutable containers are copied on every access so schema state cannot be
    changed through the public API.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


_IRREGULAR = {"alias": "aliases", "entry": "entries", "index": "indices"}


@functools.cache
def pluralize(word, /):
    """Plural of a single lowercase label word ("flag" -> "flags", "alias" -> "aliases")."""
    if not isinstance(word, str):
        raise TypeError("pluralize() argument must be a string")
    if word in _IRREGULAR:
        return _IRREGULAR[word]
    if re.search(r"(s|sh|ch|x|z)$", word):
        return word + "es"
    return word + "s"


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth"), they read better in chat replies.
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, ...)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value; turn it
into a concrete value with coalesce(value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "ordinal",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
