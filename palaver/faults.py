"""
Palaver faults (lexical, match, dispatch and schema errors).

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- CommandException: base type carrying a message + immutable options; knows how
  to render itself through rich (see palaver.render for the plain-text forms).
- MatchError / DispatchError: the two recoverable families. A caller renders
  them as a reply and keeps serving further input.
- SchemaViolation / SchemaError: structural build errors, fatal to startup.
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: every match message names the ordinal position of
  the offending token (“at third position”), so users learn by trying.
- Short titles, one-sentence bodies, a single clear hint.

Integration
- Raise sites build the message and pass structured context as options
  (token, index, offset, command, argument, expected, ...). Renderers never
  need to re-parse the input.
"""
from enum import IntEnum
from types import MappingProxyType

from .utils import Unset, rename


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - lexical (101xx)
      • UNTERMINATED_QUOTE
    - routing (111xx)
      • UNKNOWN_COMMAND, MISSING_COMMAND
    - flags (1111x/1112x)
      • UNKNOWN_FLAG, FLAG_ASSIGNMENT, DUPLICATE_FLAG, FLAG_VALUE_REQUIRED, MISSING_FLAG
    - positionals (1112x)
      • TOO_MANY_ARGUMENTS, MISSING_ARGUMENT
    - coercion (1113x)
      • TYPE_MISMATCH, INVALID_CHOICE
    - dispatch (131xx)
      • NO_HANDLER, HANDLER_FAILED
    - schema (141xx)
      • SCHEMA_VIOLATION

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- lexical errors ---
    UNTERMINATED_QUOTE  = 10101

    # --- routing errors ---
    UNKNOWN_COMMAND     = 11101
    MISSING_COMMAND     = 11102

    # --- flag errors ---
    UNKNOWN_FLAG        = 11112
    FLAG_ASSIGNMENT     = 11113
    DUPLICATE_FLAG      = 11115
    FLAG_VALUE_REQUIRED = 11117
    MISSING_FLAG        = 11126

    # --- positional errors ---
    TOO_MANY_ARGUMENTS  = 11121
    MISSING_ARGUMENT    = 11125

    # --- coercion errors ---
    TYPE_MISMATCH       = 11131
    INVALID_CHOICE      = 11132

    # --- dispatch errors ---
    NO_HANDLER          = 13101
    HANDLER_FAILED      = 13131

    # --- schema errors ---
    SCHEMA_VIOLATION    = 14101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _option(name, /):
    """
    read-only accessor for a fault option; missing options read as None.
    """
    @rename(name)
    def getter(self):
        return self.options.get(name)
    return property(getter)


class CommandException(Exception):
    """
    base type for every recoverable palaver fault.

    construction
    - message: the one-sentence body, built at the raise site.
    - options: structured context kept in an immutable mapping. common keys:
      code, title, hint, token, index, offset, command (the CommandSpec the
      fault belongs to), path (command names from root), argument (the
      offending spec), expected (expected type or schema element name).

    subclasses declare __code__ and __title__ defaults so raise sites only
    pass what is specific to the occurrence.
    """
    __code__ = Unset
    __title__ = "command error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__code__,
            "title": type(self).__title__,
        } | options)

    code = _option("code")
    title = _option("title")
    hint = _option("hint")
    token = _option("token")
    index = _option("index")
    offset = _option("offset")
    command = _option("command")
    argument = _option("argument")
    expected = _option("expected")

    @property
    def path(self):
        """
        command names from root to the command the fault belongs to (may be empty).
        """
        return tuple(self.options.get("path", ()))

    def __str__(self):
        return self.message if self.message is not Unset else self.title

    def __rich__(self):
        from .render import error_text
        return error_text(self, compact=False)


class MatchError(CommandException):
    """input could not be matched against the schema (lexical or structural)."""
    __title__ = "match error"


class UnterminatedQuoteError(MatchError):
    __code__ = FaultCode.UNTERMINATED_QUOTE
    __title__ = "unterminated quote"


class UnknownCommandError(MatchError):
    __code__ = FaultCode.UNKNOWN_COMMAND
    __title__ = "unknown command"

    @property
    def suggestions(self):
        return tuple(self.options.get("suggestions", ()))


class MissingCommandError(UnknownCommandError):
    __code__ = FaultCode.MISSING_COMMAND
    __title__ = "missing command"


class UnknownFlagError(MatchError):
    __code__ = FaultCode.UNKNOWN_FLAG
    __title__ = "unknown flag"

    @property
    def suggestions(self):
        return tuple(self.options.get("suggestions", ()))


class FlagAssignmentError(MatchError):
    __code__ = FaultCode.FLAG_ASSIGNMENT
    __title__ = "flag cannot take a value"


class DuplicateFlagError(MatchError):
    __code__ = FaultCode.DUPLICATE_FLAG
    __title__ = "duplicated flag"


class FlagValueRequiredError(MatchError):
    __code__ = FaultCode.FLAG_VALUE_REQUIRED
    __title__ = "missing flag value"


class MissingFlagError(MatchError):
    __code__ = FaultCode.MISSING_FLAG
    __title__ = "missing flag"


class TooManyArgumentsError(MatchError):
    __code__ = FaultCode.TOO_MANY_ARGUMENTS
    __title__ = "too many arguments"


class MissingArgumentError(MatchError):
    __code__ = FaultCode.MISSING_ARGUMENT
    __title__ = "missing argument"


class TypeMismatchError(MatchError):
    __code__ = FaultCode.TYPE_MISMATCH
    __title__ = "type mismatch"


class InvalidChoiceError(TypeMismatchError):
    __code__ = FaultCode.INVALID_CHOICE
    __title__ = "invalid choice"


class DispatchError(CommandException):
    """a resolved invocation could not be carried out."""
    __title__ = "dispatch error"


class NoHandlerError(DispatchError):
    __code__ = FaultCode.NO_HANDLER
    __title__ = "nothing to run"


class HandlerFailedError(DispatchError):
    __code__ = FaultCode.HANDLER_FAILED
    __title__ = "command failed"

    payload = _option("payload")


class SchemaViolation(ValueError):
    """
    one structural problem found while building a schema.

    carries the offending command path and a stable code, like the
    recoverable faults, so build reports can be rendered the same way.
    """

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": FaultCode.SCHEMA_VIOLATION} | options)

    code = _option("code")

    @property
    def path(self):
        return tuple(self.options.get("path", ()))


class SchemaError(ExceptionGroup[SchemaViolation]):
    """
    every violation found by one Schema.build() call, grouped.

    a schema that failed to build must never reach the resolver.
    """

    def __new__(cls, violations, /):
        return super().__new__(cls, "invalid command schema", tuple(violations))

    def __init__(self, violations, /):
        super().__init__("invalid command schema", tuple(violations))

    def derive(self, excs):
        return SchemaError(excs)

    @property
    def violations(self):
        return self.exceptions


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "MatchError",
    "UnterminatedQuoteError",
    "UnknownCommandError",
    "MissingCommandError",
    "UnknownFlagError",
    "FlagAssignmentError",
    "DuplicateFlagError",
    "FlagValueRequiredError",
    "MissingFlagError",
    "TooManyArgumentsError",
    "MissingArgumentError",
    "TypeMismatchError",
    "InvalidChoiceError",
    "DispatchError",
    "NoHandlerError",
    "HandlerFailedError",
    "SchemaViolation",
    "SchemaError",
    "getdoc",
)
