r"""
Palaver argument specifications.

Overview
- Specs
  • Positional: value-bearing argument identified by position (required, optional
    or variadic).
  • Flag: named argument with a long name (--name) and an optional short alias
    (-n). Without a value type it is a boolean switch (arity 0); with one it
    takes a value (arity 1).

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields listed in __introspectable__ as read-only properties.

Value types
- str, int, bool and float are understood natively and named "string",
  "integer", "boolean" and "number" in messages. Booleans accept
  true/false, yes/no, on/off and 1/0 (any casing).
- any other callable taking one string is accepted as a custom converter; its
  __name__ is used in messages.
- choices restrict the converted value to an enumerated set.

Validation highlights (raised immediately, on construction)
- Positional names must match r"[^\W\d_][\w-]*" (no leading dash or digit).
- Long flag names must match r"--[^\W\d_](-?[^\W_]+)*", short ones r"-[^\W_]".
- metavar and choices cannot be combined (help shows one or the other).
- choices reject duplicates unless given as a set.
- a variadic positional's default is always an empty tuple.

Quick example:
    >>> Positional("name")
    positional(name='name', type=<class 'str'>, required=True, ...)
    >>> Flag("--tag", "-t", type=str, repeatable=True)
    flag(long='--tag', short='-t', ...)
"""
import functools
import operator
import re
from collections.abc import Iterable, Set

from rich.text import Text

from .utils import *

_TYPENAMES = {
    str: "string",
    int: "integer",
    bool: "boolean",
    float: "number",
}

_TRUTHY = frozenset({"true", "yes", "on", "1"})
_FALSY = frozenset({"false", "no", "off", "0"})


def _boolean(text, /):
    if (lowered := text.strip().lower()) in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError("invalid boolean %r" % text)


def _integer(text, /):
    # int() alone would also take "1_000" and surrounding whitespace
    if not re.fullmatch(r"[+-]?\d+", text):
        raise ValueError("invalid integer %r" % text)
    return int(text)


_CONVERTERS = {
    str: str,
    int: _integer,
    bool: _boolean,
    float: float,
}


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable, read-only descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics.
    - Expose every name listed in __introspectable__ as a read-only property
      backed by the matching private field (see mirror()).

    Conventions
    - __typename__ is derived from the class name (camel-case split with
      hyphens) and used in messages and help output.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            fields = ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            return "%s(%s)" % (type(self).__typename__, fields)
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate the fields shared by every spec (descr, metavar, hidden).

    - descr: Unset | str | Text, non-empty after trimming; Unset becomes None.
    - metavar: Unset | str, non-empty after trimming; Unset becomes None.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)


def _sanitize_value_metadata(cls, metadata, /):
    """
    Internal: validate value-bearing fields (type, choices).

    - type: callable converter; str/int/bool/float map to built-in converters.
    - choices: iterable; if not a Set, duplicates are rejected and the
      collection is stabilized into a tuple.
    """
    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if isinstance(choices := metadata["choices"], str) or not isinstance(choices, Iterable):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable")
    if not isinstance(choices, Set):
        sanitized = []
        for choice in choices:
            if choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        choices = tuple(sanitized)
    metadata["choices"] = choices

    if metadata["metavar"] and metadata["choices"]:
        raise TypeError(f"{cls.__typename__} cannot have both 'metavar' and 'choices'")


class _Coercible:
    """
    Shared conversion behaviour for specs carrying a value.
    """

    @property
    def expected(self):
        """
        human-readable name of the expected value ("integer", "one of: a, b", ...).
        """
        if self.choices:
            return "one of: %s" % ", ".join(map(str, self.choices))
        return _TYPENAMES.get(self.type, getattr(self.type, "__name__", "value"))

    def convert(self, text, /):
        """
        convert one raw token to this spec's type.

        raises whatever the converter raises (ValueError for the built-in
        ones) when the text cannot be converted. choices are not checked here;
        see accepts().
        """
        return _CONVERTERS.get(self.type, self.type)(str(text))

    def accepts(self, value, /):
        """whether a converted value satisfies the declared choices (always True without choices)."""
        return not self.choices or value in self.choices


class Positional[_T](_Coercible, metaclass=ArgumentType):
    """
    Positional, value-bearing argument specification.

    Positional slots are filled left to right. A variadic slot absorbs every
    remaining positional token and must be the last one of its command (the
    schema builder enforces this).

    Properties
    - name, type, required, variadic, default, choices, descr, metavar, hidden
      (read-only, mirroring the sanitized metadata).
    """

    __introspectable__ = (
        "name",
        "type",
        "required",
        "variadic",
        "default",
        "choices",
        "descr",
        "metavar",
        "hidden",
    )

    def __new__(
            cls,
            name,
            /,
            type=str,
            required=True,
            variadic=False,
            default=None,
            choices=(),
            descr=Unset,
            *,
            metavar=Unset,
            hidden=False
    ):
        """
        Construct a Positional spec.

        Parameters
        - name: str
          Identifier used in help, in errors and in Invocation.arguments.
        - type: Callable
          str, int, bool, float or a custom one-argument converter.
        - required: bool
          Whether resolution fails when the slot is left unfilled. A required
          variadic needs at least one value.
        - variadic: bool
          Absorb every remaining positional token.
        - default: Any
          Value handed to the handler when an optional slot is unfilled
          (ignored for variadic slots, which default to an empty tuple).
        - choices: Iterable
          Allowed (converted) values.
        - descr / metavar / hidden: help metadata.
        """
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not re.fullmatch(r"[^\W\d_][\w-]*", name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' must be an identifier-like word (got {name!r})")

        metadata = {
            "name": name,
            "type": type,
            "required": bool(required),
            "variadic": bool(variadic),
            "default": () if variadic else default,
            "choices": choices,
            "descr": descr,
            "metavar": metavar,
            "hidden": bool(hidden),
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_value_metadata(cls, metadata)

        if metadata["hidden"] and metadata["required"]:
            raise TypeError(f"required {cls.__typename__} cannot be hidden")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def label(self):
        """
        the placeholder shown in usage lines and messages: the metavar, or <name>.
        """
        return self.metavar or "<%s>" % self.name


class Flag[_T](_Coercible, metaclass=ArgumentType):
    """
    Named argument specification.

    Arity
    - no type and no choices: a boolean switch. Present → True; a repeatable
      switch counts its occurrences instead.
    - with a type (or choices): takes exactly one value per occurrence, either
      inline (--name=value) or as the following token. A repeatable value flag
      accumulates its values in input order.

    Properties
    - long, short, type, required, repeatable, default, choices, descr,
      metavar, hidden, helper (read-only).
    - name: long name without dashes, the key in Invocation.flags.
    - keyword: name with dashes turned into underscores, the handler keyword.
    - names: every spelling accepted on input.
    """

    __introspectable__ = (
        "long",
        "short",
        "type",
        "required",
        "repeatable",
        "default",
        "choices",
        "descr",
        "metavar",
        "hidden",
        "helper",
    )

    def __new__(
            cls,
            long,
            short=Unset,
            /,
            type=Unset,
            required=False,
            repeatable=False,
            default=Unset,
            choices=(),
            descr=Unset,
            *,
            metavar=Unset,
            hidden=False,
            helper=False
    ):
        """
        Construct a Flag spec.

        Parameters
        - long: str
          "--name"; letters, digits and single inner hyphens.
        - short: Unset | str
          "-n"; a single letter or digit.
        - type: Unset | Callable
          Unset makes a boolean switch; otherwise the value converter (str,
          int, bool, float or custom). Giving choices without a type implies str.
        - required: bool
          Resolution fails when the flag never appears.
        - repeatable: bool
          Allow several occurrences (values accumulate; switches count).
        - default: Any
          Handler value when the flag is absent. Switches default to False
          (repeatable switches to 0), repeatable value flags to an empty tuple.
        - choices / descr / metavar / hidden: as for Positional.
        - helper: bool
          Marks the built-in help switch; it suspends required checks.
        """
        if not isinstance(long, str):
            raise TypeError(f"{cls.__typename__} long name must be a string")
        elif not re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", long := long.strip()):
            raise ValueError(f"{cls.__typename__} long name must look like '--name' (got {long!r})")

        if not isinstance(short, str | Unset):
            raise TypeError(f"{cls.__typename__} short name must be a string")
        elif isinstance(short, str) and not re.fullmatch(r"-[^\W_]", short := short.strip()):
            raise ValueError(f"{cls.__typename__} short name must look like '-n' (got {short!r})")

        if type is Unset and choices:
            type = str
        switch = type is Unset

        if switch:
            fallback = 0 if repeatable else False
        else:
            fallback = () if repeatable else None

        metadata = {
            "long": long,
            "short": coalesce(short),
            "type": type,
            "required": bool(required),
            "repeatable": bool(repeatable),
            "default": fallback if repeatable else coalesce(default, fallback),
            "choices": choices,
            "descr": descr,
            "metavar": metavar,
            "hidden": bool(hidden),
            "helper": bool(helper),
        }
        _sanitize_metadata(cls, metadata)
        if not switch:
            _sanitize_value_metadata(cls, metadata)
        elif metadata["metavar"]:
            raise TypeError(f"switch {cls.__typename__} cannot have a 'metavar'")

        if metadata["helper"] and (not switch or metadata["required"] or metadata["repeatable"] or metadata["hidden"]):
            raise TypeError(f"helper {cls.__typename__} must be a visible, optional, single switch")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def name(self):
        return self._long[2:]

    @property
    def keyword(self):
        return self.name.replace("-", "_")

    @property
    def names(self):
        return tuple(name for name in (self._long, self._short) if name)

    @property
    def switch(self):
        """
        True for boolean switches (arity 0), False for value-taking flags.
        """
        return self._type is Unset

    @property
    def label(self):
        """
        the value placeholder for value flags: metavar, {a,b} choices, or <type>.
        """
        if self.switch:
            return ""
        if self.metavar:
            return self.metavar
        if self.choices:
            return "{%s}" % ",".join(map(str, self.choices))
        return "<%s>" % _TYPENAMES.get(self.type, getattr(self.type, "__name__", "value"))


def helper():
    """
    the built-in help switch every command carries unless it declares --help itself.
    """
    return Flag("--help", "-h", descr="show this help message", helper=True)


__all__ = (
    # Classes (specifications)
    "Positional",
    "Flag",

    # Factories
    "helper",
)

# Not part of the public API.
del ArgumentType
