"""
Palaver command layer: declare, validate and freeze command hierarchies.

What this module provides
- Schema: the root of a builder tree. schema.command(...) declares a root
  command and returns its CommandBuilder.
- CommandBuilder: accumulates positionals, flags, nested subcommands and the
  handler of one command.
- CommandSpec: the frozen, read-only node produced by Schema.build().
- Registry: the immutable set of root CommandSpecs handed to the resolver.

Core ideas
- Build once, read forever: after Schema.build() nothing in the tree can be
  mutated, so one Registry can be shared by every concurrent caller.
- Report everything: build() walks the whole tree and raises a single
  SchemaError grouping every structural violation, not just the first one.
- Argument-level shape errors (bad flag spelling, empty names, non-callable
  types) are raised immediately by the Positional/Flag constructors.

Quick start
    from palaver import Schema

    schema = Schema()
    greet = schema.command("greet", descr="say hello")
    greet.positional("name")
    greet.flag("--loud", "-l", descr="shout it")

    @greet.handler
    def _(name, *, loud=False):
        return ("HELLO %s!" if loud else "hello %s") % name

    registry = schema.build()
"""
import re
from collections.abc import Iterable

import structlog
from rich.text import Text

from .arguments import Positional, Flag, helper
from .faults import SchemaViolation, SchemaError
from .utils import *

logger = structlog.get_logger()


class CommandType(type):
    """
    Metaclass giving command nodes the same introspection surface as argument specs.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics.
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens).
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
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
            fields = ", ".join("%s=%r" % field for field in self.__rich_repr__())
            return "%s(%s)" % (type(self).__typename__, fields)
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, /, what="name"):
    """
    Internal: a command name or alias is one non-empty word that cannot be
    mistaken for a flag.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {what} must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {what} cannot be empty")
    elif name.startswith("-") or re.search(r"\s", name):
        raise ValueError(f"{cls.__typename__} {what} must be a single word not starting with '-' (got {name!r})")
    return name


def _sanitize_descr(cls, descr, /):
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


def _sanitize_examples(cls, examples, /):
    if isinstance(examples, str):
        examples = (examples,)
    if not isinstance(examples, Iterable):
        raise TypeError(f"{cls.__typename__} 'examples' must be a string or an iterable of strings")
    sanitized = []
    for example in examples:
        if not isinstance(example, str):
            raise TypeError(f"{cls.__typename__} 'examples' must be a string or an iterable of strings")
        if example := example.strip():
            sanitized.append(example)
    return tuple(sanitized)


class CommandSpec(metaclass=CommandType):
    """
    Frozen command node.

    Produced only by Schema.build(); every field is exposed read-only and
    containers are handed out as copies.

    Properties
    - name, aliases, descr, examples: identity and help metadata.
    - positionals: tuple[Positional] in declaration order.
    - flags: dict[str, Flag] keyed by long name ("--name"), declaration order,
      helper switch included.
    - children: tuple[CommandSpec] in declaration order.
    - handler: the registered callable, or None for pure grouping commands.
    - parent: the enclosing CommandSpec, or None for roots.
    """

    __introspectable__ = (
        "name",
        "aliases",
        "descr",
        "examples",
        "positionals",
        "flags",
        "children",
        "handler",
        "parent",
    )

    __displayable__ = (
        "name",
        "aliases",
        "descr",
        "positionals",
        "flags",
        "children",
        "handler",
    )

    def __new__(cls, *args, **kwargs):
        raise TypeError("%s objects are created by Schema.build()" % cls.__typename__)

    @classmethod
    def _freeze(cls, builder, parent, positionals, flags):
        self = object.__new__(cls)
        self._name = builder._name
        self._aliases = builder._aliases
        self._descr = builder._descr
        self._examples = builder._examples
        self._handler = builder._handler
        self._parent = parent
        self._positionals = tuple(positionals)
        self._flags = dict((flag.long, flag) for flag in flags)
        self._switches = {name: flag for flag in flags for name in flag.names}
        self._children = ()
        self._routes = {}
        return self

    def _adopt(self, children):
        self._children = tuple(children)
        self._routes = {name: child for child in self._children for name in child.names}

    @property
    def names(self):
        """every spelling routing to this command: the name first, then its aliases."""
        return (self._name, *self._aliases)

    @property
    def path(self):
        """command names from the root down to this command."""
        path = [command := self]
        while command._parent:
            path.append(command := command._parent)
        return tuple(command._name for command in reversed(path))

    @property
    def root(self):
        command = self
        while command._parent:
            command = command._parent
        return command

    @property
    def prog(self):
        """the space-joined path, as it is typed."""
        return " ".join(self.path)

    @property
    def helper(self):
        """the built-in help switch of this command (None when it declares its own --help)."""
        for flag in self._flags.values():
            if flag.helper:
                return flag
        return None

    def child(self, name, /):
        """the child routed to by `name` (its name or an alias), or None."""
        return self._routes.get(name)

    def switch(self, name, /):
        """the flag spelled `name` ("--long" or "-s"), or None."""
        return self._switches.get(name)


class CommandBuilder:
    """
    Mutable declaration of one command, turned into a CommandSpec by Schema.build().

    Every declaring method returns something useful for chaining:
    positional()/flag() return the builder itself, command() returns the new
    child builder, handler() returns the callback (so it works as a decorator).
    """
    __typename__ = "command"

    def __init__(self, name, /, *aliases, descr=Unset, examples=(), parent=None):
        self._name = _sanitize_name(type(self), name)
        self._aliases = tuple(_sanitize_name(type(self), alias, "alias") for alias in aliases)
        self._descr = _sanitize_descr(type(self), descr)
        self._examples = _sanitize_examples(type(self), examples)
        self._parent = parent
        self._positionals = []
        self._flags = []
        self._children = []
        self._handler = None
        self._built = False

    @property
    def name(self):
        return self._name

    @property
    def path(self):
        builder, path = self, []
        while builder:
            path.append(builder._name)
            builder = builder._parent
        return tuple(reversed(path))

    def positional(self, argument, /, *args, **kwargs):
        """
        declare the next positional slot.

        accepts a ready Positional, or the Positional constructor arguments
        (name, type, required, variadic, default, choices, descr, ...).
        """
        if not isinstance(argument, Positional):
            argument = Positional(argument, *args, **kwargs)
        elif args or kwargs:
            raise TypeError("positional() takes no extra arguments when given a Positional")
        self._positionals.append(argument)
        return self

    def flag(self, argument, /, *args, **kwargs):
        """
        declare a flag.

        accepts a ready Flag, or the Flag constructor arguments
        (long, short, type, required, repeatable, default, choices, descr, ...).
        """
        if not isinstance(argument, Flag):
            argument = Flag(argument, *args, **kwargs)
        elif args or kwargs:
            raise TypeError("flag() takes no extra arguments when given a Flag")
        self._flags.append(argument)
        return self

    def command(self, name, /, *aliases, descr=Unset, examples=()):
        """declare a subcommand and return its builder."""
        child = type(self)(name, *aliases, descr=descr, examples=examples, parent=self)
        self._children.append(child)
        return child

    def handler(self, callback=Unset, /):
        """
        register the callable run for this command.

        forms
        - builder.handler(callback) -> callback
        - @builder.handler -> decorator returning the callback unchanged
        """
        if callback is Unset:
            return self.handler
        if not callable(callback):
            raise TypeError("handler() argument must be callable")
        self._handler = callback
        return callback

    def _build(self, parent, violations):
        """
        Internal: freeze this builder (and its children) into a CommandSpec.

        structural problems are appended to `violations`; the returned tree is
        discarded by the caller whenever violations were found.
        """
        path = self.path
        where = " ".join(path)

        if self._built:
            violations.append(SchemaViolation("command %r was already built" % where, path=path))
        self._built = True

        seen = set()
        optional = None
        variadic = None
        for index, argument in enumerate(self._positionals):
            if argument.name in seen:
                violations.append(SchemaViolation(
                    "command %r declares positional %r twice" % (where, argument.name), path=path, argument=argument
                ))
            seen.add(argument.name)

            if argument.variadic:
                if variadic:
                    violations.append(SchemaViolation(
                        "command %r declares more than one variadic positional (%r and %r)" % (
                            where, variadic.name, argument.name
                        ),
                        path=path,
                        argument=argument,
                    ))
                else:
                    variadic = argument
                if index != len(self._positionals) - 1:
                    violations.append(SchemaViolation(
                        "command %r has variadic positional %r before other positionals" % (where, argument.name),
                        path=path,
                        argument=argument,
                    ))

            if argument.required and optional:
                violations.append(SchemaViolation(
                    "command %r has required positional %r after optional %r" % (where, argument.name, optional.name),
                    path=path,
                    argument=argument,
                ))
            elif not argument.required and not optional:
                optional = argument

        names = {}
        for argument in self._flags:
            for name in argument.names:
                if name in names:
                    violations.append(SchemaViolation(
                        "command %r declares flag name %r twice" % (where, name), path=path, argument=argument
                    ))
                names[name] = argument

        flags = list(self._flags)
        if "--help" not in names:
            builtin = helper()
            if "-h" in names:
                builtin = Flag("--help", descr=builtin.descr, helper=True)
            flags.append(builtin)

        routes = {}
        for child in self._children:
            for name in (child._name, *child._aliases):
                if name in routes:
                    violations.append(SchemaViolation(
                        "command %r has two subcommands answering to %r" % (where, name), path=path
                    ))
                routes[name] = child

        spec = CommandSpec._freeze(self, parent, self._positionals, flags)
        spec._adopt(child._build(spec, violations) for child in self._children)
        return spec


class Schema:
    """
    Builder for a whole command hierarchy.

    usage
    - schema.command(name, *aliases, descr=..., examples=...) -> CommandBuilder
    - schema.build() -> Registry, or SchemaError listing every violation.
    """

    def __init__(self):
        self._commands = []

    def command(self, name, /, *aliases, descr=Unset, examples=()):
        """declare a root command and return its builder."""
        builder = CommandBuilder(name, *aliases, descr=descr, examples=examples)
        self._commands.append(builder)
        return builder

    def build(self):
        """
        validate every node and freeze the tree.

        raises
        - SchemaError: grouping one SchemaViolation per structural problem
          (duplicate sibling names/aliases, duplicate positional names, more
          than one variadic, variadic not last, required after optional,
          duplicate flag names, builders built twice).
        """
        violations = []

        routes = {}
        for builder in self._commands:
            for name in (builder._name, *builder._aliases):
                if name in routes:
                    violations.append(SchemaViolation("two commands answer to %r" % name, path=()))
                routes[name] = builder

        roots = tuple(builder._build(None, violations) for builder in self._commands)
        if violations:
            raise SchemaError(violations)

        logger.debug("schema_built", commands=[root.name for root in roots])
        return Registry(roots)


class Registry:
    """
    Immutable collection of root CommandSpecs.

    Iterating yields the roots in declaration order; `name in registry` and
    registry[name] look roots up by name or alias.
    """

    def __init__(self, roots=(), /):
        roots = tuple(roots)
        for root in roots:
            if not isinstance(root, CommandSpec) or root.parent is not None:
                raise TypeError("Registry() argument must be an iterable of root command specs")
        self._roots = roots
        self._routes = {name: root for root in roots for name in root.names}

    @property
    def roots(self):
        return self._roots

    def __iter__(self):
        return iter(self._roots)

    def __len__(self):
        return len(self._roots)

    def __contains__(self, name):
        return name in self._routes

    def __getitem__(self, name):
        return self._routes[name]

    def get(self, name, default=None, /):
        return self._routes.get(name, default)

    def find(self, *path):
        """
        walk names/aliases from a root down; raises KeyError on the first unknown step.
        """
        if not path:
            raise TypeError("find() expected at least one command name")
        command = self._routes[path[0]]
        for name in path[1:]:
            if (command := command.child(name)) is None:
                raise KeyError(name)
        return command

    def resolve(self, tokens, /):
        """shorthand for palaver.resolver.resolve(self, tokens)."""
        from .resolver import resolve
        return resolve(self, tokens)

    def __repr__(self):
        return "registry(%s)" % ", ".join(root.name for root in self._roots)


__all__ = (
    # Classes
    "CommandSpec",
    "CommandBuilder",
    "Schema",
    "Registry",
)

# Remove the internal metaclass from the module namespace.
del CommandType
