"""
Palaver resolver: match tokens against a command tree.

resolve(schema, tokens) walks the tokens left to right and produces an
Invocation, or raises the first MatchError it meets.

precedence, for every token
1. a child command name or alias descends into that child (deepest wins).
   whatever the parent matched so far moves into Invocation.scopes.
2. "--" ends flag and subcommand recognition; the rest is positional.
3. "-x" / "--name" (optionally "=value") is a flag, unless it is a negative
   number and the command has no such short flag.
4. anything else fills the next positional slot (a variadic slot absorbs the rest).

after the last token, required positionals are checked first, then required
flags. the built-in help switch stops resolution on the spot and skips those
checks.

the resolver never mutates the schema and keeps no state between calls.
"""
import difflib
import re
from collections import deque
from types import MappingProxyType
from typing import NamedTuple

from .commands import CommandSpec, Registry
from .faults import *
from .tokens import lift
from .utils import ordinal


class Scope(NamedTuple):
    """values an ancestor command matched before a subcommand was entered."""
    command: CommandSpec
    flags: MappingProxyType
    positionals: tuple


class Invocation:
    """
    The typed result of a successful resolution.

    Built only by resolve(); read-only; dispatched at most once.

    Properties
    - path: command names from the root to the terminal command.
    - command: the terminal CommandSpec.
    - flags: flag name → value, for the flags actually given. repeatable
      value flags hold a tuple of values, repeatable switches a count.
    - positionals: converted positional values in input order (variadic
      values appended one by one).
    - arguments: positional name → value (a tuple for a variadic slot).
    - scopes: one Scope per ancestor, root first.
    - help: True when the help switch was given.
    - tokens: the tokens resolution consumed.
    """

    def __init__(self, command, flags, positionals, arguments, scopes, help, tokens):
        self._command = command
        self._flags = MappingProxyType(dict(flags))
        self._positionals = tuple(positionals)
        self._arguments = MappingProxyType(dict(arguments))
        self._scopes = tuple(scopes)
        self._help = help
        self._tokens = tuple(tokens)
        self._dispatched = False

    @property
    def path(self):
        return self._command.path

    @property
    def command(self):
        return self._command

    @property
    def flags(self):
        return self._flags

    @property
    def positionals(self):
        return self._positionals

    @property
    def arguments(self):
        return self._arguments

    @property
    def scopes(self):
        return self._scopes

    @property
    def help(self):
        return self._help

    @property
    def tokens(self):
        return self._tokens

    @property
    def dispatched(self):
        return self._dispatched

    def _consume(self):
        if self._dispatched:
            raise ValueError("invocation of %r was already dispatched" % self._command.prog)
        self._dispatched = True

    def __rich_repr__(self):
        yield "path", self.path
        yield "positionals", self._positionals
        yield "flags", dict(self._flags)
        if self._help:
            yield "help", True

    def __repr__(self):
        return "Invocation(%s)" % ", ".join("%s=%r" % field for field in self.__rich_repr__())


class _State:
    """per-command accumulator while tokens are being matched."""

    def __init__(self, command):
        self.command = command
        self.slots = command.positionals
        self.cursor = 0
        self.flags = {}
        self.positionals = []
        self.arguments = {}

    def scope(self):
        return Scope(self.command, MappingProxyType(_frozen(self.flags)), tuple(self.positionals))


def _frozen(flags):
    return {name: tuple(value) if isinstance(value, list) else value for name, value in flags.items()}


_NUMBER = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def _negative(command, token):
    """a negative number the command does not claim as a short flag."""
    return bool(_NUMBER.fullmatch(token)) and command.switch(token) is None


def _flaglike(command, token):
    return token.startswith("-") and token != "-" and not _negative(command, token)


def _convert(command, argument, text, index, *, label):
    """convert a raw token for `argument`, raising TypeMismatchError / InvalidChoiceError."""
    try:
        value = argument.convert(text)
    except Exception as exception:
        raise TypeMismatchError(
            "%s expects %s at %s position, got %r" % (label, argument.expected, ordinal(index), str(text)),
            token=text,
            index=index,
            offset=getattr(text, "offset", None),
            command=command,
            path=command.path,
            argument=argument,
            expected=argument.expected,
            hint="pass %s %s or run '%s --help' to see the expected usage" % (
                "an" if argument.expected[:1] in "aeiou" else "a", argument.expected, command.prog
            ),
        ) from exception

    if not argument.accepts(value):
        raise InvalidChoiceError(
            "%s got %r at %s position, which is not an accepted value" % (label, str(text), ordinal(index)),
            token=text,
            index=index,
            offset=getattr(text, "offset", None),
            command=command,
            path=command.path,
            argument=argument,
            expected=argument.expected,
            hint="choose %s" % argument.expected,
        )
    return value


def _match_flag(state, token, tokens, index):
    """
    match one flag token; returns how many extra tokens were consumed (0 or 1).
    """
    command = state.command
    name, sep, value = token.partition("=")
    if not sep:
        value = None

    if (argument := command.switch(name)) is None:
        suggestions = difflib.get_close_matches(name, [
            spelling for flag in command.flags.values() if not flag.hidden for spelling in flag.names
        ], 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all flags" % (suggestions[0], command.prog)
        except IndexError:
            hint = "run '%s --help' to see all available flags" % command.prog
        raise UnknownFlagError(
            "unknown flag %r at %s position" % (name, ordinal(index)),
            token=token,
            index=index,
            offset=getattr(token, "offset", None),
            command=command,
            path=command.path,
            suggestions=suggestions,
            hint=hint,
        )

    if argument.name in state.flags and not argument.repeatable:
        raise DuplicateFlagError(
            "flag %r at %s position was already provided" % (name, ordinal(index)),
            token=token,
            index=index,
            offset=getattr(token, "offset", None),
            command=command,
            path=command.path,
            argument=argument,
            expected=argument.name,
            hint="keep a single %s; it can be given only once" % argument.long,
        )

    consumed = 0
    if argument.switch:
        if value is not None:
            raise FlagAssignmentError(
                "flag %r at %s position cannot have a value" % (name, ordinal(index)),
                token=token,
                index=index,
                offset=getattr(token, "offset", None),
                command=command,
                path=command.path,
                argument=argument,
                hint="remove everything from '=' (for example: %s)" % name,
            )
        if argument.repeatable:
            state.flags[argument.name] = state.flags.get(argument.name, 0) + 1
        else:
            state.flags[argument.name] = True
        return consumed

    if value is None:
        if not tokens or _flaglike(command, tokens[0]):
            raise FlagValueRequiredError(
                "flag %r at %s position needs a value" % (name, ordinal(index)),
                token=token,
                index=index,
                offset=getattr(token, "offset", None),
                command=command,
                path=command.path,
                argument=argument,
                expected=argument.expected,
                hint="pass it as %s %s or %s=%s" % (name, argument.label, name, argument.label),
            )
        value = tokens.popleft()
        consumed = 1
    elif getattr(token, "offset", None) is not None:
        # inline value: point at the text after '='
        value = type(token)(value, token.offset + len(name) + 1)

    value = _convert(command, argument, value, index + consumed, label="flag %r" % name)
    if argument.repeatable:
        state.flags.setdefault(argument.name, []).append(value)
    else:
        state.flags[argument.name] = value
    return consumed


def _match_positional(state, token, index):
    command = state.command
    if state.cursor >= len(state.slots):
        raise TooManyArgumentsError(
            "unexpected positional argument %r at %s position" % (str(token), ordinal(index)),
            token=token,
            index=index,
            offset=getattr(token, "offset", None),
            command=command,
            path=command.path,
            hint="remove this extra value or run '%s --help' to see the expected usage" % command.prog,
        )

    argument = state.slots[state.cursor]
    value = _convert(command, argument, token, index, label="argument %r" % argument.name)
    state.positionals.append(value)
    if argument.variadic:
        state.arguments.setdefault(argument.name, []).append(value)
    else:
        state.arguments[argument.name] = value
        state.cursor += 1


def _check_required(state, index):
    command = state.command
    for argument in state.slots:
        if argument.required and argument.name not in state.arguments:
            raise MissingArgumentError(
                "missing argument %r at %s position" % (argument.name, ordinal(index)),
                index=index,
                command=command,
                path=command.path,
                argument=argument,
                expected=argument.name,
                hint="add %s or run '%s --help' to see the expected usage" % (argument.label, command.prog),
            )

    for argument in command.flags.values():
        if argument.required and argument.name not in state.flags:
            raise MissingFlagError(
                "missing required flag %r" % argument.long,
                index=index,
                command=command,
                path=command.path,
                argument=argument,
                expected=argument.name,
                hint="add %s%s" % (argument.long, " " + argument.label if argument.label else ""),
            )


def _route(registry, tokens):
    """select the root command from the first token."""
    names = [name for root in registry for name in root.names]
    if not tokens:
        raise MissingCommandError(
            "missing command at first position",
            index=1,
            expected=tuple(names),
            hint="start with one of: %s" % ", ".join(root.name for root in registry) if names else "no command is registered",
        )

    token = tokens.popleft()
    if (command := registry.get(str(token))) is None:
        suggestions = difflib.get_close_matches(token, names, 5)
        try:
            hint = "did you mean %r?" % suggestions[0]
        except IndexError:
            hint = "available commands: %s" % ", ".join(root.name for root in registry) if names else None
        raise UnknownCommandError(
            "unknown command %r at first position" % str(token),
            token=token,
            index=1,
            offset=getattr(token, "offset", None),
            suggestions=suggestions,
            expected=tuple(names),
            hint=hint,
        )
    return command


def resolve(schema, tokens, /):
    """
    resolve tokens against a registry (root set) or a single command.

    parameters
    - schema: Registry | CommandSpec
      a Registry selects the root command from the first token; a CommandSpec
      starts resolution inside that command (argument-vector style).
    - tokens: Iterable[str]
      output of tokenize(), or any already-split sequence of strings.

    returns
    - Invocation

    raises
    - MatchError subclasses, on the first problem met (see palaver.faults).
    - TypeError: on a bad schema or a plain string instead of a token sequence.
    """
    if isinstance(tokens, str):
        raise TypeError("resolve() tokens must be a sequence of strings (see tokenize())")
    tokens = deque(lift(tokens))
    consumed = list(tokens)

    if isinstance(schema, Registry):
        command = _route(schema, tokens)
        index = 2
    elif isinstance(schema, CommandSpec):
        command = schema
        index = 1
    else:
        raise TypeError("resolve() schema must be a Registry or a CommandSpec")

    state = _State(command)
    scopes = []
    terminated = False

    while tokens:
        token = tokens.popleft()

        if not terminated:
            if (child := state.command.child(str(token))) is not None:
                scopes.append(state.scope())
                state = _State(child)
                index += 1
                continue

            if token == "--":
                terminated = True
                index += 1
                continue

            if _flaglike(state.command, token):
                index += _match_flag(state, token, tokens, index) + 1
                if (helper := state.command.helper) and helper.name in state.flags:
                    return Invocation(
                        state.command,
                        _frozen(state.flags),
                        state.positionals,
                        _frozen(state.arguments),
                        scopes,
                        True,
                        consumed[:len(consumed) - len(tokens)],
                    )
                continue

        _match_positional(state, token, index)
        index += 1

    _check_required(state, index)
    return Invocation(
        state.command,
        _frozen(state.flags),
        state.positionals,
        _frozen(state.arguments),
        scopes,
        False,
        consumed,
    )


__all__ = (
    "Scope",
    "Invocation",
    "resolve",
)
