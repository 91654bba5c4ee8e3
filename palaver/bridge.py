"""
Palaver chat bridge: from a chat message to a reply.

The bridge is the glue between a chat client and the core pipeline

    message → extract_command → tokenize → ContextMapping → resolve → dispatch → reply

It never talks to a network itself: the caller hands in the message text,
the sender and the target the message was sent to, and gets the reply text
back (or passes a ResponseStream to have it sent line by line).

Addressing rules
- in a channel, only messages starting with the bot's nickname are commands
  ("bot: ping", "bot, ping", "bot ping"). the nickname must be followed by
  ':', ',', whitespace or the end of the message.
- in a private message an unaddressed line is a command too.

Context
- ContextMapping appends "--flag value" pairs for the channel and/or the
  sender, so handlers see them as ordinary flags and the same schema keeps
  working from a terminal, where the user passes those flags by hand.
"""
import inspect
import re
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

import structlog

from .commands import CommandSpec, Registry
from .dispatcher import dispatch, adispatch
from .faults import MatchError, DispatchError
from .render import render_error
from .resolver import resolve
from .tokens import tokenize, lift

logger = structlog.get_logger()

_CHANNEL_PREFIXES = "#&+!"


def is_channel(target, /):
    """whether an IRC-style target names a channel (# & + ! prefixes)."""
    return isinstance(target, str) and target[:1] != "" and target[0] in _CHANNEL_PREFIXES


def extract_command(nickname, text, /, *, private=False):
    """
    the command part of a chat message, or None when it is not addressed to the bot.

    parameters
    - nickname: str
      the bot's current nickname.
    - text: str
      the raw message text.
    - private: bool
      True for direct messages, where unaddressed lines are commands too.
    """
    if not isinstance(nickname, str) or not nickname:
        raise TypeError("extract_command() nickname must be a non-empty string")
    if not isinstance(text, str):
        raise TypeError("extract_command() text must be a string")

    if text.startswith(nickname):
        rest = text[len(nickname):]
        if not rest or rest[0] in ":," or rest[0].isspace():
            return re.sub(r"^[\s:,]+", "", rest).strip()
    if private:
        return text.strip()
    return None


@runtime_checkable
class ResponseStream(Protocol):
    """where reply lines go (a chat target, a terminal, a test list)."""

    def send_message(self, text: str, /) -> Any: ...


class ContextMapping:
    """
    Appends message context to the command tokens as flag/value pairs.

    - channel: flag receiving the response target (the channel, or the
      sender for private messages), e.g. "--channel".
    - username: flag receiving the sender's nickname, e.g. "--user".

    Pairs are inserted before a "--" terminator when the user typed one,
    so they are always read as flags.
    """

    def __init__(self, channel=None, username=None):
        for flag in (channel, username):
            if flag is not None and (not isinstance(flag, str) or not flag.startswith("-")):
                raise ValueError("ContextMapping() flags must be strings starting with '-' (got %r)" % flag)
        self.channel = channel
        self.username = username

    @classmethod
    def none(cls):
        """a mapping that adds nothing (stateless, context-free bots)."""
        return cls()

    @classmethod
    def user_only(cls, flag, /):
        """a mapping that only passes the sender's nickname under `flag`."""
        return cls(username=flag)

    def arguments(self, *, sender, target=None):
        """the flag/value strings to append for one message."""
        arguments = []
        response = target if is_channel(target) else sender
        if self.channel and response is not None:
            arguments += [self.channel, str(response)]
        if self.username and sender is not None:
            arguments += [self.username, str(sender)]
        return arguments

    def prepare(self, tokens, /, *, sender, target=None):
        """a new token list with the context pairs added."""
        tokens = list(tokens)
        extra = lift(self.arguments(sender=sender, target=target))
        try:
            index = tokens.index("--")
        except ValueError:
            index = len(tokens)
        return tokens[:index] + extra + tokens[index:]

    def __repr__(self):
        return "ContextMapping(channel=%r, username=%r)" % (self.channel, self.username)


def _reply(result):
    if result is None:
        return None
    if isinstance(result, str):
        return result or None
    if isinstance(result, Iterable):
        return "\n".join(map(str, result)) or None
    return str(result)


class Bridge:
    """
    Serves chat messages against a built schema.

    parameters
    - schema: Registry | CommandSpec
      a Registry routes on the first word of the message; a single
      CommandSpec takes the whole message as its own arguments, the way a
      one-command bot expects.
    - nickname: str
      the bot's nickname, used to spot addressed messages.
    - mapping: ContextMapping
      context flags to append (defaults to ContextMapping.none()).
    - compact: bool
      one-line error replies (default) or the long header/message/hint form.

    Match and dispatch errors are rendered into the reply; they never escape.
    """

    def __init__(self, schema, /, *, nickname, mapping=None, compact=True):
        if not isinstance(schema, Registry | CommandSpec):
            raise TypeError("Bridge() schema must be a Registry or a CommandSpec (see Schema.build())")
        if not isinstance(nickname, str) or not nickname.strip():
            raise ValueError("Bridge() nickname must be a non-empty string")
        if mapping is None:
            mapping = ContextMapping.none()
        elif not isinstance(mapping, ContextMapping):
            raise TypeError("Bridge() mapping must be a ContextMapping")
        self.schema = schema
        self.nickname = nickname.strip()
        self.mapping = mapping
        self.compact = compact

    def _invocation(self, text, sender, target):
        private = not is_channel(target)
        if (line := extract_command(self.nickname, text, private=private)) is None:
            logger.debug("message_ignored", sender=sender, target=target)
            return None
        tokens = tokenize(line)
        if isinstance(self.schema, Registry):
            # the root is routed on what the user typed, context goes after it
            head, tokens = tokens[:1], tokens[1:]
            if not head:
                return resolve(self.schema, head)
        else:
            head = []
        return resolve(self.schema, head + self.mapping.prepare(tokens, sender=sender, target=target))

    def _failed(self, fault, sender, target):
        logger.info(
            "match_failed" if isinstance(fault, MatchError) else "dispatch_failed",
            sender=sender,
            target=target,
            code=int(fault.code) if fault.code else None,
            path=fault.path,
        )
        return render_error(fault, compact=self.compact)

    def respond(self, text, /, *, sender, target=None):
        """
        Reply for one message, or None when there is nothing to say.

        raises TypeError when the selected handler is async; use arespond().
        """
        try:
            if (invocation := self._invocation(text, sender, target)) is None:
                return None
            result = dispatch(invocation, sender=sender)
        except (MatchError, DispatchError) as fault:
            return self._failed(fault, sender, target)

        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError("command %r has an async handler; use arespond()" % invocation.command.prog)

        logger.info("command_dispatched", sender=sender, target=target, path=invocation.path)
        return _reply(result)

    async def arespond(self, text, /, *, sender, target=None):
        """respond() for async callers; awaits async handlers."""
        try:
            if (invocation := self._invocation(text, sender, target)) is None:
                return None
            result = await adispatch(invocation, sender=sender)
        except (MatchError, DispatchError) as fault:
            return self._failed(fault, sender, target)

        logger.info("command_dispatched", sender=sender, target=target, path=invocation.path)
        return _reply(result)

    def handle(self, text, stream, /, *, sender, target=None):
        """respond() and send the reply to `stream` line by line; returns the reply."""
        if not isinstance(stream, ResponseStream):
            raise TypeError("handle() stream must have a send_message() method")
        reply = self.respond(text, sender=sender, target=target)
        if reply:
            for line in reply.splitlines():
                stream.send_message(line)
        return reply

    async def ahandle(self, text, stream, /, *, sender, target=None):
        """handle() for async callers; awaits send_message() when it is a coroutine."""
        if not isinstance(stream, ResponseStream):
            raise TypeError("ahandle() stream must have a send_message() method")
        reply = await self.arespond(text, sender=sender, target=target)
        if reply:
            for line in reply.splitlines():
                if inspect.isawaitable(sent := stream.send_message(line)):
                    await sent
        return reply

    def __repr__(self):
        return "Bridge(nickname=%r, mapping=%r)" % (self.nickname, self.mapping)


__all__ = (
    "is_channel",
    "extract_command",
    "ResponseStream",
    "ContextMapping",
    "Bridge",
)
