"""
Palaver dispatcher: run the handler of a resolved invocation.

dispatch(invocation, sender=...) calls the terminal command's handler as

    handler(*positionals, **flags)

- every positional slot is passed in declaration order: given values, the
  default of unfilled optional slots, variadic values expanded last.
- every declared flag (except the help switch) is passed as a keyword named
  after its long name, dashes turned into underscores. absent flags take
  their default: False for a switch, 0 for a repeatable switch, () for a
  repeatable value flag, the declared default otherwise.
- `sender` and `invocation` keywords are added only when the handler's
  signature names them explicitly.

failures
- no handler registered → NoHandlerError.
- any Exception raised by the handler → HandlerFailedError, with the original
  exception as payload and __cause__. BaseExceptions (cancellation, keyboard
  interrupts, SystemExit) pass through untouched.
- awaitable results come back as a coroutine applying the same wrapping;
  adispatch() awaits it for you.
"""
import inspect
from inspect import Parameter
from typing import Any, Protocol, runtime_checkable

import structlog

from .faults import NoHandlerError, HandlerFailedError
from .resolver import Invocation

logger = structlog.get_logger()


@runtime_checkable
class Handler(Protocol):
    """anything callable with the converted positionals and flag keywords."""

    def __call__(self, *args: Any, **kwargs: Any) -> Any: ...


def _wants(handler):
    """the extra keywords (sender/invocation) the handler explicitly names."""
    try:
        parameters = inspect.signature(handler).parameters
    except (TypeError, ValueError):
        return frozenset()
    return frozenset(
        name for name in ("sender", "invocation")
        if name in parameters and parameters[name].kind in (Parameter.POSITIONAL_OR_KEYWORD, Parameter.KEYWORD_ONLY)
    )


def call_arguments(invocation, /):
    """
    the (args, kwargs) pair the handler of `invocation` is called with.

    sender/invocation keywords are not included; see dispatch().
    """
    command = invocation.command
    args = []
    for argument in command.positionals:
        if argument.variadic:
            args.extend(invocation.arguments.get(argument.name, ()))
        else:
            args.append(invocation.arguments.get(argument.name, argument.default))

    kwargs = {}
    for flag in command.flags.values():
        if not flag.helper:
            kwargs[flag.keyword] = invocation.flags.get(flag.name, flag.default)
    return args, kwargs


def _failure(command, exception):
    return HandlerFailedError(
        "command %r failed: %s" % (command.prog, str(exception) or type(exception).__name__),
        command=command,
        path=command.path,
        payload=exception,
        hint="this is a problem inside the command itself; check the logs for details",
    )


async def _guarded(command, awaitable):
    try:
        return await awaitable
    except Exception as exception:
        logger.exception("handler_failed", command=command.prog)
        raise _failure(command, exception) from exception


def dispatch(invocation, /, *, sender=None):
    """
    run the handler of a resolved invocation.

    parameters
    - invocation: Invocation
      produced by resolve(); each invocation can be dispatched once.
    - sender: Any
      opaque identity of whoever sent the command, forwarded to handlers
      that ask for it.

    returns
    - the rendered help text for help invocations.
    - the handler's return value, or a coroutine when the handler is async.

    raises
    - NoHandlerError / HandlerFailedError (DispatchError family).
    - ValueError: when the invocation was already dispatched.
    """
    if not isinstance(invocation, Invocation):
        raise TypeError("dispatch() argument must be an Invocation")
    invocation._consume()
    command = invocation.command

    if invocation.help:
        from .render import render_help
        return render_help(command)

    if (handler := command.handler) is None:
        logger.info("no_handler", command=command.prog)
        raise NoHandlerError(
            "command %r has nothing to run on its own" % command.prog,
            command=command,
            path=command.path,
            hint="run '%s --help' to see its subcommands" % command.prog,
        )

    args, kwargs = call_arguments(invocation)
    wants = _wants(handler)
    if "sender" in wants and "sender" not in kwargs:
        kwargs["sender"] = sender
    if "invocation" in wants and "invocation" not in kwargs:
        kwargs["invocation"] = invocation

    try:
        result = handler(*args, **kwargs)
    except Exception as exception:
        logger.exception("handler_failed", command=command.prog)
        raise _failure(command, exception) from exception

    if inspect.isawaitable(result):
        return _guarded(command, result)
    return result


async def adispatch(invocation, /, *, sender=None):
    """dispatch() for async callers: awaits async handlers, returns sync results as-is."""
    result = dispatch(invocation, sender=sender)
    if inspect.isawaitable(result):
        result = await result
    return result


__all__ = (
    "Handler",
    "call_arguments",
    "dispatch",
    "adispatch",
)
