"""
Echo example: one schema served from a process argument vector or from chat lines on stdin.

    python main.py hello world        → hello world
    python main.py --upper hi         → HI
    printf 'echobot: hi\\n' | python main.py → hi

exit codes: 0 on success, 2 on a match error, 1 on a dispatch error.
"""
import sys

import structlog
from rich.console import Console

from palaver import Schema, Bridge, ContextMapping, MatchError, DispatchError, dispatch, resolve

__prog__ = "echo"
__styles__ = {
    "prog-name": "bold #FFD600",
}

schema = Schema()
echo = schema.command("echo", descr="repeat the words you send", examples=("echo hello world", "echo --upper hi"))
echo.positional("words", required=False, variadic=True, descr="what to repeat")
echo.flag("--upper", "-u", descr="shout it back")
echo.flag("--user", type=str, hidden=True, descr="who asked (filled in by the chat bridge)")


@echo.handler
def _(*words, upper=False, user=None):
    if not words:
        return "A vast silence reigns because you didn't send anything to echo"
    message = " ".join(words)
    return message.upper() if upper else message


registry = schema.build()
console = Console(stderr=True)


class Stdout:
    def send_message(self, text, /):
        print(text)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    if not argv and not sys.stdin.isatty():
        bridge = Bridge(registry["echo"], nickname="echobot", mapping=ContextMapping.user_only("--user"))
        for line in sys.stdin:
            bridge.handle(line.rstrip("\n"), Stdout(), sender="stdin")
        return 0

    try:
        result = dispatch(resolve(registry["echo"], argv))
    except MatchError as fault:
        console.print(fault)
        return 2
    except DispatchError as fault:
        console.print(fault)
        return 1

    if result is not None:
        print(result)
    return 0


if __name__ == '__main__':
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))
    sys.exit(main())
