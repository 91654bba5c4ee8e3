"""
Palaver renderer: faults and command help as text.

Two layers
- error_text() / help_text() build styled rich Text (terminals, rich consoles,
  CommandException.__rich__).
- render_error() / render_help() return the same content as plain text, safe
  for chat replies: no control sequences, no box drawing.

Error forms
- compact (default for chat): one line
      greet: missing argument 'name' at second position (add <name> ...)
- long: header, message, hint
      [ greet · 11125 | Missing Argument ]
      missing argument 'name' at second position
       → add <name> or run 'greet --help' to see the expected usage

Help layout
- usage line, description, then "commands", "arguments" and "flags" sections
  and "examples". hidden arguments are left out.

Palette keys (override any of them with a __styles__ mapping in __main__)
- prog-name, code, error-title, error-message, hint-arrow, hint, docs
- usage-label, program-name, description-section, group-label, children,
  argument-name, flag-name, metavar, choice, argument-description, marker,
  examples-dot, example
"""
from collections import defaultdict

from rich.text import Text

from .faults import CommandException, getdoc
from .utils import pluralize

_PALETTE = {
    # === errors ===
    "prog-name": "bold #E6E6F0",
    "code": "bold #00E5FF",
    "error-title": "bold #FF4DA6",
    "error-message": "#C8C8D0",
    "hint-arrow": "#9CE19C dim",
    "hint": "italic #9CE19C",
    "docs": "#737373",

    # === help ===
    "usage-label": "bold #00E6FF",
    "program-name": "bold #FF4D94",
    "description-section": "italic #A3A3A3",
    "group-label": "bold #FFFFFF",
    "children": "bold #36C5F0",
    "argument-name": "bold #FFD600",
    "flag-name": "bold #22C55E",
    "metavar": "bold #FFD600",
    "choice": "bold #FF4D94",
    "argument-description": "#9CA3AF",
    "marker": "#737373",
    "examples-dot": "#22C55E dim",
    "example": "#E5E7EB",
}

# left column width cap for help sections
_COLUMN = 28


def _palette(colorful):
    main = __import__("__main__")
    styles = defaultdict(str, _PALETTE | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if fragment is None:
            return Text("")
        if isinstance(fragment, Text):
            return fragment.copy() if colorful else Text(fragment.plain)
        return Text(str(fragment), styler(style))

    return text


def _prog(fault):
    if fault.path:
        return " ".join(fault.path)
    return getattr(__import__("__main__"), "__prog__", None)


def error_text(fault, /, *, compact=False, colorful=True):
    """
    styled rendering of a CommandException.

    compact=True gives the one-line chat form; otherwise a header line, the
    message, the hint and (when the host documents the code) its docs.
    """
    if not isinstance(fault, CommandException):
        raise TypeError("error_text() argument must be a command exception")
    text = _palette(colorful)

    prog = _prog(fault)
    title = fault.title or "error"

    if compact:
        line = Text()
        if prog:
            line.append_text(text(prog, "prog-name")).append(": ")
        message = str(fault)
        # raise-site messages usually open with the title already
        if not message.lower().startswith(title.lower()):
            line.append_text(text(title, "error-title")).append(": ")
        line.append_text(text(message, "error-message"))
        if fault.hint:
            line.append(" (").append_text(text(fault.hint, "hint")).append(")")
        return line

    header = Text("[ ")
    if prog:
        header.append_text(text(prog, "prog-name")).append(" · ")
    if fault.code:
        header.append_text(text(fault.code.normalize(), "code")).append(" | ")
    header.append_text(text(title.title(), "error-title")).append(" ]")

    lines = [header, text(str(fault), "error-message")]
    if fault.hint:
        lines.append(Text.assemble(text(" → ", "hint-arrow"), text(fault.hint, "hint")))
    if fault.code and (docs := getdoc(fault.code)):
        lines.append(text(docs, "docs"))
    return Text("\n").join(lines)


def render_error(fault, /, *, compact=True):
    """plain-text rendering of a CommandException (see error_text())."""
    return error_text(fault, compact=compact, colorful=False).plain


def _positional_label(argument):
    label = argument.label
    if argument.variadic:
        label += "..."
    return label if argument.required else "[%s]" % label


def _flag_usage(flag):
    usage = flag.long
    if not flag.switch:
        usage += " " + flag.label
    return usage


def _markers(argument, *, flag=False):
    markers = []
    if argument.required:
        markers.append("required")
    elif not flag:
        markers.append("optional")
    if getattr(argument, "variadic", False):
        markers.append("variadic")
    if getattr(argument, "repeatable", False):
        markers.append("repeatable")
    if not (flag and argument.switch):
        markers.append(argument.expected)
        if not argument.required and argument.default is not None and argument.default != ():
            markers.append("default: %s" % argument.default)
    return markers


def help_text(command, /, *, colorful=True):
    """
    styled help for one CommandSpec.

    sections appear only when they have visible entries.
    """
    text = _palette(colorful)

    positionals = [argument for argument in command.positionals if not argument.hidden]
    flags = [flag for flag in command.flags.values() if not flag.hidden]
    children = command.children

    usage = Text.assemble(text("usage", "usage-label"), ": ", text(command.prog, "program-name"))
    for flag in flags:
        if flag.required:
            usage.append(" ").append_text(text(_flag_usage(flag), "flag-name"))
    if any(not flag.required for flag in flags):
        usage.append(" [flags]")
    for argument in positionals:
        usage.append(" ").append_text(text(_positional_label(argument), "argument-name"))
    if children:
        usage.append(" ").append_text(text("<command> ...", "children"))

    sections = [usage]
    if command.descr:
        sections.append(text(command.descr, "description-section"))

    def section(label, rows):
        width = min(max(len(left.plain) for left, _ in rows) + 2, _COLUMN)
        lines = [Text.assemble(text(label, "group-label"), ":")]
        for left, right in rows:
            line = Text("  ").append_text(left)
            if right.plain:
                if len(left.plain) + 2 > width:
                    line.append("\n" + " " * (width + 2))
                else:
                    line.append(" " * (width - len(left.plain)))
                line.append_text(right)
            lines.append(line)
        return Text("\n").join(lines)

    def describe(descr, markers):
        right = text(descr, "argument-description") if descr else Text("")
        if markers:
            if right.plain:
                right.append(" ")
            right.append_text(text("(%s)" % ", ".join(markers), "marker"))
        return right

    if children:
        sections.append(section(pluralize("command"), [
            (text(", ".join(child.names), "children"), text(child.descr, "argument-description"))
            for child in children
        ]))

    if positionals:
        sections.append(section(pluralize("argument"), [
            (text(_positional_label(argument), "argument-name"), describe(argument.descr, _markers(argument)))
            for argument in positionals
        ]))

    if flags:
        rows = []
        for flag in flags:
            left = text(", ".join(flag.names[::-1]), "flag-name")
            if not flag.switch:
                left.append(" ").append_text(text(flag.label, "choice" if flag.choices else "metavar"))
            rows.append((left, describe(flag.descr, _markers(flag, flag=True))))
        sections.append(section(pluralize("flag"), rows))

    if examples := command.examples:
        lines = [Text.assemble(text(pluralize("example"), "group-label"), ":")]
        for example in examples:
            lines.append(Text.assemble("  ", text("•", "examples-dot"), " ", text(example, "example")))
        sections.append(Text("\n").join(lines))

    return Text("\n\n").join(sections)


def render_help(command, /):
    """plain-text help for one CommandSpec (see help_text())."""
    return help_text(command, colorful=False).plain


__all__ = (
    "error_text",
    "render_error",
    "help_text",
    "render_help",
)
