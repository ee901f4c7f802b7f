"""
Commandeer rendering (command summaries, tool summaries and console output).

Command summary
    Usage: <tool> <command> [OPTIONS] <ARG-USAGE...>
    <summary>

    <detail, indented, -h/--help only>

    Options:
      -v, --verbose      Enable verbose logging
      -p, --port NUMBER  Port to bind (default: 8080)
      -h, --help         This command summary

    Arguments:
      HOST               System configuration URL

    Error:
      No value for required argument HOST

- Options and Arguments share one left-column width.
- Long flags without a short form are indented to line up with the long forms.
- "Arguments:" is omitted when there are none; the errors block is titled "Error:"
  for one message and "Errors:" for more.

Tool summary
    Usage: <tool> COMMAND ...
    <tool doc>

    Commands:
      collect    Collect key and value.
      help       List available commands

Console
- Every text goes through rich consoles configured to print verbatim: no markup,
  highlighting, emoji or wrapping, so help output is byte-stable in pipes and tests.
- Structured error data is pretty-printed with rich.pretty.pprint on stderr.
"""
from collections.abc import Collection

from rich.console import Console
from rich.pretty import pprint

from .utils import *

stdout = Console(markup=False, highlight=False, emoji=False, soft_wrap=True)
stderr = Console(stderr=True, markup=False, highlight=False, emoji=False, soft_wrap=True)


def emit(text, /, *, error=False):
    """
    Print `text` verbatim on stdout (or stderr when `error`).
    """
    (stderr if error else stdout).print(text, end="")


def dump(object, /):
    """
    Pretty-print structured error data on stderr.
    """
    pprint(object, console=stderr, indent_guides=False, expand_all=False)


def _table(rows, width, /):
    return ["  %-*s  %s" % (width, left, right) if right else "  " + left for left, right in rows]


def _shows_default(default):
    if default is None or default is False:
        return False
    return not isinstance(default, Collection) or bool(default)


def _option_row(option):
    left = "%s, %s" % (option.short, option.synopsis) if option.short else "    " + option.synopsis
    parts = [option.description] if option.description else []
    if _shows_default(option.default):
        parts.append("(default: %s)" % (option.default,))
    return left, " ".join(parts)


def _argument_row(argument):
    parts = [argument.description] if argument.description else []
    if traits := [trait for trait in ("optional", "repeatable") if getattr(argument, trait)]:
        parts.append("(%s)" % ", ".join(traits))
    return argument.label, " ".join(parts)


def render(schema, errors=(), /, *, tool=None, detailed=False):
    """
    Render the summary of one command, optionally followed by error messages.

    Parameters
    - schema: the command's Schema.
    - errors: iterable of message strings, shown in an "Error(s):" block.
    - tool: tool name prefixed to the command in the usage line.
    - detailed: include the extended docstring (used for -h/--help).

    Returns
    - str ending with a newline.
    """
    errors = [errors] if isinstance(errors, str) else list(errors)
    usage = ["Usage:", *filter(None, (tool, schema.name)), "[OPTIONS]"]
    usage.extend(argument.synopsis for argument in schema.arguments)
    lines = [" ".join(usage), schema.summary]

    if detailed and schema.detail:
        lines.append("")
        lines.extend("  " + line if line.strip() else "" for line in schema.detail.splitlines())

    options = [_option_row(option) for option in schema.options]
    options.append(("-h, --help", "This command summary"))
    arguments = [_argument_row(argument) for argument in schema.arguments]
    width = max(len(left) for left, _ in options + arguments)

    lines.extend(("", "Options:", *_table(options, width)))
    if arguments:
        lines.extend(("", "Arguments:", *_table(arguments, width)))
    if errors:
        lines.extend(("", pluralize("Error", len(errors)) + ":", *("  " + error for error in errors)))

    return "\n".join(lines) + "\n"


def render_tool(tool, doc, table, /):
    """
    Render the tool-level summary: usage line, tool doc and the sorted command list.

    `table` maps command names to entries whose handle exposes `summary`.
    """
    lines = ["Usage: %s COMMAND ..." % tool]
    if doc:
        lines.append(doc.strip())
    lines.extend(("", "Commands:"))
    rows = [(name, table[name].handle.summary) for name in sorted(table)]
    lines.extend(_table(rows, max((len(name) for name, _ in rows), default=0)))
    return "\n".join(lines) + "\n"


def print_summary(command_map, errors=(), /):
    """
    Print the command summary for a parsed invocation, with optional error messages,
    on stdout. Meant for command bodies reporting their own argument problems.
    """
    emit(render(command_map.schema, errors, tool=command_map.tool))


__all__ = (
    "render",
    "render_tool",
    "print_summary",
)
