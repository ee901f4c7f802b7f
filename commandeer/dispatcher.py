"""
Commandeer dispatcher (one tool, many commands).

Flow
- dispatch(tool=..., namespaces=[...]) imports the namespaces (module globs allowed),
  builds the table with the built-in `help` first, defaults the tool doc to the first
  namespace's docstring and routes sys.argv[1:] (or `arguments`).
- dispatch_commands(tool, doc, table) routes against a prepared table, adding `help`
  when the table lacks one.
- route(tool, doc, table, arguments) does the work and returns an outcome:
  • no command name, or an unknown one: tool summary (plus an error with a close
    match suggestion) on stderr, Failed(1).
  • known command: its own run() outcome; -h/--help gives Failed(0).
  • any exception escaping the command body: "Command failed: ..." and the
    exception's structured data on stderr, Failed(1). CommandExit passes through.

Exit
- dispatch()/dispatch_commands() return the command's result on success; any failure
  status goes through exit(), which raises CommandExit when exits are prevented.
"""
import contextlib
import difflib
import importlib
import inspect
import sys
from collections.abc import Mapping
from types import ModuleType

from .commands import Completed, Failed, command
from .faults import CommandExit, CommandNotFoundError, FaultCode, exit
from .registry import CommandEntry, locate
from .rendering import emit, dump, render_tool
from .utils import *

# (tool, doc, table) of every route() in flight, innermost last
_routes = []


@contextlib.contextmanager
def _routing(tool, doc, table):
    _routes.append((tool, doc, table))
    try:
        yield
    finally:
        _routes.pop()


@command
def help_():
    """List available commands"""
    if not _routes:
        raise RuntimeError("help is only available while dispatching")
    emit(render_tool(*_routes[-1]))


def _unknown(tool, doc, table, name):
    suggestions = difflib.get_close_matches(name, table.keys(), 1)
    fault = CommandNotFoundError(
        'unknown command "%s"' % name + (', did you mean "%s"?' % suggestions[0] if suggestions else ""),
        code=FaultCode.UNKNOWN_COMMAND,
        name=name,
        suggestions=tuple(suggestions),
    )
    return render_tool(tool, doc, table) + "\nError: %s\n" % fault.message


def route(tool, doc, table, arguments, /):
    """
    Route `arguments` (command name first) through `table`; returns
    Completed(result) or Failed(status) after printing whatever the user should see.
    """
    arguments = list(arguments)
    if not arguments:
        emit(render_tool(tool, doc, table), error=True)
        return Failed(1)

    name, *arguments = arguments
    if name not in table:
        emit(_unknown(tool, doc, table, name), error=True)
        return Failed(1)

    with _routing(tool, doc, table):
        try:
            return table[name].handle.run(arguments, tool=tool)
        except CommandExit:
            raise
        except Exception as exception:
            emit("Command failed: %s: %s\n" % (type(exception).__name__, exception), error=True)
            if data := getattr(exception, "data", None) or getattr(exception, "options", None):
                dump(dict(data) if isinstance(data, Mapping) else data)
            return Failed(1)


def dispatch_commands(tool, doc, table, arguments=Unset, /):
    """
    Route against a prepared table (name → CommandEntry), adding `help` if absent.

    Returns the command's result; exits (or raises CommandExit) on any failure.
    """
    if not isinstance(tool, str) or not tool:
        raise TypeError("dispatch_commands() tool must be a non-empty string")
    table = dict(table)
    table.setdefault("help", CommandEntry("help", help_, help_.source))

    match route(tool, doc, table, sys.argv[1:] if arguments is Unset else arguments):
        case Completed(result):
            return result
        case Failed(status):
            exit(status)


def _import(namespace, /):
    if isinstance(namespace, ModuleType):
        return [namespace]
    if not isinstance(namespace, str):
        raise TypeError("dispatch() namespaces must be modules or module names")
    if not (names := mglob(namespace)):
        raise LookupError("namespace %s not found" % namespace)
    return [importlib.import_module(name) for name in names]


def dispatch(*, tool, namespaces, doc=Unset, arguments=Unset):
    """
    Import `namespaces`, build the table and dispatch.

    Parameters
    - tool: tool name shown in usage lines.
    - namespaces: module, module name or glob ("pkg.commands.*"), or a list of them.
    - doc: tool description; defaults to the first namespace's docstring.
    - arguments: tokens to route; defaults to sys.argv[1:].

    Raises
    - ValueError: no namespaces were given.
    - DuplicateCommandError: two distinct commands share a name (a command named
      "help" collides with the built-in one).
    """
    if isinstance(namespaces, str | ModuleType):
        namespaces = [namespaces]
    if not namespaces:
        raise ValueError("dispatch() requires at least one namespace")

    modules = [module for namespace in namespaces for module in _import(namespace)]
    table = locate([sys.modules[__name__], *modules])
    return dispatch_commands(tool, coalesce(doc, inspect.getdoc(modules[0])), table, arguments)


__all__ = (
    "route",
    "dispatch_commands",
    "dispatch",
)
