"""
Commandeer commands (declaring and running a single command).

Scope
- @command(*interface) turns a documented function into a Command.
- Command.run(arguments) parses, binds and calls the function, returning an outcome
  (Completed(result) or Failed(status)); printing happens here, exiting does not.
- Command(arguments) / invoke(command, arguments) run and then exit on failure (or
  raise CommandExit when exits are prevented).

Binding
- The function receives one keyword argument per declared binding (options and
  arguments alike), plus the whole CommandMap under the "as" binding when declared.
  A function that cannot accept those keywords is rejected at decoration time.

Naming
- The command name is the function name with underscores turned into dashes and
  surrounding underscores dropped ("in_order" → "in-order", "help_" → "help"),
  unless the interface overrides it with {"command": "name"}.

Tool name
- The usage line names the tool when known: the dispatcher passes it explicitly;
  otherwise `__main__.__prog__` is used when the host script defines it.

Example
    >>> @command(
    ...     "verbose", ["-v", "--verbose", "Enable verbose logging"],
    ...     ARGS,
    ...     "key", ["KEY", "Key to set"],
    ... )
    ... def collect(verbose, key):
    ...     '''Collect key and value.'''
    ...     return key
    >>> collect.run(["-v", "k"])
    Completed(result='k')
"""
import collections
import functools
import inspect
import shlex
import sys
from collections.abc import Iterable, Mapping, Sequence

from .faults import SchemaError, ParseFailure, exit
from .interface import compile_interface
from .parsing import HelpRequest, parse, bind
from .rendering import emit, render
from .utils import *

Completed = collections.namedtuple("Completed", ("result",))
Failed = collections.namedtuple("Failed", ("status",))


def _tool_name():
    return getattr(sys.modules.get("__main__"), "__prog__", None)


def _tokenize(arguments, /):
    if arguments is Unset:
        return sys.argv[1:]
    if isinstance(arguments, str):
        return shlex.split(arguments)
    if isinstance(arguments, Iterable):
        tokens = list(arguments)
        if all(isinstance(token, str) for token in tokens):
            return tokens
    raise TypeError("run() argument must be a string, a mapping or an iterable of strings")


class Command:
    """
    A function bound to its compiled Schema.

    Attributes
    - name, summary, schema: from the compiled interface.
    - callback: the decorated function.
    - source: "module.qualname" of the callback, used in duplicate-name reports.
    """

    name = property(lambda self: self._schema.name)
    summary = property(lambda self: self._schema.summary)
    schema = mirror("schema")
    callback = mirror("callback")

    def __init__(self, callback, interface=(), /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")

        name = getattr(callback, "__name__", type(callback).__name__).strip("_").replace("_", "-")
        schema = compile_interface(getattr(callback, "__doc__", None), interface, name=name)

        bindings = [spec.binding for spec in schema.options + schema.arguments]
        if schema.receiver:
            bindings.append(schema.receiver)
        try:
            inspect.signature(callback).bind(**dict.fromkeys(bindings))
        except TypeError as exception:
            raise SchemaError(f"command {schema.name!r} callback cannot accept its bindings: {exception}") from None
        except ValueError:
            # builtins without a signature are accepted as-is
            pass

        self._callback = callback
        self._schema = schema
        functools.update_wrapper(self, callback)

    @property
    def source(self):
        module = getattr(self._callback, "__module__", None)
        qualname = getattr(self._callback, "__qualname__", repr(self._callback))
        return "%s.%s" % (module, qualname) if module else qualname

    def __repr__(self):
        return "command(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __rich_repr__(self):
        yield "name", self.name
        yield "summary", self.summary
        yield "source", self.source

    def _call(self, command_map):
        bindings = command_map.options._asdict() | command_map.arguments._asdict()
        if self._schema.receiver:
            bindings[self._schema.receiver] = command_map
        return self._callback(**bindings)

    def run(self, arguments=Unset, /, *, tool=Unset):
        """
        Run the command and report the outcome instead of exiting.

        Parameters
        - arguments:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split with shlex.split.
          • Iterable[str]: pre-tokenized arguments.
          • Mapping: {"options": {...}, "arguments": {...}}, bound without parsing.
        - tool: tool name for usage lines (defaults to __main__.__prog__).

        Returns
        - Completed(result) after the function returned.
        - Failed(0) after printing the detailed summary for -h/--help.
        - Failed(1) after printing the summary and every parse error.

        Exceptions raised by the function propagate unchanged.
        """
        tool = coalesce(tool, _tool_name())
        if isinstance(arguments, Mapping):
            return Completed(self._call(bind(self._schema, arguments)._replace(tool=tool)))

        try:
            outcome = parse(self._schema, _tokenize(arguments))
        except ParseFailure as failure:
            emit(render(self._schema, failure.messages, tool=tool))
            return Failed(1)

        if isinstance(outcome, HelpRequest):
            emit(render(self._schema, tool=tool, detailed=True))
            return Failed(0)
        return Completed(self._call(outcome._replace(tool=tool)))

    def __call__(self, arguments=Unset, /):
        """
        Run the command; on help or failure, exit with the reported status.
        """
        match self.run(arguments):
            case Completed(result):
                return result
            case Failed(status):
                exit(status)


def command(*interface):
    """
    Decorate a documented function into a Command.

    Forms
    - @command                        → no options, no arguments
    - @command("name", [...], ...)    → interface given as entries
    - @command(["name", [...], ...])  → interface given as one list

    Raises
    - SchemaError when the docstring or interface is invalid (at decoration time).
    """
    if len(interface) == 1 and callable(interface[0]):
        return Command(interface[0])
    if len(interface) == 1 and isinstance(interface[0], Sequence) and not isinstance(interface[0], str):
        interface = interface[0]

    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        return Command(callback, interface)

    return wrapper


def invoke(object, arguments=Unset, /):
    """
    Convenience runner for commands or documented callables.

    A plain callable is wrapped with command() first (no options, no arguments).
    """
    if isinstance(object, Command):
        return object(arguments)
    if callable(object):
        return invoke(command(object), arguments)
    raise TypeError("invoke() first argument must be a command or a callable")


__all__ = (
    "Command",
    "Completed",
    "Failed",
    "command",
    "invoke",
)
