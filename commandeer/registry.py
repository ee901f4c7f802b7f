"""
Commandeer registry (building dispatch tables).

Dispatch table
- Mapping of command name → CommandEntry(name, handle, source), where `handle` is a
  Command and `source` is "module.qualname" of its function.

Discovery
- locate(namespaces) scans the public members of already-imported modules, in the
  given order, and collects every Command found.
- Registry.register(command) builds a table explicitly, for programs that prefer
  composing commands over scanning modules.

Collisions
- Two distinct commands claiming the same name raise DuplicateCommandError naming
  both sources. Seeing the same command object twice (e.g. re-exported by a second
  module) is not a collision.
"""
import collections
import inspect
import sys
from types import MappingProxyType, ModuleType

from .commands import Command
from .faults import DuplicateCommandError
from .utils import *

CommandEntry = collections.namedtuple("CommandEntry", ("name", "handle", "source"))


def _claim(table, entry, /):
    if (existing := table.setdefault(entry.name, entry)).handle is not entry.handle:
        raise DuplicateCommandError(entry.name, entry.source, existing.source)


def _resolve(namespace, /):
    if isinstance(namespace, ModuleType):
        return namespace
    if not isinstance(namespace, str):
        raise TypeError("locate() namespaces must be modules or module names")
    try:
        return sys.modules[namespace]
    except KeyError:
        raise LookupError("namespace %s not found (it may need to be imported)" % namespace) from None


def locate(namespaces, /):
    """
    Build a dispatch table from the public Command members of `namespaces`.

    Parameters
    - namespaces: iterable of modules or names of already-imported modules.

    Raises
    - LookupError: a named module has not been imported.
    - DuplicateCommandError: two distinct commands share a name.
    """
    table = {}
    for module in map(_resolve, namespaces):
        for name, object in inspect.getmembers(module, lambda object: isinstance(object, Command)):
            if name.startswith("_"):
                continue
            _claim(table, CommandEntry(object.name, object, object.source))
    return table


class Registry:
    """
    Explicitly composed dispatch table.

        registry = Registry()
        registry.register(collect)
        registry.register(collect, name="gather")
        dispatch_commands("harness", None, registry.commands())
    """

    def __init__(self):
        self._entries = {}

    def register(self, command, /, *, name=Unset):
        """
        Add `command` under its own name (or `name`); returns the command so the
        method also works as a decorator.
        """
        if not isinstance(command, Command):
            raise TypeError("register() argument must be a command")
        if not isinstance(name := coalesce(name, command.name), str) or not name:
            raise TypeError("register() name must be a non-empty string")
        _claim(self._entries, CommandEntry(name, command, command.source))
        return command

    def commands(self):
        """
        Read-only view of the table built so far.
        """
        return MappingProxyType(dict(self._entries))

    def __contains__(self, name):
        return name in self._entries

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return "registry(%s)" % ", ".join(sorted(self._entries))


registry = Registry()
"""
Process-wide registry filled by command modules at import time.
"""


def register(command, /, *, name=Unset):
    """
    Add `command` to the process-wide registry (see Registry.register).
    """
    return registry.register(command, name=name)


__all__ = (
    "CommandEntry",
    "Registry",
    "locate",
    "register",
)
