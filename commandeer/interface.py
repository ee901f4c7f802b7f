"""
Commandeer interface compiler: declarative interface → Schema.

Declarative interface
- A flat list (or tuple) of entries, read left to right:
    [
        "verbose", ["-v", "--verbose", "Enable verbose logging"],
        "port", ["-p", "--port NUMBER", "Port to bind", {"default": 8080, "parse_fn": int}],
        ARGS,
        "host", ["HOST", "System configuration URL", {"validate": [is_url, "must be a URL"]}],
        "pairs", ["KV-DATA", "Data as KEY=VALUE", {"repeatable": True}],
        {"in_order": True},
    ]
- Before ARGS, every `binding, descriptor` pair is an option. Descriptor strings that
  start with "-" are flags; a metavar after the long flag ("--port NUMBER" or
  "--port=NUMBER") makes the option valued, otherwise it is boolean; "--[no-]color"
  declares a negatable boolean. The first other string is the description.
- After ARGS, every `binding, descriptor` pair is a positional argument:
  ["LABEL", "description", {modifiers}].
- A trailing mapping inside a descriptor carries its modifiers:
  • options:   default, parse_fn, validate, update_fn
  • arguments: parse_fn, validate, optional, repeatable, update_fn, default
- A bare mapping entry carries interface-level modifiers:
  • in_order: bool, stop option parsing at the first positional token
  • command:  str, command name override
  • as:       str, binding receiving the whole CommandMap

Docstring
- Required. The first line is the one-line summary; the rest (cleaned with
  inspect.cleandoc) is extended help shown only for -h/--help.

Errors
- Every structural problem raises SchemaError naming the command and the entry, at
  decoration time, so a broken interface never reaches a user's shell.
"""
import functools
import inspect
import re
from collections.abc import Mapping, Sequence
from typing import final

from .arguments import Flag, Option, Argument, Schema
from .faults import SchemaError
from .utils import *

_OPTION_MODIFIERS = frozenset(("default", "parse_fn", "validate", "update_fn"))
_ARGUMENT_MODIFIERS = frozenset(("parse_fn", "validate", "optional", "repeatable", "update_fn", "default"))
_INTERFACE_MODIFIERS = frozenset(("in_order", "command", "as"))


@final
class ArgsMarker:
    """
    Type of the ARGS singleton separating options from positional arguments.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __repr__(self):
        return "ARGS"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'ArgsMarker' is not an acceptable base type")


ARGS = ArgsMarker()


def _is_entry_sequence(object):
    return isinstance(object, Sequence) and not isinstance(object, str | bytes)


def _split_descriptor(command, binding, descriptor, /):
    """
    Internal: split a descriptor into its leading strings and trailing modifiers.
    """
    strings = []
    modifiers = {}
    for position, part in enumerate(descriptor):
        if isinstance(part, Mapping):
            if position != len(descriptor) - 1:
                raise SchemaError(f"command {command!r} {binding!r} modifiers must come last in its descriptor")
            modifiers = dict(part)
        elif isinstance(part, str):
            strings.append(part)
        else:
            raise SchemaError(
                f"command {command!r} {binding!r} descriptor may only hold strings and a trailing modifier mapping"
            )
    for key in modifiers:
        if not isinstance(key, str):
            raise SchemaError(f"command {command!r} {binding!r} modifier names must be strings")
    return strings, modifiers


def _compile_option(command, binding, descriptor, /):
    strings, modifiers = _split_descriptor(command, binding, descriptor)

    flags = []
    for string in strings:
        if not string.startswith("-"):
            break
        flags.append(string)
    rest = strings[len(flags):]
    if len(rest) > 1:
        raise SchemaError(f"command {command!r} option {binding!r} has more than one description")

    short = long = metavar = Unset
    negatable = False
    for flag in flags:
        match = re.fullmatch(r"(?P<flag>-[^\s=]+)(?:[\s=]+(?P<metavar>\S+))?", flag.strip())
        if not match:
            raise SchemaError(f"command {command!r} option {binding!r} has malformed flag {flag!r}")
        name = match["flag"]
        if name.startswith("--[no-]"):
            name = "--" + name.removeprefix("--[no-]")
            negatable = True
        if name.startswith("--"):
            if long is not Unset:
                raise SchemaError(f"command {command!r} option {binding!r} declares two long flags")
            long = name
        else:
            if short is not Unset:
                raise SchemaError(f"command {command!r} option {binding!r} declares two short flags")
            short = name
        if match["metavar"]:
            if metavar is not Unset and metavar != match["metavar"]:
                raise SchemaError(f"command {command!r} option {binding!r} declares two value labels")
            metavar = match["metavar"]

    if long is Unset:
        raise SchemaError(f"command {command!r} option {binding!r} must declare a long flag")
    if unknown := sorted(modifiers.keys() - _OPTION_MODIFIERS):
        raise SchemaError(f"command {command!r} option {binding!r} has unknown modifiers {', '.join(unknown)}")

    description = rest[0] if rest else Unset
    if metavar is Unset:
        if negatable and "update_fn" in modifiers:
            raise SchemaError(f"command {command!r} option {binding!r} cannot be negatable and use update_fn")
        if "parse_fn" in modifiers or "validate" in modifiers:
            raise SchemaError(f"command {command!r} boolean option {binding!r} cannot parse or validate a value")
        return Flag(binding, long, short, description, negatable=negatable, **modifiers)
    if negatable:
        raise SchemaError(f"command {command!r} option {binding!r} cannot be negatable and take a value")
    return Option(binding, long, short, description, metavar=metavar, **modifiers)


def _compile_argument(command, binding, descriptor, /):
    strings, modifiers = _split_descriptor(command, binding, descriptor)

    if not strings or strings[0].startswith("-"):
        raise SchemaError(f"command {command!r} argument {binding!r} must start with a label")
    if len(strings) > 2:
        raise SchemaError(f"command {command!r} argument {binding!r} has more than one description")
    if unknown := sorted(modifiers.keys() - _ARGUMENT_MODIFIERS):
        raise SchemaError(f"command {command!r} argument {binding!r} has unknown modifiers {', '.join(unknown)}")
    for key in ("optional", "repeatable"):
        if not isinstance(modifiers.get(key, False), bool):
            raise SchemaError(f"command {command!r} argument {binding!r} {key} must be true or false")

    label, *description = strings
    return Argument(binding, label, *description, **modifiers)


def compile_interface(docstring, interface, /, *, name):
    """
    Compile a docstring and a declarative interface into a Schema.

    Parameters
    - docstring: str, required; first line is the summary, the rest extended help.
    - interface: flat list/tuple of entries (see module documentation).
    - name: default command name (overridable with the "command" modifier).

    Returns
    - Schema: immutable, shared by every invocation of the command.

    Raises
    - SchemaError: missing docstring; interface not a flat sequence of
      `binding, descriptor` entries; ARGS given twice; duplicate flags or bindings;
      a required argument after an optional/repeatable one; unknown modifiers.
    """
    if not isinstance(docstring, str) or not docstring.strip():
        raise SchemaError(f"command {name!r} requires a docstring")
    if not _is_entry_sequence(interface):
        raise SchemaError(f"command {name!r} interface must be a flat sequence of entries")

    summary, _, detail = inspect.cleandoc(docstring).partition("\n")
    options = []
    arguments = []
    modifiers = {}
    positional = False

    index = 0
    while index < len(interface):
        entry = interface[index]
        if entry is ARGS:
            if positional:
                raise SchemaError(f"command {name!r} separates arguments with ARGS more than once")
            positional = True
            index += 1
            continue
        if isinstance(entry, Mapping):
            for key, value in entry.items():
                if key not in _INTERFACE_MODIFIERS:
                    raise SchemaError(f"command {name!r} has unknown interface modifier {key!r}")
                if key in modifiers:
                    raise SchemaError(f"command {name!r} repeats interface modifier {key!r}")
                modifiers[key] = value
            index += 1
            continue
        if not isinstance(entry, str):
            raise SchemaError(f"command {name!r} expects a binding name at entry {index}, found {entry!r}")
        if index + 1 >= len(interface) or not _is_entry_sequence(descriptor := interface[index + 1]):
            raise SchemaError(f"command {name!r} binding {entry!r} must be followed by its descriptor")
        if positional:
            arguments.append(_compile_argument(name, entry, descriptor))
        else:
            options.append(_compile_option(name, entry, descriptor))
        index += 2

    if not isinstance(in_order := modifiers.get("in_order", False), bool):
        raise SchemaError(f"command {name!r} in_order must be true or false")
    if not isinstance(command := modifiers.get("command", name), str):
        raise SchemaError(f"command {name!r} command name override must be a string")

    return Schema(
        command,
        summary,
        detail.strip("\n") or None,
        options,
        arguments,
        in_order=in_order,
        receiver=modifiers.get("as"),
    )


__all__ = (
    "ARGS",
    "compile_interface",
)
