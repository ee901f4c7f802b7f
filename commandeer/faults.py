"""
Commandeer faults (errors raised while compiling, parsing and dispatching).

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing fault.
- SchemaError: a command's declarative interface is malformed (decoration time, fatal).
- CommandException: base of the run-time field faults produced by the parser; each
  carries its rendered message and an immutable options mapping with context
  (code, binding, label, tokens, ...).
- ParseFailure: an ExceptionGroup aggregating every field fault of one invocation,
  together with the schema needed to render the command summary.
- DuplicateCommandError: two distinct commands claim the same name (registry time, fatal).
- CommandExit: structured replacement for process exit, raised when the
  prevent-exit toggle is set (see set_prevent_exit()).

Messages
- Field messages are short, stable sentences ("No value for required argument KEY");
  they are printed verbatim in the "Errors:" section of a command summary and are part
  of the help-text contract, so changing them changes golden outputs.

Integration
- The parser collects faults and raises a single ParseFailure; nothing is printed here.
- Command objects and the dispatcher turn faults into printed summaries plus an exit
  status and call exit(), which either terminates or raises CommandExit.
"""
import sys
from enum import IntEnum
from types import MappingProxyType

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x): UNKNOWN_COMMAND, DUPLICATE_COMMAND
    - flags (1111x): UNKNOWN_FLAG, FLAG_ASSIGNMENT, MISSING_VALUE
    - positionals (1112x/1114x): INSUFFICIENT_ARGUMENTS, EXCESS_ARGUMENTS
    - fields (1115x): FIELD_PARSE, FIELD_VALIDATION
    - schema (1190x): MALFORMED_INTERFACE
    """
    # --- routing errors ---
    UNKNOWN_COMMAND        = 11101
    DUPLICATE_COMMAND      = 11102

    # --- flag errors ---
    UNKNOWN_FLAG           = 11112
    FLAG_ASSIGNMENT        = 11113
    MISSING_VALUE          = 11117

    # --- positional errors ---
    INSUFFICIENT_ARGUMENTS = 11125
    EXCESS_ARGUMENTS       = 11141

    # --- field errors ---
    FIELD_PARSE            = 11151
    FIELD_VALIDATION       = 11152

    # --- schema errors ---
    MALFORMED_INTERFACE    = 11901


class SchemaError(ValueError):
    """
    raised at decoration time when a declarative interface cannot be compiled.

    the message names the command and the offending entry; `code` is always
    FaultCode.MALFORMED_INTERFACE.
    """
    code = FaultCode.MALFORMED_INTERFACE


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __str__(self):
        return str(self.message)


class UnknownFlagError(CommandException): ...
class FlagAssignmentError(CommandException): ...
class MissingValueError(CommandException): ...
class InsufficientArgumentsError(CommandException): ...
class ExcessArgumentsError(CommandException): ...
class FieldParseError(CommandException): ...
class FieldValidationError(CommandException): ...
class CommandNotFoundError(CommandException): ...


class ParseFailure(ExceptionGroup[CommandException]):
    """
    every field fault found while parsing one invocation, in discovery order.

    attributes
    - exceptions: the CommandException instances (ExceptionGroup protocol).
    - schema: the Schema of the command that failed, for rendering.
    - messages: the fault messages as plain strings, in order.
    """

    def __new__(cls, exceptions, /, *, schema):
        self = super().__new__(cls, "parse failure", tuple(exceptions))
        self.schema = schema
        return self

    def __init__(self, exceptions, /, *, schema):
        super().__init__("parse failure", tuple(exceptions))

    @property
    def messages(self):
        return tuple(exception.message for exception in self.exceptions)

    def derive(self, exceptions, /):
        return type(self)(exceptions, schema=self.schema)


class DuplicateCommandError(ValueError):
    """
    two distinct commands claim one visible name within a single dispatch table.
    """
    code = FaultCode.DUPLICATE_COMMAND

    def __init__(self, name, source, existing, /):
        super().__init__("command %s defined by %s conflicts with %s" % (name, source, existing))
        self.name = name
        self.source = source
        self.existing = existing


class CommandExit(Exception):
    """
    structured, catchable exit used when the prevent-exit toggle is set.

    `status` is the exit status the process would have terminated with (0 after
    help, 1 after any failure); `data` mirrors it as a mapping.
    """

    def __init__(self, status, /):
        super().__init__("Exit")
        self.status = status

    @property
    def data(self):
        return {"status": self.status}


_prevent_exit = False


def set_prevent_exit(flag, /):
    """
    toggle whether exit() terminates the process or raises CommandExit.

    meant for test harnesses embedding a dispatcher; flip it before dispatching,
    never while a dispatch is in flight.
    """
    global _prevent_exit
    _prevent_exit = bool(flag)


def exit(status, /):
    """
    terminate with `status`, or raise CommandExit(status) when exits are prevented.
    """
    if _prevent_exit:
        raise CommandExit(status)
    sys.exit(status)


__all__ = (
    "FaultCode",
    "SchemaError",
    "CommandException",
    "UnknownFlagError",
    "FlagAssignmentError",
    "MissingValueError",
    "InsufficientArgumentsError",
    "ExcessArgumentsError",
    "FieldParseError",
    "FieldValidationError",
    "CommandNotFoundError",
    "ParseFailure",
    "DuplicateCommandError",
    "CommandExit",
    "set_prevent_exit",
)
