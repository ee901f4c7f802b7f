r"""
Commandeer schema data model (option and positional argument specifications).

Overview
- Specs
  • Flag: named, boolean option (e.g., -v/--verbose); never consumes a following token.
  • Option: named, valued option (e.g., -p/--port NUMBER); consumes one token per use.
  • Argument: positional argument with optional/repeatable arity.
  • Schema: one command's compiled interface: name, summary, options, arguments and the
    in-order switch. Schemas also own the typed record types handed to command bodies.

- Introspection & representation
  • SpecType metaclass exposes fields listed in __introspectable__ as read-only
    properties (via mirror()) and provides stable __repr__/__rich_repr__.

Metadata (sanitized on construction, every violation is a SchemaError)
- Shared
  • binding: Python identifier receiving the value (no leading underscore, no keyword).
  • description: Unset | str (trimmed, non-empty when given).
  • parse_fn / update_fn: callables when given.
  • validate: one (predicate, message) pair or a flat run of them
    [pred, msg, pred, msg, ...]; normalized to a tuple of pairs.
- Named (Flag/Option)
  • short: Unset | "-x"; long: "--name" (required).
  • Flag.negatable adds a "--no-name" form that sets the binding to False.
  • Option.metavar: label of the value in help ("--port NUMBER").
- Positional (Argument)
  • label: display label ("HOST", "KV-DATA").
  • optional / repeatable flags; default seeds absent values and accumulators.

Schema invariants
- flag identifiers are unique (the implicit -h/--help included).
- bindings are unique across options, arguments and the command-map binding.
- optional and repeatable arguments form a suffix run; a repeatable argument is last.

Quick example:
    >>> schema = Schema(
    ...     "collect",
    ...     "Collect key and value.",
    ...     arguments=(Argument("k", "KEY", "Key to set"), Argument("v", "VAL", "Value to set")),
    ... )
    >>> schema.arguments_type._fields
    ('k', 'v')
"""
import collections
import copy
import functools
import keyword
import operator
import re
from collections.abc import Sequence

from .faults import SchemaError
from .utils import *

HELP_FLAGS = ("-h", "--help")


class SpecType(type):
    """
    Metaclass giving specs read-only, introspectable fields.

    Responsibilities
    - Expose every name in __introspectable__ as a read-only property backed by
      "_<name>" (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages ("flag", "option", "argument", "schema").
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate fields shared by every spec (binding, description, callables).

    Mutates `metadata` in place; raises SchemaError on any violation.
    """
    binding = metadata["binding"]
    if not isinstance(binding, str) or not binding.isidentifier() or keyword.iskeyword(binding):
        raise SchemaError(f"{cls.__typename__} binding {binding!r} must be a python identifier")
    elif binding.startswith("_"):
        raise SchemaError(f"{cls.__typename__} binding {binding!r} cannot start with an underscore")

    if not isinstance(description := metadata["description"], str | Unset):
        raise SchemaError(f"{cls.__typename__} {binding!r} description must be a string")
    elif isinstance(description, str) and not (description := description.strip()):
        raise SchemaError(f"{cls.__typename__} {binding!r} description cannot be empty")
    metadata["description"] = coalesce(description)

    for name in ("parse_fn", "update_fn"):
        if name in metadata and metadata[name] is not Unset and not callable(metadata[name]):
            raise SchemaError(f"{cls.__typename__} {binding!r} {name} must be callable")

    if "validate" in metadata:
        metadata["validate"] = _sanitize_validate(cls, binding, metadata["validate"])


def _sanitize_validate(cls, binding, validate, /):
    """
    Internal: normalize a validate modifier into a tuple of (predicate, message) pairs.
    """
    if validate is Unset:
        return ()
    if isinstance(validate, str) or not isinstance(validate, Sequence) or not validate or len(validate) % 2:
        raise SchemaError(f"{cls.__typename__} {binding!r} validate must be predicate/message pairs")
    pairs = []
    for index in range(0, len(validate), 2):
        predicate, message = validate[index], validate[index + 1]
        if not callable(predicate):
            raise SchemaError(f"{cls.__typename__} {binding!r} validate predicate must be callable")
        if not isinstance(message, str) or not message.strip():
            raise SchemaError(f"{cls.__typename__} {binding!r} validate message must be a non-empty string")
        pairs.append((predicate, message.strip()))
    return tuple(pairs)


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate the flag identifiers of a named spec (Flag/Option).

    - short: Unset or "-x" (one letter or digit).
    - long: required, r"--[^\W\d_](-?[^\W_]+)*" (unicode letters allowed, no underscores).
    """
    binding = metadata["binding"]

    if not isinstance(short := metadata["short"], str | Unset):
        raise SchemaError(f"{cls.__typename__} {binding!r} short flag must be a string")
    elif isinstance(short, str) and not re.fullmatch(r"-[^\W_]", short):
        raise SchemaError(f"{cls.__typename__} {binding!r} short flag {short!r} must look like '-x'")

    if not isinstance(long := metadata["long"], str):
        raise SchemaError(f"{cls.__typename__} {binding!r} must declare a long flag")
    elif not re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", long):
        raise SchemaError(f"{cls.__typename__} {binding!r} long flag {long!r} must look like '--name'")


class Flag(metaclass=SpecType):
    """
    Boolean option specification.

    A Flag sets its binding to True when present (False through its "--no-" form
    when negatable). With an update_fn, each occurrence folds update_fn(current)
    starting from the default instead, e.g. counting "-v -v -v".
    """

    __introspectable__ = (
        "binding",
        "short",
        "long",
        "description",
        "default",
        "update_fn",
        "negatable",
    )

    kind = "boolean"

    def __init__(
            self,
            binding,
            long,
            /,
            short=Unset,
            description=Unset,
            *,
            default=False,
            update_fn=Unset,
            negatable=False
    ):
        metadata = {
            "binding": binding,
            "short": short,
            "long": long,
            "description": description,
            "default": default,
            "update_fn": update_fn,
            "negatable": bool(negatable),
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_named_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def flags(self):
        """
        Every identifier matching this flag, short form first.
        """
        flags = (self.short, self.long) if self.short else (self.long,)
        if self.negatable:
            flags += ("--no-" + self.long[2:],)
        return flags

    @property
    def synopsis(self):
        """
        Long form as shown in help ("--verbose", "--[no-]color").
        """
        return "--[no-]" + self.long[2:] if self.negatable else self.long


class Option(metaclass=SpecType):
    """
    Valued option specification.

    Each occurrence consumes the following token (or an inline "--long=value"),
    applies parse_fn and validate, then stores it, or folds update_fn(current, value)
    when an update_fn is declared. Without an update_fn the last occurrence wins.
    """

    __introspectable__ = (
        "binding",
        "short",
        "long",
        "metavar",
        "description",
        "default",
        "parse_fn",
        "validate",
        "update_fn",
    )

    kind = "valued"

    def __init__(
            self,
            binding,
            long,
            /,
            short=Unset,
            description=Unset,
            *,
            metavar="VALUE",
            default=None,
            parse_fn=Unset,
            validate=Unset,
            update_fn=Unset
    ):
        metadata = {
            "binding": binding,
            "short": short,
            "long": long,
            "metavar": metavar,
            "description": description,
            "default": default,
            "parse_fn": parse_fn,
            "validate": validate,
            "update_fn": update_fn,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_named_metadata(type(self), metadata)

        if not isinstance(metavar, str) or not re.fullmatch(r"\S+", metavar):
            raise SchemaError(f"{type(self).__typename__} {binding!r} metavar must be a single word")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def flags(self):
        return (self.short, self.long) if self.short else (self.long,)

    @property
    def synopsis(self):
        """
        Long form with the metavar ("--port NUMBER").
        """
        return "%s %s" % (self.long, self.metavar)


class Argument(metaclass=SpecType):
    """
    Positional argument specification.

    Arity
    - required (default): exactly one token.
    - optional: one token when any remains; otherwise the binding is absent
      (None, or `default`).
    - repeatable: every remaining token, folded with update_fn (default: append)
      into an accumulator. The accumulator starts as a copy of `default` when given,
      otherwise an empty dict when update_fn is given, otherwise an empty list.
    """

    __introspectable__ = (
        "binding",
        "label",
        "description",
        "parse_fn",
        "validate",
        "optional",
        "repeatable",
        "update_fn",
        "default",
    )

    def __init__(
            self,
            binding,
            label,
            /,
            description=Unset,
            *,
            parse_fn=Unset,
            validate=Unset,
            optional=False,
            repeatable=False,
            update_fn=Unset,
            default=Unset
    ):
        metadata = {
            "binding": binding,
            "label": label,
            "description": description,
            "parse_fn": parse_fn,
            "validate": validate,
            "optional": bool(optional),
            "repeatable": bool(repeatable),
            "update_fn": update_fn,
            "default": default,
        }
        _sanitize_metadata(type(self), metadata)

        if not isinstance(label, str) or not re.fullmatch(r"[^\s\[\]]+", label):
            raise SchemaError(f"{type(self).__typename__} {binding!r} label must be a single word")
        if update_fn is not Unset and not repeatable:
            raise SchemaError(f"{type(self).__typename__} {binding!r} update_fn requires repeatable")
        if repeatable and update_fn is Unset and not isinstance(default, list | UnsetType):
            raise SchemaError(f"{type(self).__typename__} {binding!r} default must be a list unless update_fn is given")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def synopsis(self):
        """
        Usage form: LABEL, [LABEL], LABEL... or [LABEL...].
        """
        synopsis = self.label + "..." * self.repeatable
        return "[%s]" % synopsis if self.optional else synopsis

    def seed(self):
        """
        A fresh starting value: the accumulator for repeatable arguments, else the
        absent value.
        """
        if not self.repeatable:
            return coalesce(self.default)
        if self.default is not Unset:
            return copy.copy(self.default)
        return {} if self.update_fn else []


class Schema(metaclass=SpecType):
    """
    Compiled, immutable interface of one command.

    Fields
    - name: command label used in usage lines and dispatch tables.
    - summary: first docstring line; detail: the rest (shown on -h/--help only).
    - options: ordered Flag/Option specs; arguments: ordered Argument specs.
    - in_order: once the first positional token is seen, treat every later token
      as positional (wrapping external commands whose flags must pass through).
    - receiver: binding that receives the whole CommandMap, or None.

    Derived
    - options_type / arguments_type: namedtuple types whose fields are exactly the
      declared bindings, in declaration order.
    - lookup(flag): (spec, value-for-boolean) for a flag identifier, or None.
    """

    __introspectable__ = (
        "name",
        "summary",
        "detail",
        "options",
        "arguments",
        "in_order",
        "receiver",
    )

    def __init__(
            self,
            name,
            summary,
            /,
            detail=None,
            options=(),
            arguments=(),
            *,
            in_order=False,
            receiver=None
    ):
        if not isinstance(name, str) or not re.fullmatch(r"[^\s]+", name):
            raise SchemaError(f"command name {name!r} must be a non-empty word")
        if not isinstance(summary, str) or not summary.strip():
            raise SchemaError(f"command {name!r} requires a docstring")
        if detail is not None and not isinstance(detail, str):
            raise SchemaError(f"command {name!r} detail must be a string")

        options = tuple(options)
        arguments = tuple(arguments)

        flags = {}
        for option in options:
            if not isinstance(option, Flag | Option):
                raise SchemaError(f"command {name!r} options must be flags or options")
            for flag in option.flags:
                if flag in flags or flag in HELP_FLAGS:
                    raise SchemaError(f"command {name!r} declares flag {flag!r} more than once")
                flags[flag] = (option, not flag.startswith("--no-") or flag == option.long)

        trailing = None
        for argument in arguments:
            if not isinstance(argument, Argument):
                raise SchemaError(f"command {name!r} arguments must be positional arguments")
            if trailing is not None and trailing.repeatable:
                raise SchemaError(
                    f"command {name!r} argument {argument.label} cannot follow repeatable argument {trailing.label}"
                )
            if trailing is not None and not (argument.optional or argument.repeatable):
                raise SchemaError(
                    f"command {name!r} required argument {argument.label} cannot follow {trailing.label}"
                )
            if argument.optional or argument.repeatable:
                trailing = argument

        bindings = [spec.binding for spec in options + arguments]
        if receiver is not None:
            bindings.append(receiver)
            if not isinstance(receiver, str) or not receiver.isidentifier() or keyword.iskeyword(receiver):
                raise SchemaError(f"command {name!r} command-map binding must be a python identifier")
        duplicates = sorted({binding for binding in bindings if bindings.count(binding) > 1})
        if duplicates:
            raise SchemaError(f"command {name!r} binds {', '.join(duplicates)} more than once")

        self._name = name
        self._summary = summary.strip()
        self._detail = detail or None
        self._options = options
        self._arguments = arguments
        self._in_order = bool(in_order)
        self._receiver = receiver
        self._flags = flags
        self.options_type = collections.namedtuple("Options", [option.binding for option in options])
        self.arguments_type = collections.namedtuple("Arguments", [argument.binding for argument in arguments])

    def lookup(self, flag, /):
        return self._flags.get(flag)


__all__ = (
    # Classes (specifications)
    "Flag",
    "Option",
    "Argument",
    "Schema",

    # Constants
    "HELP_FLAGS",
)

# Keep the metaclass out of star-imports; not part of the public API.
del SpecType
