"""
Commandeer parser: token list + Schema → CommandMap.

Phases
- help pre-scan
  • "-h"/"--help" anywhere before "--" (or, with in_order, before the first
    positional token) short-circuits into HelpRequest; no other validation runs.
- option scan
  • tokens starting with "-" (but not "-" itself) are flags until "--" is seen; with
    in_order, the first positional token also ends the scan.
  • valued options consume the following token or an inline "--long=value".
- positional fill
  • positional tokens are assigned to declared arguments in order; a repeatable
    argument consumes the rest.
- finalize
  • every fault found is collected in discovery order; if any, ParseFailure is
    raised with all of them, otherwise a CommandMap is returned.

Values
- parse_fn(raw) converts a token; returning None or raising is a parse fault.
- validate pairs run on the converted value; a false or raising predicate is a
  validation fault carrying the paired message.
- options with update_fn fold update_fn(current) (boolean) or update_fn(current, value)
  (valued), starting from the default; otherwise the last occurrence wins.
"""
import copy
from collections import deque
from collections.abc import Iterable, Mapping
from typing import NamedTuple

from .arguments import Flag, Option, HELP_FLAGS
from .faults import *
from .utils import *


class CommandMap(NamedTuple):
    """
    Parsed invocation handed to a command body.

    - options: namedtuple with one field per option binding.
    - arguments: namedtuple with one field per argument binding.
    - schema: the Schema that produced it (for print_summary).
    - tool: tool name to show in usage lines, or None.
    """
    options: tuple
    arguments: tuple
    schema: object
    tool: str | None = None


class HelpRequest(NamedTuple):
    """
    -h/--help was requested; the caller renders the detailed summary and exits 0.
    """
    schema: object


def _requests_help(schema, tokens, /):
    tokens = iter(tokens)
    for token in tokens:
        if token in HELP_FLAGS:
            return True
        if token == "--":
            return False
        if token == "-" or not token.startswith("-"):
            if schema.in_order:
                return False
            continue
        match schema.lookup(token):
            case (Option(), _):
                # the value token is not a flag even when it looks like one
                next(tokens, None)
    return False


def _reason(exception, /):
    return str(exception) or type(exception).__name__


class Parser:
    """
    Single-use parsing state for one invocation of one schema.
    """

    def __init__(self, schema, /):
        self.schema = schema
        self._tokens = deque()
        self._faults = []
        self._options = {option.binding: copy.copy(option.default) for option in schema.options}
        self._arguments = {}

    def trigger(self, fault, /):
        self._faults.append(fault)

    def _convert(self, spec, raw, /, *, parsing, validating, **context):
        """
        Apply parse_fn then every validate pair; returns Unset after triggering a fault.
        """
        value = raw
        if spec.parse_fn:
            try:
                value = spec.parse_fn(raw)
            except Exception as exception:
                self.trigger(FieldParseError(
                    "%s: %s" % (parsing, _reason(exception)),
                    code=FaultCode.FIELD_PARSE,
                    binding=spec.binding,
                    value=raw,
                    **context,
                ))
                return Unset
            if value is None:
                self.trigger(FieldParseError(
                    '%s: could not parse "%s"' % (parsing, raw),
                    code=FaultCode.FIELD_PARSE,
                    binding=spec.binding,
                    value=raw,
                    **context,
                ))
                return Unset

        for predicate, message in spec.validate:
            try:
                valid = predicate(value)
            except Exception:
                valid = False
            if not valid:
                self.trigger(FieldValidationError(
                    "%s: %s" % (validating, message),
                    code=FaultCode.FIELD_VALIDATION,
                    binding=spec.binding,
                    value=raw,
                    **context,
                ))
                return Unset
        return value

    def _parse_flag(self, option, flag, value):
        if not option.update_fn:
            self._options[option.binding] = value
            return
        try:
            self._options[option.binding] = option.update_fn(self._options[option.binding])
        except Exception as exception:
            self.trigger(FieldParseError(
                'Error while parsing option "%s": %s' % (flag, _reason(exception)),
                code=FaultCode.FIELD_PARSE,
                binding=option.binding,
                flag=flag,
            ))

    def _parse_option(self, option, flag, value):
        if value is Unset:
            if not self._tokens:
                self.trigger(MissingValueError(
                    'Missing required argument for "%s %s"' % (flag, option.metavar),
                    code=FaultCode.MISSING_VALUE,
                    binding=option.binding,
                    flag=flag,
                ))
                return
            value = self._tokens.popleft()

        shown = "%s %s" % (flag, value)
        value = self._convert(
            option,
            value,
            parsing='Error while parsing option "%s"' % shown,
            validating='Failed to validate "%s"' % shown,
            flag=flag,
        )
        if value is Unset:
            return
        if not option.update_fn:
            self._options[option.binding] = value
            return
        try:
            self._options[option.binding] = option.update_fn(self._options[option.binding], value)
        except Exception as exception:
            self.trigger(FieldParseError(
                'Error while parsing option "%s": %s' % (shown, _reason(exception)),
                code=FaultCode.FIELD_PARSE,
                binding=option.binding,
                flag=flag,
            ))

    def _resolve_token(self, token):
        """
        Match a flag token (inline "--long=value" included) and parse it.
        """
        flag, value = token, Unset
        if token.startswith("--") and "=" in token:
            flag, value = token.split("=", 1)

        match self.schema.lookup(flag):
            case None:
                self.trigger(UnknownFlagError(
                    'Unknown option: "%s"' % flag,
                    code=FaultCode.UNKNOWN_FLAG,
                    flag=flag,
                ))
            case (Flag() as option, state):
                if value is not Unset:
                    self.trigger(FlagAssignmentError(
                        'Option "%s" does not take a value' % flag,
                        code=FaultCode.FLAG_ASSIGNMENT,
                        binding=option.binding,
                        flag=flag,
                    ))
                else:
                    self._parse_flag(option, flag, state)
            case (Option() as option, _):
                self._parse_option(option, flag, value)

    def _parse_argument(self, argument, raw):
        context = "Error in %s" % argument.label
        return self._convert(argument, raw, parsing=context, validating=context, label=argument.label)

    def _fill_arguments(self, tokens):
        tokens = deque(tokens)
        for argument in self.schema.arguments:
            if argument.repeatable:
                accumulator = argument.seed()
                while tokens:
                    if (value := self._parse_argument(argument, tokens.popleft())) is Unset:
                        continue
                    if not argument.update_fn:
                        accumulator.append(value)
                        continue
                    try:
                        accumulator = argument.update_fn(accumulator, value)
                    except Exception as exception:
                        self.trigger(FieldParseError(
                            "Error in %s: %s" % (argument.label, _reason(exception)),
                            code=FaultCode.FIELD_PARSE,
                            binding=argument.binding,
                            label=argument.label,
                        ))
                self._arguments[argument.binding] = accumulator
            elif tokens:
                value = self._parse_argument(argument, tokens.popleft())
                self._arguments[argument.binding] = argument.seed() if value is Unset else value
            elif argument.optional:
                self._arguments[argument.binding] = argument.seed()
            else:
                # later arguments are missing too; the first one is the actionable fault
                self.trigger(InsufficientArgumentsError(
                    "No value for required argument %s" % argument.label,
                    code=FaultCode.INSUFFICIENT_ARGUMENTS,
                    binding=argument.binding,
                    label=argument.label,
                ))
                return

        if tokens:
            self.trigger(ExcessArgumentsError(
                "Unexpected %s %s" % (
                    pluralize("argument", len(tokens)),
                    ", ".join('"%s"' % token for token in tokens),
                ),
                code=FaultCode.EXCESS_ARGUMENTS,
                tokens=tuple(tokens),
            ))

    def run(self, tokens, /):
        """
        Parse `tokens`, returning a CommandMap or raising ParseFailure.
        """
        self._tokens = deque(tokens)
        positionals = []
        positional = False
        while self._tokens:
            token = self._tokens.popleft()
            if positional or token == "-" or not token.startswith("-"):
                positionals.append(token)
                positional = positional or self.schema.in_order
            elif token == "--":
                positional = True
            else:
                self._resolve_token(token)

        self._fill_arguments(positionals)

        if self._faults:
            raise ParseFailure(self._faults, schema=self.schema)
        return CommandMap(
            self.schema.options_type(**self._options),
            self.schema.arguments_type(**self._arguments),
            self.schema,
        )


def _tokens(tokens, /):
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("parse() tokens must be an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() tokens must be an iterable of strings")
    return tokens


def parse(schema, tokens, /):
    """
    Parse one invocation of `schema`.

    Returns
    - HelpRequest when -h/--help was requested.
    - CommandMap with every binding populated (absent values use their defaults).

    Raises
    - ParseFailure with every fault found, in discovery order.
    - TypeError when tokens is not an iterable of strings.
    """
    tokens = _tokens(tokens)
    if _requests_help(schema, tokens):
        return HelpRequest(schema)
    return Parser(schema).run(tokens)


def bind(schema, mapping, /):
    """
    Build a CommandMap from a prepared {"options": {...}, "arguments": {...}} mapping,
    skipping parsing, conversion and validation. Missing bindings take their defaults;
    unknown bindings raise TypeError.
    """
    if not isinstance(mapping, Mapping):
        raise TypeError("bind() mapping must be a mapping")
    options = {option.binding: copy.copy(option.default) for option in schema.options}
    arguments = {argument.binding: argument.seed() for argument in schema.arguments}
    return CommandMap(
        schema.options_type(**(options | dict(mapping.get("options") or {}))),
        schema.arguments_type(**(arguments | dict(mapping.get("arguments") or {}))),
        schema,
    )


__all__ = (
    "CommandMap",
    "HelpRequest",
    "parse",
    "bind",
)
