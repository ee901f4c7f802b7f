# python
"""
Parser behavioral tests (tokens + Schema → CommandMap | HelpRequest | ParseFailure).

Scope
- Validate option scanning (boolean, valued, inline, negation, folding, last-wins).
- Validate positional filling (required, optional, repeatable, in-order, "--").
- Validate fault collection and the stable fault messages.
- Validate the help pre-scan and the mapping bypass (bind).

Conventions
- Test method names follow CamelCase per project convention.
- Schemas come from the example commands in harness.py.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

import harness
from commandeer import (
    CommandMap,
    HelpRequest,
    ParseFailure,
    FaultCode,
    UnknownFlagError,
    FlagAssignmentError,
    MissingValueError,
    InsufficientArgumentsError,
    ExcessArgumentsError,
    FieldParseError,
    FieldValidationError,
    bind,
    parse,
)


class ParsingTestCase(TestCase):
    def assertFaults(self, schema, tokens, messages):
        with self.assertRaises(ParseFailure) as context:
            parse(schema, tokens)
        self.assertIs(context.exception.schema, schema)
        self.assertEqual(list(context.exception.messages), messages)
        return context.exception.exceptions


class TestConfigure(ParsingTestCase):
    """Flags, validated arguments and a repeatable argument folded with update_fn."""

    schema = harness.configure.schema

    def testParsesEverything(self):
        result = parse(self.schema, ["-v", "http://example.com", "a=1", "b=2"])
        self.assertIsInstance(result, CommandMap)
        self.assertIs(result.options.verbose, True)
        self.assertEqual(result.arguments.host, "http://example.com")
        self.assertEqual(result.arguments.kv_data, {"a": "1", "b": "2"})

    def testOptionsInterleaveWithArguments(self):
        result = parse(self.schema, ["http://example.com", "a=1", "--verbose", "b=2"])
        self.assertIs(result.options.verbose, True)
        self.assertEqual(result.arguments.kv_data, {"a": "1", "b": "2"})

    def testBooleanDefaultsToFalse(self):
        self.assertIs(parse(self.schema, ["http://example.com", "a=1"]).options.verbose, False)

    def testRepeatableWithoutTokensIsEmpty(self):
        self.assertEqual(parse(self.schema, ["http://example.com"]).arguments.kv_data, {})

    def testLaterPairsOverrideEarlierOnes(self):
        result = parse(self.schema, ["http://example.com", "a=1", "a=2"])
        self.assertEqual(result.arguments.kv_data, {"a": "2"})

    def testFieldFaultsAreCollected(self):
        faults = self.assertFaults(
            self.schema,
            ["example.com", "fred", "a=1"],
            ["Error in HOST: must be a URL", 'Error in KV-DATA: could not parse "fred"'],
        )
        self.assertIsInstance(faults[0], FieldValidationError)
        self.assertEqual(faults[0].code, FaultCode.FIELD_VALIDATION)
        self.assertEqual(faults[0].options["label"], "HOST")
        self.assertIsInstance(faults[1], FieldParseError)
        self.assertEqual(faults[1].options["value"], "fred")

    def testUnknownOption(self):
        faults = self.assertFaults(self.schema, ["--debug", "http://example.com"], ['Unknown option: "--debug"'])
        self.assertIsInstance(faults[0], UnknownFlagError)

    def testNoPrefixMatching(self):
        self.assertFaults(self.schema, ["--verb", "http://example.com"], ['Unknown option: "--verb"'])

    def testBooleanRejectsValue(self):
        faults = self.assertFaults(
            self.schema,
            ["--verbose=yes", "http://example.com"],
            ['Option "--verbose" does not take a value'],
        )
        self.assertIsInstance(faults[0], FlagAssignmentError)

    def testHelpShortCircuits(self):
        for tokens in (["-h"], ["--help"], ["-h", "--bogus", "x", "y"], ["not-a-url", "--help"]):
            with self.subTest(tokens=tokens):
                self.assertEqual(parse(self.schema, tokens), HelpRequest(self.schema))

    def testHelpAfterSeparatorIsPositional(self):
        self.assertFaults(self.schema, ["--", "-h"], ["Error in HOST: must be a URL"])

    def testTokensMustBeStrings(self):
        for tokens in ("-v http://example.com", ["-v", 1], 42):
            with self.subTest(tokens=tokens), self.assertRaises(TypeError):
                parse(self.schema, tokens)


class TestCollect(ParsingTestCase):
    """Two required positional arguments."""

    schema = harness.collect.schema

    def testParsesBoth(self):
        result = parse(self.schema, ["k", "v"])
        self.assertEqual(result.arguments, self.schema.arguments_type(key="k", value="v"))
        self.assertEqual(result.options, self.schema.options_type())

    def testMissingSecondArgument(self):
        faults = self.assertFaults(self.schema, ["just-key"], ["No value for required argument VAL"])
        self.assertIsInstance(faults[0], InsufficientArgumentsError)
        self.assertEqual(faults[0].options["label"], "VAL")

    def testOnlyFirstMissingArgumentIsReported(self):
        self.assertFaults(self.schema, [], ["No value for required argument KEY"])

    def testSurplusArgument(self):
        faults = self.assertFaults(self.schema, ["k", "v", "extra"], ['Unexpected argument "extra"'])
        self.assertIsInstance(faults[0], ExcessArgumentsError)
        self.assertEqual(faults[0].options["tokens"], ("extra",))

    def testSurplusArguments(self):
        faults = self.assertFaults(self.schema, ["k", "v", "a", "b"], ['Unexpected arguments "a", "b"'])
        self.assertEqual(faults[0].options["tokens"], ("a", "b"))

    def testSingleDashIsPositional(self):
        self.assertEqual(parse(self.schema, ["-", "v"]).arguments.key, "-")


class TestInOrder(ParsingTestCase):
    """in_order stops option scanning at the first positional token."""

    schema = harness.in_order.schema

    def testFlagsAfterCommandPassThrough(self):
        result = parse(self.schema, ["-v", "ls", "-lR"])
        self.assertIs(result.options.verbose, True)
        self.assertEqual(result.arguments.command, "ls")
        self.assertEqual(result.arguments.args, ["-lR"])

    def testHelpAfterCommandPassesThrough(self):
        result = parse(self.schema, ["ls", "--help", "-v"])
        self.assertIs(result.options.verbose, False)
        self.assertEqual(result.arguments.args, ["--help", "-v"])

    def testOptionalRepeatableMayBeEmpty(self):
        self.assertEqual(parse(self.schema, ["ls"]).arguments.args, [])

    def testCommandIsRequired(self):
        self.assertFaults(self.schema, ["-v"], ["No value for required argument COMMAND"])


class TestServe(ParsingTestCase):
    """Valued options, negation, folding options and optional arguments."""

    schema = harness.serve.schema

    def testDefaults(self):
        result = parse(self.schema, [])
        self.assertEqual(
            result.options,
            self.schema.options_type(port=8080, color=True, level=0, tags=[]),
        )
        self.assertEqual(result.arguments.root, ".")

    def testEveryOptionForm(self):
        result = parse(self.schema, ["--no-color", "-l", "-l", "--tag", "a", "--tag=b", "-p", "9000", "www"])
        self.assertEqual(
            result.options,
            self.schema.options_type(port=9000, color=False, level=2, tags=["a", "b"]),
        )
        self.assertEqual(result.arguments.root, "www")

    def testLastValueWins(self):
        self.assertEqual(parse(self.schema, ["-p", "1", "--port=2"]).options.port, 2)

    def testInlineValueMayBeEmpty(self):
        self.assertEqual(parse(self.schema, ["--tag="]).options.tags, [""])

    def testValueMayLookLikeFlag(self):
        self.assertEqual(parse(self.schema, ["--tag", "-x"]).options.tags, ["-x"])

    def testMissingValue(self):
        faults = self.assertFaults(self.schema, ["-p"], ['Missing required argument for "-p NUMBER"'])
        self.assertIsInstance(faults[0], MissingValueError)

    def testUnparsableValue(self):
        faults = self.assertFaults(
            self.schema,
            ["--port", "8o"],
            ["Error while parsing option \"--port 8o\": invalid literal for int() with base 10: '8o'"],
        )
        self.assertEqual(faults[0].options["flag"], "--port")

    def testInvalidValue(self):
        self.assertFaults(self.schema, ["--port", "0"], ['Failed to validate "--port 0": must be between 1 and 65535'])

    def testFaultsKeepDiscoveryOrder(self):
        self.assertFaults(
            self.schema,
            ["--debug", "--port=0", "a", "b"],
            [
                'Unknown option: "--debug"',
                'Failed to validate "--port 0": must be between 1 and 65535',
                'Unexpected argument "b"',
            ],
        )

    def testHelpIsNotTakenAsValue(self):
        self.assertFaults(
            self.schema,
            ["--port", "-h"],
            ["Error while parsing option \"--port -h\": invalid literal for int() with base 10: '-h'"],
        )

    def testSeparatorEndsOptions(self):
        self.assertEqual(parse(self.schema, ["--", "--no-color"]).arguments.root, "--no-color")

    def testDefaultsAreFreshPerInvocation(self):
        first = parse(self.schema, ["--tag", "a"])
        second = parse(self.schema, [])
        self.assertEqual(first.options.tags, ["a"])
        self.assertEqual(second.options.tags, [])


class TestBind(TestCase):
    """Mapping bypass: no parsing, defaults filled in."""

    def testBindFillsDefaults(self):
        result = bind(harness.serve.schema, {"options": {"port": 1}})
        self.assertEqual(result.options.port, 1)
        self.assertIs(result.options.color, True)
        self.assertEqual(result.arguments.root, ".")

    def testBindSkipsValidation(self):
        result = bind(harness.configure.schema, {"arguments": {"host": "not-a-url"}})
        self.assertEqual(result.arguments.host, "not-a-url")
        self.assertEqual(result.arguments.kv_data, {})

    def testBindRejectsUnknownBindings(self):
        with self.assertRaises(TypeError):
            bind(harness.collect.schema, {"arguments": {"nope": 1}})


if __name__ == "__main__":
    unittest.main()
