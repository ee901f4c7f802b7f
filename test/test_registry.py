# python
"""
Registry behavioral tests (namespace scanning and explicit registration).

Scope
- Validate locate(): public Command members, names, sources, lookup errors.
- Validate duplicate detection (distinct handles) and idempotence (same handle).
- Validate Registry/register(): explicit composition with the same collision rule.

Conventions
- Test method names follow CamelCase per project convention.
- Throwaway namespaces are built with types.ModuleType.
"""

from __future__ import annotations

import types
import unittest
from unittest import TestCase, mock

import harness
from commandeer import CommandEntry, DuplicateCommandError, Registry, command, locate, register


def namespace(name, **members):
    module = types.ModuleType(name)
    for key, value in members.items():
        setattr(module, key, value)
    return module


def status_command(module):
    def status():
        """Report status."""
        return module

    status.__module__ = module
    status.__qualname__ = "status"
    return command(status)


class TestLocate(TestCase):
    """Behavioral tests for locate()."""

    def testCollectsPublicCommands(self):
        table = locate([harness])
        self.assertEqual(sorted(table), ["collect", "configure", "in-order", "serve"])
        self.assertEqual(table["collect"], CommandEntry("collect", harness.collect, "harness.collect"))

    def testAcceptsModuleNames(self):
        self.assertEqual(locate(["harness"]), locate([harness]))

    def testMissingNamespace(self):
        with self.assertRaises(LookupError) as context:
            locate(["harness_that_was_never_imported"])
        self.assertEqual(
            str(context.exception),
            "namespace harness_that_was_never_imported not found (it may need to be imported)",
        )

    def testRejectsOtherNamespaceTypes(self):
        with self.assertRaises(TypeError):
            locate([42])

    def testSkipsPrivateMembers(self):
        table = locate([namespace("alpha", _status=status_command("alpha"))])
        self.assertEqual(table, {})

    def testDistinctCommandsCollide(self):
        alpha = namespace("alpha", status=status_command("alpha"))
        beta = namespace("beta", status=status_command("beta"))
        with self.assertRaises(DuplicateCommandError) as context:
            locate([alpha, beta])
        self.assertEqual(str(context.exception), "command status defined by beta.status conflicts with alpha.status")
        self.assertEqual(context.exception.name, "status")
        self.assertEqual(context.exception.source, "beta.status")
        self.assertEqual(context.exception.existing, "alpha.status")

    def testSameNamespaceTwiceIsIdempotent(self):
        self.assertEqual(locate([harness, harness]), locate([harness]))

    def testReexportedCommandIsIdempotent(self):
        alpha = namespace("alpha", status=status_command("alpha"))
        beta = namespace("beta", status=alpha.status, current=alpha.status)
        table = locate([alpha, beta])
        self.assertEqual(list(table), ["status"])
        self.assertEqual(table["status"].source, "alpha.status")


class TestRegistry(TestCase):
    """Behavioral tests for explicit registration."""

    def testRegisterReturnsCommand(self):
        registry = Registry()
        self.assertIs(registry.register(harness.collect), harness.collect)
        self.assertIn("collect", registry)
        self.assertEqual(len(registry), 1)

    def testRegisterUnderAnotherName(self):
        registry = Registry()
        registry.register(harness.collect, name="gather")
        self.assertEqual(registry.commands()["gather"], CommandEntry("gather", harness.collect, "harness.collect"))

    def testCommandsAreReadOnly(self):
        registry = Registry()
        registry.register(harness.collect)
        with self.assertRaises(TypeError):
            registry.commands()["other"] = None

    def testDistinctCommandsCollide(self):
        registry = Registry()
        registry.register(status_command("alpha"))
        with self.assertRaises(DuplicateCommandError):
            registry.register(status_command("beta"))

    def testSameCommandTwiceIsIdempotent(self):
        registry = Registry()
        registry.register(harness.collect)
        registry.register(harness.collect)
        self.assertEqual(len(registry), 1)

    def testRejectsNonCommands(self):
        with self.assertRaises(TypeError):
            Registry().register(lambda: None)

    def testProcessWideRegister(self):
        with mock.patch("commandeer.registry.registry", Registry()) as registry:
            self.assertIs(register(harness.serve), harness.serve)
            self.assertEqual(list(registry.commands()), ["serve"])


if __name__ == "__main__":
    unittest.main()
