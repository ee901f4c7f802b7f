# python
"""
Utilities behavioral tests (sentinel, coalesce, rename, mirror, pluralize, mglob).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import pickle
import unittest
from unittest import TestCase

from commandeer.utils import Unset, UnsetType, coalesce, rename, mirror, pluralize, mglob


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testUnsetIsSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testUnsetIsFalsy(self):
        self.assertFalse(Unset)

    def testUnsetRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetSurvivesCopies(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy([Unset])[0], Unset)

    def testUnsetSurvivesPickle(self):
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnsetCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnsetSupportsTypeUnions(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(None, str | Unset)


class TestCoalesce(TestCase):
    """Behavioral tests for coalesce()."""

    def testCoalesceReplacesUnset(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testCoalesceDefaultsToNone(self):
        self.assertIsNone(coalesce(Unset))

    def testCoalesceKeepsFalseyValues(self):
        for value in (None, 0, "", []):
            self.assertIs(coalesce(value, "fallback"), value)


class TestRename(TestCase):
    """Behavioral tests for rename()."""

    def testRenameInPlace(self):
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecorator(self):
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testRenameRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            rename(42, "renamed")

    def testRenameRejectsWrongArity(self):
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):
    """Behavioral tests for mirror() properties."""

    def testMirrorDetachesMutableContainers(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ["a"]

        holder = Holder()
        holder.items.append("b")
        self.assertEqual(holder.items, ["a"])

    def testMirrorIsReadOnly(self):
        class Holder:
            name = mirror("name")

            def __init__(self):
                self._name = "holder"

        with self.assertRaises(AttributeError):
            Holder().name = "other"


class TestPluralize(TestCase):
    """Behavioral tests for pluralize()."""

    def testPluralizeRegularWords(self):
        self.assertEqual(pluralize("argument"), "arguments")
        self.assertEqual(pluralize("class"), "classes")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("day"), "days")

    def testPluralizeKeepsSingular(self):
        self.assertEqual(pluralize("Error", 1), "Error")

    def testPluralizeKeepsCapitalization(self):
        self.assertEqual(pluralize("Error", 2), "Errors")
        self.assertEqual(pluralize("KEY", 3), "KEYS")


class TestModuleGlob(TestCase):
    """Behavioral tests for mglob()."""

    def testPlainNameIsReturnedAsIs(self):
        self.assertEqual(mglob("tools.commands"), ["tools.commands"])

    def testWildcardWalksPackage(self):
        names = mglob("commandeer.*")
        self.assertIn("commandeer.parsing", names)
        self.assertIn("commandeer.dispatcher", names)
        self.assertEqual(names, sorted(names))

    def testMissingPackageMatchesNothing(self):
        self.assertEqual(mglob("nonexistent_package_for_tests.*"), [])

    def testPatternNeedsConcretePrefix(self):
        with self.assertRaises(ValueError):
            mglob("*.commands")

    def testEmptyPatternRejected(self):
        with self.assertRaises(ValueError):
            mglob("  ")


if __name__ == "__main__":
    unittest.main()
