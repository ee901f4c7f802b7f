"""
Commandeer utilities (small helpers shared by every layer)

Scope
- Building blocks used by the interface compiler, the parser and the dispatcher.
- Exposed for completeness; the supported user surface lives in the package root.

Overview
- UnsetType / Unset
  • Singleton sentinel for “not provided”, distinct from None (None is a legal default
    for options and a legal “absent” value for optional arguments).

- coalesce(value, default=None)
  • Replace Unset with a concrete default while preserving None/0/""/[].

- rename(callable, name) / @rename("name")
  • Give generated callables and records stable names for tracebacks and reprs.

- mirror("attr")
  • Read-only property over a private backing field (self._attr) returning copies of
    mutable containers, so compiled schemas cannot be mutated through their public API.

- pluralize(word, count)
  • Tiny English pluralizer for error copy (“argument” → “arguments”).

- mglob(pattern)
  • Expand "pkg.**.commands" style patterns into importable module names; used by
    dispatch() to load command namespaces.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> pluralize("argument", 2)
    'arguments'
"""
import builtins
import copy
import functools
import importlib
import itertools
import pkgutil
import re
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel ("no value given", as opposed to None).

    There is exactly one instance; it is falsy, survives copy and pickle, and can be
    combined with types in isinstance() unions (`str | Unset`).
    """

    __instance = None

    def __new__(cls):
        if cls.__instance is None:
            cls.__instance = super().__new__(cls)
        return cls.__instance

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")

    def __or__(self, other, /):
        return UnsetType | other

    def __ror__(self, other, /):
        return other | UnsetType

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self


def coalesce(object, default=None, /):
    """
    `default` when `object` is Unset, otherwise `object` (None, 0 and "" included).
    """
    return default if object is Unset else object


def _rename(callable, name, /):
    if not builtins.callable(callable):
        raise TypeError("rename() target must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    callable.__name__ = callable.__qualname__ = name
    return callable


def rename(*parameters):
    """
    rename(callable, name) renames in place; rename(name) returns a decorator.
    """
    if len(parameters) == 2:
        return _rename(*parameters)
    if len(parameters) != 1:
        raise TypeError("rename() takes 1 or 2 arguments (%d given)" % len(parameters))
    if not isinstance(parameters[0], str):
        raise TypeError("rename() name must be a string")
    return _rename(lambda callable: _rename(callable, *parameters), "rename")


def _detach(object):
    # Mutable containers are handed out as shallow copies; tuples and scalars as-is.
    if isinstance(object, list | dict | set):
        return copy.copy(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the backing attribute "_{name}".

    Mutable containers (list, dict, set) are returned as shallow copies so callers
    can never mutate a compiled spec through the property.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(word, count=2, /):
    """
    Return `word` pluralized when `count` is not 1.

    Only the handful of regular English rules needed for error copy are covered
    (s/sh/ch/x/z → +es, consonant+y → -ies, otherwise +s). Casing of the first
    letter is preserved.
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() argument must be a string")
    if count == 1 or not word:
        return word
    lower = word.lower()
    if lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = word + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = word[:-1] + "ies"
    else:
        plural = word + "s"
    return plural.upper() if word.isupper() else plural



_GLOB_TOKEN = re.compile(
    r"(?P<deep>\.\*\*(?=\.|$))|(?P<any>\*)|(?P<one>\?)|(?P<set>\[!?[^\]]+\])|(?P<text>[^*?\[.]+|[.\[])"
)


@functools.cache
def _compile_pattern(pattern):
    # wildcards never cross a dot; "**" spans whole segments (zero or more)
    parts = []
    for match in _GLOB_TOKEN.finditer(pattern):
        match match.lastgroup:
            case "deep":
                parts.append(r"(?:\.\w+)*")
            case "any":
                parts.append(r"[^.]*")
            case "one":
                parts.append(r"[^.]")
            case "set":
                body = match.group()[1:-1]
                parts.append("[^%s]" % body[1:] if body.startswith("!") else "[%s]" % body)
            case "text":
                parts.append(re.escape(match.group()))
    return re.compile("".join(parts))


def mglob(source, /):
    """
    Expand a dotted module pattern into the names of matching modules.

    - No wildcard: [source], nothing is imported.
    - Otherwise the leading wildcard-free segments name a package, which is imported
      and walked; `*`, `?` and `[...]` match within one segment, `**` across segments.
    - A package that cannot be imported matches nothing.

        mglob("tools.commands.*")   → ["tools.commands.admin", "tools.commands.user"]
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    if not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    segments = source.split(".")
    if all(segment.isidentifier() for segment in segments):
        return [source]

    if not (prefix := list(itertools.takewhile(str.isidentifier, segments))):
        raise ValueError("mglob() pattern must start with a package name")

    try:
        package = importlib.import_module(prefix := ".".join(prefix))
    except ImportError:
        return []

    pattern = _compile_pattern(source)
    names = {prefix} if pattern.fullmatch(prefix) else set()
    for module in pkgutil.walk_packages(getattr(package, "__path__", ()), prefix + "."):
        if pattern.fullmatch(module.name):
            names.add(module.name)
    return sorted(names)


Unset = UnsetType()
"""
Sentinel for “not provided”; see UnsetType.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "mglob",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
