"""
Conzole utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the argument, command, schema and parsing layers.

Overview
- UnsetType / Unset
  • Singleton sentinel for "value not provided", distinct from None/False/0.
- coalesce(value, default=None)
  • Replace Unset with a concrete default; legitimate falsey values are kept.
- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated methods (clean reprs and tracebacks).
- mirror("attr")
  • Read-only property over a private backing field (self._attr); containers are
    exposed as tuples or mapping proxies so specs stay immutable.
- fieldname(name)
  • Record field for a kebab-case spec name ("dry-run" -> "dry_run").
- ordinal(number) / quantify(count, noun)
  • Wording helpers for position-first, user-facing messages.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> fieldname("all-tags")
    'all_tags'
    >>> ordinal(3), quantify(2, "argument")
    ('third', '2 arguments')
"""
import builtins
import functools
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false, printable as "Unset", non-subclassable.
    - Singleton per process: UnsetType() always yields the same instance.
    - Usable in PEP 604 unions for isinstance checks (str | Unset).
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None   (None is preserved)
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator doing so.

    forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    # Strings, tuples (named ones included) and frozensets are already immutable.
    if isinstance(object, str | tuple | frozenset | MappingProxyType):
        return object
    elif isinstance(object, Mapping):
        return MappingProxyType(object)
    elif isinstance(object, Sequence | Set):
        return tuple(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Mappings come back as MappingProxyType views and other containers as tuples,
    so callers cannot mutate a spec after it has been validated.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


def fieldname(name, /):
    """
    Map a kebab-case spec name to the record field it fills.
    """
    if not isinstance(name, str):
        raise TypeError("fieldname() argument must be a string")
    return name.replace("-", "_")


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with English suffixes ("11th", "22nd").
    """
    try:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth",
        )[number - 1] if number > 0 else f"{number}th"
    except IndexError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, ...)
    if 10 < number % 100 < 20:
        return f"{number}th"
    return f"{number}%s" % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def quantify(count, noun, /):
    """
    Prefix a regular English noun with its count, pluralized when needed.
    """
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "fieldname",
    "ordinal",
    "quantify",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
