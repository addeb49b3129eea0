r"""
Conzole flag and argument specifications.

Overview
- Specs
  • Flag: named, typed, defaulted option with an optional one-character alias
    (e.g. --timeout / -t). Bool flags are presence-only unless a value is attached.
  • Argument: required, typed positional value; its position is the declaration
    order inside the owning command.

- Introspection & representation
  • SpecType metaclass (shared with the command layer) provides stable
    __repr__/__rich_repr__ and exposes the fields listed in __introspectable__
    via read-only properties.

Metadata (sanitized on construction)
- name: kebab-case identifier matching r"[^\W\d_](-?[^\W_]+)*".
- type: one of int, float, bool, str.
- descr: Unset | str | Text, non-empty when provided.
- Flag only
  • default: instance of 'type' (int is widened for float); defaults to the
    type's zero value.
  • alias: Unset | single letter or digit.

Quick example:
    >>> from conzole.arguments import Flag, Argument
    >>> Flag("timeout", int, 10, "Seconds to wait before killing the container")
    flag(name='timeout', alias=None, type=<class 'int'>, default=10, ...)
    >>> Argument("container", descr="Container name or ID to stop").field
    'container'
"""
import functools
import operator
import re

from rich.text import Text

from . import values
from .utils import *


class SpecType(type):
    """
    Metaclass shared by every schema spec (flags, arguments, commands, groups, apps).

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens);
      used as the subject of constructor error messages.
    - Expose the names listed in __introspectable__ as read-only properties
      (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations; __displayable__
      (if set) narrows what is shown.
    """
    __introspectable__ = ()
    __displayable__ = Unset

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
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate the fields every value-bearing spec shares.

    - name: required string, trimmed, kebab-case.
    - type: one of the coder's value types.
    - descr: optional non-empty string or rich Text; Unset becomes None.

    Mutates 'metadata' in place; raises TypeError/ValueError.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", name):
        raise ValueError(f"{cls.__typename__} 'name' must be a kebab-case identifier, got {name!r}")
    metadata["name"] = name

    if not isinstance(metadata["type"], type) or not values.supported(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be one of int, float, bool or str")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_flag_metadata(cls, metadata, /):
    """
    Internal: validate alias and default of a Flag.

    - alias: Unset or exactly one letter/digit (no bundling, no dashes).
    - default: Unset resolves to encode_default(type); otherwise it must be an
      instance of type. bool never passes for int, int is widened for float.
    """
    if not isinstance(alias := metadata["alias"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'alias' must be a string")
    elif isinstance(alias, str) and len(alias) != 1:
        raise ValueError(f"{cls.__typename__} 'alias' must be exactly one character, got {alias!r}")
    elif isinstance(alias, str) and not re.fullmatch(r"[^\W_]", alias):
        raise ValueError(f"{cls.__typename__} 'alias' must be a letter or a digit, got {alias!r}")
    metadata["alias"] = coalesce(alias)

    kind = metadata["type"]
    default = metadata["default"]
    if default is Unset:
        default = values.encode_default(kind)
    elif kind is float and type(default) is int:
        default = float(default)
    elif type(default) is not kind:
        raise TypeError(f"{cls.__typename__} 'default' must be of type {values.typename(kind)}, got {default!r}")
    metadata["default"] = default


class Flag(metaclass=SpecType):
    """
    Named, typed option specification.

    A Flag is resolved from '--name', '--name=value', '-a' or '-a=value' tokens.
    Non-bool flags take the next token when no value is attached; bool flags are
    true by presence. The parsed value lands in the record under 'field'.

    Properties
    - name, alias, type, default, descr: sanitized metadata (read-only).
    - field: record field name derived from 'name'.
    """

    __introspectable__ = (
        "name",
        "alias",
        "type",
        "default",
        "descr",
    )

    def __new__(cls, name, /, type=bool, default=Unset, descr=Unset, *, alias=Unset):
        metadata = {
            "name": name,
            "type": type,
            "default": default,
            "descr": descr,
            "alias": alias,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_flag_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def field(self):
        return fieldname(self.name)

    @property
    def spellings(self):
        """
        Every token form this flag answers to, long form first ("--force", "-f").
        """
        return ("--" + self.name,) + (("-" + self.alias,) if self.alias else ())


class Argument(metaclass=SpecType):
    """
    Positional, typed argument specification.

    Arguments are always required; there is no default. A command fills them in
    declaration order, and 'position' (1-based) is assigned when the owning
    command adopts the argument. An Argument belongs to exactly one command.
    """

    __introspectable__ = (
        "name",
        "type",
        "descr",
        "position",
    )

    def __new__(cls, name, /, type=str, descr=Unset):
        metadata = {
            "name": name,
            "type": type,
            "descr": descr,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._position = None
        return self

    @property
    def field(self):
        return fieldname(self.name)

    def _adopt(self, position, /):
        if self._position is not None:
            raise ValueError(f"{type(self).__typename__} {self.name!r} already belongs to a command")
        self._position = position


__all__ = (
    "Flag",
    "Argument",
)
