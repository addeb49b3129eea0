"""
Conzole schema validation: flag visibility, handler shapes and cross-level checks.

What this module provides
- visibility(route): the flag levels visible at the end of a root-to-node route,
  in resolution order (command-local, shared from nearest group outward, global).
- scopes(app): every leaf command of a tree together with its route.
- shapeof(handler): the record type a handler expects, derived once by reflection.
- expected(command, levels): the fields a command's record must have.
- validate(app): the startup pass; raises a SchemaError subclass on the first
  inconsistency, so an App that constructs successfully is safe to parse with.

Checks, per leaf command
- flag names are pairwise disjoint across levels (FlagCollisionError);
- flag aliases are pairwise disjoint across levels (AliasCollisionError);
- argument fields do not collide with visible flag fields (FieldCollisionError);
- when the handler declares a record type: one field per argument and visible
  flag with the exact same type (MissingFieldError / FieldTypeError), and nothing
  else (UnexpectedFieldError).

Handlers without a record annotation (or annotated with Record/Mapping) receive a
generic Record; for them only the collision checks apply.
"""
import dataclasses
import inspect
import logging
import typing
from collections import namedtuple
from collections.abc import Mapping
from inspect import Parameter
from types import MappingProxyType

from . import values
from .faults import *
from .records import Record

logger = logging.getLogger(__name__)


class Level(namedtuple("Level", ("scope", "owner", "flags"))):
    """
    One tier of visible flags: scope is "command", "shared" or "global".
    """
    __slots__ = ()

    @property
    def label(self):
        return f"{self.scope} flags of {self.owner.name!r}"


Shape = namedtuple("Shape", ("type", "fields"))


def visibility(route, /):
    """
    Return the flag levels visible to the last node of 'route', in lookup order.

    - route: sequence of nodes from the App down to the node of interest.
    - each node contributes one Level (possibly without flags), tagged by the
      node's __scope__: the leaf command first, then enclosing groups from the
      nearest outward, then the application.
    """
    return tuple(Level(node.__scope__, node, tuple(node.flags)) for node in reversed(tuple(route)))


def scopes(app, /):
    """
    Yield (command, route) for every leaf command reachable from 'app'.

    routes are tuples starting at the App and ending at the command; children
    are visited in declaration order.
    """
    stack = [(app,)]
    while stack:
        route = stack.pop()
        node = route[-1]
        if node.__scope__ == "command":
            yield node, route
            continue
        stack.extend((*route, child) for child in reversed(tuple(node.children.values())))


def _typelabel(kind):
    try:
        return values.typename(kind)
    except TypeError:
        return getattr(kind, "__name__", repr(kind))


def _hints(object, qualname, /):
    # string annotations only resolve against module globals
    try:
        return typing.get_type_hints(object)
    except NameError as error:
        raise TypeError(
            f"cannot resolve the record annotation of handler {qualname!r}: {error}; "
            f"define the record type at module level"
        ) from None


def shapeof(handler, /):
    """
    Reflect on a handler once and return the Shape of the record it expects.

    rules
    - the handler must accept exactly one required positional parameter; any
      other parameter must have a default.
    - the parameter annotation (resolved with typing.get_type_hints) selects the
      record type:
      • missing, Record, Mapping, typing.Any or object -> Shape(None, None)
      • a dataclass, a NamedTuple or a TypedDict -> Shape(type, {field: type})
      • dict is rejected: records are read-only mappings, not dicts.

    raises
    - TypeError: handler arity or annotation cannot be used, including
      annotations that do not resolve (e.g. a record class local to a function).
    """
    if not callable(handler):
        raise TypeError("handler must be callable")

    try:
        signature = inspect.signature(handler)
    except ValueError:
        raise TypeError(f"cannot inspect the signature of handler {handler!r}") from None

    required = [
        parameter for parameter in signature.parameters.values()
        if parameter.default is Parameter.empty and parameter.kind not in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)
    ]
    if len(required) != 1 or required[0].kind not in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD):
        raise TypeError(f"handler {getattr(handler, '__qualname__', handler)!r} must take exactly one positional parameter (the record)")
    parameter, = required

    target = handler if inspect.isroutine(handler) else type(handler).__call__
    qualname = getattr(handler, "__qualname__", type(handler).__qualname__)
    annotation = _hints(target, qualname).get(parameter.name, Record)

    if annotation in (Record, Mapping, typing.Any, object) or typing.get_origin(annotation) is Mapping:
        return Shape(None, None)

    if annotation is dict or typing.get_origin(annotation) is dict:
        raise TypeError(
            f"handler {qualname!r} annotates its record as a dict; records are read-only, "
            f"annotate it with Record or Mapping instead"
        )

    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        hints = _hints(annotation, qualname)
        fields = {field.name: hints[field.name] for field in dataclasses.fields(annotation) if field.init}
    elif isinstance(annotation, type) and issubclass(annotation, tuple) and hasattr(annotation, "_fields"):
        hints = _hints(annotation, qualname)
        fields = {name: hints.get(name, typing.Any) for name in annotation._fields}
    elif typing.is_typeddict(annotation):
        fields = _hints(annotation, qualname)
    else:
        raise TypeError(
            f"handler record annotation must be a dataclass, a NamedTuple, a TypedDict, Record or Mapping, got {annotation!r}"
        )

    return Shape(annotation, MappingProxyType(fields))


def _check_collisions(command, levels, /):
    names = {}
    aliases = {}
    for level in levels:
        for flag in level.flags:
            if (other := names.setdefault(flag.name, level)) is not level:
                raise FlagCollisionError(
                    f"flag '--{flag.name}' is declared both by the {other.label} and by the {level.label}",
                    name=flag.name,
                    command=command,
                    levels=(other, level),
                )
            if flag.alias is None:
                continue
            if (other := aliases.setdefault(flag.alias, level)) is not level:
                raise AliasCollisionError(
                    f"alias '-{flag.alias}' of flag '--{flag.name}' is declared both by the {other.label} and by the {level.label}",
                    name=flag.name,
                    alias=flag.alias,
                    command=command,
                    levels=(other, level),
                )


def expected(command, levels, /):
    """
    Return {field: (type, origin)} for the record of 'command'.

    arguments come first (declaration order), then flags level by level; the
    origin is a short human description used in schema error messages.
    """
    fields = {}
    for argument in command.arguments:
        fields[argument.field] = (argument.type, f"argument {argument.name!r} of {command.name!r}")

    for level in levels:
        for flag in level.flags:
            if flag.field in fields:
                raise FieldCollisionError(
                    f"flag '--{flag.name}' of the {level.label} fills field {flag.field!r}, "
                    f"which is already filled by the {fields[flag.field][1]}",
                    name=flag.name,
                    field=flag.field,
                    command=command,
                    levels=(level,),
                )
            fields[flag.field] = (flag.type, f"flag '--{flag.name}' of the {level.label}")
    return fields


def _check_shape(command, fields, /):
    shape = command.shape
    if shape.type is None:
        return

    record = shape.type.__qualname__
    for field, (kind, origin) in fields.items():
        try:
            actual = shape.fields[field]
        except KeyError:
            raise MissingFieldError(
                f"record {record} of command {command.name!r} is missing field {field!r} "
                f"of type {_typelabel(kind)} (from {origin})",
                field=field,
                type=kind,
                command=command,
            ) from None
        if actual is not kind:
            raise FieldTypeError(
                f"field {field!r} of record {record} has type {_typelabel(actual)} "
                f"but {origin} expects {_typelabel(kind)}",
                field=field,
                type=kind,
                actual=actual,
                command=command,
            )

    for field, actual in shape.fields.items():
        if field not in fields:
            raise UnexpectedFieldError(
                f"field {field!r} of record {record} is not filled by any argument or flag "
                f"visible to command {command.name!r}",
                field=field,
                actual=actual,
                command=command,
            )


def validate(app, /):
    """
    Verify every root-to-leaf route of 'app'; raise a SchemaError on the first fault.

    returns the number of leaf commands checked.
    """
    count = 0
    for command, route in scopes(app):
        levels = visibility(route)
        _check_collisions(command, levels)
        _check_shape(command, expected(command, levels))
        logger.debug("validated %s (%d visible flags)", " ".join(node.name for node in route), sum(map(len, (level.flags for level in levels))))
        count += 1
    return count


__all__ = (
    "Level",
    "Shape",
    "visibility",
    "scopes",
    "shapeof",
    "expected",
    "validate",
)
