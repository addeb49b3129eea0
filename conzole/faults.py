"""
Conzole faults (schema errors, parse errors and warnings) and rendering.

Scope
- SchemaError: programmer-facing structural inconsistencies found once, when the
  App is constructed (flag/alias/field collisions, handler shape mismatches).
  They are always raised, never rendered: the process refuses to start.
- FaultCode: stable numeric identifiers for user-facing issues.
- CommandException / CommandWarning: parse errors and soft warnings that carry a
  message + options and know how to render themselves with rich.
- trigger(): central entry point to surface a fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: "unknown flag '--forse' at fifth position".
- Short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The dispatcher raises parse errors with their context as options.
- App.run() re-raises them outside shell mode; in shell mode it prints the help
  of the failing node, then triggers the fault on stderr and returns status 1.
"""
import copy
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class SchemaError(Exception):
    """
    Base class of structural schema errors.

    The message names the offending spec(s) and levels; the same facts are kept
    in 'details' for programmatic checks (e.g. details["levels"]).
    """

    def __init__(self, message, /, **details):
        super().__init__(message)
        self.message = message
        self.details = MappingProxyType(details)


class FlagCollisionError(SchemaError, ValueError): ...
class AliasCollisionError(SchemaError, ValueError): ...
class FieldCollisionError(SchemaError, ValueError): ...
class MissingFieldError(SchemaError, TypeError): ...
class UnexpectedFieldError(SchemaError, TypeError): ...
class FieldTypeError(SchemaError, TypeError): ...


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND, UNKNOWN_SUBCOMMAND, MISSING_COMMAND
    - flags (1111x)
      • MALFORMED_TOKEN, UNKNOWN_FLAG, FLAG_VALUE_REQUIRED
    - positionals (1112x)
      • UNEXPECTED_ARGUMENT, MISSING_ARGUMENTS, INVALID_ARGUMENT
    - warnings (121xx)
      • INVALID_FLAG_VALUE
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND     = 11101
    UNKNOWN_SUBCOMMAND  = 11102
    MISSING_COMMAND     = 11103

    # --- flag errors (11xxx) ---
    MALFORMED_TOKEN     = 11111
    UNKNOWN_FLAG        = 11112
    FLAG_VALUE_REQUIRED = 11117

    # --- positional errors (11xxx) ---
    UNEXPECTED_ARGUMENT = 11121
    MISSING_ARGUMENTS   = 11125
    INVALID_ARGUMENT    = 11126

    # --- warnings (12xxx) ---
    INVALID_FLAG_VALUE  = 12113

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    Build the rich renderable shared by errors and warnings.

    layout
    - header: "[ prog — code | Title ]"
    - body: message, then " → hint"
    - fancy: body inside a Panel titled with the header
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment.copy() if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    app = options.get("app")
    prog = getattr(main, "__prog__", getattr(app, "name", "conzole"))
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(code.normalize() if code else "?", "code"),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), "title"),
        " ]",
    )
    body = [text(fault.message, "message")]
    if hint := options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


class CommandException(Exception):
    """
    Base class of user-facing parse errors.

    options (all optional, filled by the dispatcher)
    - app, node: the App and the node being parsed when the error occurred.
    - title, code, hint, docs: copy for the rendered fault.
    - index, input, suggestions, ...: position-first context.
    - shell, fancy, colorful: runtime rendering switches (see trigger()).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedTokenError(CommandException): ...
class UnknownFlagError(CommandException): ...
class FlagValueRequiredError(CommandException): ...
class UnknownCommandError(CommandException): ...
class UnknownSubcommandError(CommandException): ...
class MissingCommandError(CommandException): ...
class UnexpectedArgumentError(CommandException): ...
class MissingArgumentsError(CommandException): ...
class InvalidArgumentError(CommandException): ...


class CommandWarning(ABC, Warning):
    """
    Base class of soft faults: parsing continues after they are surfaced.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidFlagValueWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into a copy of the fault via copy.replace() before triggering.
    - in shell mode, rendering happens via the rich console on stderr; otherwise
      exceptions are raised and warnings go through warnings.warn.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "SchemaError",
    "FlagCollisionError",
    "AliasCollisionError",
    "FieldCollisionError",
    "MissingFieldError",
    "UnexpectedFieldError",
    "FieldTypeError",
    "FaultCode",
    "CommandException",
    "MalformedTokenError",
    "UnknownFlagError",
    "FlagValueRequiredError",
    "UnknownCommandError",
    "UnknownSubcommandError",
    "MissingCommandError",
    "UnexpectedArgumentError",
    "MissingArgumentsError",
    "InvalidArgumentError",
    "CommandWarning",
    "InvalidFlagValueWarning",
    "trigger",
    "getdoc",
)
