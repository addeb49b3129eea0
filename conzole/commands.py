"""
Conzole command layer: declare, compose and run command trees.

What this module provides
- Command: a leaf schema node; ordered Arguments, command-local Flags and a
  handler that receives one resolved record and returns an int status.
- Group: an inner node ("subcommand") holding children (commands or nested
  groups) plus shared Flags visible to every descendant.
- App: the root; global Flags, children, optional version, and the runtime
  switches (shell/fancy/colorful). Building an App validates the whole tree.

- Factories and helpers:
  • command(...): create a Command or a decorator that produces one.
  • invoke(app, prompt): run an App and return its status.

Quick start
    from conzole import App, Group, Argument, Flag, command, invoke

    @command(arguments=[Argument("container")], flags=[Flag("force")])
    def stop(record):
        \"""Stop one or more running containers\"""
        print(record.container, record.force, record.dry_run, record.verbose)

    app = App("container", [
        Group("container", [stop], flags=[Flag("dry-run")]),
    ], flags=[Flag("verbose", alias="v")])

    if __name__ == "__main__":
        raise SystemExit(invoke(app))

Design notes
- Specs are immutable once built; every node has exactly one parent.
- Local shape is validated by each constructor; cross-level checks run once in
  App construction (see conzole.schema.validate).
- Parse errors are raised outside shell mode, and rendered with the node's
  help (status 1) in shell mode.
"""
import inspect
import logging
import shlex
import sys
from collections.abc import Iterable

from rich.text import Text

from . import render, schema
from .arguments import Argument, Flag, SpecType
from .faults import *
from .parsing import Dispatcher
from .records import Record
from .utils import *

logger = logging.getLogger(__name__)


def _sanitize_node_metadata(cls, metadata, /):
    """
    Internal: validate the metadata every schema node shares.

    - name: required, trimmed, kebab-case (same grammar as flag names).
    - descr/epilog: optional non-empty strings or rich Text; Unset becomes None.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif name.startswith("-") or any(char.isspace() or char == "=" for char in name):
        raise ValueError(f"{cls.__typename__} 'name' must not start with '-' or contain spaces or '=', got {name!r}")
    metadata["name"] = name

    for key in ("descr", "epilog"):
        if not isinstance(value := metadata[key], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {key!r} must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
        metadata[key] = coalesce(value)


def _process_flags(cls, metadata, /):
    """
    Internal: validate the flags declared on one node and index their spellings.

    - flags must be Flag instances with unique names and unique aliases within
      the node (cross-level uniqueness is the validator's job).
    - builds metadata["switches"]: {"--name": flag, "-a": flag}.
    """
    if not isinstance(metadata["flags"], Iterable) or isinstance(metadata["flags"], str):
        raise TypeError(f"{cls.__typename__} 'flags' must be an iterable of flags")

    flags = []
    switches = {}
    for flag in metadata["flags"]:
        if not isinstance(flag, Flag):
            raise TypeError(f"{cls.__typename__} 'flags' must contain only flags, got {flag!r}")
        for spelling in flag.spellings:
            if switches.setdefault(spelling, flag) is not flag:
                kind = "alias" if len(spelling) == 2 else "name"
                raise ValueError(f"{cls.__typename__} {metadata['name']!r} declares flag {kind} {spelling!r} twice")
        flags.append(flag)

    metadata["flags"] = tuple(flags)
    metadata["switches"] = switches


def _process_children(cls, metadata, /):
    """
    Internal: validate children (commands and groups) and index them by name.

    children are kept in declaration order; names are unique per parent and a
    node that already belongs to a parent cannot be adopted again.
    """
    if not isinstance(metadata["children"], Iterable) or isinstance(metadata["children"], str):
        raise TypeError(f"{cls.__typename__} 'children' must be an iterable of commands or groups")

    children = {}
    for child in metadata["children"]:
        if not isinstance(child, Command | Group):
            raise TypeError(f"{cls.__typename__} 'children' must contain only commands or groups, got {child!r}")
        if child.parent is not None:
            raise ValueError(f"{type(child).__typename__} {child.name!r} already belongs to {child.parent.name!r}")
        if children.setdefault(child.name, child) is not child:
            typeof = "command" if issubclass(cls, App) else "subcommand"
            raise ValueError(f"{cls.__typename__} {typeof} name {child.name!r} is already in use")

    if not children:
        raise ValueError(f"{cls.__typename__} {metadata['name']!r} must have at least one child")
    metadata["children"] = children


def _attach_to_parent(self, /):
    for child in self._children.values():
        child._parent = self


class Node(metaclass=SpecType):
    """
    Common base of the schema tree (Command, Group and App).

    Each node declares its flag scope through __scope__ ("command", "shared" or
    "global"); the validator, dispatcher and help renderer rely on it to walk
    the tree uniformly.
    """
    __scope__ = None

    @property
    def root(self):
        """
        Return the topmost node of the tree (the App once attached).
        """
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def path(self):
        """
        Return the ancestry from the root to this node as a tuple.
        """
        path = [node := self]
        while node.parent is not None:
            path.append(node := node.parent)
        return tuple(reversed(path))

    @property
    def route(self):
        """
        Space-separated names from the root, as typed on the command line.
        """
        return " ".join(node.name for node in self.path)


class Command(Node):
    """
    Leaf schema node.

    Properties
    - name, descr, epilog: help metadata (epilog is the custom help body).
    - arguments: ordered Arguments (positions assigned on adoption, 1-based).
    - flags: command-local Flags; switches indexes them by spelling.
    - handler: callable receiving the record; shape describes the record type
      reflected from its annotation.
    - parent: the Group or App owning this command (None until attached).
    """
    __scope__ = "command"

    __introspectable__ = (
        "name",
        "descr",
        "epilog",
        "arguments",
        "flags",
        "switches",
        "handler",
        "shape",
        "parent",
    )

    __displayable__ = (
        "name",
        "descr",
        "arguments",
        "flags",
    )

    def __new__(cls, name, handler, /, descr=Unset, epilog=Unset, *, arguments=(), flags=()):
        if not callable(handler):
            raise TypeError(f"{cls.__typename__} 'handler' must be callable")

        metadata = {
            "name": name,
            "descr": coalesce(descr, (inspect.getdoc(handler) or "").partition("\n")[0] or Unset),
            "epilog": epilog,
            "flags": flags,
        }
        _sanitize_node_metadata(cls, metadata)
        _process_flags(cls, metadata)

        if not isinstance(arguments, Iterable) or isinstance(arguments, str):
            raise TypeError(f"{cls.__typename__} 'arguments' must be an iterable of arguments")
        arguments = tuple(arguments)
        for argument in arguments:
            if not isinstance(argument, Argument):
                raise TypeError(f"{cls.__typename__} 'arguments' must contain only arguments, got {argument!r}")
            if argument.position is not None:
                raise ValueError(f"{type(argument).__typename__} {argument.name!r} already belongs to a command")
        if len({argument.name for argument in arguments}) != len(arguments):
            raise ValueError(f"{cls.__typename__} {metadata['name']!r} declares an argument name twice")

        shape = schema.shapeof(handler)

        for position, argument in enumerate(arguments, 1):
            argument._adopt(position)

        self = super().__new__(cls)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        self._arguments = arguments
        self._handler = handler
        self._shape = shape
        self._parent = None
        return self

    def build(self, values, /):
        """
        Turn resolved {field: value} pairs into the record the handler expects.
        """
        if self.shape.type is None:
            return Record(values)
        return self.shape.type(**values)


class Group(Node):
    """
    Inner schema node ("subcommand").

    Holds an ordered set of children (commands or nested groups) and shared
    Flags visible to all of its descendants. A group is never invoked itself:
    the first positional token at its level names the child to descend into.
    """
    __scope__ = "shared"

    __introspectable__ = (
        "name",
        "descr",
        "epilog",
        "flags",
        "switches",
        "children",
        "parent",
    )

    __displayable__ = (
        "name",
        "descr",
        "flags",
        "children",
    )

    def __new__(cls, name, children, /, descr=Unset, epilog=Unset, *, flags=()):
        metadata = {
            "name": name,
            "descr": descr,
            "epilog": epilog,
            "flags": flags,
            "children": children,
        }
        _sanitize_node_metadata(cls, metadata)
        _process_flags(cls, metadata)
        _process_children(cls, metadata)

        self = super().__new__(cls)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        self._parent = None
        _attach_to_parent(self)
        return self


class App(Node):
    """
    Root schema node.

    Construction validates the whole tree (see conzole.schema.validate); any
    SchemaError propagates, so a program with an inconsistent schema refuses to
    start. Children are only adopted once validation succeeded.

    Runtime switches
    - shell: render parse errors (with help) instead of raising; run() returns 1.
    - fancy: wrap help and faults in rich panels.
    - colorful: apply the style palette (overridable via __main__.__styles__).
    """
    __scope__ = "global"

    __introspectable__ = (
        "name",
        "descr",
        "epilog",
        "version",
        "flags",
        "switches",
        "children",
        "shell",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "name",
        "descr",
        "version",
        "flags",
        "children",
    )

    def __new__(
            cls,
            name,
            children,
            /,
            descr=Unset,
            epilog=Unset,
            *,
            flags=(),
            version=Unset,
            shell=False,
            fancy=False,
            colorful=False,
    ):
        metadata = {
            "name": name,
            "descr": descr,
            "epilog": epilog,
            "flags": flags,
            "children": children,
        }
        _sanitize_node_metadata(cls, metadata)
        _process_flags(cls, metadata)
        _process_children(cls, metadata)

        if not isinstance(version, str | Unset):
            raise TypeError(f"{cls.__typename__} 'version' must be a string")
        elif isinstance(version, str) and not (version := version.strip()):
            raise ValueError(f"{cls.__typename__} 'version' cannot be empty")

        self = super().__new__(cls)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        self._version = coalesce(version)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._parent = None

        count = schema.validate(self)
        _attach_to_parent(self)
        logger.debug("app %r ready with %d commands", self.name, count)
        return self

    @property
    def parent(self):
        return None

    def run(self, prompt=Unset, /):
        """
        Parse a prompt, invoke the matched handler once and return its status.

        prompt
        - Unset: read tokens from sys.argv[1:].
        - str: shell-like string; split via shlex.split.
        - Iterable[str]: pre-tokenized sequence.

        returns
        - the handler's status (None counts as 0);
        - 0 after printing help (--help/-h) or the version (--version);
        - 1 after rendering a parse error, in shell mode.

        raises
        - CommandException subclasses outside shell mode.
        - TypeError for an invalid prompt or a non-int handler status.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("run() argument must be a string or an iterable of strings")
        else:
            raise TypeError("run() argument must be a string or an iterable of strings")

        try:
            resolution = Dispatcher(self, tokens).dispatch()
        except CommandException as exception:
            if not self.shell:
                raise
            render.show(exception.options.get("node", self), stderr=True, fancy=self.fancy, colorful=self.colorful)
            trigger(exception, app=self, shell=True, fancy=self.fancy, colorful=self.colorful)
            return 1

        match resolution.request:
            case "help":
                render.show(resolution.node, fancy=self.fancy, colorful=self.colorful)
                return 0
            case "version":
                render.show_version(self, colorful=self.colorful)
                return 0

        command = resolution.node
        logger.debug("dispatching %r with %r", command.route, resolution.record)
        status = command.handler(resolution.record)
        if status is None:
            return 0
        if not isinstance(status, int):
            raise TypeError(f"handler of {command.route!r} must return an int status, got {status!r}")
        return status

    __invoke__ = run


def command(source=Unset, /, **options):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct: command(func, arguments=[...]) -> Command named after func.
    - Named decorator: @command("stop", flags=[...]).
    - Plain decorator: @command(flags=[...]) -> name derived from the function
      (underscores become dashes, so 'all_tags' -> 'all-tags').

    options are forwarded to Command (descr, epilog, arguments, flags).
    """
    def wrapper(callback, /, name=Unset):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        name = coalesce(name, getattr(callback, "__name__", "").strip("_").replace("_", "-"))
        return Command(
            name,
            callback,
            options.get("descr", Unset),
            options.get("epilog", Unset),
            arguments=options.get("arguments", ()),
            flags=options.get("flags", ()),
        )

    if unknown := options.keys() - {"descr", "epilog", "arguments", "flags"}:
        raise TypeError(f"command() got unexpected options: {', '.join(sorted(unknown))}")

    if isinstance(source, str):
        return rename(lambda callback, /: wrapper(callback, source), "command")
    if source is Unset:
        return rename(lambda callback, /: wrapper(callback), "command")
    return wrapper(source)


def invoke(object, prompt=Unset, /):
    """
    Convenience runner: call object.__invoke__(prompt) and return the status.

    - object: an App (or anything implementing __invoke__).
    - prompt: Unset (sys.argv[1:]), a shell-like string or an iterable of strings.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "Command",
    "Group",
    "App",
    "command",
    "invoke",
)
