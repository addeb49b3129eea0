r"""
Conzole parser/dispatcher: walk the command tree and resolve one invocation.

Token classes (classify)
- LONG: starts with '--'            → '--name' or '--name=value'
- SHORT: starts with '-', len > 1   → '-a' or '-a=value' (no bundling: '-abc' is malformed)
- POSITIONAL: anything else (including a lone '-')

Walk (Dispatcher.dispatch)
- App and Group levels only match their own flags; the first positional token
  names the child to descend into, and every remaining token is handed down.
- At the Command level flags resolve command → shared (nearest group first) →
  global, and positionals fill arguments in declaration order.
- Non-bool flags without '=value' consume the next token, whatever it looks like.
  Bool flags are true by presence; an attached value is decoded ("true"/"1").
- Values of flags parsed at any level are kept and land in the final record,
  which starts from the defaults of every visible flag.
- '--help'/'-h' (and '--version' on an App with a version) are recognized when
  no visible flag claims them; they stop the walk without running the handler.

Failures
- Parse errors are raised as CommandException subclasses carrying position-first
  messages and context options (app, node, index, input, suggestions, ...).
- A flag value that does not decode is soft: an InvalidFlagValueWarning is
  triggered and the flag keeps its default.
"""
import difflib
import logging
from collections import deque, namedtuple

from . import values
from .faults import *
from .schema import visibility
from .utils import *

logger = logging.getLogger(__name__)

LONG = "long"
SHORT = "short"
POSITIONAL = "positional"

Token = namedtuple("Token", ("kind", "name", "value", "raw"))
Resolution = namedtuple("Resolution", ("node", "record", "request"))


def classify(token, /):
    """
    Split one raw token into (kind, name, value, raw).

    - name is the flag name without dashes (None for positionals).
    - value is the text after the first '=' (None when there is no '=',
      '' for '--name=').
    """
    if not isinstance(token, str):
        raise TypeError("classify() argument must be a string")
    if token.startswith("--"):
        name, equals, value = token[2:].partition("=")
        return Token(LONG, name, value if equals else None, token)
    if token.startswith("-") and len(token) > 1:
        name, equals, value = token[1:].partition("=")
        return Token(SHORT, name, value if equals else None, token)
    return Token(POSITIONAL, None, None, token)


class Dispatcher:
    """
    One-shot resolver for a single argument vector.

    Each instance owns its token queue and the values assigned so far, so no
    state is shared between invocations. dispatch() returns a Resolution:
    - request "run": node is the leaf command, record is ready for its handler.
    - request "help"/"version": node is where the request was made, record is None.
    """

    def __init__(self, app, tokens, /):
        self._app = app
        self._tokens = deque(tokens)
        self._index = 0
        self._route = [app]
        self._assigned = {}
        self._request = "run"

    def dispatch(self):
        node = self._app
        while node.__scope__ != "command":
            if (node := self._descend(node)) is None:
                return Resolution(self._route[-1], None, self._request)
        return self._settle(node)

    def _next(self):
        self._index += 1
        return self._tokens.popleft()

    def _fault(self, cls, message, /, code, title, hint, **options):
        return cls(
            message,
            title=title,
            code=code,
            hint=hint,
            docs=getdoc(code),
            app=self._app,
            node=self._route[-1],
            index=self._index,
            **options,
        )

    def _descend(self, node):
        """
        consume this level's flags, then return the child named by the next
        positional token (None when help/version was requested).
        """
        while self._tokens:
            token = classify(self._next())
            if token.kind == POSITIONAL:
                return self._enter(node, token.raw)
            if (flag := self._lookup(token, (node,))) is None:
                return None
            self._assign(flag, token)

        if node is self._app:
            message = "missing command"
        else:
            message = "missing subcommand after %r" % node.route
        raise self._fault(
            MissingCommandError,
            message,
            code=FaultCode.MISSING_COMMAND,
            title="missing command",
            hint="add one of %s, or run '%s --help' to see what each does" % (
                ", ".join(map(repr, node.children.keys())), node.route
            ),
            choices=tuple(node.children.keys()),
        )

    def _enter(self, node, name):
        try:
            child = node.children[name]
        except KeyError:
            suggestions = difflib.get_close_matches(name, node.children.keys(), 5)
            typeof = "command" if node is self._app else "subcommand"
            try:
                hint = "did you mean %r? you can also run '%s --help' to see available %ss" % (
                    suggestions[0], node.route, typeof
                )
            except IndexError:
                hint = "run '%s --help' to see available %ss" % (node.route, typeof)

            raise self._fault(
                UnknownCommandError if node is self._app else UnknownSubcommandError,
                "unknown %s %r at %s position" % (typeof, name, ordinal(self._index)),
                code=FaultCode.UNKNOWN_COMMAND if node is self._app else FaultCode.UNKNOWN_SUBCOMMAND,
                title="unknown %s" % typeof,
                hint=hint,
                input=name,
                suggestions=suggestions,
            ) from None

        self._route.append(child)
        logger.debug("descending into %r at position %d", child.route, self._index)
        return child

    def _lookup(self, token, owners):
        """
        resolve a flag token against 'owners' (nodes in precedence order).

        returns the Flag, or None after recording a built-in help/version request.
        """
        prefix = "--" if token.kind == LONG else "-"
        spelling = prefix + token.name

        if not token.name or (token.kind == SHORT and len(token.name) != 1):
            raise self._fault(
                MalformedTokenError,
                "bad form of flag %r at %s position" % (token.raw, ordinal(self._index)),
                code=FaultCode.MALFORMED_TOKEN,
                title="malformed flag",
                hint="use one flag per token: '-a', '-a=value', '--name' or '--name=value' (run '%s --help' for details)" % (
                    self._route[-1].route
                ),
                input=token.raw,
            )

        for owner in owners:
            if (flag := owner.switches.get(spelling)) is not None:
                logger.debug("resolved %s to the %s flags of %r", spelling, owner.__scope__, owner.name)
                return flag

        if spelling in ("--help", "-h"):
            self._request = "help"
            return None
        if spelling == "--version" and self._route[-1] is self._app and self._app.version:
            self._request = "version"
            return None

        candidates = [candidate for owner in owners for candidate in owner.switches.keys()] + ["--help"]
        suggestions = difflib.get_close_matches(spelling, candidates, 5)
        route = self._route[-1].route
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all flags" % (suggestions[0], route)
        except IndexError:
            hint = "try '%s --help' to see all available flags" % route
        raise self._fault(
            UnknownFlagError,
            "unknown flag %r at %s position" % (spelling, ordinal(self._index)),
            code=FaultCode.UNKNOWN_FLAG,
            title="unknown flag",
            hint=hint,
            input=spelling,
            suggestions=suggestions,
        )

    def _assign(self, flag, token):
        start = self._index

        if token.value is not None:
            text = token.value
        elif flag.type is bool:
            self._assigned[flag.field] = True
            return
        elif self._tokens:
            text = self._next()
        else:
            raise self._fault(
                FlagValueRequiredError,
                "flag %r at %s position requires a value" % (token.raw, ordinal(start)),
                code=FaultCode.FLAG_VALUE_REQUIRED,
                title="missing flag value",
                hint="pass a %s after it (for example: --%s=<value> or --%s <value>)" % (
                    values.typename(flag.type), flag.name, flag.name
                ),
                input=token.raw,
                flag=flag,
            )

        try:
            self._assigned[flag.field] = values.decode(text, flag.type)
        except values.DecodeError:
            self._assigned[flag.field] = flag.default
            trigger(
                self._fault(
                    InvalidFlagValueWarning,
                    "invalid %s %r for flag '--%s' at %s position, using %r" % (
                        values.typename(flag.type), text, flag.name, ordinal(start), flag.default
                    ),
                    code=FaultCode.INVALID_FLAG_VALUE,
                    title="invalid flag value",
                    hint="pass a valid %s to override the default" % values.typename(flag.type),
                    input=token.raw,
                    flag=flag,
                ),
                shell=self._app.shell,
                fancy=self._app.fancy,
                colorful=self._app.colorful,
            )

    def _settle(self, command):
        """
        consume the leaf level: flags from every visible level and positionals
        for the command's arguments; then build the record.
        """
        levels = visibility(self._route)
        owners = tuple(level.owner for level in levels)
        pending = deque(command.arguments)
        parsed = {}

        while self._tokens:
            token = classify(self._next())
            if token.kind != POSITIONAL:
                if (flag := self._lookup(token, owners)) is None:
                    return Resolution(command, None, self._request)
                self._assign(flag, token)
                continue

            try:
                argument = pending.popleft()
            except IndexError:
                raise self._fault(
                    UnexpectedArgumentError,
                    "unexpected positional argument %r at %s position" % (token.raw, ordinal(self._index)),
                    code=FaultCode.UNEXPECTED_ARGUMENT,
                    title="unexpected positional",
                    hint="remove this extra value or run '%s --help' to see the expected usage" % command.route,
                    input=token.raw,
                ) from None

            try:
                parsed[argument.field] = values.decode(token.raw, argument.type)
            except values.DecodeError:
                raise self._fault(
                    InvalidArgumentError,
                    "invalid %s %r for argument %r at %s position" % (
                        values.typename(argument.type), token.raw, argument.name, ordinal(self._index)
                    ),
                    code=FaultCode.INVALID_ARGUMENT,
                    title="invalid argument",
                    hint="pass a valid %s for <%s>" % (values.typename(argument.type), argument.name),
                    input=token.raw,
                    argument=argument,
                ) from None

        if pending:
            raise self._fault(
                MissingArgumentsError,
                "missing %s: %s" % (
                    quantify(len(pending), "required argument"), ", ".join("<%s>" % argument.name for argument in pending)
                ),
                code=FaultCode.MISSING_ARGUMENTS,
                title="missing arguments",
                hint="add the missing values in order; run '%s --help' to see the expected usage" % command.route,
                missing=tuple(pending),
            )

        fields = {}
        for level in reversed(levels):
            for flag in level.flags:
                fields[flag.field] = self._assigned.get(flag.field, flag.default)
        fields.update(parsed)

        logger.debug("resolved %r in %d tokens", command.route, self._index)
        return Resolution(command, command.build(fields), "run")


__all__ = (
    "LONG",
    "SHORT",
    "POSITIONAL",
    "Token",
    "Resolution",
    "classify",
    "Dispatcher",
)
