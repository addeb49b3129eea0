"""
Parser/dispatcher behavioral tests.

Scope
- Token classification (long, short, positional; attached values).
- Tree walk: flags per level, descent by name, record population.
- Flag values: presence-only bools, attached vs spaced values, last wins,
  soft failures (warning + default).
- Positional strictness and position-first parse errors.
- Built-in help/version requests.

Conventions
- Test method names follow CamelCase per project convention.
- A fresh tree is built per test: arguments and nodes have a single owner.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from conzole import (
    App,
    Argument,
    Command,
    FaultCode,
    FlagValueRequiredError,
    Flag,
    Group,
    InvalidArgumentError,
    InvalidFlagValueWarning,
    MalformedTokenError,
    MissingArgumentsError,
    MissingCommandError,
    UnexpectedArgumentError,
    UnknownCommandError,
    UnknownFlagError,
    UnknownSubcommandError,
)
from conzole.parsing import LONG, POSITIONAL, SHORT, Dispatcher, classify


def handler(record):
    return 0


def build(**options):
    """
    container (global: --verbose/-v)
    ├── container (shared: --dry-run/-n)
    │   ├── stop <container> (--force/-f, --timeout/-t int=10)
    │   └── scale <service> <replicas:int>
    └── ping
    """
    stop = Command(
        "stop",
        handler,
        arguments=[Argument("container")],
        flags=[Flag("force", alias="f"), Flag("timeout", int, 10, alias="t")],
    )
    scale = Command("scale", handler, arguments=[Argument("service"), Argument("replicas", int)])
    group = Group("container", [stop, scale], flags=[Flag("dry-run", alias="n")])
    return App("container", [group, Command("ping", handler)], flags=[Flag("verbose", alias="v")], **options)


def dispatch(tokens, **options):
    return Dispatcher(build(**options), tokens).dispatch()


class TestClassify(TestCase):
    """Behavioral tests for classify()."""

    def testLong(self):
        self.assertEqual(classify("--force"), (LONG, "force", None, "--force"))

    def testLongWithValue(self):
        self.assertEqual(classify("--tag=a=b"), (LONG, "tag", "a=b", "--tag=a=b"))

    def testLongWithEmptyValue(self):
        self.assertEqual(classify("--tag="), (LONG, "tag", "", "--tag="))

    def testShort(self):
        self.assertEqual(classify("-f"), (SHORT, "f", None, "-f"))
        self.assertEqual(classify("-t=5"), (SHORT, "t", "5", "-t=5"))

    def testBundledShortKeepsWholeName(self):
        self.assertEqual(classify("-abc").name, "abc")

    def testPositional(self):
        self.assertEqual(classify("web").kind, POSITIONAL)
        self.assertEqual(classify("-").kind, POSITIONAL)
        self.assertEqual(classify("").kind, POSITIONAL)

    def testNonStringRejected(self):
        with self.assertRaises(TypeError):
            classify(5)


class TestWalk(TestCase):
    """Behavioral tests for descent and record population."""

    def testFullExample(self):
        resolution = dispatch(["--verbose", "container", "--dry-run", "stop", "--force", "web"])
        self.assertEqual(resolution.request, "run")
        self.assertEqual(resolution.node.route, "container container stop")
        self.assertEqual(
            resolution.record,
            {"verbose": True, "dry_run": True, "force": True, "timeout": 10, "container": "web"},
        )

    def testRecordFieldOrder(self):
        record = dispatch(["container", "stop", "web"]).record
        self.assertEqual(list(record), ["verbose", "dry_run", "force", "timeout", "container"])

    def testDefaultsPopulated(self):
        record = dispatch(["container", "stop", "web"]).record
        self.assertIs(record.verbose, False)
        self.assertIs(record.dry_run, False)
        self.assertIs(record.force, False)
        self.assertEqual(record.timeout, 10)

    def testOuterFlagsAfterCommand(self):
        record = dispatch(["container", "stop", "web", "-v", "-n"]).record
        self.assertIs(record.verbose, True)
        self.assertIs(record.dry_run, True)

    def testShortAliases(self):
        record = dispatch(["-v", "container", "-n", "stop", "-f", "web"]).record
        self.assertTrue(record.verbose and record.dry_run and record.force)

    def testInnerFlagUnknownAtOuterLevel(self):
        with self.assertRaises(UnknownFlagError):
            dispatch(["--dry-run", "container", "stop", "web"])

    def testCommandWithoutArguments(self):
        resolution = dispatch(["ping"])
        self.assertEqual(resolution.record, {"verbose": False})

    def testLongAndShortSpellingsResolveAlike(self):
        app = build()
        group = app.children["container"]
        stop = group.children["stop"]
        cases = (
            (stop, "--force", "-f", "force"),
            (group, "--dry-run", "-n", "dry_run"),
            (app, "--verbose", "-v", "verbose"),
        )
        for owner, long, short, field in cases:
            with self.subTest(scope=owner.__scope__):
                self.assertIs(owner.switches[long], owner.switches[short])
                by_long = Dispatcher(app, ["container", "stop", "web", long]).dispatch().record
                by_short = Dispatcher(app, ["container", "stop", "web", short]).dispatch().record
                self.assertEqual(by_long, by_short)
                self.assertIs(by_long[field], True)
                self.assertEqual(sum(by_long[name] is True for name in ("force", "dry_run", "verbose")), 1)

    def testDispatchersDoNotShareState(self):
        app = build()
        first = Dispatcher(app, ["-v", "container", "stop", "-t", "3", "web"]).dispatch().record
        second = Dispatcher(app, ["container", "stop", "web"]).dispatch().record
        self.assertEqual((first.verbose, first.timeout), (True, 3))
        self.assertEqual((second.verbose, second.timeout), (False, 10))


class TestFlagValues(TestCase):
    """Behavioral tests for flag value assignment."""

    def testAttachedValue(self):
        self.assertEqual(dispatch(["container", "stop", "--timeout=5", "web"]).record.timeout, 5)
        self.assertEqual(dispatch(["container", "stop", "-t=7", "web"]).record.timeout, 7)

    def testSpacedValue(self):
        self.assertEqual(dispatch(["container", "stop", "--timeout", "5", "web"]).record.timeout, 5)
        self.assertEqual(dispatch(["container", "stop", "-t", "7", "web"]).record.timeout, 7)

    def testSpacedValueConsumesDashToken(self):
        self.assertEqual(dispatch(["container", "stop", "--timeout", "-5", "web"]).record.timeout, -5)

    def testBoolAttachedValue(self):
        self.assertIs(dispatch(["container", "stop", "--force=false", "web"]).record.force, False)
        self.assertIs(dispatch(["container", "stop", "-f=1", "web"]).record.force, True)

    def testBoolDoesNotConsumeNextToken(self):
        record = dispatch(["container", "stop", "--force", "true"]).record
        self.assertIs(record.force, True)
        self.assertEqual(record.container, "true")

    def testLastOccurrenceWins(self):
        record = dispatch(["container", "stop", "-t", "1", "--timeout=2", "web"]).record
        self.assertEqual(record.timeout, 2)

    def testInvalidValueWarnsAndKeepsDefault(self):
        with self.assertWarns(InvalidFlagValueWarning) as context:
            record = dispatch(["container", "stop", "--timeout=abc", "web"]).record
        self.assertEqual(record.timeout, 10)
        self.assertEqual(record.container, "web")
        self.assertEqual(context.warning.options["code"], FaultCode.INVALID_FLAG_VALUE)
        self.assertIn("'abc'", context.warning.message)

    def testInvalidValueOverridesEarlierOccurrence(self):
        with self.assertWarns(InvalidFlagValueWarning):
            record = dispatch(["container", "stop", "-t", "3", "-t", "x", "web"]).record
        self.assertEqual(record.timeout, 10)

    def testValueRequired(self):
        with self.assertRaises(FlagValueRequiredError) as context:
            dispatch(["container", "stop", "web", "--timeout"])
        self.assertEqual(context.exception.options["code"], FaultCode.FLAG_VALUE_REQUIRED)
        self.assertIn("fourth position", context.exception.message)


class TestFaults(TestCase):
    """Behavioral tests for parse errors and their context."""

    def testUnknownFlag(self):
        with self.assertRaises(UnknownFlagError) as context:
            dispatch(["container", "stop", "--forse", "web"])
        error = context.exception
        self.assertEqual(error.message, "unknown flag '--forse' at third position")
        self.assertEqual(error.options["index"], 3)
        self.assertIn("--force", error.options["suggestions"])
        self.assertEqual(error.options["node"].name, "stop")

    def testUnknownCommand(self):
        with self.assertRaises(UnknownCommandError) as context:
            dispatch(["contaner", "stop", "web"])
        self.assertEqual(context.exception.options["code"], FaultCode.UNKNOWN_COMMAND)
        self.assertEqual(context.exception.options["suggestions"][0], "container")

    def testUnknownSubcommand(self):
        with self.assertRaises(UnknownSubcommandError) as context:
            dispatch(["container", "stp", "web"])
        self.assertIn("second position", context.exception.message)
        self.assertEqual(context.exception.options["suggestions"][0], "stop")

    def testMissingCommand(self):
        with self.assertRaises(MissingCommandError):
            dispatch([])
        with self.assertRaises(MissingCommandError):
            dispatch(["--verbose"])

    def testMissingSubcommand(self):
        with self.assertRaises(MissingCommandError) as context:
            dispatch(["container", "--dry-run"])
        self.assertEqual(context.exception.options["choices"], ("stop", "scale"))

    def testMalformedBundle(self):
        with self.assertRaises(MalformedTokenError):
            dispatch(["container", "stop", "-fn", "web"])

    def testMalformedEmptyName(self):
        with self.assertRaises(MalformedTokenError):
            dispatch(["container", "stop", "--", "web"])

    def testLoneDashIsPositional(self):
        self.assertEqual(dispatch(["container", "stop", "-"]).record.container, "-")

    def testUnexpectedArgument(self):
        with self.assertRaises(UnexpectedArgumentError) as context:
            dispatch(["container", "stop", "web", "db"])
        self.assertEqual(context.exception.options["input"], "db")

    def testMissingArguments(self):
        with self.assertRaises(MissingArgumentsError) as context:
            dispatch(["container", "scale"])
        self.assertEqual(context.exception.message, "missing 2 required arguments: <service>, <replicas>")
        self.assertEqual([argument.name for argument in context.exception.options["missing"]], ["service", "replicas"])

    def testInvalidArgument(self):
        with self.assertRaises(InvalidArgumentError) as context:
            dispatch(["container", "scale", "web", "many"])
        self.assertEqual(context.exception.options["argument"].name, "replicas")

    def testTypedArgument(self):
        record = dispatch(["container", "scale", "web", "3"]).record
        self.assertEqual(record.replicas, 3)


class TestRequests(TestCase):
    """Behavioral tests for built-in help and version requests."""

    def testHelpAtEveryLevel(self):
        cases = {
            ("--help",): "container",
            ("container", "-h"): "container container",
            ("container", "stop", "--help"): "container container stop",
        }
        for tokens, route in cases.items():
            with self.subTest(tokens=tokens):
                resolution = dispatch(list(tokens))
                self.assertEqual(resolution.request, "help")
                self.assertEqual(resolution.node.route, route)
                self.assertIsNone(resolution.record)

    def testHelpStopsTheWalk(self):
        resolution = dispatch(["container", "stop", "-h", "too", "many", "--bogus"])
        self.assertEqual(resolution.request, "help")

    def testHelpSpellingClaimedByFlag(self):
        ping = Command("ping", handler, flags=[Flag("host", str, alias="h")])
        app = App("net", [ping])
        record = Dispatcher(app, ["ping", "-h", "example.org"]).dispatch().record
        self.assertEqual(record.host, "example.org")

    def testVersion(self):
        resolution = dispatch(["--version"], version="1.2.3")
        self.assertEqual(resolution.request, "version")

    def testVersionWithoutDeclaredVersion(self):
        with self.assertRaises(UnknownFlagError):
            dispatch(["--version"])

    def testVersionOnlyAtAppLevel(self):
        with self.assertRaises(UnknownFlagError):
            dispatch(["container", "stop", "--version"], version="1.2.3")


if __name__ == "__main__":
    unittest.main()
