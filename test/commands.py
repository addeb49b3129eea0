"""
Command layer behavioral tests (Command, Group, App, command, invoke).

Scope
- Construction: metadata sanitization, children/flags/arguments ownership.
- Tree navigation (parent, root, path, route).
- App.run(): prompt forms, handler status, help/version requests, shell mode.
- command() factory forms and invoke().

Conventions
- Test method names follow CamelCase per project convention.
- Never pass explicit None for any parameter; omit instead.
- Output is captured with contextlib redirects; no terminal is required.
"""

from __future__ import annotations

import contextlib
import io
import sys
import unittest
from dataclasses import dataclass
from unittest import TestCase, mock

from conzole import (
    App,
    Argument,
    Command,
    Flag,
    Group,
    Record,
    UnknownFlagError,
    command,
    invoke,
)


@dataclass(frozen=True)
class StopRecord:
    container: str
    force: bool
    dry_run: bool
    verbose: bool


def noop(record):
    return 0


class Recorder:
    """Handler double keeping every record it receives."""

    def __init__(self, status=0):
        self.records = []
        self.status = status

    def __call__(self, record):
        self.records.append(record)
        return self.status


def build(handler=noop, **options):
    stop = Command("stop", handler, "Stop a container", arguments=[Argument("container")], flags=[Flag("force", alias="f")])
    group = Group("container", [stop], "Manage containers", flags=[Flag("dry-run", alias="n")])
    return App("container", [group], "Container tool", flags=[Flag("verbose", alias="v")], **options)


class TestCommand(TestCase):
    """Behavioral tests for Command construction."""

    def testDescrFromDocstring(self):
        def stop(record):
            """Stop one or more running containers

            Sends SIGTERM first.
            """
        self.assertEqual(Command("stop", stop).descr, "Stop one or more running containers")

    def testExplicitDescrWins(self):
        def stop(record):
            """Docstring"""
        self.assertEqual(Command("stop", stop, "Explicit").descr, "Explicit")

    def testArgumentPositions(self):
        first, second = Argument("service"), Argument("replicas", int)
        Command("scale", noop, arguments=[first, second])
        self.assertEqual((first.position, second.position), (1, 2))

    def testArgumentSingleOwner(self):
        argument = Argument("container")
        Command("stop", noop, arguments=[argument])
        with self.assertRaises(ValueError):
            Command("kill", noop, arguments=[argument])

    def testDuplicateArgumentName(self):
        with self.assertRaises(ValueError):
            Command("copy", noop, arguments=[Argument("path"), Argument("path")])

    def testFlagNameTwiceOnOneNode(self):
        with self.assertRaises(ValueError):
            Command("stop", noop, flags=[Flag("force"), Flag("force", alias="f")])

    def testFlagAliasTwiceOnOneNode(self):
        with self.assertRaises(ValueError):
            Command("stop", noop, flags=[Flag("force", alias="f"), Flag("fast", alias="f")])

    def testHandlerMustBeCallable(self):
        with self.assertRaises(TypeError):
            Command("stop", "noop")

    def testHandlerArity(self):
        with self.assertRaises(TypeError):
            Command("stop", lambda: 0)

    def testNameValidation(self):
        for name in ("", "  ", "-stop", "st op", "a=b"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    Command(name, noop)
        with self.assertRaises(TypeError):
            Command(1, noop)

    def testCommandNamesMayContainUnderscores(self):
        self.assertEqual(Command("list_all", noop).name, "list_all")

    def testArgumentsMustBeArguments(self):
        with self.assertRaises(TypeError):
            Command("stop", noop, arguments=[Flag("force")])
        with self.assertRaises(TypeError):
            Command("stop", noop, arguments="container")

    def testBuildGenericRecord(self):
        record = Command("stop", noop).build({"force": True})
        self.assertIsInstance(record, Record)
        self.assertIs(record.force, True)


class TestGroup(TestCase):
    """Behavioral tests for Group construction and tree navigation."""

    def testChildrenRequired(self):
        with self.assertRaises(ValueError):
            Group("container", [])

    def testChildrenMustBeNodes(self):
        with self.assertRaises(TypeError):
            Group("container", [noop])

    def testDuplicateChildName(self):
        with self.assertRaises(ValueError):
            Group("container", [Command("stop", noop), Command("stop", noop)])

    def testChildSingleOwner(self):
        stop = Command("stop", noop)
        Group("container", [stop])
        with self.assertRaises(ValueError):
            Group("service", [stop])

    def testAppCannotBeAChild(self):
        app = App("inner", [Command("go", noop)])
        with self.assertRaises(TypeError):
            Group("outer", [app])

    def testNavigation(self):
        app = build()
        group = app.children["container"]
        stop = group.children["stop"]
        self.assertIsNone(app.parent)
        self.assertIs(stop.parent, group)
        self.assertIs(stop.root, app)
        self.assertEqual(stop.path, (app, group, stop))
        self.assertEqual(stop.route, "container container stop")

    def testChildrenAreReadOnly(self):
        group = build().children["container"]
        with self.assertRaises(TypeError):
            group.children["start"] = Command("start", noop)


class TestApp(TestCase):
    """Behavioral tests for App construction and run()."""

    def testVersionValidation(self):
        with self.assertRaises(ValueError):
            build(version="  ")
        with self.assertRaises(TypeError):
            build(version=1)

    def testRunPassesRecord(self):
        recorder = Recorder()
        app = build(recorder)
        self.assertEqual(app.run(["-v", "container", "stop", "web"]), 0)
        self.assertEqual(recorder.records[0], {"verbose": True, "dry_run": False, "force": False, "container": "web"})

    def testRunPassesTypedRecord(self):
        recorder = Recorder()

        def stop(record: StopRecord):
            return recorder(record)

        build(stop).run(["container", "-n", "stop", "web"])
        self.assertEqual(recorder.records, [StopRecord(container="web", force=False, dry_run=True, verbose=False)])

    def testRunReturnsHandlerStatus(self):
        self.assertEqual(build(Recorder(3)).run(["container", "stop", "web"]), 3)

    def testNoneStatusIsZero(self):
        self.assertEqual(build(Recorder(None)).run(["container", "stop", "web"]), 0)

    def testNonIntStatusRejected(self):
        with self.assertRaises(TypeError):
            build(Recorder("done")).run(["container", "stop", "web"])

    def testHandlerExceptionsPropagate(self):
        def stop(record):
            raise RuntimeError("boom")
        with self.assertRaises(RuntimeError):
            build(stop).run(["container", "stop", "web"])

    def testStringPrompt(self):
        recorder = Recorder()
        build(recorder).run('container stop "my web"')
        self.assertEqual(recorder.records[0].container, "my web")

    def testArgvPrompt(self):
        recorder = Recorder()
        with mock.patch.object(sys, "argv", ["container", "container", "stop", "-f", "db"]):
            build(recorder).run()
        self.assertEqual(recorder.records[0].container, "db")
        self.assertIs(recorder.records[0].force, True)

    def testInvalidPrompt(self):
        app = build()
        with self.assertRaises(TypeError):
            app.run(5)
        with self.assertRaises(TypeError):
            app.run(["container", 5])

    def testParseErrorRaisedOutsideShell(self):
        recorder = Recorder()
        with self.assertRaises(UnknownFlagError):
            build(recorder).run(["container", "stop", "--forse", "web"])
        self.assertEqual(recorder.records, [])

    def testParseErrorRenderedInShell(self):
        recorder = Recorder()
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            status = build(recorder, shell=True).run(["container", "stop", "--forse", "web"])
        self.assertEqual(status, 1)
        self.assertEqual(recorder.records, [])
        output = stderr.getvalue()
        self.assertIn("usage: container container stop", output)
        self.assertIn("unknown flag '--forse' at third position", output)
        self.assertIn("Unknown Flag", output)

    def testHelpPrintsAndSkipsHandler(self):
        recorder = Recorder()
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            status = build(recorder).run(["container", "--help"])
        self.assertEqual(status, 0)
        self.assertEqual(recorder.records, [])
        self.assertIn("usage: container container", stdout.getvalue())
        self.assertIn("Manage containers", stdout.getvalue())

    def testVersion(self):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            status = build(version="1.2.3").run(["--version"])
        self.assertEqual(status, 0)
        self.assertEqual(stdout.getvalue().strip(), "container 1.2.3")

    def testRepeatedRunsAreIndependent(self):
        recorder = Recorder()
        app = build(recorder)
        app.run(["-v", "container", "stop", "-f", "web"])
        app.run(["container", "stop", "db"])
        self.assertEqual(recorder.records[1], {"verbose": False, "dry_run": False, "force": False, "container": "db"})


class TestFactories(TestCase):
    """Behavioral tests for command() and invoke()."""

    def testDirect(self):
        def stop(record):
            """Stop a container"""
        node = command(stop, arguments=[Argument("container")])
        self.assertIsInstance(node, Command)
        self.assertEqual(node.name, "stop")
        self.assertEqual(node.descr, "Stop a container")

    def testNamedDecorator(self):
        @command("rm", flags=[Flag("force")])
        def remove(record):
            return 0
        self.assertEqual(remove.name, "rm")
        self.assertEqual([flag.name for flag in remove.flags], ["force"])

    def testPlainDecoratorDerivesName(self):
        @command()
        def all_tags(record):
            return 0
        self.assertEqual(all_tags.name, "all-tags")

    def testUnknownOption(self):
        with self.assertRaises(TypeError):
            command(flag=[Flag("force")])

    def testDecoratorRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            command("stop")("stop")

    def testInvoke(self):
        recorder = Recorder(7)
        self.assertEqual(invoke(build(recorder), ["container", "stop", "web"]), 7)

    def testInvokeRejectsNonInvokable(self):
        with self.assertRaises(TypeError):
            invoke(object())


if __name__ == "__main__":
    unittest.main()
