"""
Conzole help renderer (rich-based).

Consumes a schema node (App, Group or Command) together with the flag levels
visible to it and produces help sections; it never takes part in parsing.

Sections (in order, empty ones are skipped)
- usage line: route, flag placeholders per visible level, then '<command> ...'
  for apps/groups or the '<argument>' placeholders for commands.
- description paragraph.
- 'arguments:', 'global flags:', 'shared flags:', 'flags:'.
- children table ('commands' on the app, 'subcommands' below it).
- epilog (the node's custom help body).

Palette keys
- usage-label, program-name, usage-section, description-section, epilog-section
- group-label, argument-name, flag-name, metavar, argument-description, default
- children-title, children-table, children, children-description
- panel-title, program-version

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed.
"""
import io
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import values
from .schema import visibility
from .utils import *

_LABELS = {"global": "global flags", "shared": "shared flags", "command": "flags"}

_PALETTE = {
    # === Head sections ===
    "usage-label": "bold #00E6FF",
    "program-name": "bold #FF4D94",
    "usage-section": "bold #36C5F0",
    "description-section": "italic #A3A3A3",
    "epilog-section": "#737373",

    # === Arguments / flags ===
    "group-label": "bold #FFFFFF",
    "argument-name": "bold #FFD600",
    "flag-name": "bold #22C55E",
    "metavar": "bold #FFD600",
    "argument-description": "#9CA3AF",
    "default": "italic #737373",

    # === Children table ===
    "children-title": "bold #FFFFFF",
    "children-table": "#4B5563",
    "children": "bold #36C5F0",
    "children-description": "#9CA3AF",

    # === Fancy panel / version ===
    "panel-title": "bold #FF4D94",
    "program-version": "bold #00E6FF",
}


def _palette(colorful):
    styles = defaultdict(str, _PALETTE | getattr(__import__("__main__"), "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment.copy() if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    return styles, text


def _metavar(kind):
    return "<%s>" % values.typename(kind)


def _rows(entries, text, console, width, indent=22, padding=2):
    """
    Lay out (name, description) pairs with a hanging indent.

    the description starts on the same line when the name column fits, and on
    the next line (indented) otherwise; long descriptions wrap at 'width'.
    """
    section = Text()
    for name, descr in entries:
        line = Text(" " * padding) + name
        if descr:
            if len(line) >= indent - 1:
                line.append("\n").append(" " * indent)
            else:
                line.append(" " * (indent - len(line)))
            wrapped = descr.wrap(console, max(width - indent, 20))
            for index, segment in enumerate(wrapped):
                if index:
                    line.append("\n").append(" " * indent)
                line.append(segment)
        section.append(line).append("\n")
    return section


def render(node, /, *, console=Unset, colorful=False, fancy=False):
    """
    Build the help renderable of 'node' (a rich Group, or a Panel when fancy).

    the console is only used to measure and wrap text; nothing is printed.
    """
    if console is Unset:
        console = Console()
    styles, text = _palette(colorful)
    width = console.width - 4 * fancy
    levels = tuple(level for level in reversed(visibility(node.path)) if level.flags)
    leaf = node.__scope__ == "command"

    renders = []

    # Usage line: route + placeholders, outermost level first
    usage = Text()
    usage.append(text("usage", "usage-label")).append(": ")
    usage.append(text(node.route, "program-name"))
    for level in levels:
        usage.append(" ").append(text("[%s]" % _LABELS[level.scope], "usage-section"))
    if leaf:
        for argument in node.arguments:
            usage.append(" ").append(text("<%s>" % argument.name, "argument-name"))
    else:
        usage.append(" ").append(text("<command> ...", "usage-section"))
    renders.append(usage.append("\n"))

    if node.descr:
        renders.append(text(node.descr, "description-section").append("\n"))

    sections = []

    if leaf and node.arguments:
        entries = []
        for argument in node.arguments:
            name = text("<%s>" % argument.name, "argument-name")
            if argument.type is not str:
                name = Text.assemble(name, " ", text("(%s)" % values.typename(argument.type), "metavar"))
            entries.append((name, text(argument.descr, "argument-description")))
        sections.append(Text.assemble(text("arguments", "group-label"), ":\n", _rows(entries, text, console, width)))

    for level in levels:
        entries = []
        for flag in level.flags:
            name = Text.assemble(
                text("-%s" % flag.alias, "flag-name") if flag.alias else "",
                ", " if flag.alias else "    ",
                text("--%s" % flag.name, "flag-name"),
            )
            if flag.type is not bool:
                name.append(" ").append(text(_metavar(flag.type), "metavar"))

            descr = text(flag.descr, "argument-description")
            if flag.type is not bool and flag.default != values.encode_default(flag.type):
                descr = Text.assemble(descr, " " if descr else "", text("[default: %s]" % values.encode(flag.default), "default"))
            entries.append((name, descr))
        sections.append(Text.assemble(text(_LABELS[level.scope], "group-label"), ":\n", _rows(entries, text, console, width)))

    if sections:
        renders.append(Text("\n").join(sections))

    # Children (commands/subcommands) table
    if not leaf:
        typeof = "commands" if node.parent is None else "subcommands"
        table = Table(
            "name", "help",
            title=text(typeof, "children-title"),
            width=min(width, max(40, int(width * (2 / 3)))),
            box=ROUNDED,
            style=styles["children-table"] if colorful else "",
            header_style=styles["children-title"] if colorful else "",
        )
        for name, child in node.children.items():
            if child.descr:
                help = text(child.descr, "children-description")
            else:
                help = text("run '%s --help' for details" % child.route, "children-description")
            table.add_row(text(name, "children"), help)
        renders.append(table)

    if node.epilog:
        renders.append(Text("\n") + text(node.epilog, "epilog-section"))

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=text("[ %s HELP ]" % node.route.upper(), "panel-title"),
            title_align="left",
        )
    return renderable


def show(node, /, *, stderr=False, colorful=False, fancy=False):
    """
    Print the help of 'node' to stdout (or stderr on error paths).
    """
    console = Console(stderr=stderr)
    console.print(render(node, console=console, colorful=colorful, fancy=fancy))


def render_help(node, /, *, width=80):
    """
    Return the plain-text help of 'node' (no colors, no panel).
    """
    console = Console(file=io.StringIO(), width=width, color_system=None, highlight=False)
    console.print(render(node, console=console))
    return console.file.getvalue()


def show_version(app, /, *, colorful=False):
    """
    Print '<name> <version>' for an App that declares a version.
    """
    _, text = _palette(colorful)
    Console().print(Text.assemble(text(app.name, "program-name"), " ", text(app.version, "program-version")))


__all__ = (
    "render",
    "show",
    "render_help",
    "show_version",
)
