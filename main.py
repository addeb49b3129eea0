"""
A Docker-like container management tool built on conzole.

    python main.py --verbose container --dry-run stop --force web
    python main.py image build --tag myapp .
    python main.py network create --driver bridge mynet
"""
import sys
from dataclasses import dataclass

from rich.console import Console

from conzole import App, Argument, Flag, Group, command, invoke

console = Console()


# --- records ---

@dataclass(frozen=True)
class RunArgs:
    image: str
    detach: bool
    interactive: bool
    name: str
    port: str
    dry_run: bool
    verbose: bool
    quiet: bool


@dataclass(frozen=True)
class StopArgs:
    container: str
    force: bool
    timeout: int
    dry_run: bool
    verbose: bool
    quiet: bool


@dataclass(frozen=True)
class ListArgs:
    all: bool
    dry_run: bool
    verbose: bool
    quiet: bool


@dataclass(frozen=True)
class RemoveArgs:
    container: str
    force: bool
    volumes: bool
    dry_run: bool
    verbose: bool
    quiet: bool


@dataclass(frozen=True)
class PullArgs:
    image: str
    all_tags: bool
    dry_run: bool
    verbose: bool
    quiet: bool


@dataclass(frozen=True)
class BuildArgs:
    path: str
    tag: str
    file: str
    no_cache: bool
    dry_run: bool
    verbose: bool
    quiet: bool


# --- actions ---

def _say(args, message):
    if args.quiet:
        return
    console.print(("[dry-run] " if args.dry_run else "") + message, markup=False, highlight=False)


@command(
    "run",
    epilog="examples:\n"
           "    container container run nginx\n"
           "    container container run --detach --name web --port 8080:80 nginx",
    arguments=[Argument("image", descr="Container image to run")],
    flags=[
        Flag("detach", descr="Run container in background", alias="d"),
        Flag("interactive", descr="Keep STDIN open and allocate a pseudo-TTY", alias="i"),
        Flag("name", str, descr="Assign a name to the container"),
        Flag("port", str, descr="Publish container ports to host (HOST_PORT:CONTAINER_PORT)", alias="p"),
    ],
)
def run(args: RunArgs):
    """Run a new container from an image"""
    _say(args, f"running {args.image}" + (f" as {args.name}" if args.name else "") + (" (detached)" if args.detach else ""))
    if args.verbose and args.port:
        _say(args, f"publishing {args.port}")
    return 0


@command(
    "stop",
    arguments=[Argument("container", descr="Container name or ID to stop")],
    flags=[
        Flag("force", descr="Force stop the container", alias="f"),
        Flag("timeout", int, 10, "Seconds to wait before killing the container", alias="t"),
    ],
)
def stop(args: StopArgs):
    """Stop one or more running containers"""
    _say(args, f"stopping {args.container}" + (" (forced)" if args.force else f" (timeout {args.timeout}s)"))
    return 0


@command("list", flags=[Flag("all", descr="Show all containers (default shows just running)", alias="a")])
def list_containers(args: ListArgs):
    """List containers"""
    _say(args, "listing all containers" if args.all else "listing running containers")
    return 0


@command(
    "remove",
    arguments=[Argument("container", descr="Container name or ID to remove")],
    flags=[
        Flag("force", descr="Force removal of running container", alias="f"),
        Flag("volumes", descr="Remove associated volumes"),
    ],
)
def remove(args: RemoveArgs):
    """Remove one or more containers"""
    _say(args, f"removing {args.container}" + (" and its volumes" if args.volumes else ""))
    return 0


@command(
    "pull",
    arguments=[Argument("image", descr="Image name to pull")],
    flags=[Flag("all-tags", descr="Download all tagged images in the repository")],
)
def pull(args: PullArgs):
    """Pull an image or repository from a registry"""
    _say(args, f"pulling {args.image}" + (" (all tags)" if args.all_tags else ""))
    return 0


@command(
    "build",
    arguments=[Argument("path", descr="Build context path")],
    flags=[
        Flag("tag", str, descr="Name and optionally tag in 'name:tag' format"),
        Flag("file", str, "Dockerfile", "Name of the Dockerfile"),
        Flag("no-cache", descr="Do not use cache when building the image"),
    ],
)
def build(args: BuildArgs):
    """Build an image from a Dockerfile"""
    _say(args, f"building {args.path} with {args.file}" + (f" as {args.tag}" if args.tag else ""))
    return 0


@command("list", flags=[Flag("all", descr="Show all images (default hides intermediate images)", alias="a")])
def list_images(args):
    """List images"""
    _say(args, "listing all images" if args.all else "listing images")
    return 0


@command(
    "create",
    arguments=[Argument("name", descr="Network name")],
    flags=[
        Flag("driver", str, "bridge", "Driver to manage the network"),
        Flag("subnet", str, descr="Subnet in CIDR format"),
    ],
)
def create(args):
    """Create a network"""
    _say(args, f"creating network {args.name} ({args.driver})" + (f" on {args.subnet}" if args.subnet else ""))
    return 0


@command("list")
def list_networks(args):
    """List networks"""
    _say(args, "listing networks")
    return 0


app = App(
    "container",
    [
        Group(
            "container",
            [run, stop, list_containers, remove],
            "Manage containers",
            "notes:\n"
            "    - use --dry-run to preview operations without executing\n"
            "    - global flags like --verbose affect all container commands",
            flags=[Flag("dry-run", descr="Show what would be done without executing", alias="n")],
        ),
        Group(
            "image",
            [pull, build, list_images],
            "Manage images",
            flags=[Flag("dry-run", descr="Show what would be done without executing", alias="n")],
        ),
        Group(
            "network",
            [create, list_networks],
            "Manage networks",
            flags=[Flag("dry-run", descr="Show what would be done without executing", alias="n")],
        ),
    ],
    "A Docker-like container management tool",
    "workflow:\n"
    "    1. pull or build images: container image pull nginx\n"
    "    2. create networks: container network create mynet\n"
    "    3. run containers: container container run nginx\n"
    "    4. manage lifecycle: container container stop/remove",
    flags=[
        Flag("verbose", descr="Enable verbose output", alias="v"),
        Flag("quiet", descr="Suppress output", alias="q"),
    ],
    version="0.1.0",
    shell=True,
    colorful=True,
)


if __name__ == '__main__':
    sys.exit(invoke(app))
