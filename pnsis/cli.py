# SPDX-License-Identifier: MIT
"""Command-line interface for pnsis."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pnsis.core.context import ExecutionContext
from pnsis.core.errors import ConfigureError
from pnsis.core.installation import (
    ToolInstallation,
    check_required,
    installation_exists,
)
from pnsis.core.launcher import LocalLauncher
from pnsis.core.registry import InstallationRegistry, default_registry_path
from pnsis.step import NsisStep

# Set up logging
logger = logging.getLogger("pnsis")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def parse_variables(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """Parse KEY=value arguments from a list.

    Args:
        args: List of arguments.

    Returns:
        Tuple of (variables dict, remaining args).
    """
    variables: dict[str, str] = {}
    remaining: list[str] = []

    for arg in args:
        if "=" in arg and not arg.startswith("-"):
            key, _, value = arg.partition("=")
            if key:  # Valid KEY=value
                variables[key] = value
            else:
                remaining.append(arg)
        else:
            remaining.append(arg)

    return variables, remaining


def tools_path(args: argparse.Namespace) -> Path:
    """Registry file selected by --tools, $PNSIS_TOOLS or the default."""
    if getattr(args, "tools", None):
        return Path(args.tools)
    return default_registry_path()


def load_registry(args: argparse.Namespace) -> InstallationRegistry | None:
    path = tools_path(args)
    try:
        return InstallationRegistry.load(path)
    except ConfigureError as e:
        logger.error("%s", e)
        return None


def cmd_run(args: argparse.Namespace) -> int:
    """Run makensis once in the working directory.

    Extra KEY=value arguments become build variables; a single
    remaining argument is taken as the script if --script is not given.
    """
    setup_logging(args.verbose, args.debug)

    variables, remaining = parse_variables(args.extra)
    script = args.script
    if script is None and len(remaining) == 1:
        script = remaining.pop()
    if remaining:
        logger.error("Unexpected arguments: %s", " ".join(remaining))
        return 1

    registry = load_registry(args)
    if registry is None:
        return 1

    if args.tool and registry.find_by_name(args.tool) is None:
        logger.info("Known installations: %s", ", ".join(i.name for i in registry))

    ctx = ExecutionContext.local(workspace=args.workdir, build_vars=variables)
    step = NsisStep(nsis_name=args.tool, options=args.options, script_name=script)
    ok = step.perform(ctx, LocalLauncher(), registry)
    return 0 if ok else 1


def cmd_tools_list(args: argparse.Namespace) -> int:
    """List configured installations and whether makensis exists."""
    setup_logging(args.verbose, args.debug)

    registry = load_registry(args)
    if registry is None:
        return 1

    if not len(registry):
        print(f"No NSIS installations configured in {tools_path(args)}")
        return 0

    for installation in registry:
        status = "ok" if installation_exists(installation) else "missing"
        print(f"{installation.name}\t{installation.home}\t{status}")
    return 0


def cmd_tools_add(args: argparse.Namespace) -> int:
    """Add or replace an installation and save the registry."""
    setup_logging(args.verbose, args.debug)

    for field_name, value in (("name", args.name), ("home", args.home)):
        problem = check_required(value)
        if problem:
            logger.error("%s: %s", field_name, problem)
            return 1

    env, remaining = parse_variables(args.env)
    if remaining:
        logger.error("--env expects KEY=value, got: %s", " ".join(remaining))
        return 1

    registry = load_registry(args)
    if registry is None:
        return 1

    new = ToolInstallation(args.name, args.home, env)
    kept = [i for i in registry if i.name != new.name]
    registry.replace_all([*kept, new])
    registry.save(tools_path(args))
    logger.info("Saved %s to %s", new.name, tools_path(args))
    return 0


def cmd_tools_remove(args: argparse.Namespace) -> int:
    """Remove an installation by name and save the registry."""
    setup_logging(args.verbose, args.debug)

    registry = load_registry(args)
    if registry is None:
        return 1

    if registry.find_by_name(args.name) is None:
        logger.error("No installation named %s", args.name)
        return 1

    registry.replace_all(i for i in registry if i.name != args.name)
    registry.save(tools_path(args))
    logger.info("Removed %s from %s", args.name, tools_path(args))
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "--tools",
        metavar="FILE",
        help="Installation registry file (default: $PNSIS_TOOLS or "
        "~/.config/pnsis/tools.json)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the pnsis CLI."""
    parser = argparse.ArgumentParser(
        prog="pnsis",
        description="Run makensis from a named NSIS installation.",
        epilog="Run 'pnsis <command> --help' for command-specific help.",
    )
    from pnsis import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # pnsis run
    run_parser = subparsers.add_parser("run", help="Compile an NSIS script")
    add_common_args(run_parser)
    run_parser.add_argument("-t", "--tool", help="Name of the NSIS installation")
    run_parser.add_argument(
        "-o",
        "--options",
        help="Options passed to makensis (write --options=-V2 when they start with -)",
    )
    run_parser.add_argument("-s", "--script", help="Script to compile")
    run_parser.add_argument(
        "-C", "--workdir", default=".", help="Working directory (default: .)"
    )
    run_parser.add_argument(
        "extra",
        nargs="*",
        help="Build variables (KEY=value) or the script",
    )
    run_parser.set_defaults(func=cmd_run)

    # pnsis tools ...
    tools_parser = subparsers.add_parser("tools", help="Manage NSIS installations")
    tools_sub = tools_parser.add_subparsers(dest="tools_command", help="Actions")

    list_parser = tools_sub.add_parser("list", help="List installations")
    add_common_args(list_parser)
    list_parser.set_defaults(func=cmd_tools_list)

    add_parser = tools_sub.add_parser("add", help="Add or replace an installation")
    add_common_args(add_parser)
    add_parser.add_argument("name", help="Installation name")
    add_parser.add_argument("home", help="Home directory (may contain $VARS)")
    add_parser.add_argument(
        "-e",
        "--env",
        action="append",
        default=[],
        metavar="KEY=value",
        help="Environment variable contributed to makensis (repeatable)",
    )
    add_parser.set_defaults(func=cmd_tools_add)

    remove_parser = tools_sub.add_parser("remove", help="Remove an installation")
    add_common_args(remove_parser)
    remove_parser.add_argument("name", help="Installation name")
    remove_parser.set_defaults(func=cmd_tools_remove)

    args = parser.parse_args(argv)

    if getattr(args, "func", None) is None:
        parser.print_help()
        return 1

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
