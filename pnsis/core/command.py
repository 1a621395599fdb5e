# SPDX-License-Identifier: MIT
"""Command line assembly for makensis.

The argument vector is built in a fixed order:

    [executable] [options...] [script]

On non-POSIX nodes the whole vector is run through cmd.exe so that the
shell's exit status is the exit status of makensis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from pnsis.core.subst import (
    collapse_line_breaks,
    expand_all,
    to_shell_command,
    tokenize,
)

if TYPE_CHECKING:
    from pnsis.core.context import ExecutionContext
    from pnsis.core.installation import ResolvedInstallation

logger = logging.getLogger(__name__)

WINDOWS_SHELL_PREFIX = ("cmd.exe", "/C")
WINDOWS_EXIT_SUFFIX = ("&&", "exit", "%%ERRORLEVEL%%")


@dataclass
class CommandSpec:
    """A fully assembled process launch.

    Attributes:
        executable: Resolved makensis path, or None to rely on PATH.
        args: Complete argument vector, including any shell wrapping.
        env: Environment for the process.
        workdir: Working directory for the process.
        unix: Whether the vector targets a POSIX node.
    """

    executable: str | None
    args: list[str]
    env: dict[str, str] = field(default_factory=dict)
    workdir: Path = field(default_factory=Path.cwd)
    unix: bool = True

    def __str__(self) -> str:
        return to_shell_command(self.args, "bash" if self.unix else "cmd")


def build_command(
    executable: str | None,
    options: str | None,
    script_name: str | None,
    ctx: ExecutionContext,
    installation: ResolvedInstallation | None = None,
) -> CommandSpec:
    """Assemble the makensis command for a build step.

    Args:
        executable: Resolved executable, or None when no installation
            was selected.
        options: Free-text options; tokenized on whitespace.
        script_name: Script path; always passed as a single argument.
        ctx: Execution context providing variables and platform.
        installation: Resolved installation contributing env variables.

    Returns:
        The CommandSpec to hand to a Launcher.

    Raises:
        ConfigureError: If options contain an unterminated quote.
    """
    args: list[str] = []
    if executable:
        args.append(executable)

    if options:
        text = expand_all(collapse_line_breaks(options), ctx.env, ctx.build_vars)
        args.extend(tokenize(text))

    if script_name:
        args.append(
            expand_all(collapse_line_breaks(script_name), ctx.env, ctx.build_vars)
        )

    env = dict(ctx.env)
    if installation is not None:
        installation.build_env_vars(env)

    if not ctx.unix:
        args = [*WINDOWS_SHELL_PREFIX, *args, *WINDOWS_EXIT_SUFFIX]

    spec = CommandSpec(
        executable=executable,
        args=args,
        env=env,
        workdir=ctx.workspace,
        unix=ctx.unix,
    )
    logger.debug("Built command: %s", spec)
    return spec
