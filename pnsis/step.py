# SPDX-License-Identifier: MIT
"""The NSIS build step.

NsisStep ties the core components together for one build:

    registry lookup -> resolve -> build_command -> Launcher.run

Every failure is reported on the listener and reduced to a False
result. Only interruptions propagate to the caller.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass

from pnsis.core.command import build_command
from pnsis.core.context import ExecutionContext
from pnsis.core.errors import ConfigureError, LaunchError, ToolNotFoundError
from pnsis.core.installation import (
    ResolvedInstallation,
    ToolInstallation,
    check_required,
    resolve,
)
from pnsis.core.launcher import Launcher
from pnsis.core.registry import InstallationRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NsisStep:
    """Configuration of one makensis invocation.

    Attributes:
        nsis_name: Name of the installation to use; None to use
            makensis from PATH.
        options: Free-text makensis options.
        script_name: The .nsi script to compile.
    """

    nsis_name: str | None = None
    options: str | None = None
    script_name: str | None = None

    def find_installation(
        self, registry: InstallationRegistry
    ) -> ToolInstallation | None:
        """Get the configured installation, or None if not selected/unknown."""
        installation = registry.find_by_name(self.nsis_name)
        if installation is None and self.nsis_name:
            logger.warning(
                "No NSIS installation named %r, falling back to PATH", self.nsis_name
            )
        return installation

    def perform(
        self,
        ctx: ExecutionContext,
        launcher: Launcher,
        registry: InstallationRegistry,
    ) -> bool:
        """Run the step. Returns True if makensis exited with 0."""
        listener = ctx.listener
        if check_required(self.script_name):
            logger.warning("No script name configured for NSIS step")

        resolved: ResolvedInstallation | None = None
        installation = self.find_installation(registry)
        if installation is not None:
            try:
                resolved = resolve(installation, ctx)
            except ToolNotFoundError as e:
                listener.fatal_error(e.message)
                return False

        try:
            spec = build_command(
                resolved.executable if resolved else None,
                self.options,
                self.script_name,
                ctx,
                resolved,
            )
        except ConfigureError as e:
            listener.fatal_error(e.message)
            return False

        try:
            exit_code = launcher.run(spec, listener)
        except LaunchError as e:
            listener.error(e.message)
            traceback.print_exception(
                e, file=listener.fatal_error("command execution failed")
            )
            return False

        return exit_code == 0
