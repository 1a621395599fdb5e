# SPDX-License-Identifier: MIT
"""
Pnsis: run the NSIS compiler (makensis) as a build step.

Pnsis looks up a named NSIS installation, resolves its executable on the
node the build runs on, assembles the makensis command line from options
and a script path (with $VARIABLE substitution) and runs it.
"""

from __future__ import annotations

from pnsis.core.context import ExecutionContext, Node, TaskListener
from pnsis.core.installation import ToolInstallation
from pnsis.core.launcher import LocalLauncher
from pnsis.core.registry import InstallationRegistry
from pnsis.step import NsisStep

__version__ = "0.1.0"

__all__ = [
    "ExecutionContext",
    "InstallationRegistry",
    "LocalLauncher",
    "Node",
    "NsisStep",
    "TaskListener",
    "ToolInstallation",
    "__version__",
]
