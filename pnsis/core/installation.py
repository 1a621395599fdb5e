# SPDX-License-Identifier: MIT
"""NSIS tool installations and their resolution for a build step.

A ToolInstallation is the administrator's view of a tool: a name and a
home directory template such as "$PROGRAMFILES/NSIS". Before a build
step can use it, it is resolved in two stages, each producing a new
immutable value:

1. for_environment(): expand variables in the home template
2. for_node(): apply the node's own tool location, if it has one

The executable is then looked up on the target node through its
Channel, so that the check runs against the node's filesystem rather
than the controller's.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any

from pnsis.core.context import ExecutionContext, LocalChannel, Node
from pnsis.core.errors import ConfigureError, ToolNotFoundError
from pnsis.core.subst import expand

logger = logging.getLogger(__name__)

# File name looked up under every installation home
EXECUTABLE_NAME = "makensis.exe"


@dataclass(frozen=True)
class ToolInstallation:
    """A named NSIS installation.

    Attributes:
        name: Unique key in the registry.
        home: Home directory; may contain $VAR references.
        env: Extra environment variables contributed to the launch.
    """

    name: str
    home: str
    env: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", (self.name or "").strip())
        object.__setattr__(self, "home", (self.home or "").strip())
        object.__setattr__(self, "env", dict(self.env or {}))

    def for_environment(self, env: Mapping[str, str]) -> ToolInstallation:
        """Return a copy whose home has env variables expanded."""
        return replace(self, home=expand(self.home, env))

    def for_node(self, node: Node) -> ToolInstallation:
        """Return a copy whose home is valid on the given node."""
        override = node.tool_home(self.name)
        if override is None:
            return self
        logger.debug("Tool location for %s on %s: %s", self.name, node, override)
        return replace(self, home=override.strip())

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "home": self.home}
        if self.env:
            data["env"] = dict(self.env)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ToolInstallation:
        """Create an installation from its JSON form.

        Raises:
            ConfigureError: If the entry is not an object or has bad fields.
        """
        if not isinstance(data, Mapping):
            raise ConfigureError(f"installation entry must be an object: {data!r}")
        env = data.get("env") or {}
        if not isinstance(env, Mapping):
            raise ConfigureError(f"'env' of installation must be an object: {env!r}")
        return cls(
            name=str(data.get("name") or ""),
            home=str(data.get("home") or ""),
            env={str(k): str(v) for k, v in env.items()},
        )


@dataclass(frozen=True)
class ExecutableProbe:
    """Node-side request: does the executable exist under home?

    The probe is shipped to the node through its Channel and run there.
    It returns the executable path, or None if there is no such file.
    """

    home: str
    executable: str = EXECUTABLE_NAME
    unix: bool = os.name != "nt"

    def candidate(self, env: Mapping[str, str] | None = None) -> str:
        """Path the executable is expected at, using the node's separators."""
        home = expand(self.home, env) if env is not None else self.home
        flavor = PurePosixPath if self.unix else PureWindowsPath
        return str(flavor(home) / self.executable)

    def __call__(self) -> str | None:
        path = self.candidate(os.environ)
        return path if os.path.isfile(path) else None


@dataclass(frozen=True)
class ResolvedInstallation:
    """An installation made concrete for one build step on one node."""

    installation: ToolInstallation
    node: Node
    executable: str

    @property
    def name(self) -> str:
        return self.installation.name

    @property
    def home(self) -> str:
        return self.installation.home

    def build_env_vars(self, env: dict[str, str]) -> None:
        """Add this tool's environment contributions to env.

        Variables already present in env are kept as they are.
        """
        for key, value in self.installation.env.items():
            if key not in env:
                env[key] = expand(value, env)


def resolve(
    installation: ToolInstallation, ctx: ExecutionContext
) -> ResolvedInstallation:
    """Resolve an installation for the node and environment of ctx.

    Raises:
        ToolNotFoundError: If the executable does not exist on the node.
    """
    concrete = installation.for_environment(ctx.env).for_node(ctx.node)
    probe = ExecutableProbe(concrete.home, EXECUTABLE_NAME, ctx.unix)
    logger.debug("Looking for %s on %s", probe.candidate(), ctx.node)

    executable = ctx.node.channel.call(probe)
    if executable is None:
        raise ToolNotFoundError(concrete.name, concrete.home)

    logger.info("Using %s %s at %s", concrete.name, ctx.node, executable)
    return ResolvedInstallation(concrete, ctx.node, executable)


def installation_exists(installation: ToolInstallation) -> bool:
    """Check whether the executable exists on this machine."""
    try:
        return LocalChannel().call(ExecutableProbe(installation.home)) is not None
    except OSError:
        return False


def check_required(value: str | None) -> str | None:
    """Validate a required field; return an error message or None."""
    if value is None or not value.strip():
        return "Required"
    return None
