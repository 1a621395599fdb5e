# SPDX-License-Identifier: MIT
"""Execution context for a single build step.

The context is passed explicitly to every component; nothing looks up
"the current node" from global state. It bundles:
- the Node the step runs on (with its Channel for node-side calls)
- the environment and build-scoped variables
- the working directory (module root)
- the TaskListener receiving process output and diagnostics
- the platform flag (POSIX or not) of the node
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


class TaskListener:
    """Console of a build step.

    Process output is written through write(); fatal_error() marks a
    diagnostic and returns the underlying stream so that callers can
    append a traceback.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    @property
    def stream(self) -> IO[str]:
        return self._stream

    def write(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()

    def info(self, message: str) -> None:
        self.write(message + "\n")

    def error(self, message: str) -> IO[str]:
        self.write(f"ERROR: {message}\n")
        return self._stream

    def fatal_error(self, message: str) -> IO[str]:
        self.write(f"FATAL: {message}\n")
        return self._stream


@runtime_checkable
class Channel(Protocol):
    """Transport that runs a request in a node's own process.

    A request is a zero-argument callable returning a primitive result.
    Remote channels are expected to ship the request to the node, run it
    there and send back the result.
    """

    def call(self, request: Callable[[], T]) -> T: ...


class LocalChannel:
    """Channel for the controller itself: runs requests in-process."""

    def call(self, request: Callable[[], T]) -> T:
        return request()

    def __repr__(self) -> str:
        return "LocalChannel()"


@dataclass(frozen=True)
class Node:
    """A machine that can run build steps.

    Attributes:
        name: Node identity ("" for the controller).
        channel: Channel used for node-side checks.
        tool_locations: Per-node overrides of installation homes,
            keyed by installation name.
    """

    name: str = ""
    channel: Channel = field(default_factory=LocalChannel, compare=False)
    tool_locations: Mapping[str, str] = field(default_factory=dict, compare=False)

    @property
    def is_controller(self) -> bool:
        return self.name == ""

    def tool_home(self, installation_name: str) -> str | None:
        """Get the node-specific home for an installation, if any."""
        return self.tool_locations.get(installation_name)

    def __str__(self) -> str:
        return "(controller)" if self.is_controller else self.name


@dataclass(frozen=True)
class ExecutionContext:
    """Everything a build step needs to know about where it runs.

    Attributes:
        node: The node executing the step.
        env: Environment variables, in insertion order.
        build_vars: Build-scoped variables (e.g. KEY=value parameters).
        workspace: Working directory for the launched process.
        listener: Sink for process output and diagnostics.
        unix: True if the node is POSIX-like.
    """

    node: Node
    env: Mapping[str, str]
    build_vars: Mapping[str, str] = field(default_factory=dict)
    workspace: Path = field(default_factory=Path.cwd)
    listener: TaskListener = field(default_factory=TaskListener)
    unix: bool = os.name != "nt"

    @classmethod
    def local(
        cls,
        *,
        workspace: Path | str | None = None,
        build_vars: Mapping[str, str] | None = None,
        listener: TaskListener | None = None,
        tool_locations: Mapping[str, str] | None = None,
    ) -> ExecutionContext:
        """Create a context for running on the controller itself."""
        return cls(
            node=Node(tool_locations=dict(tool_locations or {})),
            env=dict(os.environ),
            build_vars=dict(build_vars or {}),
            workspace=Path(workspace) if workspace is not None else Path.cwd(),
            listener=listener or TaskListener(),
            unix=os.name != "nt",
        )
