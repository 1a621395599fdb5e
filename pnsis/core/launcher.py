# SPDX-License-Identifier: MIT
"""Process launching for build steps.

A Launcher runs a CommandSpec on its node, streams combined
stdout/stderr to the listener, and returns the exit code. It
distinguishes three outcomes:

- the process ran: its exit code is returned (0 or not)
- the process could not be started: LaunchError
- the wait was interrupted or cancelled: the process is killed and the
  interruption propagates (KeyboardInterrupt, BuildInterrupted, ...)
"""

from __future__ import annotations

import logging
import subprocess
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pnsis.core.errors import BuildInterrupted, LaunchError

if TYPE_CHECKING:
    from pnsis.core.command import CommandSpec
    from pnsis.core.context import TaskListener

logger = logging.getLogger(__name__)


class Launcher(ABC):
    """Starts processes on one node."""

    def run(self, spec: CommandSpec, listener: TaskListener) -> int:
        """Run spec to completion and return its exit code.

        Raises:
            LaunchError: If the process could not be started.
            BuildInterrupted: If cancel() was called while it ran.
        """
        if not spec.args:
            raise LaunchError("nothing to run: empty command line")
        listener.info(f"[{spec.workdir}] $ {spec}")
        logger.info("Running: %s", spec)
        return self._launch(spec, listener)

    @abstractmethod
    def _launch(self, spec: CommandSpec, listener: TaskListener) -> int: ...

    @abstractmethod
    def cancel(self) -> None:
        """Terminate the running process, if any."""
        ...


class LocalLauncher(Launcher):
    """Launcher for the machine this Python process runs on."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._process: subprocess.Popen[str] | None = None
        self._cancelled = False

    def _launch(self, spec: CommandSpec, listener: TaskListener) -> int:
        try:
            process = subprocess.Popen(
                spec.args,
                cwd=spec.workdir,
                env=spec.env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except (OSError, ValueError) as e:
            raise LaunchError(f"cannot run {spec.args[0]}: {e}") from e

        with self._lock:
            self._process = process
            self._cancelled = False

        try:
            for line in process.stdout or ():
                listener.write(line)
            exit_code = process.wait()
        except BaseException:
            logger.warning("Interrupted, killing process %d", process.pid)
            _kill(process)
            raise
        finally:
            if process.stdout is not None:
                process.stdout.close()
            with self._lock:
                self._process = None

        if self._cancelled:
            raise BuildInterrupted(f"process {process.pid} was cancelled")
        logger.debug("Process %d exited with %d", process.pid, exit_code)
        return exit_code

    def cancel(self) -> None:
        with self._lock:
            process = self._process
            self._cancelled = process is not None
        if process is not None:
            logger.info("Cancelling process %d", process.pid)
            _kill(process)


def _kill(process: subprocess.Popen[str]) -> None:
    if process.poll() is None:
        process.kill()
    process.wait()
