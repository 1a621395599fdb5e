# SPDX-License-Identifier: MIT
"""Custom exceptions for pnsis.

All pnsis exceptions inherit from PnsisError. None of them cross the
build step boundary: NsisStep turns each one into a listener diagnostic
and a False result.
"""

from __future__ import annotations


class PnsisError(Exception):
    """Base class for all pnsis exceptions.

    Attributes:
        message: The error message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigureError(PnsisError):
    """Error in the tool configuration.

    Raised when the installation registry cannot be read or
    contains invalid entries.
    """


class ToolNotFoundError(ConfigureError):
    """The tool executable does not exist on the target node.

    Attributes:
        tool: The name of the installation that was resolved.
        home: The home directory that was searched.
    """

    def __init__(self, tool: str, home: str) -> None:
        self.tool = tool
        self.home = home
        super().__init__(f"Couldn't find any executable in {home}")


class LaunchError(PnsisError):
    """The external process could not be started.

    The underlying OSError is chained as __cause__.
    """


class BuildInterrupted(PnsisError):
    """The running process was cancelled from outside the build step.

    Unlike the other errors this one is not reduced to a failed step; it
    propagates to whoever owns the build.
    """
