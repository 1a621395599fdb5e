# SPDX-License-Identifier: MIT
"""Process-wide registry of NSIS installations.

The registry holds an immutable snapshot (a tuple) that is swapped as a
whole by replace_all(). Readers never take the lock: they pick up either
the old or the new tuple, never a partially updated one.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path

from pnsis.core.errors import ConfigureError
from pnsis.core.installation import ToolInstallation

logger = logging.getLogger(__name__)

DEFAULT_TOOLS_FILE = Path("~/.config/pnsis/tools.json")


def default_registry_path() -> Path:
    """Location of the registry file: $PNSIS_TOOLS or the user config dir."""
    override = os.environ.get("PNSIS_TOOLS")
    if override:
        return Path(override)
    return DEFAULT_TOOLS_FILE.expanduser()


class InstallationRegistry:
    """Named NSIS installations, replaced wholesale on every update.

    Example:
        registry = InstallationRegistry.load(default_registry_path())
        nsis = registry.find_by_name("v2")
    """

    def __init__(self, installations: Iterable[ToolInstallation] = ()) -> None:
        self._lock = threading.Lock()
        self._installations: tuple[ToolInstallation, ...] = ()
        self.replace_all(installations)

    def list(self) -> tuple[ToolInstallation, ...]:
        """Get the current snapshot of installations."""
        return self._installations

    def find_by_name(self, name: str | None) -> ToolInstallation | None:
        """Look up an installation by exact name."""
        if not name:
            return None
        for installation in self._installations:
            if installation.name == name:
                return installation
        return None

    def replace_all(self, installations: Iterable[ToolInstallation]) -> None:
        """Validate installations and make them the visible snapshot.

        Entries whose name is blank are dropped.

        Raises:
            ConfigureError: If two entries share a name. The previous
                snapshot stays visible in that case.
        """
        accepted: list[ToolInstallation] = []
        seen: set[str] = set()
        for installation in installations:
            if not installation.name:
                logger.warning(
                    "Dropping installation with empty name (home=%r)",
                    installation.home,
                )
                continue
            if installation.name in seen:
                raise ConfigureError(
                    f"duplicate installation name: {installation.name}"
                )
            seen.add(installation.name)
            accepted.append(installation)

        snapshot = tuple(accepted)
        with self._lock:
            self._installations = snapshot
        logger.debug("Registry now has %d installation(s)", len(snapshot))

    @classmethod
    def load(cls, path: Path | str) -> InstallationRegistry:
        """Load a registry from a JSON file. A missing file is empty.

        Raises:
            ConfigureError: If the file cannot be read or parsed.
        """
        path = Path(path)
        if not path.exists():
            logger.debug("No registry file at %s", path)
            return cls()
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigureError(f"cannot read {path}: {e}") from e

        entries = data.get("installations", []) if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ConfigureError(f"{path}: 'installations' must be a list")
        return cls(ToolInstallation.from_dict(entry) for entry in entries)

    def save(self, path: Path | str) -> None:
        """Write the current snapshot to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"installations": [i.to_dict() for i in self._installations]}
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
            f.write("\n")

    def __iter__(self) -> Iterator[ToolInstallation]:
        return iter(self._installations)

    def __len__(self) -> int:
        return len(self._installations)

    def __repr__(self) -> str:
        names = ", ".join(i.name for i in self._installations)
        return f"InstallationRegistry([{names}])"
