"""Locate the yt-dlp executable on disk."""

from __future__ import annotations

import logging
import os
import shutil
import sysconfig
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import AppConfig
from .errors import ToolNotFoundError

logger = logging.getLogger(__name__)

MAX_SYMLINK_HOPS = 32
SYSTEM_BIN_DIRS = ("/opt/homebrew/bin", "/usr/local/bin", "/usr/bin")


@dataclass(frozen=True)
class ExecutableLocation:
    """A path that pointed at an existing, executable, non-symlink file when resolved."""

    path: str
    candidate: str

    def __str__(self) -> str:
        return self.path


def resolve_symlinks(path: str, *, max_hops: int = MAX_SYMLINK_HOPS) -> Optional[str]:
    """Follow a symlink chain to its final file and confirm it is executable.

    Relative link targets are resolved against the directory holding the
    link. Returns None when a hop points nowhere, when the chain needs more
    than ``max_hops`` links (cycles included) or when the final file cannot
    be executed.
    """
    current = path
    hops = 0
    while True:
        if not os.path.lexists(current):
            return None
        if not os.path.islink(current):
            break
        if hops >= max_hops:
            logger.warning("Gave up resolving %s after %d symlink hops", path, hops)
            return None
        try:
            target = os.readlink(current)
        except OSError as exc:
            logger.debug("Cannot read symlink %s: %s", current, exc)
            return None
        if not os.path.isabs(target):
            target = os.path.join(os.path.dirname(current), target)
        current = os.path.normpath(target)
        hops += 1

    if not os.path.isfile(current) or not os.access(current, os.X_OK):
        logger.info("Found %s but it is not an executable file", current)
        return None
    return current


def bundled_candidates(tool_name: str) -> List[Path]:
    """Console-script copies installed alongside this interpreter by the yt-dlp package."""
    scripts_dir = sysconfig.get_path("scripts")
    return [Path(scripts_dir) / tool_name] if scripts_dir else []


class ExecutableResolver:
    """Search the fixed candidate list for a usable yt-dlp binary.

    Nothing is cached: installation state can change while the process runs,
    so every call walks the list again.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        search_paths: Optional[Sequence[Path]] = None,
        use_path_lookup: bool = True,
    ) -> None:
        self.tool_name = config.tool_name
        self.install_path = config.install_path
        self._search_paths = list(search_paths) if search_paths is not None else None
        self.use_path_lookup = use_path_lookup

    def candidate_paths(self) -> List[Path]:
        if self._search_paths is not None:
            return list(self._search_paths)
        candidates = bundled_candidates(self.tool_name)
        candidates.extend(Path(directory) / self.tool_name for directory in SYSTEM_BIN_DIRS)
        candidates.append(Path.home() / ".local" / "bin" / self.tool_name)
        candidates.append(self.install_path)
        return candidates

    def locate(self) -> Optional[ExecutableLocation]:
        location = self._first_resolved(self.candidate_paths())
        if location is not None:
            return location
        if self.use_path_lookup:
            found = shutil.which(self.tool_name)
            if found:
                return self._first_resolved([Path(found)])
        logger.debug("No usable %s found", self.tool_name)
        return None

    def require(self) -> ExecutableLocation:
        location = self.locate()
        if location is None:
            raise ToolNotFoundError(
                f"{self.tool_name} is not installed.",
                hint="Run `ytlive install` or install it with: brew install yt-dlp",
            )
        return location

    def _first_resolved(self, candidates: Iterable[Path]) -> Optional[ExecutableLocation]:
        for candidate in candidates:
            resolved = resolve_symlinks(str(candidate))
            if resolved is not None:
                logger.debug("Resolved %s to %s", candidate, resolved)
                return ExecutableLocation(path=resolved, candidate=str(candidate))
        return None
