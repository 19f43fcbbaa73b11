"""Centralized path management for beanbill.

This module provides a single source of truth for the working directories
used by the CLI: user settings, the column-mapping cache, upload history and
generated ledger files.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_project_root() -> Path:
    """Determine the working root (BEANBILL_HOME or the current directory)."""
    home = os.environ.get("BEANBILL_HOME")
    if home:
        return Path(home).expanduser()
    return Path.cwd()


@dataclass
class ProjectPaths:
    """Container for all beanbill working paths.

    All paths are computed relative to the root so that every module agrees
    on where settings, caches and outputs live.
    """

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    # --- Configuration paths ---
    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def settings(self) -> Path:
        """User settings TOML file (rules, budgets, account mapping, services)."""
        return self.config / "settings.toml"

    # --- Cache paths ---
    @property
    def cache(self) -> Path:
        """Cache directory (.cache/)."""
        return self.root / ".cache"

    @property
    def column_mappings(self) -> Path:
        """Persisted column-mapping cache (JSON)."""
        return self.cache / "column_mappings.json"

    # --- History/output paths ---
    @property
    def history(self) -> Path:
        """Previously accepted bills, used as deduplication history."""
        return self.root / "history" / "bills.json"

    @property
    def output(self) -> Path:
        """Directory for generated beancount files."""
        return self.root / "records"

    def ensure_directories(self) -> None:
        """Create the writable directories if they don't exist."""
        self.cache.mkdir(parents=True, exist_ok=True)
        self.history.parent.mkdir(parents=True, exist_ok=True)
        self.output.mkdir(parents=True, exist_ok=True)


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def set_project_root(root: Path) -> ProjectPaths:
    """Point the singleton at a different root (e.g. from a CLI flag)."""
    global _paths
    _paths = ProjectPaths(root=root)
    return _paths
