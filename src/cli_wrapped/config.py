"""Data source configuration and root directory lookup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Auto-detection order
DATA_SOURCES = ("opencode", "claude", "codex", "pi")

SOURCE_NAMES = {
    "opencode": "OpenCode",
    "claude": "Claude Code",
    "codex": "Codex",
    "pi": "Pi",
}

# Root directories relative to the home directory
DEFAULT_DATA_DIRS = {
    "pi": Path(".pi") / "agent" / "sessions",
    "codex": Path(".codex") / "sessions",
    "claude": Path(".claude") / "projects",
    "opencode": Path(".local") / "share" / "opencode" / "storage",
}

LOG_FILE_SUFFIX = ".jsonl"
DOCUMENT_FILE_SUFFIX = ".json"

TOP_N = 3
MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)


def validate_source(source: str) -> str:
    """Return the source unchanged, or raise ValueError if it is unknown."""
    if source not in DATA_SOURCES:
        raise ValueError(
            f"Invalid source: {source}. Use one of: {', '.join(DATA_SOURCES)}"
        )
    return source


@dataclass(frozen=True)
class DataPaths:
    """Root directory for each data source."""

    roots: dict = field(default_factory=dict)  # {source: Path}

    def get(self, source: str) -> Path:
        validate_source(source)
        return self.roots[source]

    def with_root(self, source: str, root: Path) -> DataPaths:
        """Return a copy with one source pointed at a different root."""
        validate_source(source)
        roots = dict(self.roots)
        roots[source] = Path(root).expanduser()
        return DataPaths(roots=roots)


def default_data_paths(home: Optional[Path] = None) -> DataPaths:
    """Build the conventional roots under the given (or current) home directory."""
    home = Path(home) if home is not None else Path.home()
    return DataPaths(
        roots={source: home / rel for source, rel in DEFAULT_DATA_DIRS.items()}
    )


def get_data_path(source: str, paths: Optional[DataPaths] = None) -> Path:
    """Return the root directory for a source."""
    paths = paths or default_data_paths()
    return paths.get(source)


def check_data_exists(source: str, paths: Optional[DataPaths] = None) -> bool:
    """Return True if the source root exists and can be listed."""
    root = get_data_path(source, paths)
    try:
        with os.scandir(root):
            return True
    except OSError:
        return False


def get_available_sources(paths: Optional[DataPaths] = None) -> list[str]:
    """Return the sources with a readable root, in auto-detection order."""
    paths = paths or default_data_paths()
    return [source for source in DATA_SOURCES if check_data_exists(source, paths)]
