"""Project path resolution.

Resolves the project root and the spec file location. Uses environment
variables when available, falls back to conventional defaults.

Environment variables:
    SCAFFOLD_PROJECT_DIR — project root (default: current directory)
    SCAFFOLD_SPEC_FILE — spec file name relative to the root (default: scaffold-specs.yaml)
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_SPEC_FILENAME = "scaffold-specs.yaml"

# Directories never walked when looking for generated files
SKIP_DIRS = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    "dist",
    "build",
})


def project_root(path: Path | str | None = None) -> Path:
    """Return the project root directory."""
    if path:
        return Path(path).expanduser().resolve()
    env = os.environ.get("SCAFFOLD_PROJECT_DIR")
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd()


def spec_path(root: Path | str) -> Path:
    """Return the path to the persisted project spec."""
    name = os.environ.get("SCAFFOLD_SPEC_FILE") or DEFAULT_SPEC_FILENAME
    return Path(root) / name


def resolve_in_project(root: Path | str, target: Path | str) -> Path:
    """Resolve a generated file path against the project root."""
    target = Path(target)
    if target.is_absolute():
        return target
    return Path(root) / target
