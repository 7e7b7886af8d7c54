"""Atomic text writes: temp file in the target directory, then rename."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, content: str) -> None:
    """Write content to path so readers never observe a partial file.

    Args:
        path: Target file. Parent directories are created.
        content: Full text to write, written verbatim (no newline translation).
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)

    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        # mkstemp creates 0600; the target keeps the mode it had (or would get)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        logger.error("Failed to write %s", path)
        raise
    logger.debug("Wrote %s", path)


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~current_umask()


def current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask
