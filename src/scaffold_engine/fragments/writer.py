"""Apply a fragment batch to one file on disk.

A file is read once, merged entirely in memory, and written back with a
single atomic replace. Any error is raised before the write, so a file is
either fully updated or left exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from scaffold_engine.atomic import atomic_write_text
from scaffold_engine.errors import AnchorNotFoundError, MalformedMarkersError
from scaffold_engine.fragments.markers import comment_style
from scaffold_engine.fragments.merge import CodeFragment, FragmentChange, merge_fragments
from scaffold_engine.fragments.registry import scan, split_lines

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
UNCHANGED = "unchanged"


@dataclass
class WriteResult:
    """Outcome of writing fragments into a single file."""

    path: Path
    action: str
    changes: list[FragmentChange] = field(default_factory=list)
    dry_run: bool = False

    @property
    def written(self) -> bool:
        return self.action != UNCHANGED and not self.dry_run


def read_text_lines(path: Path) -> tuple[list[str], str]:
    """Read a file as lines plus the line ending to use for new lines.

    Lines keep their own "\\r" when CRLF-terminated, so untouched lines are
    written back byte for byte. The returned eol is "\\r" when the file's
    first line ends in CRLF, else "".
    """
    with open(path, encoding="utf-8", newline="") as f:
        text = f.read()
    lines = split_lines(text)
    eol = "\r" if lines and lines[0].endswith("\r") else ""
    return lines, eol


def render_lines(lines: list[str]) -> str:
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def write_fragments(
    path: Path | str,
    fragments: list[CodeFragment],
    dry_run: bool = False,
) -> WriteResult:
    """Insert, update or retract fragments in a file.

    Args:
        path: Target file. A missing file is treated as empty and created.
        fragments: Desired fragments, applied in order.
        dry_run: Compute the outcome without writing.

    Returns:
        WriteResult whose action is "created", "updated" or "unchanged".

    Raises:
        MalformedMarkersError: If the file's markers are inconsistent.
        AnchorNotFoundError: If a placement anchor is missing at batch end.
    """
    file_path = Path(path)
    existed = file_path.is_file()
    if existed:
        lines, eol = read_text_lines(file_path)
    else:
        lines, eol = [], ""

    try:
        spans = scan(lines)
        outcome = merge_fragments(lines, fragments, spans, comment_style(file_path), eol)
    except (MalformedMarkersError, AnchorNotFoundError) as e:
        raise e.with_path(file_path) from e

    if not outcome.changed:
        logger.debug("No fragment changes for %s, skipping write", file_path)
        return WriteResult(file_path, UNCHANGED, outcome.changes, dry_run)

    action = UPDATED if existed else CREATED
    if dry_run:
        logger.info("[dry run] Would %s %s", "update" if existed else "create", file_path)
    else:
        atomic_write_text(file_path, render_lines(outcome.lines))
        logger.info("%s %s (%s)", action.capitalize(), file_path, _summarize(outcome.changes))
    return WriteResult(file_path, action, outcome.changes, dry_run)


def _summarize(changes: list[FragmentChange]) -> str:
    return ", ".join(f"{c.name}: {c.action}" for c in changes if c.modified)
