"""Fragment registry — locate marker pairs inside generated files.

Scanning is pure: it reads text and reports where each named fragment
lives. It never edits anything, and it refuses malformed files outright
so the merge engine never has to guess where an owned region ends.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from scaffold_engine.errors import MalformedMarkersError
from scaffold_engine.fragments import FRAGMENT_END, FRAGMENT_START
from scaffold_engine.fragments.markers import END, START, leading_whitespace, parse_marker
from scaffold_engine.paths import SKIP_DIRS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FragmentSpan:
    """Location of one fragment. start/end are the marker line indexes (inclusive).

    ``body`` holds the lines between the markers without any trailing "\\r";
    ``eol`` is "\\r" when the begin marker line is CRLF-terminated.
    """

    name: str
    start: int
    end: int
    body: tuple[str, ...]
    indent: str = ""
    eol: str = ""


def split_lines(content: str | list[str] | tuple[str, ...]) -> list[str]:
    """Split text on "\\n" only.

    A "\\r" before the "\\n" stays on its line, so CRLF and LF lines are
    written back unchanged. Form feeds, U+2028 and a lone "\\r" are
    ordinary text, not line breaks.
    """
    if not isinstance(content, str):
        return list(content)
    if not content:
        return []
    lines = content.split("\n")
    if content.endswith("\n"):
        lines.pop()
    return lines


def strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def scan(content: str | list[str] | tuple[str, ...]) -> dict[str, FragmentSpan]:
    """Find every marker pair in a file's content.

    Args:
        content: File text, or its lines as returned by ``split_lines``.

    Returns:
        Mapping of fragment name -> FragmentSpan.

    Raises:
        MalformedMarkersError: On an unmatched begin or end, a begin inside
            another open fragment, an end naming a different fragment, or a
            name used by more than one marker pair.
    """
    lines = split_lines(content)
    spans: dict[str, FragmentSpan] = {}
    open_name: str | None = None
    open_line = 0

    for i, line in enumerate(lines):
        marker = parse_marker(line)
        if marker is None:
            continue
        kind, name = marker

        if kind == START:
            if open_name is not None:
                reason = (
                    "nested begin marker for the same fragment"
                    if name == open_name
                    else f"begin marker inside open fragment '{open_name}'"
                )
                raise MalformedMarkersError(reason, line=i, name=name)
            if name in spans:
                raise MalformedMarkersError(
                    f"duplicate fragment (first defined at line {spans[name].start + 1})",
                    line=i,
                    name=name,
                )
            open_name, open_line = name, i
            continue

        if open_name is None:
            raise MalformedMarkersError("end marker without a begin marker", line=i, name=name)
        if name != open_name:
            raise MalformedMarkersError(
                f"end marker does not match open fragment '{open_name}'", line=i, name=name
            )
        spans[name] = FragmentSpan(
            name=name,
            start=open_line,
            end=i,
            body=tuple(strip_cr(line) for line in lines[open_line + 1:i]),
            indent=leading_whitespace(lines[open_line]),
            eol="\r" if lines[open_line].endswith("\r") else "",
        )
        open_name = None

    if open_name is not None:
        raise MalformedMarkersError(
            "begin marker without an end marker", line=open_line, name=open_name
        )

    return spans


@dataclass
class FragmentSnapshot:
    """Fragments discovered across a project's generated files during one run."""

    root: Path
    files: dict[Path, dict[str, FragmentSpan]] = field(default_factory=dict)
    errors: dict[Path, MalformedMarkersError] = field(default_factory=dict)

    def _key(self, path: Path | str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.root / p

    def spans(self, path: Path | str) -> dict[str, FragmentSpan]:
        return self.files.get(self._key(path), {})

    def names(self, path: Path | str) -> list[str]:
        return sorted(self.spans(path))

    def has(self, path: Path | str, name: str) -> bool:
        return name in self.spans(path)

    def error_for(self, path: Path | str) -> MalformedMarkersError | None:
        return self.errors.get(self._key(path))

    def refresh(self, path: Path | str) -> None:
        """Rescan one file, e.g. after it was written."""
        key = self._key(path)
        self.files.pop(key, None)
        self.errors.pop(key, None)
        _scan_into(self, key)

    @property
    def fragment_count(self) -> int:
        return sum(len(s) for s in self.files.values())


def refresh_code_fragments(
    root: Path | str,
    paths: list[Path | str] | None = None,
) -> FragmentSnapshot:
    """Scan generated files for fragment markers.

    Args:
        root: Project root directory.
        paths: Files to scan. Defaults to every text file under root that
            contains a marker token.

    Returns:
        FragmentSnapshot. Malformed files are recorded in ``errors`` instead
        of raising, since the failure only affects that one file.
    """
    root = Path(root)
    snapshot = FragmentSnapshot(root=root)
    targets = [snapshot._key(p) for p in paths] if paths is not None else _walk(root)
    for path in targets:
        _scan_into(snapshot, path)
    logger.debug(
        "Scanned %d files under %s: %d fragments, %d malformed",
        len(targets), root, snapshot.fragment_count, len(snapshot.errors),
    )
    return snapshot


def _scan_into(snapshot: FragmentSnapshot, path: Path) -> None:
    if not path.is_file():
        return
    try:
        with open(path, encoding="utf-8", newline="") as f:
            text = f.read()
    except (UnicodeDecodeError, OSError):
        logger.debug("Skipping unreadable file %s", path)
        return
    if FRAGMENT_START not in text and FRAGMENT_END not in text:
        return
    try:
        snapshot.files[path] = scan(text)
    except MalformedMarkersError as e:
        logger.warning("%s", e.with_path(path))
        snapshot.errors[path] = e.with_path(path)


def _walk(root: Path) -> list[Path]:
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")
        )
        for name in sorted(filenames):
            found.append(Path(dirpath) / name)
    return found
