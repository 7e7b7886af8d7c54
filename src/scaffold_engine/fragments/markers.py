"""Marker line syntax: formatting per file type, and recognition."""

from __future__ import annotations

import re
from pathlib import Path

from scaffold_engine.fragments import FRAGMENT_END, FRAGMENT_START

START = "start"
END = "end"

NAME_PATTERN = r"[A-Za-z0-9_.:/-]+"

# (open, close) comment delimiters by file suffix
_HASH = ("#", "")
_SLASH = ("//", "")
_BLOCK = ("/*", "*/")
_HTML = ("<!--", "-->")
_DASH = ("--", "")

COMMENT_STYLES: dict[str, tuple[str, str]] = {
    ".py": _HASH, ".sh": _HASH, ".bash": _HASH, ".rb": _HASH,
    ".yml": _HASH, ".yaml": _HASH, ".toml": _HASH, ".cfg": _HASH,
    ".ini": _HASH, ".env": _HASH, ".conf": _HASH,
    ".js": _SLASH, ".mjs": _SLASH, ".cjs": _SLASH, ".jsx": _SLASH,
    ".ts": _SLASH, ".tsx": _SLASH, ".go": _SLASH, ".java": _SLASH,
    ".kt": _SLASH, ".c": _SLASH, ".h": _SLASH, ".cpp": _SLASH,
    ".hpp": _SLASH, ".cs": _SLASH, ".rs": _SLASH, ".swift": _SLASH,
    ".css": _BLOCK, ".scss": _BLOCK, ".less": _BLOCK,
    ".html": _HTML, ".htm": _HTML, ".md": _HTML, ".xml": _HTML,
    ".vue": _HTML, ".svg": _HTML,
    ".sql": _DASH, ".lua": _DASH,
}

# Files identified by name rather than suffix
_NAMED_STYLES: dict[str, tuple[str, str]] = {
    "Dockerfile": _HASH,
    "Makefile": _HASH,
    ".gitignore": _HASH,
    ".dockerignore": _HASH,
}

_OPENERS = sorted({s[0] for s in COMMENT_STYLES.values()}, key=len, reverse=True)
_CLOSERS = sorted({s[1] for s in COMMENT_STYLES.values() if s[1]}, key=len, reverse=True)

_MARKER_RE = re.compile(
    r"^\s*(?:" + "|".join(re.escape(o) for o in _OPENERS) + r")?\s*"
    + r"(?P<token>" + re.escape(FRAGMENT_START) + "|" + re.escape(FRAGMENT_END) + r")"
    + r"\s+(?P<name>" + NAME_PATTERN + r")\s*"
    + r"(?:" + "|".join(re.escape(c) for c in _CLOSERS) + r")?\s*$"
)
_NAME_RE = re.compile(r"^" + NAME_PATTERN + r"$")


def comment_style(path: Path | str | None) -> tuple[str, str]:
    """Return the (open, close) comment delimiters for a target file."""
    if path is None:
        return _HASH
    p = Path(path)
    if p.name in _NAMED_STYLES:
        return _NAMED_STYLES[p.name]
    return COMMENT_STYLES.get(p.suffix.lower(), _HASH)


def validate_name(name: str) -> str:
    """Return name unchanged, or raise ValueError if it cannot appear in a marker."""
    if not _NAME_RE.match(name or ""):
        raise ValueError(f"Invalid fragment name {name!r} (allowed: {NAME_PATTERN})")
    return name


def format_marker(kind: str, name: str, style: tuple[str, str], indent: str = "") -> str:
    """Render a begin or end marker line."""
    token = FRAGMENT_START if kind == START else FRAGMENT_END
    opener, closer = style
    line = f"{indent}{opener} {token} {name}"
    if closer:
        line += f" {closer}"
    return line


def parse_marker(line: str) -> tuple[str, str] | None:
    """Recognise a marker line.

    Returns:
        (kind, name) where kind is START or END, or None for ordinary lines.
    """
    if FRAGMENT_START not in line and FRAGMENT_END not in line:
        return None
    m = _MARKER_RE.match(line)
    if not m:
        return None
    kind = START if m.group("token") == FRAGMENT_START else END
    return kind, m.group("name")


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]
