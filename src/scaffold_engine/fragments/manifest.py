"""Parse fragment manifests (YAML) into per-file fragment batches."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from scaffold_engine.errors import ManifestError
from scaffold_engine.fragments.merge import CodeFragment, Placement

_PLACEMENT_KEYS = ("after", "before", "replace", "retract")


def read_manifest(path: Path | str) -> dict[str, list[CodeFragment]]:
    """Read and parse a fragment manifest file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ManifestError: If the YAML is malformed or does not follow the layout.
    """
    manifest_path = Path(path)
    with open(manifest_path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ManifestError(f"{manifest_path}: {e}") from e
    try:
        return parse_manifest(data)
    except ManifestError as e:
        raise ManifestError(f"{manifest_path}: {e}") from e


def parse_manifest(data: Any) -> dict[str, list[CodeFragment]]:
    """Turn a loaded manifest document into {file: [CodeFragment, ...]}."""
    if not isinstance(data, dict) or not isinstance(data.get("files"), dict):
        raise ManifestError("expected a mapping with a 'files' mapping")

    plan: dict[str, list[CodeFragment]] = {}
    for target, entries in data["files"].items():
        if not isinstance(entries, list):
            raise ManifestError(f"'{target}': expected a list of fragments")
        fragments = [_parse_entry(target, entry) for entry in entries]
        seen: set[str] = set()
        for frag in fragments:
            if frag.name in seen:
                raise ManifestError(f"'{target}': fragment '{frag.name}' is listed twice")
            seen.add(frag.name)
        plan[str(target)] = fragments
    return plan


def _parse_entry(target: str, entry: Any) -> CodeFragment:
    if not isinstance(entry, dict) or "name" not in entry:
        raise ManifestError(f"'{target}': every fragment needs a 'name'")
    name = str(entry["name"])

    given = [k for k in _PLACEMENT_KEYS if entry.get(k)]
    if len(given) > 1:
        raise ManifestError(f"'{target}' fragment '{name}': pick one of {', '.join(given)}")

    body = entry.get("body") or []
    if not isinstance(body, (str, list)):
        raise ManifestError(f"'{target}' fragment '{name}': body must be a string or a list")

    kwargs: dict[str, Any] = {"body": body}
    if entry.get("after"):
        kwargs.update(placement=Placement.AFTER, anchor=str(entry["after"]))
    elif entry.get("before"):
        kwargs.update(placement=Placement.BEFORE, anchor=str(entry["before"]))
    elif entry.get("replace"):
        kwargs["placement"] = Placement.REPLACE
    elif entry.get("retract"):
        kwargs["retract"] = True

    try:
        return CodeFragment(name, **kwargs)
    except ValueError as e:
        raise ManifestError(f"'{target}': {e}") from e
