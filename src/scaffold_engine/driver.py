"""Generator run — the state one sub-generator invocation works against.

A run loads the project spec once, hands each sub-generator its namespace,
scans generated files for fragment markers once, and writes fragment
batches file by file. The spec is threaded through the run explicitly and
persisted only when the run finishes.

Typical use from a sub-generator:

    run = GeneratorRun(project_dir)
    app = run.init_specs("app")
    answers = ...  # prompt for what plan_fields() says is missing
    run.update_specs("app", resolve_fields(APP_FIELDS, app, answers))
    run.refresh_code_fragments()
    report = run.write_all({"src/app.js": [CodeFragment("routes", body)]})
    run.finish()
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from scaffold_engine.errors import AnchorNotFoundError, MalformedMarkersError
from scaffold_engine.fragments.merge import CodeFragment
from scaffold_engine.fragments.registry import FragmentSnapshot, refresh_code_fragments
from scaffold_engine.fragments.writer import CREATED, UPDATED, WriteResult, write_fragments
from scaffold_engine.paths import project_root, resolve_in_project
from scaffold_engine.specs.store import (
    ProjectSpec,
    get_namespace,
    load_specs,
    merge_namespace,
    save_specs,
    spec_conflicts,
)

logger = logging.getLogger(__name__)

ConfirmOverwrite = Callable[[str, str, Any, Any], bool]


@dataclass
class RunReport:
    """Per-file results of writing a fragment plan."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)
    results: list[WriteResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        lines = [
            f"  Created:   {len(self.created)}",
            f"  Updated:   {len(self.updated)}",
            f"  Unchanged: {len(self.unchanged)}",
        ]
        if self.errors:
            lines.append(f"  Errors:    {len(self.errors)}")
            for e in self.errors:
                lines.append(f"    - {e['path']}: {e['error']}")
        return "\n".join(lines)


class GeneratorRun:
    """One invocation of a sub-generator against a project directory."""

    def __init__(self, root: Path | str | None = None):
        self.root = project_root(root)
        # Raises CorruptSpecError before anything is written
        self.spec: ProjectSpec = load_specs(self.root)
        self._loaded: ProjectSpec = copy.deepcopy(self.spec)
        self.fragments: FragmentSnapshot | None = None

    @property
    def spec_dirty(self) -> bool:
        return self.spec != self._loaded

    def init_specs(self, namespace: str) -> dict[str, Any]:
        """Make sure a namespace exists and return a copy of its options."""
        if get_namespace(self.spec, namespace) is None:
            self.spec = merge_namespace(self.spec, namespace, {})
        return copy.deepcopy(self.spec[namespace])

    def update_specs(
        self,
        namespace: str,
        updates: dict[str, Any],
        confirm: ConfirmOverwrite | None = None,
    ) -> dict[str, Any]:
        """Record answers for a namespace.

        Keys that already hold a different value are only overwritten when
        ``confirm(namespace, key, old, new)`` returns True; otherwise the
        recorded value is kept.

        Returns:
            The namespace's options after the update.
        """
        accepted = dict(updates)
        for key, (old, new) in spec_conflicts(self.spec, namespace, updates).items():
            if confirm is not None and confirm(namespace, key, old, new):
                logger.info("%s.%s: %r -> %r (confirmed)", namespace, key, old, new)
                continue
            logger.warning("%s.%s: keeping recorded value %r (not %r)", namespace, key, old, new)
            del accepted[key]
        self.spec = merge_namespace(self.spec, namespace, accepted)
        return copy.deepcopy(self.spec[namespace])

    def refresh_code_fragments(self, paths: list[Path | str] | None = None) -> FragmentSnapshot:
        """Scan generated files for fragment markers (once per run)."""
        self.fragments = refresh_code_fragments(self.root, paths)
        return self.fragments

    def write_fragments(
        self,
        file: Path | str,
        fragments: list[CodeFragment],
        dry_run: bool = False,
    ) -> WriteResult:
        """Write one file's fragment batch.

        Raises:
            MalformedMarkersError: If the file's markers are inconsistent.
            AnchorNotFoundError: If an anchor is still missing at batch end.
        """
        path = resolve_in_project(self.root, file)
        if self.fragments is not None:
            known = self.fragments.error_for(path)
            if known is not None:
                raise known
        result = write_fragments(path, fragments, dry_run=dry_run)
        if self.fragments is not None and result.written:
            self.fragments.refresh(path)
        return result

    def write_all(
        self,
        plan: dict[str, list[CodeFragment]],
        dry_run: bool = False,
    ) -> RunReport:
        """Write every file in a plan, one at a time.

        A marker or anchor problem, an undecodable file, an invalid batch
        or an I/O error aborts only the affected file; the remaining files
        are still processed and the error is reported.
        """
        report = RunReport(dry_run=dry_run)
        for file, fragments in plan.items():
            path = resolve_in_project(self.root, file)
            try:
                result = self.write_fragments(path, fragments, dry_run=dry_run)
            except (
                MalformedMarkersError,
                AnchorNotFoundError,
                UnicodeDecodeError,
                ValueError,
                OSError,
            ) as e:
                logger.error("%s: %s", path, e)
                report.errors.append({"path": str(path), "error": str(e)})
                continue
            report.results.append(result)
            if result.action == CREATED:
                report.created.append(str(path))
            elif result.action == UPDATED:
                report.updated.append(str(path))
            else:
                report.unchanged.append(str(path))
        return report

    def finish(self) -> bool:
        """Persist the spec if this run changed it. Returns True if saved."""
        if not self.spec_dirty:
            logger.debug("Spec unchanged, not saving")
            return False
        save_specs(self.root, self.spec)
        self._loaded = copy.deepcopy(self.spec)
        return True
