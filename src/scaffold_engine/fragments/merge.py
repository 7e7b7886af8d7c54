"""Fragment merge engine.

Two passes over a file's lines:

1. ``scan`` builds the registry of existing marker spans (no mutation).
2. ``merge_fragments`` computes the new lines as a pure function of the
   original lines, that registry, and the desired fragments.

Lines outside marker pairs are never touched, an existing fragment is
updated in place, and applying the same batch twice is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from scaffold_engine.errors import AnchorNotFoundError
from scaffold_engine.fragments.markers import END, START, format_marker, parse_marker, validate_name
from scaffold_engine.fragments.registry import FragmentSpan, scan, split_lines, strip_cr

logger = logging.getLogger(__name__)

INSERTED = "inserted"
UPDATED = "updated"
UNCHANGED = "unchanged"
RETRACTED = "retracted"
ABSENT = "absent"

_MODIFYING = frozenset({INSERTED, UPDATED, RETRACTED})


class Placement(str, Enum):
    """Where a fragment goes the first time it is written."""

    APPEND = "append"
    AFTER = "after"
    BEFORE = "before"
    REPLACE = "replace"


@dataclass(frozen=True)
class CodeFragment:
    """A named block of generated lines destined for one file."""

    name: str
    body: tuple[str, ...] = ()
    placement: Placement = Placement.APPEND
    anchor: str | None = None
    retract: bool = False

    def __post_init__(self) -> None:
        validate_name(self.name)
        body = self.body
        if isinstance(body, str):
            body = split_lines(body)
        lines: list[str] = []
        for line in body:
            lines.extend(strip_cr(part) for part in split_lines(str(line)) or [""])
        for line in lines:
            if parse_marker(line) is not None:
                raise ValueError(f"Fragment '{self.name}' body contains a marker line: {line!r}")
        object.__setattr__(self, "body", tuple(lines))
        object.__setattr__(self, "placement", Placement(self.placement))

        if self.placement in (Placement.AFTER, Placement.BEFORE):
            if not self.anchor:
                raise ValueError(f"Fragment '{self.name}': {self.placement.value} needs an anchor")
            validate_name(self.anchor)
            if self.anchor == self.name:
                raise ValueError(f"Fragment '{self.name}' can not anchor on itself")

    @property
    def required_marker(self) -> str | None:
        """Marker that must exist before this fragment can be placed, if any."""
        if self.placement in (Placement.AFTER, Placement.BEFORE):
            return self.anchor
        if self.placement == Placement.REPLACE:
            return self.name
        return None


@dataclass(frozen=True)
class FragmentChange:
    name: str
    action: str

    @property
    def modified(self) -> bool:
        return self.action in _MODIFYING


@dataclass
class MergeOutcome:
    """New file lines plus what happened to each fragment."""

    lines: list[str]
    changes: list[FragmentChange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(c.modified for c in self.changes)

    def action_for(self, name: str) -> str | None:
        for c in self.changes:
            if c.name == name:
                return c.action
        return None


def merge_fragments(
    lines: list[str],
    fragments: list[CodeFragment],
    spans: dict[str, FragmentSpan] | None = None,
    style: tuple[str, str] = ("#", ""),
    eol: str = "",
) -> MergeOutcome:
    """Reconcile desired fragments against a file's current lines.

    Fragments are applied in the order given. One whose anchor (or, for
    REPLACE, its own marker) is missing is deferred and retried in a further
    pass after the rest of the batch, so fragments inserted earlier in the
    batch can serve as anchors.

    Args:
        lines: Current file lines as returned by ``split_lines``.
        fragments: Desired fragments. Names must be unique within the batch.
        spans: Result of ``scan(lines)``, if already computed.
        style: Comment delimiters used for newly written markers.
        eol: "\\r" to give appended lines CRLF endings. Updated bodies and
            anchored insertions follow the neighbouring marker instead.

    Returns:
        MergeOutcome with the new lines. The input list is not mutated.

    Raises:
        MalformedMarkersError: If ``lines`` has inconsistent markers.
        AnchorNotFoundError: If a fragment still cannot be placed at batch end.
        ValueError: If a fragment name repeats within the batch.
    """
    seen: set[str] = set()
    for frag in fragments:
        if frag.name in seen:
            raise ValueError(f"Fragment '{frag.name}' appears twice in the same batch")
        seen.add(frag.name)

    work = list(lines)
    current = dict(spans) if spans is not None else scan(work)
    actions: dict[str, str] = {}

    pending = list(fragments)
    while pending:
        deferred: list[CodeFragment] = []
        for frag in pending:
            applied = _apply(work, current, frag, style, eol)
            if applied is None:
                logger.debug("Deferring '%s' until '%s' exists", frag.name, frag.required_marker)
                deferred.append(frag)
                continue
            work, action = applied
            actions[frag.name] = action
            if action in _MODIFYING:
                current = scan(work)

        if len(deferred) == len(pending):
            missing = deferred[0]
            raise AnchorNotFoundError(missing.name, missing.required_marker or missing.name)
        pending = deferred

    changes = [FragmentChange(f.name, actions[f.name]) for f in fragments]
    return MergeOutcome(lines=work, changes=changes)


def _apply(
    work: list[str],
    current: dict[str, FragmentSpan],
    frag: CodeFragment,
    style: tuple[str, str],
    eol: str,
) -> tuple[list[str], str] | None:
    span = current.get(frag.name)

    if frag.retract:
        if span is None:
            return work, ABSENT
        return work[:span.start] + work[span.end + 1:], RETRACTED

    if span is not None:
        if span.body == frag.body:
            return work, UNCHANGED
        body = [line + span.eol for line in frag.body]
        return work[:span.start + 1] + body + work[span.end:], UPDATED

    if frag.placement == Placement.REPLACE:
        return None

    if frag.placement == Placement.APPEND:
        block = _block(frag, style, "", eol)
        if work and work[-1].strip():
            block.insert(0, eol)
        return work + block, INSERTED

    anchor = current.get(frag.anchor)
    if anchor is None:
        return None
    block = _block(frag, style, anchor.indent, anchor.eol)
    at = anchor.end + 1 if frag.placement == Placement.AFTER else anchor.start
    return work[:at] + block + work[at:], INSERTED


def _block(frag: CodeFragment, style: tuple[str, str], indent: str, eol: str) -> list[str]:
    lines = [
        format_marker(START, frag.name, style, indent),
        *frag.body,
        format_marker(END, frag.name, style, indent),
    ]
    return [line + eol for line in lines]
