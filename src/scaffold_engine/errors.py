"""Error taxonomy shared by the spec store, fragment engine and driver."""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for every error surfaced to the operator."""


class CorruptSpecError(ScaffoldError):
    """The persisted project spec cannot be parsed. Aborts the whole run."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Corrupt spec file {self.path}: {reason}")


class MalformedMarkersError(ScaffoldError):
    """Fragment markers in a file are unbalanced, nested or duplicated."""

    def __init__(
        self,
        reason: str,
        line: int | None = None,
        name: str | None = None,
        path: Path | str | None = None,
    ):
        self.reason = reason
        self.line = line
        self.name = name
        self.path = Path(path) if path else None
        super().__init__(self._format())

    def _format(self) -> str:
        where = str(self.path) if self.path else "<content>"
        if self.line is not None:
            where += f":{self.line + 1}"
        msg = f"Malformed fragment markers in {where}: {self.reason}"
        if self.name:
            msg += f" (fragment '{self.name}')"
        return msg

    def with_path(self, path: Path | str) -> MalformedMarkersError:
        return MalformedMarkersError(self.reason, self.line, self.name, path)


class AnchorNotFoundError(ScaffoldError):
    """A fragment's placement references a marker that does not exist."""

    def __init__(self, fragment: str, anchor: str, path: Path | str | None = None):
        self.fragment = fragment
        self.anchor = anchor
        self.path = Path(path) if path else None
        where = f" in {self.path}" if self.path else ""
        super().__init__(
            f"Fragment '{fragment}' needs anchor '{anchor}' which was not found{where}"
        )

    def with_path(self, path: Path | str) -> AnchorNotFoundError:
        return AnchorNotFoundError(self.fragment, self.anchor, path)


class FieldValidationError(ScaffoldError):
    """An answer for a spec field was rejected."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ManifestError(ScaffoldError):
    """A fragment manifest does not follow the expected layout."""
