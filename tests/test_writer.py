"""Tests for writing fragment batches to files."""

import os
import stat

import pytest

from scaffold_engine.atomic import current_umask
from scaffold_engine.errors import AnchorNotFoundError, MalformedMarkersError
from scaffold_engine.fragments.merge import CodeFragment, Placement
from scaffold_engine.fragments.writer import CREATED, UNCHANGED, UPDATED, write_fragments


class TestWriteFragments:
    def test_creates_missing_file_with_file_comment_style(self, tmp_path):
        target = tmp_path / "src" / "app.js"
        result = write_fragments(target, [CodeFragment("imports", ["const x = 1;"])])
        assert result.action == CREATED
        assert result.written
        assert target.read_text() == (
            "// SCAFFOLD:FRAGMENT:START imports\n"
            "const x = 1;\n"
            "// SCAFFOLD:FRAGMENT:END imports\n"
        )

    def test_empty_file_gets_single_marker_pair(self, tmp_path):
        target = tmp_path / "main.py"
        target.write_text("")
        result = write_fragments(target, [CodeFragment("imports", ["import X"])])
        assert result.action == UPDATED
        assert target.read_text() == (
            "# SCAFFOLD:FRAGMENT:START imports\n"
            "import X\n"
            "# SCAFFOLD:FRAGMENT:END imports\n"
        )

    def test_updates_fixture_in_place(self, project):
        target = project / "src" / "app.js"
        original = target.read_text()
        result = write_fragments(
            target, [CodeFragment("routes", ["app.configure(services);", "app.configure(channels);"])],
        )
        assert result.action == UPDATED
        assert target.read_text() == original.replace(
            "app.configure(services);\n",
            "app.configure(services);\napp.configure(channels);\n",
        )

    def test_unchanged_does_not_touch_file(self, project):
        target = project / "src" / "app.js"
        before = target.stat().st_mtime_ns
        result = write_fragments(target, [CodeFragment("routes", ["app.configure(services);"])])
        assert result.action == UNCHANGED
        assert not result.written
        assert target.stat().st_mtime_ns == before

    def test_unchanged_keeps_missing_trailing_newline(self, tmp_path):
        target = tmp_path / "a.py"
        target.write_text("# SCAFFOLD:FRAGMENT:START a\nx\n# SCAFFOLD:FRAGMENT:END a")
        assert write_fragments(target, [CodeFragment("a", ["x"])]).action == UNCHANGED
        assert target.read_text().endswith("END a")

    def test_repeated_writes_are_byte_identical(self, project):
        target = project / "src" / "app.js"
        batch = [
            CodeFragment("routes", ["app.configure(services);", "app.configure(channels);"]),
            CodeFragment("hooks", ["app.hooks(appHooks);"], Placement.AFTER, anchor="routes"),
        ]
        write_fragments(target, batch)
        first = target.read_bytes()
        assert write_fragments(target, batch).action == UNCHANGED
        assert target.read_bytes() == first

    def test_preserves_crlf_line_endings(self, tmp_path):
        target = tmp_path / "app.js"
        target.write_bytes(b"const a = 1;\r\n")
        write_fragments(target, [CodeFragment("b", ["const b = 2;"])])
        data = target.read_bytes()
        assert b"\r\n" in data
        assert b"\n" not in data.replace(b"\r\n", b"")

    def test_dry_run_does_not_write(self, tmp_path):
        target = tmp_path / "app.js"
        result = write_fragments(target, [CodeFragment("a", ["x"])], dry_run=True)
        assert result.action == CREATED
        assert not result.written
        assert not target.exists()

    def test_malformed_file_is_left_alone(self, project):
        target = project / "src" / "broken.py"
        original = target.read_text()
        with pytest.raises(MalformedMarkersError) as exc_info:
            write_fragments(target, [CodeFragment("other", ["x"])])
        assert exc_info.value.path == target
        assert str(target) in str(exc_info.value)
        assert target.read_text() == original

    def test_missing_anchor_writes_nothing(self, project):
        target = project / "src" / "app.js"
        original = target.read_text()
        batch = [
            CodeFragment("routes", ["changed"]),
            CodeFragment("hooks", ["x"], Placement.AFTER, anchor="setup"),
        ]
        with pytest.raises(AnchorNotFoundError) as exc_info:
            write_fragments(target, batch)
        assert exc_info.value.path == target
        assert target.read_text() == original

    def test_retract_removes_fragment(self, project):
        target = project / "src" / "app.js"
        write_fragments(target, [CodeFragment("imports", retract=True)])
        text = target.read_text()
        assert "imports" not in text
        assert "const services" not in text
        assert "app.use(helmet());" in text


class TestLineEndings:
    def test_form_feed_and_unicode_separators_are_not_line_breaks(self, tmp_path):
        original = b"import os\n\x0c\ndef f():\n    return 'a\xe2\x80\xa8b'\n"
        target = tmp_path / "main.py"
        target.write_bytes(original)
        write_fragments(target, [CodeFragment("tail", ["x = 1"])])
        assert target.read_bytes() == original + (
            b"\n"
            b"# SCAFFOLD:FRAGMENT:START tail\n"
            b"x = 1\n"
            b"# SCAFFOLD:FRAGMENT:END tail\n"
        )

    def test_mixed_line_endings_are_kept_per_line(self, tmp_path):
        target = tmp_path / "app.js"
        target.write_bytes(b"a();\r\nb();\n")
        write_fragments(target, [CodeFragment("tail", ["c();"])])
        assert target.read_bytes() == (
            b"a();\r\nb();\n"
            b"\r\n"
            b"// SCAFFOLD:FRAGMENT:START tail\r\n"
            b"c();\r\n"
            b"// SCAFFOLD:FRAGMENT:END tail\r\n"
        )

    def test_crlf_fragment_update_is_idempotent(self, tmp_path):
        target = tmp_path / "app.js"
        target.write_bytes(
            b"x();\n"
            b"// SCAFFOLD:FRAGMENT:START r\r\n"
            b"old();\r\n"
            b"// SCAFFOLD:FRAGMENT:END r\r\n"
        )
        batch = [CodeFragment("r", ["new();"])]
        assert write_fragments(target, batch).action == UPDATED
        assert target.read_bytes() == (
            b"x();\n"
            b"// SCAFFOLD:FRAGMENT:START r\r\n"
            b"new();\r\n"
            b"// SCAFFOLD:FRAGMENT:END r\r\n"
        )
        assert write_fragments(target, batch).action == UNCHANGED


@pytest.mark.skipif(os.name == "nt", reason="POSIX file modes")
class TestFileMode:
    def test_existing_mode_is_preserved(self, tmp_path):
        target = tmp_path / "run.sh"
        target.write_text("#!/bin/sh\necho hi\n")
        target.chmod(0o755)
        assert write_fragments(target, [CodeFragment("env", ["export A=1"])]).action == UPDATED
        assert stat.S_IMODE(target.stat().st_mode) == 0o755

    def test_new_file_follows_umask(self, tmp_path):
        target = tmp_path / "new.js"
        write_fragments(target, [CodeFragment("a", ["b();"])])
        assert stat.S_IMODE(target.stat().st_mode) == 0o666 & ~current_umask()
