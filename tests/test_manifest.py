"""Tests for fragment manifest parsing."""

from pathlib import Path

import pytest

from scaffold_engine.errors import ManifestError
from scaffold_engine.fragments.manifest import parse_manifest, read_manifest
from scaffold_engine.fragments.merge import Placement

FIXTURES = Path(__file__).parent / "fixtures"


class TestReadManifest:
    def test_reads_fixture(self):
        plan = read_manifest(FIXTURES / "manifest.yaml")
        assert list(plan) == ["src/app.js", "src/index.js"]
        routes, hooks = plan["src/app.js"]
        assert routes.body == ("app.configure(services);", "app.configure(channels);")
        assert routes.placement is Placement.APPEND
        assert hooks.placement is Placement.AFTER
        assert hooks.anchor == "routes"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_manifest(tmp_path / "nope.yaml")

    def test_bad_yaml_mentions_path(self, tmp_path):
        path = tmp_path / "m.yaml"
        path.write_text("files: [oops\n")
        with pytest.raises(ManifestError, match="m.yaml"):
            read_manifest(path)


class TestParseManifest:
    def test_placements(self):
        plan = parse_manifest({"files": {"a.py": [
            {"name": "one", "before": "two", "body": "x"},
            {"name": "two", "replace": True, "body": ["y"]},
            {"name": "three", "retract": True},
        ]}})
        one, two, three = plan["a.py"]
        assert one.placement is Placement.BEFORE and one.anchor == "two"
        assert two.placement is Placement.REPLACE
        assert three.retract

    @pytest.mark.parametrize("data", [
        None,
        {"files": []},
        {"files": {"a.py": {"name": "x"}}},
        {"files": {"a.py": [{"body": "x"}]}},
        {"files": {"a.py": [{"name": "x", "after": "y", "before": "z"}]}},
        {"files": {"a.py": [{"name": "x", "body": 42}]}},
        {"files": {"a.py": [{"name": "bad name"}]}},
    ])
    def test_rejects_bad_layout(self, data):
        with pytest.raises(ManifestError):
            parse_manifest(data)

    def test_rejects_fragment_listed_twice_for_one_file(self):
        data = {"files": {"a.js": [{"name": "r", "body": "x"}, {"name": "r", "body": "y"}]}}
        with pytest.raises(ManifestError, match="listed twice"):
            parse_manifest(data)

    def test_same_name_in_different_files(self):
        plan = parse_manifest({"files": {"a.js": [{"name": "r"}], "b.js": [{"name": "r"}]}})
        assert sorted(plan) == ["a.js", "b.js"]
