# tests/test_no_demoshop.py
"""Tests for the demoshop guard and its per-run memoization."""

import json
from pathlib import Path

from phpsniff_shims.checkers import CheckerContext, CheckerRunner
from phpsniff_shims.files import PhpFile
from phpsniff_shims.sniffs.no_demoshop import (
    NoDemoshopChecker,
    is_demoshop_manifest,
    manifest_path,
)

from tests.conftest import error_ids


def _project_file(tree: Path) -> Path:
    return tree / "src" / "Pyz" / "Zed" / "Project.php"


def _rename_package(tree: Path, name: str) -> None:
    (tree / "composer.json").write_text(json.dumps({"name": name}), encoding="utf-8")


class TestManifestLookup:

    def test_manifest_beside_src(self):
        assert manifest_path("/repo/src/Pyz/Foo.php") == Path("/repo/composer.json")

    def test_no_src_segment(self):
        assert manifest_path("/repo/lib/Foo.php") is None
        assert manifest_path("src/Foo.php") is None

    def test_manifest_name(self, demoshop_tree):
        assert is_demoshop_manifest(demoshop_tree / "composer.json")
        _rename_package(demoshop_tree, "spryker/suite")
        assert not is_demoshop_manifest(demoshop_tree / "composer.json")

    def test_missing_manifest(self, tmp_path):
        assert not is_demoshop_manifest(tmp_path / "composer.json")


class TestNoDemoshopChecker:

    def test_project_marker_reported(self, demoshop_tree, demoshop_checker):
        phpfile = PhpFile.from_path(_project_file(demoshop_tree))
        diags = phpfile.process([demoshop_checker])
        assert error_ids(diags) == ["InvalidContent"]
        assert diags[0].message == "No project only code should be merged into Spryker demoshop."
        assert diags[0].location.line == 6

    def test_file_without_marker(self, demoshop_tree, demoshop_checker):
        path = demoshop_tree / "src" / "Pyz" / "Zed" / "Shared.php"
        assert PhpFile.from_path(path).process([demoshop_checker]) == []

    def test_other_repository(self, demoshop_tree, demoshop_checker):
        _rename_package(demoshop_tree, "acme/shop")
        phpfile = PhpFile.from_path(_project_file(demoshop_tree))
        assert phpfile.process([demoshop_checker]) == []

    def test_lookup_memoized_within_a_run(self, demoshop_tree):
        checker = NoDemoshopChecker()
        checker.configure(CheckerContext())
        path = _project_file(demoshop_tree)

        assert error_ids(PhpFile.from_path(path).process([checker])) == ["InvalidContent"]
        _rename_package(demoshop_tree, "acme/shop")
        assert error_ids(PhpFile.from_path(path).process([checker])) == ["InvalidContent"]

    def test_lookup_not_shared_between_runs(self, demoshop_tree):
        runner = CheckerRunner(exclude=["*/Shared.php"])
        first = runner.run([demoshop_tree / "src"], checkers=["no-demoshop"])
        assert error_ids(first.diagnostics) == ["InvalidContent"]

        _rename_package(demoshop_tree, "acme/shop")
        second = runner.run([demoshop_tree / "src"], checkers=["no-demoshop"])
        assert second.diagnostics == []
