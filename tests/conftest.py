# tests/conftest.py
"""Shared helpers and fixtures for the phpsniff-shims test-suite."""

import json
import textwrap
from pathlib import Path
from typing import List, Sequence

import pytest

from phpsniff_shims.checkers import Checker
from phpsniff_shims.diagnostics import Diagnostic
from phpsniff_shims.files import PhpFile
from phpsniff_shims.sniffs import (
    ConditionalExpressionOrderChecker,
    DocBlockReturnNullableTypeChecker,
    NoDemoshopChecker,
)


def php(source: str) -> str:
    """Dedent a triple-quoted PHP snippet and drop the leading newline."""
    return textwrap.dedent(source).lstrip("\n")


def run_sniff(checkers, source: str, path: str = "Foo.php") -> List[Diagnostic]:
    """Report-only run of *checkers* (one or many) over *source*."""
    if isinstance(checkers, Checker):
        checkers = [checkers]
    return PhpFile(path, source).process(checkers)


def fix_sniff(checkers, source: str, path: str = "Foo.php") -> str:
    """Fix *source* with *checkers* and return the fixed content."""
    if isinstance(checkers, Checker):
        checkers = [checkers]
    return PhpFile(path, source).fix(checkers)


def error_ids(diagnostics: Sequence[Diagnostic]) -> List[str]:
    return [d.error_id for d in diagnostics]


def method_source(annotation: str, hint: str) -> str:
    """A class with one method documented by ``@return <annotation>``."""
    return php(f"""
        <?php

        class Repository
        {{
            /**
             * Finds the thing.
             *
             * @return {annotation}
             */
            public function find(){hint}
            {{
                return null;
            }}
        }}
    """)


@pytest.fixture
def nullable_checker():
    return DocBlockReturnNullableTypeChecker()


@pytest.fixture
def yoda_checker():
    return ConditionalExpressionOrderChecker()


@pytest.fixture
def demoshop_checker():
    return NoDemoshopChecker()


@pytest.fixture
def demoshop_tree(tmp_path: Path) -> Path:
    """A demoshop checkout with one project-only file under src/."""
    (tmp_path / "composer.json").write_text(
        json.dumps({"name": "spryker/demoshop"}, indent=4), encoding="utf-8"
    )
    src = tmp_path / "src" / "Pyz" / "Zed"
    src.mkdir(parents=True)
    (src / "Project.php").write_text(php("""
        <?php

        /**
         * @project Only used by this project
         */
        namespace Pyz\\Zed;

        class Project
        {
        }
    """), encoding="utf-8")
    (src / "Shared.php").write_text(php("""
        <?php

        namespace Pyz\\Zed;

        class Shared
        {
        }
    """), encoding="utf-8")
    return tmp_path
