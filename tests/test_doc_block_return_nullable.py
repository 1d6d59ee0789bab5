# tests/test_doc_block_return_nullable.py
"""
Tests for the doc-block-return-nullable sniff: locating the doc block and
its @return annotation, parsing the type list, the two nullability
checks, the rewrites and the fix-time failure path.
"""

import pytest

import phpsniff_shims.sniffs.doc_block_return_nullable as nullable_mod
from phpsniff_shims.errors import InternalError, PhpSniffErrorCodes
from phpsniff_shims.files import PhpFile
from phpsniff_shims.sniffs.doc_block_return_nullable import (
    DocBlockReturnNullableTypeChecker,
    Outcome,
    add_null,
    find_doc_block,
    find_return_tag,
    find_type_list_token,
    parse_type_list,
    remove_null,
)
from phpsniff_shims.tokens import TokenKind, tokenize

from tests.conftest import error_ids, fix_sniff, method_source, php, run_sniff


def _function_ptr(phpfile: PhpFile) -> int:
    return phpfile.tokens.find_next(TokenKind.FUNCTION, 0)


class TestParseTypeList:

    @pytest.mark.parametrize("raw, expected", [
        ("Foo", ["Foo"]),
        ("Foo|null", ["Foo", "null"]),
        ("Foo|Bar|null Some description", ["Foo", "Bar", "null"]),
        ("@return Foo|null", ["Foo", "null"]),
        ("  \\App\\Foo[]|null", ["\\App\\Foo[]", "null"]),
        ("null|Foo|null", ["null", "Foo", "null"]),
        ("|Foo|", ["", "Foo", ""]),
    ])
    def test_splits_leading_run(self, raw, expected):
        assert parse_type_list(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "@return", "@return   "])
    def test_no_types_is_empty_list(self, raw):
        assert parse_type_list(raw) == []

    @pytest.mark.parametrize("raw", [
        "array<int,Foo>|null",
        "array<int, Foo>",
        "Collection<Foo> items",
    ])
    def test_generic_syntax_is_unsupported(self, raw):
        assert parse_type_list(raw) is None


class TestRewrites:

    @pytest.mark.parametrize("content, expected", [
        ("Foo|null", "Foo"),
        ("null|Foo", "Foo"),
        ("Foo|null|Bar", "Foo|Bar"),
        ("null|Foo|null", "Foo"),
        ("Foo|null The found item", "Foo The found item"),
        ("Foo|NULL", "Foo|NULL"),
    ])
    def test_remove_null(self, content, expected):
        assert remove_null(content) == expected

    @pytest.mark.parametrize("content, expected", [
        ("Foo", "Foo|null"),
        ("Foo|Bar", "Foo|Bar|null"),
        ("|Foo|", "Foo|null"),
        ("Foo The found item", "Foo|null The found item"),
    ])
    def test_add_null(self, content, expected):
        assert add_null(content) == expected


class TestLocators:

    def test_finds_block_tag_and_type_list(self):
        tokens = tokenize(method_source("Foo|null", ": Foo"))
        ptr = tokens.find_next(TokenKind.FUNCTION, 0)
        block = find_doc_block(tokens, ptr)
        assert block is not None
        assert tokens[block.start].kind is TokenKind.DOC_COMMENT_OPEN_TAG
        assert tokens[block.end].kind is TokenKind.DOC_COMMENT_CLOSE_TAG

        tag = find_return_tag(tokens, block)
        assert tokens[tag].content == "@return"
        types = find_type_list_token(tokens, tag, block.end)
        assert tokens[types].content == "Foo|null"

    def test_first_return_tag_wins(self):
        tokens = tokenize(php("""
            <?php
            /**
             * @return Foo
             * @return Bar|null
             */
            function foo(): Foo {}
        """))
        ptr = tokens.find_next(TokenKind.FUNCTION, 0)
        block = find_doc_block(tokens, ptr)
        tag = find_return_tag(tokens, block)
        assert tokens[find_type_list_token(tokens, tag, block.end)].content == "Foo"

    def test_bare_return_tag_has_no_type_list(self):
        tokens = tokenize(php("""
            <?php
            /**
             * @return
             * Some text on the next line
             */
            function foo(): ?Foo {}
        """))
        ptr = tokens.find_next(TokenKind.FUNCTION, 0)
        block = find_doc_block(tokens, ptr)
        tag = find_return_tag(tokens, block)
        assert find_type_list_token(tokens, tag, block.end) is None

    def test_separated_doc_block_is_not_found(self):
        tokens = tokenize(php("""
            <?php
            /**
             * @return Foo
             */
            $unrelated = 1;
            function foo(): ?Foo {}
        """))
        ptr = tokens.find_next(TokenKind.FUNCTION, 0)
        assert find_doc_block(tokens, ptr) is None


class TestDetection:
    """Report-only mode."""

    def test_missing_null_is_reported(self, nullable_checker):
        diags = run_sniff(nullable_checker, method_source("Foo", ": ?Foo"))
        assert error_ids(diags) == ["ReturnNullableMissing"]
        assert diags[0].message == "Method does not have `null` in return type in doc block."
        assert diags[0].fixable
        assert diags[0].checker_name == "doc-block-return-nullable"

    def test_invalid_null_is_reported(self, nullable_checker):
        diags = run_sniff(nullable_checker, method_source("Foo|null", ": Foo"))
        assert error_ids(diags) == ["ReturnNullableInvalid"]
        assert diags[0].message == "Method should not have `null` in return type in doc block."

    def test_violation_points_at_function_keyword(self, nullable_checker):
        source = method_source("Foo", ": ?Foo")
        phpfile = PhpFile("Foo.php", source)
        diag = phpfile.process([nullable_checker])[0]
        assert diag.token_index == _function_ptr(phpfile)
        assert diag.location.line == 10

    @pytest.mark.parametrize("annotation, hint", [
        ("Foo|null", ": ?Foo"),
        ("Foo", ": Foo"),
        ("array<int,Foo>|null", ": Foo"),
        ("array<int,Foo>", ": ?Foo"),
        ("Foo|null", ""),
        ("Foo", ""),
        ("Foo|null", ": Foo|null"),
        ("Foo", ": Foo|Bar"),
    ])
    def test_consistent_or_skipped(self, nullable_checker, annotation, hint):
        assert run_sniff(nullable_checker, method_source(annotation, hint)) == []

    def test_union_hint_with_null_counts_as_nullable(self, nullable_checker):
        diags = run_sniff(nullable_checker, method_source("Foo", ": Foo|null"))
        assert error_ids(diags) == ["ReturnNullableMissing"]

    def test_no_doc_block(self, nullable_checker):
        source = php("""
            <?php
            function foo(): ?Foo
            {
            }
        """)
        assert run_sniff(nullable_checker, source) == []

    def test_no_return_tag(self, nullable_checker):
        source = php("""
            <?php
            /**
             * @param int $id
             */
            function foo(int $id): ?Foo
            {
            }
        """)
        assert run_sniff(nullable_checker, source) == []

    @pytest.mark.parametrize("hint", [": ?Foo", ": Foo"])
    def test_empty_return_annotation_never_reported(self, nullable_checker, hint):
        source = php(f"""
            <?php
            /**
             * @return
             */
            function foo(){hint}
            {{
            }}
        """)
        assert run_sniff(nullable_checker, source) == []

    def test_use_function_import_is_skipped(self, nullable_checker):
        source = php("""
            <?php
            /**
             * @return Foo|null
             */
            use function Foo\\bar;
        """)
        assert run_sniff(nullable_checker, source) == []

    def test_closure_with_use_clause(self, nullable_checker):
        source = php("""
            <?php
            /**
             * @return Foo
             */
            $finder = function () use ($repository): ?Foo {
                return $repository->find();
            };
        """)
        assert error_ids(run_sniff(nullable_checker, source)) == ["ReturnNullableMissing"]

    def test_one_line_doc_block(self, nullable_checker):
        source = php("""
            <?php
            /** @return Foo|null */
            function foo(): Foo {}
        """)
        assert error_ids(run_sniff(nullable_checker, source)) == ["ReturnNullableInvalid"]

    def test_blank_line_between_doc_block_and_function(self, nullable_checker):
        source = php("""
            <?php
            /**
             * @return Foo
             */

            function foo(): ?Foo {}
        """)
        assert error_ids(run_sniff(nullable_checker, source)) == ["ReturnNullableMissing"]

    def test_each_method_checked_separately(self, nullable_checker):
        source = php("""
            <?php
            class Foo
            {
                /**
                 * @return Foo
                 */
                public function a(): ?Foo {}

                /**
                 * @return Foo|null
                 */
                public static function b(): Foo {}

                /**
                 * @return Foo|null
                 */
                protected function c(): ?Foo {}
            }
        """)
        diags = run_sniff(nullable_checker, source)
        assert error_ids(diags) == ["ReturnNullableMissing", "ReturnNullableInvalid"]
        assert [d.location.line for d in diags] == [7, 12]


class TestOutcome:

    def _process(self, checker, source, fixing=False):
        phpfile = PhpFile("Foo.php", source)
        phpfile.fixing = fixing
        return phpfile, checker.process(phpfile, _function_ptr(phpfile))

    def test_skipped_without_hint(self, nullable_checker):
        _, outcome = self._process(nullable_checker, method_source("Foo|null", ""))
        assert outcome is Outcome.SKIPPED

    def test_skipped_for_generic(self, nullable_checker):
        _, outcome = self._process(nullable_checker, method_source("array<int,Foo>", ": ?Foo"))
        assert outcome is Outcome.SKIPPED

    def test_no_violation(self, nullable_checker):
        _, outcome = self._process(nullable_checker, method_source("Foo|null", ": ?Foo"))
        assert outcome is Outcome.NO_VIOLATION

    def test_report_only_never_touches_fixer(self, nullable_checker):
        phpfile, outcome = self._process(nullable_checker, method_source("Foo", ": ?Foo"))
        assert outcome is Outcome.VIOLATION_ONLY
        assert phpfile.fixer.fix_count == 0

    def test_fixed_in_fixing_mode(self, nullable_checker):
        phpfile, outcome = self._process(
            nullable_checker, method_source("Foo", ": ?Foo"), fixing=True,
        )
        assert outcome is Outcome.VIOLATION_FIXED
        assert " * @return Foo|null\n" in phpfile.fixer.get_contents()

    def test_fix_conflict_is_fix_failed(self, nullable_checker):
        phpfile = PhpFile("Foo.php", method_source("Foo", ": ?Foo"))
        phpfile.fixing = True
        ptr = _function_ptr(phpfile)
        assert nullable_checker.process(phpfile, ptr) is Outcome.VIOLATION_FIXED
        assert nullable_checker.process(phpfile, ptr) is Outcome.FIX_FAILED
        assert phpfile.fixer.conflicts == 1


class TestFixing:

    def test_example_missing_null(self, nullable_checker):
        fixed = fix_sniff(nullable_checker, method_source("Foo", ": ?Foo"))
        assert fixed == method_source("Foo|null", ": ?Foo")

    def test_example_invalid_null(self, nullable_checker):
        fixed = fix_sniff(nullable_checker, method_source("Foo|null", ": Foo"))
        assert fixed == method_source("Foo", ": Foo")

    def test_generic_left_unchanged(self, nullable_checker):
        source = method_source("array<int,Foo>|null", ": Foo")
        assert fix_sniff(nullable_checker, source) == source

    def test_order_and_description_preserved(self, nullable_checker):
        source = method_source("Foo|null|Bar The result", ": Foo|Bar")
        assert fix_sniff(nullable_checker, source) == method_source("Foo|Bar The result", ": Foo|Bar")

    def test_stray_pipes_stripped_before_append(self, nullable_checker):
        fixed = fix_sniff(nullable_checker, method_source("|Foo|", ": ?Foo"))
        assert fixed == method_source("Foo|null", ": ?Foo")

    @pytest.mark.parametrize("annotation, hint", [
        ("Foo", ": ?Foo"),
        ("Foo|null", ": Foo"),
        ("null|Foo|null", ": Foo"),
        ("Foo|Bar description", ": Foo|Bar|null"),
    ])
    def test_idempotent(self, nullable_checker, annotation, hint):
        once = fix_sniff(nullable_checker, method_source(annotation, hint))
        assert run_sniff(nullable_checker, once) == []
        assert fix_sniff(nullable_checker, once) == once

    def test_only_type_list_token_changes(self, nullable_checker):
        source = method_source("Foo", ": ?Foo")
        phpfile = PhpFile("Foo.php", source)
        before = [t.content for t in phpfile.tokens]
        phpfile.fix([nullable_checker])
        after = [t.content for t in phpfile.tokens]
        changed = [i for i, (a, b) in enumerate(zip(before, after)) if a != b]
        assert len(before) == len(after)
        assert len(changed) == 1
        assert after[changed[0]] == "Foo|null"

    def test_several_methods_fixed_in_one_run(self, nullable_checker):
        source = php("""
            <?php
            class Foo
            {
                /**
                 * @return Foo
                 */
                public function a(): ?Foo {}

                /**
                 * @return Bar|null
                 */
                public function b(): Bar {}
            }
        """)
        phpfile = PhpFile("Foo.php", source)
        fixed = phpfile.fix([nullable_checker])
        assert "@return Foo|null\n" in fixed
        assert "@return Bar\n" in fixed
        assert phpfile.fixed_count == 2
        assert phpfile.process([nullable_checker]) == []


class TestFixTimeFailure:
    """The @return tag disappears between detection and fixing."""

    @pytest.fixture
    def flaky_tag_lookup(self, monkeypatch):
        real = nullable_mod.find_return_tag
        calls = []

        def lookup(tokens, block):
            calls.append(block)
            return real(tokens, block) if len(calls) == 1 else None

        monkeypatch.setattr(nullable_mod, "find_return_tag", lookup)
        return calls

    def test_raises_internal_error(self, nullable_checker, flaky_tag_lookup):
        phpfile = PhpFile("Foo.php", method_source("Foo", ": ?Foo"))
        phpfile.fixing = True
        with pytest.raises(InternalError, match="No token found") as info:
            nullable_checker.process(phpfile, _function_ptr(phpfile))
        assert info.value.code == PhpSniffErrorCodes.TOKEN_NOT_FOUND

    def test_run_continues_with_internal_diagnostic(self, nullable_checker, flaky_tag_lookup):
        source = method_source("Foo", ": ?Foo")
        phpfile = PhpFile("Foo.php", source)
        phpfile.fixing = True
        diags = phpfile.process([nullable_checker])
        assert error_ids(diags) == ["ReturnNullableMissing", "internalError"]
        internal = diags[1]
        assert internal.is_internal
        assert internal.severity.value == "information"
        assert "No token found" in internal.message
        assert not phpfile.fixer.in_changeset
        assert phpfile.fixer.get_contents() == source
