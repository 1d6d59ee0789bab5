# tests/test_tokens.py
"""Tests for the PHP tokenizer and the TokenStream navigation API."""

import pytest

from phpsniff_shims.tokens import EMPTY_TOKENS, TokenKind, tokenize

from tests.conftest import php


SAMPLE = php("""
    <?php

    namespace App;

    class Repository
    {
        /**
         * @param int $id
         *
         * @return \\App\\Foo|null The entity
         */
        public function find(int $id): ?Foo
        {
            return $id > 0 ? new Foo() : null;
        }
    }
""")


def _kinds(source):
    return [t.kind for t in tokenize(source) if t.kind not in EMPTY_TOKENS]


class TestTokenize:

    @pytest.mark.parametrize("source", [
        SAMPLE,
        "<html><?php echo 1; ?>\n</html>",
        "<?php\n/* unterminated",
        "<?php\n$a = 'unterminated",
        "<?php\r\n$a = 1;\r\n",
        "<?php\n$text = <<<EOT\nline {$a}\nEOT;\n",
        "<?php\n#[Attribute]\nclass A {}\n# comment\n",
        "",
    ])
    def test_round_trip(self, source):
        assert tokenize(source).contents() == source

    def test_inline_html_and_tags(self):
        kinds = [t.kind for t in tokenize("<p><?php $a; ?></p>")]
        assert kinds[0] is TokenKind.INLINE_HTML
        assert kinds[1] is TokenKind.OPEN_TAG
        assert TokenKind.CLOSE_TAG in kinds
        assert kinds[-1] is TokenKind.INLINE_HTML

    def test_whitespace_split_per_line(self):
        tokens = tokenize("<?php\n$a;\n\n    $b;")
        ws = [t.content for t in tokens if t.kind is TokenKind.WHITESPACE]
        assert ws == ["\n", "\n", "    "]

    def test_line_and_column(self):
        tokens = tokenize(SAMPLE)
        ptr = tokens.find_next(TokenKind.FUNCTION, 0)
        assert (tokens[ptr].line, tokens[ptr].column) == (12, 12)

    def test_doc_comment_sub_tokens(self):
        tokens = tokenize("<?php\n/**\n * @return Foo|null Text\n */\n")
        doc = [(t.kind, t.content) for t in tokens if t.kind.name.startswith("DOC_COMMENT")]
        assert doc == [
            (TokenKind.DOC_COMMENT_OPEN_TAG, "/**"),
            (TokenKind.DOC_COMMENT_WHITESPACE, "\n"),
            (TokenKind.DOC_COMMENT_WHITESPACE, " "),
            (TokenKind.DOC_COMMENT_STAR, "*"),
            (TokenKind.DOC_COMMENT_WHITESPACE, " "),
            (TokenKind.DOC_COMMENT_TAG, "@return"),
            (TokenKind.DOC_COMMENT_WHITESPACE, " "),
            (TokenKind.DOC_COMMENT_STRING, "Foo|null Text"),
            (TokenKind.DOC_COMMENT_WHITESPACE, "\n"),
            (TokenKind.DOC_COMMENT_WHITESPACE, " "),
            (TokenKind.DOC_COMMENT_CLOSE_TAG, "*/"),
        ]

    def test_keywords_and_literals(self):
        assert _kinds("<?php\nreturn NULL ?? true;") == [
            TokenKind.OPEN_TAG,
            TokenKind.RETURN,
            TokenKind.NULL,
            TokenKind.COALESCE,
            TokenKind.TRUE,
            TokenKind.SEMICOLON,
        ]

    def test_keyword_after_member_access_is_a_name(self):
        kinds = _kinds("<?php\n$a->class; Foo::class;")
        assert TokenKind.CLASS not in kinds
        assert kinds.count(TokenKind.STRING) == 3

    def test_nullable_versus_ternary(self):
        tokens = tokenize(SAMPLE)
        assert len(tokens.indices_of(TokenKind.NULLABLE)) == 1
        assert len(tokens.indices_of(TokenKind.INLINE_THEN)) == 1
        nullable = tokens.indices_of(TokenKind.NULLABLE)[0]
        assert tokens[nullable + 1].content == "Foo"

    def test_namespaced_name_is_one_token(self):
        tokens = tokenize("<?php\nuse Foo\\Bar\\Baz;")
        names = [t.content for t in tokens if t.kind is TokenKind.STRING]
        assert names == ["Foo\\Bar\\Baz"]

    def test_unknown_character(self):
        tokens = tokenize("<?php\n$a = 1 \x00 2;")
        assert TokenKind.UNKNOWN in [t.kind for t in tokens]
        assert tokens.contents() == "<?php\n$a = 1 \x00 2;"

    def test_token_type_name(self):
        tokens = tokenize("<?php\nfunction")
        assert tokens[-1].type == "T_FUNCTION"


class TestTokenStream:

    def test_bracket_pairs(self):
        tokens = tokenize("<?php\nfoo(bar([1]), 2) { }")
        opener = tokens.find_next(TokenKind.OPEN_PARENTHESIS, 0)
        closer = tokens.match(opener)
        assert tokens[closer].kind is TokenKind.CLOSE_PARENTHESIS
        assert tokens[closer + 2].content == "{"
        assert tokens.match(closer) == opener
        square = tokens.find_next(TokenKind.OPEN_SQUARE_BRACKET, 0)
        assert tokens[tokens.match(square)].content == "]"

    def test_comment_pairs(self):
        tokens = tokenize("<?php\n/** @var int */\n$a = 1;")
        opener = tokens.find_next(TokenKind.DOC_COMMENT_OPEN_TAG, 0)
        closer = tokens.comment_closer(opener)
        assert tokens[closer].kind is TokenKind.DOC_COMMENT_CLOSE_TAG
        assert tokens.comment_opener(closer) == opener
        assert tokens.comment_opener(opener) is None

    def test_unterminated_doc_comment_has_no_pair(self):
        tokens = tokenize("<?php\n/** open")
        opener = tokens.find_next(TokenKind.DOC_COMMENT_OPEN_TAG, 0)
        assert tokens.comment_closer(opener) is None

    def test_find_next_bounds_and_exclude(self):
        tokens = tokenize("<?php\n$a = 1; $b = 2;")
        first = tokens.find_next(TokenKind.VARIABLE, 0)
        semicolon = tokens.find_next(TokenKind.SEMICOLON, first)
        assert tokens.find_next(TokenKind.VARIABLE, first + 1, semicolon) is None
        assert tokens[tokens.find_next(TokenKind.VARIABLE, first + 1)].content == "$b"
        assert tokens[tokens.find_next(EMPTY_TOKENS, first + 1, exclude=True)].content == "="
        assert tokens.find_next(TokenKind.VARIABLE, 0, value="$b") is not None
        assert tokens.find_next(TokenKind.VARIABLE, 0, value="$c") is None

    def test_find_previous(self):
        tokens = tokenize("<?php\n$a = 1; $b = 2;")
        last = len(tokens) - 1
        assert tokens[tokens.find_previous(TokenKind.VARIABLE, last)].content == "$b"
        prev = tokens.find_previous(EMPTY_TOKENS, last - 1, exclude=True)
        assert tokens[prev].content == "2"
        b = tokens.find_previous(TokenKind.VARIABLE, last)
        assert tokens.find_previous(TokenKind.VARIABLE, last, end=b + 1) is None

    def test_line_start(self):
        tokens = tokenize("<?php\n    public function a() {}\n")
        ptr = tokens.find_next(TokenKind.FUNCTION, 0)
        start = tokens.line_start(ptr)
        assert tokens[start].content == "    "
