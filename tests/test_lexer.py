"""
Tests for the comment lexer.

Positions are 1-based; a span's end is the position just past it.
"""

import inspect

import pytest

from tag_snipe.lexer import (
    C_LIKE_SYNTAX,
    RUST_SYNTAX,
    CommentSyntax,
    decode_source,
    lex_comments,
)
from tag_snipe.models import CommentKind, Position


def spans(text, syntax=C_LIKE_SYNTAX):
    return list(lex_comments(text, syntax))


class TestLineComments:
    """`//` comments."""

    def test_line_comment_position(self):
        """A line comment runs to the end of the physical line."""
        (span,) = spans("int x; // TODO: x\nint y;\n")
        assert span.kind is CommentKind.LINE
        assert span.text == "// TODO: x"
        assert span.start == Position(1, 8)
        assert span.end == Position(1, 18)

    def test_comment_at_end_of_file(self):
        """No trailing newline needed."""
        (span,) = spans("// last")
        assert span.text == "// last"
        assert span.end == Position(1, 8)

    def test_crlf_line_ending_excluded(self):
        """A Windows line ending is not part of the comment."""
        result = spans("// a\r\n// b\r\n")
        assert [s.text for s in result] == ["// a", "// b"]
        assert [s.start.line for s in result] == [1, 2]

    def test_block_opener_inside_line_comment(self):
        """`/*` inside a line comment does not open a block."""
        result = spans("// a /* b\nc */ d\n")
        assert [s.text for s in result] == ["// a /* b"]


class TestBlockComments:
    """`/* */` comments."""

    def test_single_line_block(self):
        """Scenario: TODO on line 1, FIXME block on line 3."""
        result = spans("// TODO: x\n\n/* FIXME: y */\n")
        assert [s.kind for s in result] == [CommentKind.LINE, CommentKind.BLOCK]
        block = result[1]
        assert block.text == "/* FIXME: y */"
        assert block.start == Position(3, 1)
        assert block.end == Position(3, 15)

    def test_multi_line_block_counts_newlines(self):
        """End position reflects newlines inside the block."""
        (span,) = spans("a\n/* one\ntwo */ b\n")
        assert span.start == Position(2, 1)
        assert span.end == Position(3, 7)

    def test_line_numbers_after_multi_line_block(self):
        """Comments after a block keep accurate line numbers."""
        result = spans("/* one\ntwo\nthree */\n// four\n")
        assert [s.start.line for s in result] == [1, 4]

    def test_no_nesting(self):
        """The first `*/` closes the block."""
        result = spans("/* a /* b */ c */")
        assert [s.text for s in result] == ["/* a /* b */"]

    def test_line_marker_inside_block(self):
        """`//` inside a block is part of the block."""
        result = spans("/* // TODO: a */")
        assert len(result) == 1
        assert result[0].kind is CommentKind.BLOCK

    def test_unterminated_block_takes_rest_of_file(self):
        """Malformed input is tolerated, not an error."""
        (span,) = spans("x\n/* TODO: rest\nmore")
        assert span.kind is CommentKind.BLOCK
        assert span.text == "/* TODO: rest\nmore"
        assert span.start == Position(2, 1)
        assert span.end == Position(3, 5)

    def test_end_never_before_start(self):
        """Every span ends at or after its start."""
        for span in spans("/**/ // \n/* a\n*/ /*"):
            assert span.end >= span.start


class TestTodoMacro:
    """Rust `todo!()` calls."""

    def test_bare_macro(self):
        """todo!() is a macro span."""
        (span,) = spans("fn f() { todo!() }", RUST_SYNTAX)
        assert span.kind is CommentKind.MACRO
        assert span.text == "todo!()"
        assert span.start == Position(1, 10)

    def test_macro_ignored_for_c_like(self):
        """Only Rust files recognise the macro."""
        assert spans("todo!()") == []

    def test_parens_inside_string(self):
        """A `)` inside the string literal does not close the call."""
        (span,) = spans('todo!("oops :) (really")', RUST_SYNTAX)
        assert span.text == 'todo!("oops :) (really")'

    def test_nested_parens(self):
        """Balanced parens in the arguments are captured."""
        (span,) = spans('todo!("{}", f(g(x))); done()', RUST_SYNTAX)
        assert span.text == 'todo!("{}", f(g(x)))'

    def test_escaped_quote_inside_string(self):
        """A backslash-escaped quote does not end the literal."""
        (span,) = spans('todo!("say \\") hi")', RUST_SYNTAX)
        assert span.text == 'todo!("say \\") hi")'

    def test_multi_line_macro(self):
        """Arguments may span lines; the span starts on the macro's line."""
        (span,) = spans('\ntodo!(\n    "later"\n)\n', RUST_SYNTAX)
        assert span.start == Position(2, 1)
        assert span.end == Position(4, 2)

    def test_identifier_prefix_is_not_the_macro(self):
        """my_todo!() is a different macro."""
        assert spans("my_todo!()", RUST_SYNTAX) == []

    def test_path_qualified_macro(self):
        """std::todo!() is still todo!()."""
        (span,) = spans("std::todo!()", RUST_SYNTAX)
        assert span.kind is CommentKind.MACRO

    def test_unbalanced_macro_is_skipped(self):
        """An unclosed call is dropped and scanning continues."""
        result = spans("todo!(\n// NOTE: n\n", RUST_SYNTAX)
        assert [(s.kind, s.start.line) for s in result] == [(CommentKind.LINE, 2)]

    def test_several_spans_on_one_line(self):
        """A macro and a comment on the same line are both found."""
        result = spans("todo!() // TODO: x", RUST_SYNTAX)
        assert [s.kind for s in result] == [CommentKind.MACRO, CommentKind.LINE]
        assert result[1].start == Position(1, 9)


class TestLexerBehaviour:
    """Iterator shape and custom syntaxes."""

    def test_lazy_generator(self):
        """Spans are produced lazily."""
        assert inspect.isgenerator(lex_comments("// a", C_LIKE_SYNTAX))

    def test_custom_syntax(self):
        """A custom syntax with `#` lines and `{- -}` blocks."""
        syntax = CommentSyntax(line_markers=("#",), block_pairs=(("{-", "-}"),))
        result = spans("x = 1  # TODO: a\n{- FIXME: b -} // not a comment\n", syntax)
        assert [s.text for s in result] == ["# TODO: a", "{- FIXME: b -}"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"line_markers": (), "block_pairs": ()},
            {"line_markers": ("",), "block_pairs": ()},
            {"line_markers": ("#",), "block_pairs": (("{-", ""),)},
        ],
    )
    def test_syntax_needs_real_delimiters(self, kwargs):
        """A syntax that could never advance the scan is rejected up front."""
        with pytest.raises(ValueError):
            CommentSyntax(**kwargs)

    def test_macro_only_syntax(self):
        """todo!() detection alone is a valid syntax."""
        syntax = CommentSyntax(line_markers=(), block_pairs=(), todo_macro=True)
        assert [s.kind for s in spans("// x\ntodo!()\n", syntax)] == [CommentKind.MACRO]

    def test_no_comments(self):
        """Plain code yields nothing."""
        assert spans("int main(void) { return 0; }\n") == []

    def test_decode_strips_bom(self):
        """A UTF-8 BOM is dropped."""
        assert decode_source("\ufeff// a".encode("utf-8")) == "// a"

    def test_decode_rejects_non_utf8(self):
        """Non-UTF-8 content raises so the caller can skip the file."""
        with pytest.raises(UnicodeDecodeError):
            decode_source(b"\xff\xfe// TODO")
