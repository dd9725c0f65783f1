"""
Tests for tag extraction from comment spans.

Sources are lexed first, so these also check lexer + extractor together.
"""

import pytest

from tag_snipe.extractor import extract
from tag_snipe.lexer import C_LIKE_SYNTAX, RUST_SYNTAX, CommentSyntax, lex_comments
from tag_snipe.models import CommentKind, Finding, Tag
from tag_snipe.registry import TagRegistry, default_registry


def tags(source, syntax=C_LIKE_SYNTAX, registry=None, **kwargs):
    registry = registry if registry is not None else default_registry()
    matches = (extract(span, registry, syntax=syntax, **kwargs) for span in lex_comments(source, syntax))
    return [m for m in matches if m is not None]


class TestCLikeComments:
    """Comment tags in C-like sources."""

    def test_find_comments_c(self):
        """Every tag form, with line numbers and messages."""
        source = """
        // TODO: Find the todo
        // Optimize: Make it faster
        /* Hack: This is hacky */
        // fIX: Fix the bugs
        /* SAFETY: Wear a hard hat */
        /* Undone: Something has been taken away */
        /* Bug: It is broken */
    """
        result = tags(source)
        assert [(m.tag.keyword, m.line, m.message) for m in result] == [
            ("TODO", 2, "Find the todo"),
            ("OPTIMIZE", 3, "Make it faster"),
            ("HACK", 4, "This is hacky"),
            ("FIX", 5, "Fix the bugs"),
            ("SAFETY", 6, "Wear a hard hat"),
            ("UNDONE", 7, "Something has been taken away"),
            ("BUG", 8, "It is broken"),
        ]

    def test_todo_line_comment(self):
        """`// TODO: Add cool features` at line N."""
        (match,) = tags("\n\n\n// TODO: Add cool features\nfn foo() {}\n")
        assert match.tag.keyword == "TODO"
        assert match.message == "Add cool features"
        assert match.line == 4
        assert match.emphasis is False
        assert match.kind is CommentKind.LINE

    @pytest.mark.parametrize("word", ["todo", "ToDo", "TODO"])
    def test_casing_canonicalises(self, word):
        """Any casing yields the same upper-case identity."""
        (match,) = tags(f"// {word}: x")
        assert match.tag.keyword == "TODO"

    def test_dont_find_urls(self):
        """URLs contain `//` but are not tags."""
        source = """
        http://example.com
        https://www.example.com
        file://relative-path
        file:///absolute-path
    """
        assert tags(source) == []

    def test_url_inside_comment_is_not_a_tag(self):
        """A comment that starts with a URL scheme is skipped."""
        assert tags("// https: //example.com") == []

    def test_plain_comment_is_not_a_tag(self):
        """No registry match means no result, not an error."""
        assert tags("// just a comment\n/* nothing here */") == []

    def test_keyword_without_colon(self):
        """A keyword followed by whitespace still matches."""
        (match,) = tags("// NOTE this matters")
        assert match.tag.keyword == "NOTE"
        assert match.message == "this matters"

    def test_require_colon(self):
        """Strict mode only accepts KEYWORD: forms."""
        source = "// NOTE this matters\n// NOTE: this too\n"
        result = tags(source, require_colon=True)
        assert [(m.line, m.message) for m in result] == [(2, "this too")]

    def test_keyword_only(self):
        """A bare keyword has an empty message."""
        (match,) = tags("// TODO")
        assert match.message == ""

    def test_emphasis_marker(self):
        """A trailing `!` on the keyword is recorded, not matched."""
        result = tags("// FIXME!: now\n// TODO! soon\n")
        assert [(m.tag.keyword, m.emphasis, m.message) for m in result] == [
            ("FIXME", True, "now"),
            ("TODO", True, "soon"),
        ]

    def test_multi_line_block_keeps_first_line(self):
        """Only the first physical line of a block becomes the message."""
        (match,) = tags("/* TODO: first\n * second\n */")
        assert match.message == "first"
        assert match.line == 1

    def test_unterminated_block_at_eof(self):
        """An unterminated block still yields its tag."""
        (match,) = tags("int x;\n/* FIXME: rest of file")
        assert match.tag.keyword == "FIXME"
        assert match.message == "rest of file"
        assert match.line == 2

    def test_scenario_two_findings_in_order(self):
        """`// TODO: x` on line 1 and `/* FIXME: y */` on line 3."""
        result = tags("// TODO: x\nfn main() {}\n/* FIXME: y */\n", RUST_SYNTAX)
        assert [(m.tag.keyword, m.message, m.line) for m in result] == [
            ("TODO", "x", 1),
            ("FIXME", "y", 3),
        ]


class TestRustComments:
    """Doc-comment forms and the todo!() macro."""

    def test_find_comments_rust(self):
        """Doc-comment delimiters are stripped like plain ones."""
        source = """
        // TODO: Find the todo
        //! Optimize: Make it faster
        /*! Hack: This is hacky 😄 */
        /// fIX: Fix the bugs
        /* SAFETY: Wear a hard hat */
        /** Undone: Something has been taken away */
        /*** Bug: It is broken */
    """
        result = tags(source, RUST_SYNTAX)
        assert [(m.tag.keyword, m.line, m.message) for m in result] == [
            ("TODO", 2, "Find the todo"),
            ("OPTIMIZE", 3, "Make it faster"),
            ("HACK", 4, "This is hacky 😄"),
            ("FIX", 5, "Fix the bugs"),
            ("SAFETY", 6, "Wear a hard hat"),
            ("UNDONE", 7, "Something has been taken away"),
            ("BUG", 8, "It is broken"),
        ]

    def test_find_todo_macro(self):
        """Bare and message-carrying todo!() calls."""
        source = """
        todo!()
        todo!("I'll implement this later")
    """
        result = tags(source, RUST_SYNTAX)
        assert [(m.tag.keyword, m.line, m.message, m.emphasis) for m in result] == [
            ("TODO", 2, "", False),
            ("TODO", 3, "I'll implement this later", False),
        ]
        assert all(m.kind is CommentKind.MACRO for m in result)

    def test_macro_message(self):
        """todo!("fix this") carries its string as the message."""
        (match,) = tags('todo!("fix this")', RUST_SYNTAX)
        assert match.message == "fix this"

    def test_macro_escaped_quotes_are_not_unescaped(self):
        """Escapes inside the literal are kept verbatim."""
        (match,) = tags('todo!("say \\"hi\\"")', RUST_SYNTAX)
        assert match.message == 'say \\"hi\\"'

    def test_macro_format_arguments(self):
        """Only the format string is used when there are arguments."""
        (match,) = tags('todo!("handle {} (later)", kind)', RUST_SYNTAX)
        assert match.message == "handle {} (later)"

    def test_macro_non_string_argument(self):
        """A non-literal argument is reported as written."""
        (match,) = tags("todo!(reason)", RUST_SYNTAX)
        assert match.message == "reason"

    def test_macro_needs_todo_in_registry(self):
        """A registry without TODO ignores the macro."""
        registry = TagRegistry()
        registry.register("FIXME")
        assert tags("todo!()", RUST_SYNTAX, registry=registry) == []


class TestCustomSyntaxAndTags:
    """Custom registries and comment syntaxes."""

    def test_custom_tag_alias(self):
        """Aliases of a custom tag report the canonical keyword."""
        registry = default_registry()
        registry.register("PERF", aliases=["slow"])
        (match,) = tags("// Slow: quadratic", registry=registry)
        assert match.tag.keyword == "PERF"
        assert match.message == "quadratic"

    def test_hash_comments(self):
        """Repeated `#` markers are stripped."""
        syntax = CommentSyntax(line_markers=("#",), block_pairs=())
        result = tags("x = 1  # TODO: one\n## FIXME: two\n", syntax)
        assert [(m.tag.keyword, m.message) for m in result] == [("TODO", "one"), ("FIXME", "two")]

    def test_custom_block_pair(self):
        """A custom block closer is stripped from the message."""
        syntax = CommentSyntax(line_markers=("--",), block_pairs=(("{-", "-}"),))
        (match,) = tags("{- HACK: around it -}", syntax)
        assert match.message == "around it"


class TestFindingInvariants:
    """Finding values."""

    def test_message_cannot_contain_newline(self):
        """Findings are single-line by construction."""
        tag = Tag(keyword="TODO", aliases=frozenset({"todo"}))
        with pytest.raises(ValueError):
            Finding(tag=tag, message="a\nb", path="a.rs", line=1)

    def test_label_marks_emphasis_and_macro(self):
        """Emphasised tags and todo!() display with a `!`."""
        tag = Tag(keyword="TODO", aliases=frozenset({"todo"}))
        assert Finding(tag=tag, message="", path="a", line=1).label == "TODO"
        assert Finding(tag=tag, message="", path="a", line=1, emphasis=True).label == "TODO!"
        assert Finding(tag=tag, message="", path="a", line=1, kind=CommentKind.MACRO).label == "TODO!"
