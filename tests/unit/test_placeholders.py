"""
Unit tests for placeholder resolvers and the expression grammar.
"""

import logging
from unittest.mock import MagicMock

import pytest

from record_reformer.core.placeholders import (
    EvaluationError,
    ExpansionError,
    ExpressionResolver,
    ExpressionSyntaxError,
    RestrictedResolver,
    UndefinedNameError,
    evaluate,
    parse_expression,
    to_text,
)
from record_reformer.core.placeholders.expression_parser import Attribute, Call, Index, Literal, Name, tokenize
from record_reformer.core.placeholders.expression_resolver import iter_spans
from record_reformer.core.reform import build_context


@pytest.fixture
def context():
    return build_context("prefix.test.tag.suffix", 0, "web01")


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


def run(source: str, context, record=None):
    record = record or {}
    namespace = context.namespace()
    namespace["record"] = record
    return evaluate(parse_expression(source), namespace, record)


class TestToText:
    """Tests for to_text"""

    def test_none_is_empty(self):
        assert to_text(None) == ""

    def test_booleans_are_lowercase(self):
        assert to_text(True) == "true"
        assert to_text(False) == "false"

    def test_other_values_use_str(self):
        assert to_text(5) == "5"
        assert to_text("x") == "x"


class TestTokenizer:
    """Tests for the expression tokenizer"""

    def test_tokens(self):
        kinds = [(t.kind, t.value) for t in tokenize("tag_parts[-1].to_s")]
        assert kinds == [
            ("NAME", "tag_parts"),
            ("OP", "["),
            ("OP", "-"),
            ("INT", 1),
            ("OP", "]"),
            ("OP", "."),
            ("NAME", "to_s"),
            ("EOF", None),
        ]

    def test_string_escapes(self):
        tokens = tokenize(r"'it\'s' " + '"a\\"b"')
        assert [t.value for t in tokens[:2]] == ["it's", 'a"b']

    def test_unterminated_string(self):
        with pytest.raises(ExpressionSyntaxError, match="unterminated"):
            tokenize("record['a")

    def test_unexpected_character(self):
        with pytest.raises(ExpressionSyntaxError, match="unexpected character"):
            tokenize("a + b")

    def test_non_ascii_digits_are_rejected(self):
        with pytest.raises(ExpressionSyntaxError, match="unexpected character"):
            tokenize("tag_parts[²]")


class TestParser:
    """Tests for parse_expression"""

    def test_postfix_chain(self):
        node = parse_expression("record['a'].last")
        assert node == Attribute(Index(Name("record"), Literal("a")), "last")

    def test_call(self):
        assert parse_expression("tag_prefix(-2)") == Call(Name("tag_prefix"), (Literal(-2),))

    def test_parenthesized(self):
        assert parse_expression("(tag)") == Name("tag")

    @pytest.mark.parametrize("source", ["", "tag.", "tag[", "tag[1", "tag)", "-tag", "tag tag", "URI.escape(message"])
    def test_syntax_errors(self, source):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression(source)

    def test_deep_nesting_is_a_syntax_error(self):
        with pytest.raises(ExpressionSyntaxError, match="nested too deeply"):
            parse_expression("(" * 5000 + "tag" + ")" * 5000)


class TestEvaluate:
    """Tests for expression evaluation"""

    def test_context_names(self, context):
        assert run("tag", context) == "prefix.test.tag.suffix"
        assert run("hostname", context) == "web01"
        assert run("tag_parts", context) == ["prefix", "test", "tag", "suffix"]
        assert run("tags", context) == run("tag_parts", context)

    def test_indexing(self, context):
        assert run("tag_parts[0]", context) == "prefix"
        assert run("tag_parts[-1]", context) == "suffix"
        assert run("tags[-2]", context) == "tag"

    def test_tag_slicers(self, context):
        assert run("tag_prefix[1]", context) == "prefix"
        assert run("tag_prefix[-2]", context) == "prefix.test"
        assert run("tag_suffix[2]", context) == "tag.suffix"
        assert run("tag_suffix[-3]", context) == "test.tag.suffix"
        assert run("tag_prefix(3)", context) == "prefix.test.tag"

    def test_methods(self, context):
        assert run("tag_parts.first", context) == "prefix"
        assert run("tag_parts.last", context) == "suffix"
        assert run("tag_parts.size", context) == 4
        assert run("tag.upcase", context) == "PREFIX.TEST.TAG.SUFFIX"
        assert run("count.to_i", context, {"count": "12"}) == 12
        assert run("count.to_s", context, {"count": 12}) == "12"

    def test_record_access(self, context):
        record = {"user": {"name": "ann", "roles": ["a", "b"]}}
        assert run("user['name']", context, record) == "ann"
        assert run("user.name", context, record) == "ann"
        assert run("record['user']['roles'][1]", context, record) == "b"
        assert run("user.roles.last", context, record) == "b"

    def test_context_names_shadow_record_fields(self, context):
        assert run("tag", context, {"tag": "from-record"}) == "prefix.test.tag.suffix"
        assert run("record['tag']", context, {"tag": "from-record"}) == "from-record"

    def test_unknown_name(self, context):
        with pytest.raises(UndefinedNameError, match="unknown"):
            run("unknown['bar']", context)

    @pytest.mark.parametrize("source,record", [
        ("tag_parts[10]", {}),
        ("tag_parts['a']", {}),
        ("missing_value['x']", {"missing_value": None}),
        ("user['nope']", {"user": {}}),
        ("tag.bogus", {}),
        ("tag(1)", {}),
        ("tag_prefix('a')", {}),
        ("tag_prefix(1, 2)", {}),
        ("count.to_i", {"count": "abc"}),
        ("n[0]", {"n": 5}),
        ("count.to_i", {"count": "inf"}),
        ("count.to_i", {"count": "1e400"}),
        ("record[tag_parts]", {}),
        ("record[roles]", {"roles": ["a"]}),
        ("user[user]", {"user": {"a": 1}}),
    ])
    def test_evaluation_errors(self, context, source, record):
        with pytest.raises(EvaluationError):
            run(source, context, record)


class TestIterSpans:
    """Tests for locating ${...} spans"""

    def test_spans(self):
        spans = list(iter_spans("a ${x} b ${y[0]}"))
        assert [body for _, _, body in spans] == ["x", "y[0]"]

    def test_braces_inside_quotes(self):
        spans = list(iter_spans("${record['a}b']}!"))
        assert spans == [(0, 16, "record['a}b']")]

    def test_no_spans(self):
        assert list(iter_spans("plain $ text {}")) == []


class TestRestrictedResolver:
    """Tests for RestrictedResolver"""

    def test_named_values_and_record(self, context, mock_logger):
        resolver = RestrictedResolver(logger=mock_logger)
        result = resolver.resolve("${hostname}/${tag}/${message}", context, {"message": "hi"})
        assert result == "web01/prefix.test.tag.suffix/hi"
        mock_logger.warning.assert_not_called()

    def test_context_wins_over_record(self, context, mock_logger):
        resolver = RestrictedResolver(logger=mock_logger)
        assert resolver.resolve("${tag}", context, {"tag": "other"}) == "prefix.test.tag.suffix"

    def test_non_identifier_bodies_are_literal(self, context, mock_logger):
        resolver = RestrictedResolver(logger=mock_logger)
        template = "${tag_parts[0]} ${tag_prefix(1)} ${tag.upcase} ${ tag }"
        assert resolver.resolve(template, context, {}) == template
        mock_logger.warning.assert_not_called()

    def test_unknown_placeholder(self, context, mock_logger):
        resolver = RestrictedResolver(logger=mock_logger)
        assert resolver.resolve("${unknown}", context, {}) is None
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.args[0] == "unknown placeholder '${unknown}' found"

    def test_record_value_none_single(self, context, mock_logger):
        resolver = RestrictedResolver(logger=mock_logger)
        assert resolver.resolve("${gone}", context, {"gone": None}) is None
        mock_logger.warning.assert_not_called()

    def test_auto_typecast(self, context, mock_logger):
        resolver = RestrictedResolver(auto_typecast=True, logger=mock_logger)
        assert resolver.resolve("${count}", context, {"count": 3}) == 3
        assert resolver.resolve("${count}!", context, {"count": 3}) == "3!"

    def test_mode(self):
        assert RestrictedResolver().mode == "restricted"


class TestExpressionResolver:
    """Tests for ExpressionResolver"""

    def test_plain_template(self, context):
        assert ExpressionResolver().resolve("no placeholders", context, {}) == "no placeholders"

    def test_multiple_spans(self, context):
        result = ExpressionResolver().resolve("${tag_parts.last}:${tag_prefix[1]}:${msg}", context, {"msg": "m"})
        assert result == "suffix:prefix:m"

    def test_whitespace_inside_span(self, context):
        assert ExpressionResolver().resolve("${ tag_parts[0] }", context, {}) == "prefix"

    def test_failure_raises_expansion_error(self, context):
        with pytest.raises(ExpansionError) as exc_info:
            ExpressionResolver().resolve("ok ${tag} ${unknown['bar']}", context, {})

        assert exc_info.value.template == "ok ${tag} ${unknown['bar']}"
        assert exc_info.value.error_class == "UndefinedNameError"
        assert str(exc_info.value).startswith("failed to expand 'ok ${tag} ${unknown['bar']}'")

    def test_unterminated_span(self, context):
        with pytest.raises(ExpansionError, match="unterminated"):
            ExpressionResolver().resolve("${tag", context, {})

    def test_single_none_value(self, context):
        assert ExpressionResolver().resolve("${gone}", context, {"gone": None}) is None

    def test_nil_inside_text_renders_empty(self, context):
        assert ExpressionResolver().resolve("[${gone}]", context, {"gone": None}) == "[]"

    def test_auto_typecast(self, context):
        resolver = ExpressionResolver(auto_typecast=True)
        assert resolver.resolve("${tag_parts}", context, {}) == ["prefix", "test", "tag", "suffix"]
        assert ExpressionResolver().resolve("${tag_parts.size}", context, {}) == "4"

    def test_mode(self):
        assert ExpressionResolver().mode == "expression"

    def test_bare_tag_slicer_fails(self, context):
        with pytest.raises(ExpansionError, match="tag_prefix must be indexed or called"):
            ExpressionResolver().resolve("${tag_prefix}", context, {})
        with pytest.raises(ExpansionError, match="tag_suffix"):
            ExpressionResolver(auto_typecast=True).resolve("${tag_suffix}", context, {})

    def test_auto_typecast_copies_containers(self, context):
        record = {"user": {"roles": ["a"]}}
        value = ExpressionResolver(auto_typecast=True).resolve("${user}", context, record)

        assert value == {"roles": ["a"]}
        value["roles"].append("b")
        assert record == {"user": {"roles": ["a"]}}
