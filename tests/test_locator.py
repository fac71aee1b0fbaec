"""Tests for docregion_lens.locator."""

import re

import pytest

from docregion_lens.locator import (
    AttributeInfo,
    Linenums,
    LinenumsMode,
    Position,
    RawTagInfo,
    TagFamily,
    find_raw_tag,
    is_attribute_line,
    is_in_region_attribute,
    locate,
    parse_attributes,
    resolve_example_path,
)

SINGLE_LINE = [
    "line before",
    'text before <code-example path="foo"></code-example> text after',
    "text before {@example foo} text after",
    "line after",
]

MULTI_LINE = [
    "<code-example",
    '    path="foo">',
    '</code-example> <code-example path="bar"></code-example>',
    "",
    "{@example foo",
    '    region="foo-region"',
    "} {@example bar}",
]


def raw(contents: str, family: TagFamily = TagFamily.HTML_TAG) -> RawTagInfo:
    return RawTagInfo(contents, Position(0, 0), Position(0, len(contents)), family)


class TestFindRawTagSingleLine:
    @pytest.mark.parametrize("character", [12, 13, 17, 37, 42, 51])
    def test_inside_html_tag(self, character):
        info = find_raw_tag(SINGLE_LINE, 1, character)
        assert info == RawTagInfo(
            contents='<code-example path="foo"></code-example>',
            start=Position(1, 12),
            end=Position(1, 52),
            family=TagFamily.HTML_TAG,
        )

    @pytest.mark.parametrize("character", [12, 13, 20, 25])
    def test_inside_brace_tag(self, character):
        info = find_raw_tag(SINGLE_LINE, 2, character)
        assert info == RawTagInfo(
            contents="{@example foo}",
            start=Position(2, 12),
            end=Position(2, 26),
            family=TagFamily.BRACE_TAG,
        )

    @pytest.mark.parametrize("line,character", [
        (0, 5),
        (1, 5),
        (1, 57),
        (2, 5),
        (2, 31),
        (3, 5),
    ])
    def test_outside_tags(self, line, character):
        assert find_raw_tag(SINGLE_LINE, line, character) is None

    def test_line_out_of_range(self):
        assert find_raw_tag(SINGLE_LINE, 10, 0) is None
        assert find_raw_tag(SINGLE_LINE, -1, 0) is None

    def test_two_tags_on_one_line(self):
        lines = [
            '<code-example path="foo"></code-example> <code-example path="bar"></code-example>',
            "{@example foo} {@example bar}",
        ]
        first = find_raw_tag(lines, 0, 15)
        assert first.start == Position(0, 0)
        assert first.end == Position(0, 40)

        second = find_raw_tag(lines, 0, 55)
        assert second.start == Position(0, 41)
        assert second.contents == '<code-example path="bar"></code-example>'

        assert find_raw_tag(lines, 1, 8).contents == "{@example foo}"
        assert find_raw_tag(lines, 1, 23).contents == "{@example bar}"

    def test_code_pane(self):
        lines = ['<code-pane path="foo" region="bar"></code-pane>']
        info = find_raw_tag(lines, 0, 20)
        assert info.contents == lines[0]
        assert info.family is TagFamily.HTML_TAG


class TestFindRawTagMultiLine:
    @pytest.mark.parametrize("line,character", [
        (0, 0),
        (0, 5),
        (1, 0),
        (1, 10),
        (2, 0),
        (2, 10),
        (2, 14),
    ])
    def test_inside_html_tag(self, line, character):
        info = find_raw_tag(MULTI_LINE, line, character)
        assert info.contents == '<code-example\n    path="foo">\n</code-example>'
        assert info.start == Position(0, 0)
        assert info.end == Position(2, 15)

    @pytest.mark.parametrize("line,character", [
        (4, 0),
        (4, 10),
        (4, 13),
        (5, 0),
        (5, 10),
        (5, 23),
        (6, 0),
    ])
    def test_inside_brace_tag(self, line, character):
        info = find_raw_tag(MULTI_LINE, line, character)
        assert info.contents == '{@example foo\n    region="foo-region"\n}'
        assert info.start == Position(4, 0)
        assert info.end == Position(6, 1)
        assert info.family is TagFamily.BRACE_TAG

    def test_second_tag_on_closing_line(self):
        info = find_raw_tag(MULTI_LINE, 2, 30)
        assert info.contents == '<code-example path="bar"></code-example>'
        assert info.start == Position(2, 16)

    @pytest.mark.parametrize("line,character", [(2, 15), (2, 56), (3, 0), (6, 1), (6, 16)])
    def test_between_tags(self, line, character):
        assert find_raw_tag(MULTI_LINE, line, character) is None

    def test_non_attribute_line_breaks_the_span(self):
        lines = [
            "<code-example",
            "    some prose",
            '    path="foo">',
            "</code-example>",
        ]
        assert find_raw_tag(lines, 2, 5) is None


class TestFindRawTagMismatched:
    @pytest.mark.parametrize("lines,line,character", [
        (['<code-example path="foo"></code-pane>'], 0, 20),
        (['<code-pane path="foo"></code-example>'], 0, 20),
        (["{@example qux></code-pane>"], 0, 5),
        (["<code-example", '    path="foo">', "</code-pane>"], 1, 5),
    ])
    def test_mismatched_markers(self, lines, line, character):
        assert find_raw_tag(lines, line, character) is None


class TestIsAttributeLine:
    @pytest.mark.parametrize("line", [
        "",
        "   ",
        '    path="foo"',
        '  region="bar">',
        "  linenums",
        "  hideCopy}",
        '  HEADER="x"',
    ])
    def test_attribute_lines(self, line):
        assert is_attribute_line(line)

    @pytest.mark.parametrize("line", ["some prose", "  pathway", "# Heading"])
    def test_other_lines(self, line):
        assert not is_attribute_line(line)


class TestParseAttributes:
    @pytest.mark.parametrize("quote", ['"', "'"])
    def test_html_tag(self, quote):
        q = quote
        contents = (
            f"<code-example path={q}foo/bar.ts{q} region={q}baz{q} "
            f"header={q}Qux{q} linenums={q}false{q}></code-example>"
        )
        assert parse_attributes(raw(contents)) == AttributeInfo(
            path="foo/bar.ts",
            region="baz",
            header="Qux",
            linenums=Linenums(LinenumsMode.OFF),
        )

    def test_attribute_names_are_case_insensitive(self):
        attrs = parse_attributes(raw('<code-example PATH="foo" Region="bar"></code-example>'))
        assert attrs.path == "foo"
        assert attrs.region == "bar"

    def test_title_is_a_header_fallback(self):
        attrs = parse_attributes(raw('<code-example path="foo" title="Bar"></code-example>'))
        assert attrs.header == "Bar"

    def test_multi_line_html_tag(self):
        attrs = parse_attributes(raw('<code-example\n  path="foo"\n  region="bar">\n</code-example>'))
        assert attrs.path == "foo"
        assert attrs.region == "bar"

    def test_missing_path(self):
        assert parse_attributes(raw('<code-example region="bar"></code-example>')) is None
        assert parse_attributes(raw('<code-example path=""></code-example>')) is None

    def test_defaults(self):
        attrs = parse_attributes(raw('<code-example path="foo"></code-example>'))
        assert attrs.region is None
        assert attrs.header is None
        assert attrs.linenums == Linenums(LinenumsMode.AUTO)

    def test_brace_tag_positional(self):
        attrs = parse_attributes(raw("{@example foo/bar.ts baz Qux}", TagFamily.BRACE_TAG))
        assert attrs == AttributeInfo(path="foo/bar.ts", region="baz", header="Qux")

    def test_brace_tag_keyed(self):
        contents = '{@example foo\n    region="foo-region"\n}'
        attrs = parse_attributes(raw(contents, TagFamily.BRACE_TAG))
        assert attrs.path == "foo"
        assert attrs.region == "foo-region"

    def test_brace_tag_mixed(self):
        contents = "{@example foo linenums='true' bar baz}"
        attrs = parse_attributes(raw(contents, TagFamily.BRACE_TAG))
        assert attrs == AttributeInfo(
            path="foo",
            region="bar",
            header="baz",
            linenums=Linenums(LinenumsMode.ON),
        )

    def test_brace_tag_keyed_wins_over_positional(self):
        contents = '{@example foo bar region="baz"}'
        attrs = parse_attributes(raw(contents, TagFamily.BRACE_TAG))
        assert attrs.region == "baz"

    def test_brace_tag_without_path(self):
        assert parse_attributes(raw("{@example}", TagFamily.BRACE_TAG)) is None
        assert parse_attributes(raw('{@example region="x"}', TagFamily.BRACE_TAG)) is None


class TestLinenums:
    @pytest.mark.parametrize("value,expected", [
        ("false", Linenums(LinenumsMode.OFF)),
        ("true", Linenums(LinenumsMode.ON)),
        ("bar", Linenums(LinenumsMode.AUTO)),
        (None, Linenums(LinenumsMode.AUTO)),
        ("42", Linenums(LinenumsMode.START, 42)),
    ])
    def test_parse(self, value, expected):
        assert Linenums.parse(value) == expected

    @pytest.mark.parametrize("value,start", [
        ("1.5", 1),
        (" 7 ", 7),
        ("1e3", 1),
    ])
    def test_numeric_values_truncate_to_leading_integer(self, value, start):
        assert Linenums.parse(value) == Linenums(LinenumsMode.START, start)

    @pytest.mark.parametrize("value", ["", "nan", "inf", ".5", "42abc"])
    def test_non_integer_values_are_auto(self, value):
        assert Linenums.parse(value) == Linenums(LinenumsMode.AUTO)


class TestIsInRegionAttribute:
    @pytest.mark.parametrize("line", [
        '<code-example path="foo" region=',
        '<code-example path="foo" region="',
        '<code-example path="foo" region="ba',
        "<code-example path='foo' region='ba",
    ])
    def test_in_region_value(self, line):
        assert is_in_region_attribute(line, len(line))

    def test_after_closing_quote(self):
        line = '<code-example path="foo" region="bar"'
        assert not is_in_region_attribute(line, len(line))

    def test_in_other_attribute(self):
        line = '<code-example path="fo'
        assert not is_in_region_attribute(line, len(line))

    def test_in_the_middle_of_a_line(self):
        line = '<code-example path="foo" region="ba"></code-example>'
        assert is_in_region_attribute(line, line.index("ba\"") + 1)


class TestResolveExamplePath:
    def test_posix_path(self):
        resolved = resolve_example_path("/foo/aio/content/guide/bar.md", "qux/baz.ts", exists=lambda p: True)
        assert resolved == "/foo/aio/content/examples/qux/baz.ts"

    def test_windows_path(self):
        resolved = resolve_example_path(r"C:\foo\aio\content\guide\bar.md", "bar/baz", exists=lambda p: True)
        assert resolved == "C:\\foo\\aio\\content\\examples/bar/baz"

    def test_case_insensitive_prefix(self):
        resolved = resolve_example_path("/foo/AIO/Content/bar.md", "baz", exists=lambda p: True)
        assert resolved == "/foo/AIO/Content/examples/baz"

    def test_no_docs_root(self):
        assert resolve_example_path("/foo/docs/bar.md", "baz", exists=lambda p: True) is None

    def test_missing_file(self):
        assert resolve_example_path("/foo/aio/content/bar.md", "baz", exists=lambda p: False) is None

    def test_custom_prefix(self):
        prefix = re.compile(r"^.*/docs/")
        resolved = resolve_example_path("/site/docs/guide.md", "a.ts", prefix, exists=lambda p: True)
        assert resolved == "/site/docs/examples/a.ts"


class TestLocate:
    def test_snippet_with_resolved_path(self):
        seen = []

        def exists(path):
            seen.append(path)
            return True

        info = locate(MULTI_LINE, 5, 4, "/x/aio/content/guide/forms.md", exists=exists)
        assert info.attrs.path == "foo"
        assert info.attrs.region == "foo-region"
        assert info.resolved_path == "/x/aio/content/examples/foo"
        assert info.raw.start == Position(4, 0)
        assert seen == ["/x/aio/content/examples/foo"]

    def test_unresolved_path(self):
        info = locate(SINGLE_LINE, 1, 20, "/x/aio/content/guide/forms.md", exists=lambda p: False)
        assert info.attrs.path == "foo"
        assert info.resolved_path is None

    def test_without_document_path(self):
        info = locate(SINGLE_LINE, 2, 15)
        assert info.attrs.path == "foo"
        assert info.resolved_path is None

    def test_no_tag(self):
        assert locate(SINGLE_LINE, 0, 3, "/x/aio/content/a.md", exists=lambda p: True) is None

    def test_tag_without_path(self):
        lines = ['<code-example region="bar"></code-example>']
        assert locate(lines, 0, 5, "/x/aio/content/a.md", exists=lambda p: True) is None
