"""Unit tests for inline markup and cookie parsing."""

import pytest

from orgtree.exporter import export_inline
from orgtree.inline import (
    Email,
    InlineMarkup,
    Link,
    PhoneNumber,
    StatisticsCookie,
    Text,
    TimestampNode,
    Url,
    WwwUrl,
    parse_markup_and_cookies,
)


def node_types(text):
    return [node.type for node in parse_markup_and_cookies(text)]


class TestMarkup:
    """Test emphasis markup recognition."""

    def test_bold_at_start(self):
        """Test markup at the very start of the text."""
        assert node_types("*bold*;") == ["inline-markup", "text"]

    def test_bold_after_space(self):
        """Test markup preceded by whitespace."""
        assert node_types(" *bold*;") == ["text", "inline-markup", "text"]

    @pytest.mark.parametrize(
        "delimiter,markup_type",
        [
            ("*", "bold"),
            ("/", "italic"),
            ("_", "underline"),
            ("+", "strikethrough"),
            ("=", "verbatim"),
            ("~", "code"),
        ],
    )
    def test_markup_types(self, delimiter, markup_type):
        """Test each delimiter maps to its markup type."""
        nodes = parse_markup_and_cookies(f"a {delimiter}word{delimiter} b")

        assert nodes[1] == InlineMarkup(
            markup_type=markup_type, delimiter=delimiter, contents=(Text("word"),)
        )

    def test_nested_markup(self):
        """Test markup inside markup is parsed recursively."""
        nodes = parse_markup_and_cookies("*bold /italic/ text*")

        assert len(nodes) == 1
        bold = nodes[0]
        assert bold.markup_type == "bold"
        assert [node.type for node in bold.contents] == ["text", "inline-markup", "text"]
        assert bold.contents[1].markup_type == "italic"

    def test_code_contents_are_literal(self):
        """Test ~code~ and =verbatim= contents are not parsed further."""
        nodes = parse_markup_and_cookies("~*not bold*~")

        assert nodes == [InlineMarkup(markup_type="code", delimiter="~", contents=(Text("*not bold*"),))]

    def test_closing_delimiter_followed_by_letter(self):
        """Test a delimiter followed by a word character does not close."""
        assert parse_markup_and_cookies("*not*bold") == [Text("*not*bold")]

    def test_opening_delimiter_after_letter(self):
        """Test a delimiter glued to a preceding word does not open."""
        assert parse_markup_and_cookies("a*b* c") == [Text("a*b* c")]

    def test_unbalanced_delimiter_stays_literal(self):
        """Test an unclosed delimiter is kept as plain text."""
        assert parse_markup_and_cookies("an *unclosed delimiter") == [Text("an *unclosed delimiter")]

    def test_markup_spans_single_newline(self):
        """Test markup may continue on the next line."""
        assert node_types("*start\nend*") == ["inline-markup"]

    def test_markup_never_crosses_blank_line(self):
        """Test a blank line ends any open markup."""
        assert node_types("*start\n\nend*") == ["text"]

    def test_plus_before_phone_number_is_not_strikethrough(self):
        """Test a phone number's + never opens strikethrough."""
        nodes = parse_markup_and_cookies("Call +4915112345678 +struck+ now")

        assert [node.type for node in nodes] == [
            "text",
            "phone-number",
            "text",
            "inline-markup",
            "text",
        ]
        assert nodes[1] == PhoneNumber("+4915112345678")
        assert nodes[3].markup_type == "strikethrough"


class TestLinksAndCookies:
    """Test links, statistics cookies and timestamps."""

    def test_link_with_description(self):
        """Test [[target][description]] links."""
        nodes = parse_markup_and_cookies("see [[https://example.com][Example]] now")

        assert nodes[1] == Link(target="https://example.com", description="Example")

    def test_link_without_description(self):
        """Test [[target]] links."""
        assert parse_markup_and_cookies("[[file:notes.org]]") == [Link(target="file:notes.org")]

    def test_statistics_cookies(self):
        """Test fraction and percentage cookies."""
        nodes = parse_markup_and_cookies("Tasks [2/5] and [40%]")

        assert [node.type for node in nodes] == ["text", "statistics-cookie", "text", "statistics-cookie"]
        assert nodes[1] == StatisticsCookie("2/5")
        assert not nodes[1].is_percentage
        assert nodes[3].is_percentage

    def test_empty_cookie(self):
        """Test a freshly inserted [/] cookie."""
        assert parse_markup_and_cookies("[/]") == [StatisticsCookie("/")]

    def test_checkbox_is_not_a_cookie(self):
        """Test list checkboxes stay plain text."""
        assert parse_markup_and_cookies("- [X] done") == [Text("- [X] done")]

    def test_timestamp_in_text(self):
        """Test timestamps inside running text."""
        nodes = parse_markup_and_cookies("Meet <2019-08-02 Fri 14:00>")

        assert [node.type for node in nodes] == ["text", "timestamp"]
        assert isinstance(nodes[1], TimestampNode)
        assert nodes[1].raw == "<2019-08-02 Fri 14:00>"
        assert nodes[1].timestamp.start_time == "14:00"

    def test_delimiter_inside_link_does_not_close_markup(self):
        """Test a bold span closes after a link that contains its delimiter."""
        nodes = parse_markup_and_cookies("*x [[a*][b]] y*")

        assert nodes == [
            InlineMarkup(
                markup_type="bold",
                delimiter="*",
                contents=(Text("x "), Link(target="a*", description="b"), Text(" y")),
            )
        ]

    def test_delimiter_inside_link_without_outer_closer(self):
        """Test markup stays unopened when its only closer is inside a link."""
        nodes = parse_markup_and_cookies("/x [[a/][b]] y")

        assert nodes == [Text("/x "), Link(target="a/", description="b"), Text(" y")]

    def test_invalid_timestamp_is_text(self):
        """Test a calendar-invalid date is not a timestamp."""
        assert node_types("<2019-02-30 Sat>") == ["text"]


class TestPlainTextRecognizers:
    """Test URL, www, e-mail and phone number recognition."""

    def test_url_excludes_trailing_punctuation(self):
        """Test a sentence-ending period is not part of the URL."""
        nodes = parse_markup_and_cookies("Visit https://example.com/docs.")

        assert nodes == [Text("Visit "), Url("https://example.com/docs"), Text(".")]

    def test_url_with_query(self):
        """Test query strings are kept."""
        nodes = parse_markup_and_cookies("http://example.com/path?query=1, nice")
        assert nodes[0] == Url("http://example.com/path?query=1")

    def test_www_url(self):
        """Test www. URLs without a scheme."""
        nodes = parse_markup_and_cookies("Visit www.example.com today")
        assert nodes == [Text("Visit "), WwwUrl("www.example.com"), Text(" today")]

    def test_www_requires_domain(self):
        """Test www. without a dotted domain stays text."""
        assert node_types("www.invalid and wwwexample.com") == ["text"]

    def test_email(self):
        """Test e-mail addresses."""
        nodes = parse_markup_and_cookies("Mail hello@example.com.")
        assert nodes == [Text("Mail "), Email("hello@example.com"), Text(".")]

    def test_phone_number_needs_enough_digits(self):
        """Test short numbers are not phone numbers."""
        assert node_types("+123 items") == ["text"]


class TestPartition:
    """Test that parsed nodes always reproduce the input."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain",
            "*bold* and /italic/ and _under_ and +strike+",
            "nested *bold /and italic/ text*",
            "unbalanced *star and /slash",
            "[[link][desc]] [1/3] [50%] <2019-07-30 Tue> [2019-07-30 Tue]",
            "https://example.com, www.example.com and a@b.io +41791234567",
            "*a\n\nb* *c\nd*",
            "** * ** *** ~~ == ++",
            "tabs\tand\r\nCRLF",
        ],
    )
    def test_export_reproduces_input(self, text):
        """Test exporting parsed nodes gives back the exact text."""
        assert export_inline(parse_markup_and_cookies(text)) == text

    def test_many_delimiters(self):
        """Test long runs of unmatched delimiters are handled."""
        text = "*a " * 2000
        assert export_inline(parse_markup_and_cookies(text)) == text
