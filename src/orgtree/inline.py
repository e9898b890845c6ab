"""Inline markup and cookie parser.

Turns a run of Org text (a headline title or a header body) into a flat
sequence of inline nodes whose raw spans partition the input exactly.
Markup spans nest, so an InlineMarkup node carries its own node sequence.

Recognized inline syntax:
- Markup: *bold*, /italic/, _underline_, +strikethrough+, =verbatim=, ~code~
- Links: [[target]] and [[target][description]]
- Statistics cookies: [2/5], [40%]
- Timestamps: <2019-07-30 Tue>, [2019-07-30 Tue 10:00]
- Bare http(s) URLs, www. URLs, e-mail addresses and +digits phone numbers
"""

import re
from bisect import bisect_left
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from orgtree.timestamps import Timestamp, parse_timestamp


MARKUP_TYPES = {
    "*": "bold",
    "/": "italic",
    "_": "underline",
    "+": "strikethrough",
    "=": "verbatim",
    "~": "code",
}

# Contents of these markup types are literal and never parsed recursively
LITERAL_MARKUP_TYPES = {"verbatim", "code"}

# Characters allowed right before an opening / right after a closing delimiter
MARKUP_PRE = "-({['\""
MARKUP_POST = "-.,;:!?'\")]}["

LINK_RE = re.compile(r"\[\[(?P<target>[^\]]+)\](?:\[(?P<description>[^\]]*)\])?\]")
STATISTICS_COOKIE_RE = re.compile(r"\[(?P<value>\d*/\d*|\d*%)\]")
BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")

# A URL never ends in sentence punctuation or a markup delimiter
_URL_TAIL = r"[^\s<>\[\]\"']*[^\s<>\[\]\"'.,;:!?()*+~=]"

PHONE_NUMBER_RE = re.compile(r"(?<![\w+])\+[1-9]\d{5,14}(?!\d)")
PLAIN_TEXT_RE = re.compile(
    r"(?P<url>(?<![\w.])https?://" + _URL_TAIL + r")"
    r"|(?P<email>(?<![\w.%+-])[\w.%+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}(?![\w-]))"
    r"|(?P<www>(?<![\w./@-])www\.[\w-]+(?:\.[\w-]+)+(?:/(?:" + _URL_TAIL + r")?)?)"
    r"|(?P<phone>" + PHONE_NUMBER_RE.pattern + r")"
)


@dataclass(frozen=True)
class Text:
    """Plain text that carries no further structure."""

    type: ClassVar[str] = "text"

    text: str


@dataclass(frozen=True)
class InlineMarkup:
    """A delimited markup span such as *bold* or ~code~.

    Attributes:
        markup_type: One of bold, italic, underline, strikethrough, verbatim, code
        delimiter: The delimiter character used in the source
        contents: Nested inline nodes between the delimiters
    """

    type: ClassVar[str] = "inline-markup"

    markup_type: str
    delimiter: str
    contents: tuple["InlineNode", ...]


@dataclass(frozen=True)
class Link:
    """An Org bracket link. `description` is None for [[target]] links."""

    type: ClassVar[str] = "link"

    target: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Url:
    type: ClassVar[str] = "url"

    url: str


@dataclass(frozen=True)
class WwwUrl:
    type: ClassVar[str] = "www-url"

    url: str


@dataclass(frozen=True)
class Email:
    type: ClassVar[str] = "e-mail"

    address: str


@dataclass(frozen=True)
class PhoneNumber:
    type: ClassVar[str] = "phone-number"

    number: str


@dataclass(frozen=True)
class StatisticsCookie:
    """A [done/total] or [percent%] progress cookie.

    Attributes:
        value: Text between the brackets exactly as written ("1/3", "50%", "/")
    """

    type: ClassVar[str] = "statistics-cookie"

    value: str

    @property
    def is_percentage(self) -> bool:
        return self.value.endswith("%")


@dataclass(frozen=True)
class TimestampNode:
    """A timestamp found in running text; `raw` is the exact source text."""

    type: ClassVar[str] = "timestamp"

    timestamp: Timestamp
    raw: str


InlineNode = Union[
    Text,
    InlineMarkup,
    Link,
    Url,
    WwwUrl,
    Email,
    PhoneNumber,
    StatisticsCookie,
    TimestampNode,
]


def parse_markup_and_cookies(text: str) -> list[InlineNode]:
    """Parse a run of Org text into inline nodes.

    Never raises: anything that is not recognized stays plain text, and an
    unbalanced delimiter is kept as a literal character.

    Args:
        text: Title or body text

    Returns:
        Inline nodes whose exported spans concatenate to exactly `text`

    Examples:
        >>> [node.type for node in parse_markup_and_cookies("*bold*;")]
        ['inline-markup', 'text']
        >>> [node.type for node in parse_markup_and_cookies(" *bold*;")]
        ['text', 'inline-markup', 'text']
    """
    nodes: list[InlineNode] = []
    closers = _closing_delimiter_positions(text)
    blank_lines = [m.start() for m in BLANK_LINE_RE.finditer(text)]

    plain_start = 0
    i = 0
    while i < len(text):
        char = text[i]
        found = None
        if char == "[":
            found = _match_link(text, i) or _match_cookie(text, i) or _match_timestamp(text, i)
        elif char == "<":
            found = _match_timestamp(text, i)
        elif char in MARKUP_TYPES:
            found = _match_markup(text, i, closers, blank_lines)

        if found is None:
            i += 1
            continue

        node, end = found
        nodes.extend(_parse_plain_text(text[plain_start:i]))
        nodes.append(node)
        i = plain_start = end

    nodes.extend(_parse_plain_text(text[plain_start:]))
    return nodes


def _closing_delimiter_positions(text: str) -> dict[str, list[int]]:
    """Collect, per delimiter, every index that could close a markup span.

    Delimiters inside a link or timestamp never close markup.
    """
    closers: dict[str, list[int]] = {delimiter: [] for delimiter in MARKUP_TYPES}
    atomic = _atomic_span_mask(text)
    last = len(text) - 1
    for j, char in enumerate(text):
        if char not in MARKUP_TYPES or j == 0 or atomic[j] or text[j - 1].isspace():
            continue
        if j == last or text[j + 1].isspace() or text[j + 1] in MARKUP_POST:
            closers[char].append(j)
    return closers


def _atomic_span_mask(text: str) -> bytearray:
    """Mark every index covered by a bracket link or a timestamp."""
    mask = bytearray(len(text))
    i = 0
    while i < len(text):
        end = None
        if text[i] == "[":
            m = LINK_RE.match(text, i)
            if m:
                end = m.end()
        if end is None and text[i] in "[<":
            parsed = parse_timestamp(text, i)
            if parsed is not None:
                end = parsed[1]
        if end is None:
            i += 1
            continue
        mask[i:end] = b"\x01" * (end - i)
        i = end
    return mask


def _match_markup(
    text: str, i: int, closers: dict[str, list[int]], blank_lines: list[int]
) -> Optional[tuple[InlineMarkup, int]]:
    delimiter = text[i]
    if i > 0 and not (text[i - 1].isspace() or text[i - 1] in MARKUP_PRE):
        return None
    if i + 1 >= len(text) or text[i + 1].isspace():
        return None
    if delimiter == "+" and PHONE_NUMBER_RE.match(text, i):
        return None

    candidates = closers[delimiter]
    k = bisect_left(candidates, i + 2)
    if k == len(candidates):
        return None
    close = candidates[k]

    b = bisect_left(blank_lines, i)
    if b < len(blank_lines) and blank_lines[b] < close:
        return None

    markup_type = MARKUP_TYPES[delimiter]
    inner = text[i + 1 : close]
    if markup_type in LITERAL_MARKUP_TYPES:
        contents: tuple[InlineNode, ...] = (Text(inner),)
    else:
        contents = tuple(parse_markup_and_cookies(inner))

    return InlineMarkup(markup_type=markup_type, delimiter=delimiter, contents=contents), close + 1


def _match_link(text: str, i: int) -> Optional[tuple[Link, int]]:
    m = LINK_RE.match(text, i)
    if not m:
        return None
    return Link(target=m.group("target"), description=m.group("description")), m.end()


def _match_cookie(text: str, i: int) -> Optional[tuple[StatisticsCookie, int]]:
    m = STATISTICS_COOKIE_RE.match(text, i)
    if not m:
        return None
    return StatisticsCookie(value=m.group("value")), m.end()


def _match_timestamp(text: str, i: int) -> Optional[tuple[TimestampNode, int]]:
    parsed = parse_timestamp(text, i)
    if parsed is None:
        return None
    timestamp, end = parsed
    return TimestampNode(timestamp=timestamp, raw=text[i:end]), end


def _parse_plain_text(text: str) -> list[InlineNode]:
    """Split a markup-free run into text, URL, e-mail and phone nodes."""
    nodes: list[InlineNode] = []
    position = 0
    for m in PLAIN_TEXT_RE.finditer(text):
        if m.start() > position:
            nodes.append(Text(text[position : m.start()]))

        kind = m.lastgroup
        value = m.group()
        if kind == "url":
            nodes.append(Url(value))
        elif kind == "email":
            nodes.append(Email(value))
        elif kind == "www":
            nodes.append(WwwUrl(value))
        else:
            nodes.append(PhoneNumber(value))
        position = m.end()

    if position < len(text):
        nodes.append(Text(text[position:]))
    return nodes


def iter_timestamps(nodes: "tuple[InlineNode, ...] | list[InlineNode]"):
    """Yield every TimestampNode in `nodes`, descending into markup."""
    for node in nodes:
        if isinstance(node, TimestampNode):
            yield node
        elif isinstance(node, InlineMarkup):
            yield from iter_timestamps(node.contents)
