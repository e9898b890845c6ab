"""Org document parser.

This module splits an Org file into the content before the first headline
and a flat list of headers, and breaks each header into its title line,
planning items, property drawer, logbook and description.

IMPORTANT: Parsing is lossless. Everything the structural grammar does not
recognize stays in `lines_before_headings` or in a header's
`raw_description`, so orgtree.exporter.export_org(parse_org(text)) == text.
"""

import re
from enum import Enum
from typing import Optional

from orgtree.config import ParserConfig
from orgtree.inline import parse_markup_and_cookies
from orgtree.models import (
    Header,
    Logbook,
    LogbookEntry,
    LogbookEntryKind,
    OrgDocument,
    PropertiesDrawer,
    Property,
    TitleLine,
    TitleSpacing,
)
from orgtree.planning import parse_planning_items
from orgtree.timestamps import INACTIVE_TIMESTAMP_RE, parse_timestamp
from orgtree.todo_keywords import (
    TODO_CONFIG_RE,
    TodoKeywordSet,
    default_todo_keyword_set,
    parse_todo_keyword_config,
)


HEADLINE_RE = re.compile(r"^(?P<stars>\*+)(?P<spacing>[ \t]+)(?P<rest>.*)$")
TAGS_RE = re.compile(r"(?P<before>^|[ \t]+)(?P<tags>:(?:[\w@#%]+:)+)(?P<after>[ \t]*)$")
TITLE_KEYWORD_RE = re.compile(r"(?P<keyword>[^ \t]+)(?P<spacing>[ \t]+|$)")
PRIORITY_RE = re.compile(r"\[#(?P<priority>[A-Z0-9])\](?P<spacing>[ \t]+|$)")

PROPERTIES_BEGIN_RE = re.compile(r"^(?P<indent>[ \t]*):PROPERTIES:$")
LOGBOOK_BEGIN_RE = re.compile(r"^(?P<indent>[ \t]*):LOGBOOK:$")
PROPERTY_RE = re.compile(r"^:(?P<key>\S+?):(?P<separator>[ \t]+|$)(?P<value>.*)$")

LOGBOOK_ENTRY_START_RE = re.compile(r"^[ \t]*(?:CLOCK:|- )")
CLOCK_RE = re.compile(r"^[ \t]*CLOCK:[ \t]*")
CLOCK_DURATION_RE = re.compile(r"=>[ \t]*(?P<duration>-?\d+:\d{2})")
STATE_CHANGE_RE = re.compile(
    r'^[ \t]*- State "(?P<new>[^"]*)"[ \t]+from(?:[ \t]+"(?P<old>[^"]*)")?'
)
NOTE_RE = re.compile(r"^[ \t]*- Note taken on ")


class LineKind(Enum):
    """Structural kind of a single source line."""

    HEADLINE = "headline"
    TODO_CONFIG = "todo-config"
    CONTENT = "content"


def classify_line(line: str) -> LineKind:
    """Classify a line before structural parsing.

    Args:
        line: One line of Org text, without its newline

    Returns:
        HEADLINE for `* ...` lines, TODO_CONFIG for #+TODO / #+TYP_TODO
        settings, CONTENT for everything else
    """
    if HEADLINE_RE.match(line):
        return LineKind.HEADLINE
    if TODO_CONFIG_RE.match(line):
        return LineKind.TODO_CONFIG
    return LineKind.CONTENT


def parse_org(text: str, config: Optional[ParserConfig] = None) -> OrgDocument:
    """Parse Org text into an OrgDocument.

    Never raises for string input. Each #+TODO / #+TYP_TODO line yields a
    keyword set; a header uses the set of the closest config line above it,
    and headers above the first config line use the first set in the file.
    Without any config line a single default set is built from
    `config.default_todo_keywords`.

    Args:
        text: Full Org document text (line endings are kept as they are)
        config: Parser settings (defaults used when None)

    Returns:
        Parsed OrgDocument

    Examples:
        >>> document = parse_org("* TODO Buy milk :errand:\\n")
        >>> document.headers[0].todo_keyword, document.headers[0].tags
        ('TODO', ('errand',))
    """
    config = config or ParserConfig()
    lines = text.split("\n")
    kinds = [classify_line(line) for line in lines]

    keyword_sets_by_line: dict[int, TodoKeywordSet] = {}
    for index, kind in enumerate(kinds):
        if kind is LineKind.TODO_CONFIG:
            keyword_set = parse_todo_keyword_config(lines[index])
            if keyword_set is not None:
                keyword_sets_by_line[index] = keyword_set

    todo_keyword_sets = tuple(keyword_sets_by_line.values())
    if not todo_keyword_sets:
        todo_keyword_sets = (default_todo_keyword_set(config.default_todo_keywords),)

    header_starts = [index for index, kind in enumerate(kinds) if kind is LineKind.HEADLINE]
    if not header_starts:
        return OrgDocument(
            lines_before_headings=tuple(lines),
            headers=(),
            todo_keyword_sets=todo_keyword_sets,
            ends_with_newline=text.endswith("\n"),
        )

    config_positions = list(keyword_sets_by_line)
    next_config = 0
    active_set = todo_keyword_sets[0]

    headers = []
    for n, start in enumerate(header_starts):
        while next_config < len(config_positions) and config_positions[next_config] < start:
            active_set = keyword_sets_by_line[config_positions[next_config]]
            next_config += 1

        is_last = n + 1 == len(header_starts)
        stop = len(lines) if is_last else header_starts[n + 1]
        body_lines = lines[start + 1 : stop]
        # The last header's body runs to the end of the text, which may lack a newline
        body = "\n".join(body_lines) if is_last else "".join(line + "\n" for line in body_lines)

        headers.append(parse_header(lines[start], body, active_set))

    return OrgDocument(
        lines_before_headings=tuple(lines[: header_starts[0]]),
        headers=tuple(headers),
        todo_keyword_sets=todo_keyword_sets,
        ends_with_newline=text.endswith("\n"),
    )


def parse_header(line: str, body: str, keyword_set: TodoKeywordSet) -> Header:
    """Parse one header from its headline and the body text below it.

    Args:
        line: The headline, without newline
        body: Text between the headline's newline and the next headline
        keyword_set: TODO keywords in effect for this header

    Returns:
        Parsed Header

    Raises:
        ValueError: If `line` is not a headline
    """
    m = HEADLINE_RE.match(line)
    if not m:
        raise ValueError(f"Not a headline: {line!r}")

    title_line = parse_title_line(m.group("rest"), keyword_set, after_stars=m.group("spacing"))

    planning = parse_planning_items(body)
    properties, remainder = _extract_properties_drawer(planning.stripped_description)
    logbook, remainder = _extract_logbook(remainder)

    return Header(
        level=len(m.group("stars")),
        title_line=title_line,
        planning_items=planning.planning_items,
        properties=properties,
        logbook=logbook,
        description=tuple(parse_markup_and_cookies(remainder)),
        raw_description=remainder,
        planning_indent=planning.indent,
        planning_lines=planning.lines,
    )


def parse_title_line(text: str, keyword_set: TodoKeywordSet, after_stars: str = " ") -> TitleLine:
    """Parse the part of a headline that follows the stars.

    The TODO keyword is recognized before any inline parsing: it must be a
    whole whitespace-delimited token present in `keyword_set`, so
    "TODO*bold*" stays plain title text.

    Args:
        text: Headline text after the stars and their spacing
        keyword_set: TODO keywords in effect
        after_stars: Whitespace between the stars and `text`

    Returns:
        Parsed TitleLine
    """
    tags: tuple[str, ...] = ()
    before_tags: Optional[str] = None
    after_tags = ""
    if tag_match := TAGS_RE.search(text):
        tags = tuple(tag for tag in tag_match.group("tags").split(":") if tag)
        before_tags = tag_match.group("before")
        after_tags = tag_match.group("after")
        text = text[: tag_match.start()]

    todo_keyword = None
    after_keyword = " "
    keyword_match = TITLE_KEYWORD_RE.match(text)
    if keyword_match and keyword_match.group("keyword") in keyword_set:
        todo_keyword = keyword_match.group("keyword")
        after_keyword = keyword_match.group("spacing")
        text = text[keyword_match.end() :]

    priority = None
    after_priority = " "
    if priority_match := PRIORITY_RE.match(text):
        priority = priority_match.group("priority")
        after_priority = priority_match.group("spacing")
        text = text[priority_match.end() :]

    return TitleLine(
        raw_title=text,
        title=tuple(parse_markup_and_cookies(text)),
        todo_keyword=todo_keyword,
        priority=priority,
        tags=tags,
        spacing=TitleSpacing(
            after_stars=after_stars,
            after_keyword=after_keyword,
            after_priority=after_priority,
            before_tags=before_tags,
            after_tags=after_tags,
        ),
    )


def _take_drawer(text: str, begin_re: re.Pattern) -> Optional[tuple[str, list[str], str]]:
    """Split a drawer off the start of `text`.

    Returns:
        Tuple of (indent, inner lines, remaining text), or None if `text`
        does not start with a complete drawer whose :END: line has the same
        indentation as its opening line
    """
    lines = text.split("\n")
    begin = begin_re.match(lines[0])
    if not begin:
        return None

    indent = begin.group("indent")
    end_line = indent + ":END:"
    for end, line in enumerate(lines[1:], start=1):
        if line == end_line:
            return indent, lines[1:end], "\n".join(lines[end + 1 :])
    return None


def _extract_properties_drawer(text: str) -> tuple[Optional[PropertiesDrawer], str]:
    drawer = _take_drawer(text, PROPERTIES_BEGIN_RE)
    if drawer is None:
        return None, text

    indent, inner, remainder = drawer
    properties = []
    for line in inner:
        m = PROPERTY_RE.match(line[len(indent) :]) if line.startswith(indent) else None
        if not m:
            # Not in the drawer grammar: keep the whole block as description text
            return None, text
        properties.append(
            Property(key=m.group("key"), value=m.group("value"), separator=m.group("separator"))
        )

    return PropertiesDrawer(properties=tuple(properties), indent=indent), remainder


def _extract_logbook(text: str) -> tuple[Optional[Logbook], str]:
    drawer = _take_drawer(text, LOGBOOK_BEGIN_RE)
    if drawer is None:
        return None, text

    indent, inner, remainder = drawer
    groups: list[list[str]] = []
    for line in inner:
        if LOGBOOK_ENTRY_START_RE.match(line) or not groups:
            groups.append([line])
        else:
            groups[-1].append(line)

    entries = tuple(_parse_logbook_entry("\n".join(group)) for group in groups)
    return Logbook(entries=entries, indent=indent), remainder


def _parse_logbook_entry(raw: str) -> LogbookEntry:
    """Classify a logbook entry and pull out its timestamp and states."""
    if m := CLOCK_RE.match(raw):
        parsed = parse_timestamp(raw, m.end())
        duration = CLOCK_DURATION_RE.search(raw)
        return LogbookEntry(
            kind=LogbookEntryKind.CLOCK,
            raw=raw,
            timestamp=parsed[0] if parsed else None,
            duration=duration.group("duration") if duration else None,
        )

    timestamp = None
    if ts_match := INACTIVE_TIMESTAMP_RE.search(raw):
        parsed = parse_timestamp(raw, ts_match.start())
        timestamp = parsed[0] if parsed else None

    if m := STATE_CHANGE_RE.match(raw):
        return LogbookEntry(
            kind=LogbookEntryKind.STATE_CHANGE,
            raw=raw,
            timestamp=timestamp,
            new_state=m.group("new"),
            old_state=m.group("old"),
        )

    if NOTE_RE.match(raw):
        return LogbookEntry(kind=LogbookEntryKind.NOTE, raw=raw, timestamp=timestamp)

    return LogbookEntry(kind=LogbookEntryKind.OTHER, raw=raw, timestamp=timestamp)
