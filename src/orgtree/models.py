"""Value types of a parsed Org document.

Every type here is a frozen dataclass holding tuples, so a parsed tree is an
immutable value. Editing means building a new tree (dataclasses.replace).

IMPORTANT: Enough formatting detail is kept (indentation of drawers, spacing
inside the headline, whether the file ended in a newline) for the exporter
to reproduce the source byte for byte.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from orgtree.inline import InlineNode, iter_timestamps
from orgtree.timestamps import Timestamp
from orgtree.todo_keywords import TodoKeywordSet


class PlanningKeyword(str, Enum):
    """Keyword in front of a planning timestamp.

    TIMESTAMP_TITLE and TIMESTAMP_DESCRIPTION never appear in a planning
    line; they tag active timestamps found in the title or body when
    collected through Header.agenda_items.
    """

    SCHEDULED = "SCHEDULED"
    DEADLINE = "DEADLINE"
    CLOSED = "CLOSED"
    TIMESTAMP_TITLE = "TIMESTAMP_TITLE"
    TIMESTAMP_DESCRIPTION = "TIMESTAMP_DESCRIPTION"


# Order in which planning items are written back
PLANNING_LINE_ORDER = (PlanningKeyword.SCHEDULED, PlanningKeyword.DEADLINE, PlanningKeyword.CLOSED)


@dataclass(frozen=True)
class PlanningItem:
    """A timestamp attached to a header.

    Attributes:
        keyword: SCHEDULED, DEADLINE or CLOSED (or a TIMESTAMP_* agenda tag)
        timestamp: Parsed timestamp
        raw: Source text, e.g. "SCHEDULED: <2019-07-30 Tue>"
    """

    keyword: PlanningKeyword
    timestamp: Timestamp
    raw: str = ""


@dataclass(frozen=True)
class Property:
    """One `:KEY: value` line of a properties drawer.

    `separator` is the whitespace between `:KEY:` and the value; None means
    "align like Emacs" when exporting.
    """

    key: str
    value: str
    separator: Optional[str] = None


@dataclass(frozen=True)
class PropertiesDrawer:
    """A :PROPERTIES: ... :END: drawer.

    Keys keep their original spelling; lookups ignore case.

    Attributes:
        properties: Properties in source order
        indent: Indentation of the drawer lines (None = exporter default)
    """

    properties: tuple[Property, ...] = ()
    indent: Optional[str] = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get the value of the first property named `key` (case-insensitive)."""
        wanted = key.casefold()
        for prop in self.properties:
            if prop.key.casefold() == wanted:
                return prop.value
        return default

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def keys(self) -> list[str]:
        return [prop.key for prop in self.properties]

    def as_dict(self) -> dict[str, str]:
        """Properties as an insertion-ordered dict (later duplicates win)."""
        return {prop.key: prop.value for prop in self.properties}


class LogbookEntryKind(str, Enum):
    CLOCK = "clock"
    STATE_CHANGE = "state-change"
    NOTE = "note"
    OTHER = "other"


@dataclass(frozen=True)
class LogbookEntry:
    """One logbook entry.

    Attributes:
        kind: clock, state-change, note or other
        raw: Exact entry text; continuation lines are joined with newlines
        timestamp: Clock range or the entry's inactive timestamp, if any
        duration: Clock duration as written ("1:30"), if any
        new_state: Target keyword of a state change
        old_state: Source keyword of a state change (None when unset)
    """

    kind: LogbookEntryKind
    raw: str
    timestamp: Optional[Timestamp] = None
    duration: Optional[str] = None
    new_state: Optional[str] = None
    old_state: Optional[str] = None


@dataclass(frozen=True)
class Logbook:
    """A :LOGBOOK: ... :END: drawer."""

    entries: tuple[LogbookEntry, ...] = ()
    indent: Optional[str] = None


@dataclass(frozen=True)
class TitleSpacing:
    """Whitespace found inside a headline.

    Attributes:
        after_stars: Between the stars and the rest of the line
        after_keyword: Between the TODO keyword and what follows
        after_priority: Between the priority cookie and the title
        before_tags: Between the title and the tags (None = align like Emacs)
        after_tags: Trailing whitespace after the tags
    """

    after_stars: str = " "
    after_keyword: str = " "
    after_priority: str = " "
    before_tags: Optional[str] = None
    after_tags: str = ""


@dataclass(frozen=True)
class TitleLine:
    """Parsed headline text (everything after the stars).

    Attributes:
        raw_title: Title text without keyword, priority and tags
        title: Inline nodes of raw_title
        todo_keyword: Recognized TODO keyword, if any
        priority: Priority letter or digit from [#A], if any
        tags: Tags in source order
        spacing: Whitespace needed to reproduce the headline exactly
    """

    raw_title: str
    title: tuple[InlineNode, ...] = ()
    todo_keyword: Optional[str] = None
    priority: Optional[str] = None
    tags: tuple[str, ...] = ()
    spacing: TitleSpacing = field(default_factory=TitleSpacing)


@dataclass(frozen=True)
class Header:
    """One outline node.

    Attributes:
        level: Number of leading stars (>= 1)
        title_line: Parsed headline
        planning_items: SCHEDULED/DEADLINE/CLOSED items from the planning line
        properties: Properties drawer, if any
        logbook: Logbook drawer, if any
        description: Inline nodes of raw_description
        raw_description: Body text left after planning items and drawers
        planning_indent: Indentation of the source planning line, if any
        planning_lines: Planning lines exactly as written in the source; the
            exporter reuses them while planning_items is unchanged
    """

    level: int
    title_line: TitleLine
    planning_items: tuple[PlanningItem, ...] = ()
    properties: Optional[PropertiesDrawer] = None
    logbook: Optional[Logbook] = None
    description: tuple[InlineNode, ...] = ()
    raw_description: str = ""
    planning_indent: Optional[str] = None
    planning_lines: tuple[str, ...] = ()

    @property
    def todo_keyword(self) -> Optional[str]:
        return self.title_line.todo_keyword

    @property
    def raw_title(self) -> str:
        return self.title_line.raw_title

    @property
    def tags(self) -> tuple[str, ...]:
        return self.title_line.tags

    @property
    def agenda_items(self) -> list[PlanningItem]:
        """Planning items plus every active timestamp in the title and body.

        Timestamps from the title are tagged TIMESTAMP_TITLE, those from the
        description TIMESTAMP_DESCRIPTION.
        """
        items = list(self.planning_items)
        for keyword, nodes in (
            (PlanningKeyword.TIMESTAMP_TITLE, self.title_line.title),
            (PlanningKeyword.TIMESTAMP_DESCRIPTION, self.description),
        ):
            for node in iter_timestamps(nodes):
                if node.timestamp.active:
                    items.append(PlanningItem(keyword=keyword, timestamp=node.timestamp, raw=node.raw))
        return items


@dataclass(frozen=True)
class OrgDocument:
    """Parsed representation of an Org file.

    Headers are stored flat in file order; nesting follows from their levels
    (see parent_index / children_indices / subtree).

    Attributes:
        lines_before_headings: Raw lines preceding the first headline
        headers: Headers in file order
        todo_keyword_sets: Keyword sets found in the file, in file order
        ends_with_newline: Whether the source text ended with a newline
    """

    lines_before_headings: tuple[str, ...] = ()
    headers: tuple[Header, ...] = ()
    todo_keyword_sets: tuple[TodoKeywordSet, ...] = ()
    ends_with_newline: bool = True

    @classmethod
    def parse(cls, text: str, config=None) -> "OrgDocument":
        """Parse Org text. See orgtree.parser.parse_org."""
        from orgtree.parser import parse_org

        return parse_org(text, config=config)

    def export(self, dont_indent: bool = False) -> str:
        """Render the document back to Org text. See orgtree.exporter.export_org."""
        from orgtree.exporter import export_org

        return export_org(
            headers=self.headers,
            lines_before_headings=self.lines_before_headings,
            dont_indent=dont_indent,
            ends_with_newline=self.ends_with_newline,
        )

    def parent_index(self, index: int) -> Optional[int]:
        """Index of the closest preceding header with a lower level."""
        level = self.headers[index].level
        for candidate in range(index - 1, -1, -1):
            if self.headers[candidate].level < level:
                return candidate
        return None

    def subtree_end(self, index: int) -> int:
        """Index one past the last descendant of header `index`."""
        level = self.headers[index].level
        end = index + 1
        while end < len(self.headers) and self.headers[end].level > level:
            end += 1
        return end

    def subtree(self, index: int) -> tuple[Header, ...]:
        """Header `index` followed by all of its descendants."""
        return self.headers[index : self.subtree_end(index)]

    def children_indices(self, index: int) -> list[int]:
        """Indices of the direct children of header `index`."""
        return [
            candidate
            for candidate in range(index + 1, self.subtree_end(index))
            if self.parent_index(candidate) == index
        ]

    def iter_headers(self, keyword: Optional[str] = None) -> Iterator[Header]:
        """Iterate headers, optionally only those with TODO keyword `keyword`."""
        for header in self.headers:
            if keyword is None or header.todo_keyword == keyword:
                yield header
