"""Planning line extraction.

A planning line directly follows a headline and holds nothing but
SCHEDULED / DEADLINE / CLOSED timestamps:

    * TODO Write report
      SCHEDULED: <2019-07-30 Tue> DEADLINE: <2019-08-02 Fri>

Only lines at the very start of a header body are considered, and a line is
consumed only when every part of it is valid planning syntax.
"""

import re
from dataclasses import dataclass
from typing import Optional

from orgtree.models import PlanningItem, PlanningKeyword
from orgtree.timestamps import parse_timestamp


PLANNING_KEYWORD_RE = re.compile(r"(?P<keyword>SCHEDULED|DEADLINE|CLOSED):[ \t]*")
WHITESPACE_RE = re.compile(r"[ \t]*")


@dataclass(frozen=True)
class PlanningResult:
    """Result of splitting planning lines off a header body.

    Attributes:
        planning_items: Items in source order
        stripped_description: The body with the consumed lines removed
        indent: Indentation of the first consumed line (None if none consumed)
        lines: Consumed lines exactly as written, without their newlines
    """

    planning_items: tuple[PlanningItem, ...]
    stripped_description: str
    indent: Optional[str] = None
    lines: tuple[str, ...] = ()


def parse_planning_items(body: str) -> PlanningResult:
    """Split leading planning lines off a header body.

    Args:
        body: Header body, starting right after the headline's newline

    Returns:
        PlanningResult. With no planning syntax at the start of `body`,
        `planning_items` is empty and `stripped_description` is `body`
        unchanged.

    Examples:
        >>> result = parse_planning_items("SCHEDULED: <2019-07-30 Tue>\\n  - indented list")
        >>> result.stripped_description
        '  - indented list'
        >>> result.planning_items[0].timestamp.day_name
        'Tue'
    """
    items: list[PlanningItem] = []
    lines: list[str] = []
    indent: Optional[str] = None
    offset = 0

    while offset < len(body):
        newline = body.find("\n", offset)
        line_end = len(body) if newline == -1 else newline

        line = body[offset:line_end]
        parsed = _parse_planning_line(line)
        if parsed is None:
            break

        line_indent, line_items = parsed
        if indent is None:
            indent = line_indent
        items.extend(line_items)
        lines.append(line)
        offset = line_end if newline == -1 else newline + 1

    return PlanningResult(
        planning_items=tuple(items),
        stripped_description=body[offset:],
        indent=indent,
        lines=tuple(lines),
    )


def _parse_planning_line(line: str) -> Optional[tuple[str, list[PlanningItem]]]:
    """Parse a line consisting solely of KEYWORD: <timestamp> pairs."""
    indent = WHITESPACE_RE.match(line).group()
    pos = len(indent)
    items: list[PlanningItem] = []

    while m := PLANNING_KEYWORD_RE.match(line, pos):
        parsed = parse_timestamp(line, m.end())
        if parsed is None:
            return None

        timestamp, end = parsed
        items.append(
            PlanningItem(
                keyword=PlanningKeyword(m.group("keyword")),
                timestamp=timestamp,
                raw=line[m.start() : end],
            )
        )
        pos = WHITESPACE_RE.match(line, end).end()

    if not items or pos != len(line):
        return None
    return indent, items
