"""Org exporter: the inverse of orgtree.parser.

Given an unmodified parse result the exporter reproduces the source text
byte for byte, planning lines included. Edited trees are written in the
layout Emacs uses:

- Planning items go on one line, SCHEDULED then DEADLINE then CLOSED
- Property values are aligned with org-property-format ("%-10s %s")
- Tags are right-aligned to column 77

Metadata lines keep the indentation recorded at parse time. Hand-built
nodes without recorded indentation are indented by level + 1 spaces, or
not at all when `dont_indent` is set.
"""

from typing import Iterable, Sequence

from orgtree.exceptions import OrgContractError
from orgtree.inline import (
    Email,
    InlineMarkup,
    InlineNode,
    Link,
    PhoneNumber,
    StatisticsCookie,
    Text,
    TimestampNode,
    Url,
    WwwUrl,
)
from orgtree.models import (
    PLANNING_LINE_ORDER,
    Header,
    Logbook,
    PlanningItem,
    PropertiesDrawer,
    Property,
)
from orgtree.planning import parse_planning_items


TAGS_COLUMN = 77
PROPERTY_KEY_WIDTH = 10


def export_org(
    headers: Sequence[Header],
    lines_before_headings: Sequence[str] = (),
    dont_indent: bool = False,
    ends_with_newline: bool = True,
) -> str:
    """Render headers and pre-heading lines back to Org text.

    Args:
        headers: Headers in file order
        lines_before_headings: Raw lines preceding the first headline
        dont_indent: Do not indent generated planning lines and drawers
        ends_with_newline: Whether the text should end with a newline

    Returns:
        Org document text

    Raises:
        OrgContractError: If the tree contains something that is not an
            orgtree node
    """
    if not headers:
        return "\n".join(lines_before_headings)

    parts = [line + "\n" for line in lines_before_headings]
    parts.extend(export_header(header, dont_indent=dont_indent) for header in headers)
    exported = "".join(parts)

    # Every header ends its metadata lines with a newline; drop the one the
    # source did not have
    if not ends_with_newline and exported.endswith("\n"):
        exported = exported[:-1]
    return exported


def export_header(header: Header, dont_indent: bool = False) -> str:
    """Render one header: headline, planning line, drawers and description."""
    if not isinstance(header, Header):
        _contract_violation(header, "Expected a Header")
    if not isinstance(header.level, int) or header.level < 1:
        _contract_violation(header.level, "Header level must be a positive integer")

    default_indent = "" if dont_indent else " " * (header.level + 1)
    parts = [export_title_line(header), "\n", _export_planning_lines(header, default_indent)]

    if header.properties is not None:
        parts.append(export_properties_drawer(header.properties, default_indent))

    if header.logbook is not None:
        parts.append(export_logbook(header.logbook, default_indent))

    parts.append(export_inline(header.description))
    return "".join(parts)


def export_title_line(header: Header) -> str:
    """Render the headline of `header` (without newline)."""
    title_line = header.title_line
    spacing = title_line.spacing

    headline = "*" * header.level + spacing.after_stars
    if title_line.todo_keyword:
        headline += title_line.todo_keyword + spacing.after_keyword
    if title_line.priority:
        headline += f"[#{title_line.priority}]" + spacing.after_priority
    headline += export_inline(title_line.title)

    if title_line.tags:
        tags = ":" + ":".join(title_line.tags) + ":"
        before_tags = spacing.before_tags
        if before_tags is None:
            before_tags = " " * max(1, TAGS_COLUMN - len(headline) - len(tags))
        headline += before_tags + tags + spacing.after_tags

    return headline


def _export_planning_lines(header: Header, default_indent: str) -> str:
    """Render the planning lines of `header`, including their newlines.

    Source lines are reused as long as they still describe exactly the
    header's planning items; after an edit the canonical single line is
    written instead.
    """
    if header.planning_lines:
        recorded = parse_planning_items("\n".join(header.planning_lines))
        if recorded.planning_items == header.planning_items and not recorded.stripped_description:
            return "".join(line + "\n" for line in header.planning_lines)

    planning_line = export_planning_items(header.planning_items)
    if not planning_line:
        return ""
    indent = header.planning_indent if header.planning_indent is not None else default_indent
    return f"{indent}{planning_line}\n"


def export_planning_items(planning_items: Iterable[PlanningItem]) -> str:
    """Render planning items as a single canonical planning line (no indent, no newline).

    Agenda-only items (TIMESTAMP_TITLE / TIMESTAMP_DESCRIPTION) are skipped.
    """
    items = [item for item in planning_items if item.keyword in PLANNING_LINE_ORDER]
    items.sort(key=lambda item: PLANNING_LINE_ORDER.index(item.keyword))
    return " ".join(f"{item.keyword.value}: {item.timestamp.render()}" for item in items)


def export_properties_drawer(drawer: PropertiesDrawer, default_indent: str = "") -> str:
    if not isinstance(drawer, PropertiesDrawer):
        _contract_violation(drawer, "Expected a PropertiesDrawer")

    indent = drawer.indent if drawer.indent is not None else default_indent
    lines = [f"{indent}:PROPERTIES:\n"]
    lines.extend(f"{indent}{_export_property(prop)}\n" for prop in drawer.properties)
    lines.append(f"{indent}:END:\n")
    return "".join(lines)


def _export_property(prop: Property) -> str:
    key = f":{prop.key}:"
    separator = prop.separator
    if separator is None:
        if not prop.value:
            return key
        separator = " " * (max(PROPERTY_KEY_WIDTH - len(key), 0) + 1)
    return key + separator + prop.value


def export_logbook(logbook: Logbook, default_indent: str = "") -> str:
    if not isinstance(logbook, Logbook):
        _contract_violation(logbook, "Expected a Logbook")

    indent = logbook.indent if logbook.indent is not None else default_indent
    lines = [f"{indent}:LOGBOOK:\n"]
    lines.extend(entry.raw + "\n" for entry in logbook.entries)
    lines.append(f"{indent}:END:\n")
    return "".join(lines)


def export_inline(nodes: Iterable[InlineNode]) -> str:
    """Render inline nodes back to text, reusing each node's own delimiters.

    Raises:
        OrgContractError: If a node is not one of the inline node types
    """
    return "".join(_export_inline_node(node) for node in nodes)


def _export_inline_node(node: InlineNode) -> str:
    if isinstance(node, Text):
        return node.text
    if isinstance(node, InlineMarkup):
        return node.delimiter + export_inline(node.contents) + node.delimiter
    if isinstance(node, Link):
        if node.description is None:
            return f"[[{node.target}]]"
        return f"[[{node.target}][{node.description}]]"
    if isinstance(node, (Url, WwwUrl)):
        return node.url
    if isinstance(node, Email):
        return node.address
    if isinstance(node, PhoneNumber):
        return node.number
    if isinstance(node, StatisticsCookie):
        return f"[{node.value}]"
    if isinstance(node, TimestampNode):
        return node.raw
    _contract_violation(node, "Unknown inline node")


def _contract_violation(node: object, message: str) -> None:
    raise OrgContractError(node, message)
