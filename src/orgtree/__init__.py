"""orgtree - Lossless parser and exporter for Org documents.

This package parses Org outline text into an immutable document tree and
exports that tree back to text that is byte-identical to the source when
nothing was edited.

Key features:
- Headlines with TODO keywords, priorities and tags
- Planning items (SCHEDULED / DEADLINE / CLOSED), property drawers, logbooks
- In-buffer #+TODO / #+TYP_TODO keyword sets, scoped by position in the file
- Inline markup, links, URLs, e-mail addresses, phone numbers, statistics
  cookies and timestamps

Example:
    >>> from orgtree import OrgDocument
    >>> document = OrgDocument.parse("* TODO Write *report*\\n")
    >>> document.headers[0].todo_keyword
    'TODO'
    >>> document.export()
    '* TODO Write *report*\\n'
"""

from orgtree.config import ParserConfig, load_config
from orgtree.exceptions import ConfigError, OrgContractError
from orgtree.exporter import export_header, export_inline, export_org, export_title_line
from orgtree.inline import parse_markup_and_cookies
from orgtree.models import (
    Header,
    Logbook,
    LogbookEntry,
    OrgDocument,
    PlanningItem,
    PlanningKeyword,
    PropertiesDrawer,
    Property,
    TitleLine,
)
from orgtree.parser import classify_line, parse_org
from orgtree.planning import parse_planning_items
from orgtree.timestamps import Timestamp, parse_timestamp
from orgtree.todo_keywords import TodoKeywordSet, default_todo_keyword_set, parse_todo_keyword_config

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "Header",
    "Logbook",
    "LogbookEntry",
    "OrgContractError",
    "OrgDocument",
    "ParserConfig",
    "PlanningItem",
    "PlanningKeyword",
    "PropertiesDrawer",
    "Property",
    "TitleLine",
    "Timestamp",
    "TodoKeywordSet",
    "classify_line",
    "default_todo_keyword_set",
    "export_header",
    "export_inline",
    "export_org",
    "export_title_line",
    "load_config",
    "parse_markup_and_cookies",
    "parse_org",
    "parse_planning_items",
    "parse_timestamp",
    "parse_todo_keyword_config",
]
