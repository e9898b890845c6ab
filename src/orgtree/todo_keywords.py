"""Parser for #+TODO / #+TYP_TODO in-buffer settings.

    #+TODO: TODO(t) WAIT(w@/!) | DONE(d!) CANCELED(c@)

Keywords before `|` are not-done states, keywords after it are completed
states. Each keyword may carry a parenthesized annotation: a shortcut
character, then the logging flags used on entering the state, then `/` and
the flags used on leaving it (`!` = timestamp, `@` = note).
"""

import re
from dataclasses import dataclass
from typing import Optional


TODO_CONFIG_RE = re.compile(r"^#\+(?:TYP_)?TODO:(?P<value>.*)$", re.IGNORECASE)
KEYWORD_TOKEN_RE = re.compile(r"^(?P<keyword>[^\s()|]+)(?:\((?P<annotation>[^)]*)\))?$")
ANNOTATION_RE = re.compile(r"^(?P<shortcut>[^!@/])?(?P<entry>[!@]*)(?:/(?P<exit>[!@]*))?$")


@dataclass(frozen=True)
class KeywordAnnotation:
    """Shortcut and state-change logging settings of one keyword."""

    shortcut: Optional[str] = None
    note_on_entry: bool = False
    timestamp_on_entry: bool = False
    note_on_exit: bool = False
    timestamp_on_exit: bool = False


@dataclass(frozen=True)
class TodoKeywordSet:
    """An ordered set of TODO keywords.

    Attributes:
        config_line: Source line the set was parsed from ("" for the default set)
        keywords: All keywords in source order, not-done ones first
        completed_keywords: Keywords that mark an entry as done
        default: True only for the implicit set of a document without #+TODO
        annotations: (keyword, annotation) pairs for annotated keywords
    """

    config_line: str
    keywords: tuple[str, ...]
    completed_keywords: tuple[str, ...]
    default: bool = False
    annotations: tuple[tuple[str, KeywordAnnotation], ...] = ()

    def __contains__(self, keyword: object) -> bool:
        return keyword in self.keywords

    def is_completed(self, keyword: str) -> bool:
        return keyword in self.completed_keywords

    def annotation(self, keyword: str) -> Optional[KeywordAnnotation]:
        """Shortcut and logging settings of `keyword`, if it was annotated."""
        for annotated, annotation in self.annotations:
            if annotated == keyword:
                return annotation
        return None

    @property
    def not_done_keywords(self) -> tuple[str, ...]:
        return tuple(k for k in self.keywords if k not in self.completed_keywords)


def parse_todo_keyword_config(line: str) -> Optional[TodoKeywordSet]:
    """Parse a #+TODO: or #+TYP_TODO: line into a keyword set.

    Args:
        line: A single line of Org text

    Returns:
        The keyword set, or None if the line is not a TODO keyword setting
        (headlines, plain text, other in-buffer settings such as #+STARTUP)
        or names no keywords at all

    Examples:
        >>> parse_todo_keyword_config("#+TODO: START INPROGRESS(i!) | FINISHED").completed_keywords
        ('FINISHED',)
        >>> parse_todo_keyword_config("#+STARTUP: nologrepeat") is None
        True
    """
    m = TODO_CONFIG_RE.match(line)
    if not m:
        return None

    return _build_keyword_set(m.group("value"), config_line=line, default=False)


def default_todo_keyword_set(keywords: str = "TODO | DONE") -> TodoKeywordSet:
    """Build the implicit keyword set used when a document has no #+TODO line.

    Args:
        keywords: Keyword list in #+TODO value syntax, e.g. "TODO NEXT | DONE"

    Returns:
        Keyword set flagged as default

    Raises:
        ValueError: If `keywords` names no keyword
    """
    keyword_set = _build_keyword_set(keywords, config_line="", default=True)
    if keyword_set is None:
        raise ValueError(f"No TODO keywords in {keywords!r}")
    return keyword_set


def _build_keyword_set(value: str, config_line: str, default: bool) -> Optional[TodoKeywordSet]:
    not_done_part, _, completed_part = value.partition("|")
    not_done_tokens = not_done_part.split()
    completed_tokens = completed_part.replace("|", " ").split()

    annotations: dict[str, KeywordAnnotation] = {}
    not_done = _collect_keywords(not_done_tokens, annotations)
    completed = _collect_keywords(completed_tokens, annotations)

    if not completed:
        # Without a (non-empty) completed part, the last keyword is the done state
        if not not_done:
            return None
        completed = [not_done.pop()]

    keywords: list[str] = []
    for keyword in not_done + completed:
        if keyword not in keywords:
            keywords.append(keyword)
    completed_keywords = tuple(dict.fromkeys(completed))

    return TodoKeywordSet(
        config_line=config_line,
        keywords=tuple(keywords),
        completed_keywords=completed_keywords,
        default=default,
        annotations=tuple(annotations.items()),
    )


def _collect_keywords(tokens: list[str], annotations: dict[str, KeywordAnnotation]) -> list[str]:
    keywords = []
    for token in tokens:
        m = KEYWORD_TOKEN_RE.match(token)
        if not m:
            # Stray parenthesis or similar; keep the bare word
            keyword = token.split("(", 1)[0]
            if keyword:
                keywords.append(keyword)
            continue

        keyword = m.group("keyword")
        keywords.append(keyword)
        if m.group("annotation") is not None:
            annotation = _parse_annotation(m.group("annotation"))
            if annotation is not None:
                annotations.setdefault(keyword, annotation)
    return keywords


def _parse_annotation(text: str) -> Optional[KeywordAnnotation]:
    m = ANNOTATION_RE.match(text)
    if not m:
        return None

    entry = m.group("entry") or ""
    exit_flags = m.group("exit") or ""
    return KeywordAnnotation(
        shortcut=m.group("shortcut"),
        note_on_entry="@" in entry,
        timestamp_on_entry="!" in entry,
        note_on_exit="@" in exit_flags,
        timestamp_on_exit="!" in exit_flags,
    )
