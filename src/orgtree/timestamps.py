"""Org timestamp grammar.

Timestamps appear in planning lines, logbook entries, headline titles and
body text. Active timestamps use angle brackets, inactive ones use square
brackets:

    <2019-07-30 Tue 10:00-11:30 +1w -2d>
    [2019-07-30 Tue]--[2019-08-02 Fri]

Only the single-space layout Emacs writes is recognized. Anything else is
left to the caller to treat as plain text.
"""

import datetime
import re
from dataclasses import dataclass, replace
from typing import Optional


_TIMESTAMP_BODY = (
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?: (?P<day_name>[^\s\d<>\[\]+-]+))?"
    r"(?: (?P<start_time>\d{1,2}:\d{2})(?:-(?P<end_time>\d{1,2}:\d{2}))?)?"
    r"(?: (?P<repeater>(?:\+\+|\.\+|\+)\d+[hdwmy](?:/\d+[hdwmy])?))?"
    r"(?: (?P<warning>--?\d+[hdwmy]))?"
)

ACTIVE_TIMESTAMP_RE = re.compile(r"<" + _TIMESTAMP_BODY + r">")
INACTIVE_TIMESTAMP_RE = re.compile(r"\[" + _TIMESTAMP_BODY + r"\]")


@dataclass(frozen=True)
class Timestamp:
    """A parsed Org timestamp.

    Attributes:
        active: True for <...>, False for [...]
        date: Calendar date
        day_name: Day name exactly as written ("Tue", "Di."), if any
        start_time: Start time as written ("9:00"), if any
        end_time: End of a same-day time range, if any
        repeater: Repeater cookie ("+1w", ".+2d", "++1m/3d"), if any
        warning: Warning period ("-2d", "--1w"), if any
        end: Second timestamp of a <a>--<b> range, if any
    """

    active: bool
    date: datetime.date
    day_name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    repeater: Optional[str] = None
    warning: Optional[str] = None
    end: Optional["Timestamp"] = None

    def render(self) -> str:
        """Render the timestamp in canonical bracket form.

        Examples:
            >>> Timestamp(active=True, date=datetime.date(2019, 7, 30), day_name="Tue").render()
            '<2019-07-30 Tue>'
        """
        parts = [self.date.isoformat()]
        if self.day_name:
            parts.append(self.day_name)
        if self.start_time:
            parts.append(
                f"{self.start_time}-{self.end_time}" if self.end_time else self.start_time
            )
        if self.repeater:
            parts.append(self.repeater)
        if self.warning:
            parts.append(self.warning)

        opening, closing = ("<", ">") if self.active else ("[", "]")
        rendered = opening + " ".join(parts) + closing
        if self.end is not None:
            rendered += "--" + self.end.render()
        return rendered


def parse_timestamp(text: str, pos: int = 0) -> Optional[tuple[Timestamp, int]]:
    """Parse a timestamp (or timestamp range) starting exactly at `pos`.

    Args:
        text: Text to read from
        pos: Index of the opening bracket

    Returns:
        Tuple of (timestamp, index just past it), or None if no valid
        timestamp starts at `pos`. Calendar-invalid dates are rejected.
    """
    single = _parse_single_timestamp(text, pos)
    if single is None:
        return None

    timestamp, end = single
    if text.startswith("--", end):
        range_end = _parse_single_timestamp(text, end + 2)
        if range_end is not None and range_end[0].active == timestamp.active:
            return replace(timestamp, end=range_end[0]), range_end[1]

    return timestamp, end


def _parse_single_timestamp(text: str, pos: int) -> Optional[tuple[Timestamp, int]]:
    if text.startswith("<", pos):
        active, pattern = True, ACTIVE_TIMESTAMP_RE
    elif text.startswith("[", pos):
        active, pattern = False, INACTIVE_TIMESTAMP_RE
    else:
        return None

    m = pattern.match(text, pos)
    if not m:
        return None

    try:
        date = datetime.date(int(m.group("year")), int(m.group("month")), int(m.group("day")))
    except ValueError:
        return None

    timestamp = Timestamp(
        active=active,
        date=date,
        day_name=m.group("day_name"),
        start_time=m.group("start_time"),
        end_time=m.group("end_time"),
        repeater=m.group("repeater"),
        warning=m.group("warning"),
    )
    return timestamp, m.end()
