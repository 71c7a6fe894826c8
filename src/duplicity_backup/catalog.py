"""Parser for the backup chain table printed by ``duplicity collection-status``.

The table has been stable since duplicity 0.6::

    Type of backup set:                            Time:      Num volumes:
                    Full         Wed Jan  1 00:00:00 2020                 1
             Incremental         Thu Jan  2 00:00:00 2020                 1

Columns are separated by wide runs of spaces. A row is recognised by its
``Full``/``Incremental`` type token followed by a timestamp and then at least
``COLUMN_SEPARATOR_WIDTH`` whitespace characters. The time capture is greedy and
ends at the last such run, so it keeps the whole timestamp (whose own spacing
is narrower) and stops before the volume count column.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional

from .results import BackupEntry, BackupKind, CatalogParser

__all__ = ["CatalogParser", "CollectionStatusParser", "COLUMN_SEPARATOR_WIDTH", "GRAMMAR_VERSION"]

LOG = logging.getLogger(__name__)

GRAMMAR_VERSION = "collection-status/0.6"
COLUMN_SEPARATOR_WIDTH = 10
# C-locale ctime() layout written by duplicity's dup_time.timetopretty, e.g.
# "Wed Jan  1 00:00:00 2020". Names are matched against fixed English tables so
# parsing does not depend on the caller's LC_TIME.
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
TIMESTAMP_PATTERN = re.compile(
    r"(?P<weekday>[A-Z][a-z]{2})\s+(?P<month>[A-Z][a-z]{2})\s+(?P<day>\d{1,2})\s+"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})\s+(?P<year>\d{4})$"
)

ROW_PATTERN = re.compile(
    r"(?P<kind>Full|Incremental)\s+(?P<time>.*)\s{%d}" % COLUMN_SEPARATOR_WIDTH
)


class CollectionStatusParser:
    """Extracts backup entries, in listing order, from collection-status output."""

    def __init__(self, timezone: Optional[tzinfo] = None) -> None:
        self._timezone = timezone

    def parse(self, lines: Iterable[str]) -> List[BackupEntry]:
        entries: List[BackupEntry] = []
        for line in lines:
            match = ROW_PATTERN.search(line)
            if not match:
                continue
            raw_time = match.group("time").strip()
            try:
                timestamp = self._parse_timestamp(raw_time)
            except ValueError:
                LOG.warning("Skipping backup row with unparseable time %r", raw_time)
                continue
            entries.append(BackupEntry(kind=BackupKind(match.group("kind")), timestamp=timestamp))
        return entries

    def _parse_timestamp(self, text: str) -> datetime:
        match = TIMESTAMP_PATTERN.match(text)
        if not match or match.group("weekday") not in WEEKDAYS or match.group("month") not in MONTHS:
            raise ValueError(f"Not a ctime timestamp: {text!r}")
        parsed = datetime(
            int(match.group("year")),
            MONTHS.index(match.group("month")) + 1,
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
        )
        if self._timezone is not None:
            return parsed.replace(tzinfo=self._timezone)
        # duplicity prints local time
        return parsed.astimezone()
