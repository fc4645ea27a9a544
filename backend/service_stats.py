"""
Statistics service.

Builds the platform counters and their history from the four mock
collections. The history pipeline is:

1. extract one `Event` per entity that carries a usable timestamp
   (`createdAt` for patients and consents, `date` for records,
   `timestamp` for transactions)
2. stable sort by timestamp (ties keep extraction order)
3. walk the events keeping six running counters, one `Snapshot` per event
4. drop interior points of plateaus (runs of identical counters)
5. keep only points inside the optional `[from_date, to_date]` range

Filtering runs after deduplication, so the first/last points of a filtered
history are whatever deduplicated points fall in range.

Consent events carry the status the consent had when the history was
computed; counters are never decremented.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Union

from models import Counters, Event, HealthData, Snapshot, StatsHistory
from repo_data import DataProvider

logger = logging.getLogger(__name__)

# (collection, timestamp field, event kind), in extraction order
EVENT_SOURCES = (
    ("patients", "createdAt", "patient"),
    ("records", "date", "record"),
    ("consents", "createdAt", "consent"),
    ("transactions", "timestamp", "transaction"),
)


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string, datetime or epoch-milliseconds number.

    Returns an aware UTC datetime, or None when the value is empty or
    cannot be parsed. Naive values are taken as UTC.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_instant(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision, e.g. 2024-01-15T10:30:00.000Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def extract_events(data: HealthData) -> List[Event]:
    events: List[Event] = []
    for collection, field, kind in EVENT_SOURCES:
        for item in getattr(data, collection):
            ts = parse_instant(item.get(field))
            if ts is None:
                continue
            status = item.get("status") if kind == "consent" else None
            events.append(Event(timestamp=ts, kind=kind, status=status))
    return events


def order_events(events: Sequence[Event]) -> List[Event]:
    # sorted() is stable
    return sorted(events, key=lambda e: e.timestamp)


def build_history(events: Sequence[Event]) -> List[Snapshot]:
    """Cumulative counters after each event, one snapshot per event."""

    c = Counters()
    history: List[Snapshot] = []
    for e in events:
        if e.kind == "patient":
            c.total_patients += 1
        elif e.kind == "record":
            c.total_records += 1
        elif e.kind == "consent":
            c.total_consents += 1
            if e.status == "active":
                c.active_consents += 1
            elif e.status == "pending":
                c.pending_consents += 1
        elif e.kind == "transaction":
            c.total_transactions += 1

        history.append(Snapshot(timestamp=format_instant(e.timestamp), **c.model_dump()))
    return history


def dedupe_plateaus(history: Sequence[Snapshot]) -> List[Snapshot]:
    """Keep the first and last point, plus every point that starts or ends a plateau.

    A point strictly inside a run of identical counters carries no
    information for a step chart and is dropped.
    """

    last = len(history) - 1
    kept: List[Snapshot] = []
    for i, current in enumerate(history):
        if i == 0 or i == last:
            kept.append(current)
            continue

        values = current.counter_values()
        same_as_prev = values == history[i - 1].counter_values()
        same_as_next = values == history[i + 1].counter_values()
        if not same_as_prev or not same_as_next:
            kept.append(current)
    return kept


Bound = Union[str, datetime, None]


def filter_by_date_range(
    history: Sequence[Snapshot], from_date: Bound = None, to_date: Bound = None
) -> List[Snapshot]:
    """Keep snapshots with `from_date <= timestamp <= to_date`.

    Either bound may be None or "" (unbounded on that side). A bound that
    is given but cannot be parsed excludes every snapshot.
    """

    has_from = from_date is not None and from_date != ""
    has_to = to_date is not None and to_date != ""
    if not has_from and not has_to:
        return list(history)

    lower = parse_instant(from_date) if has_from else None
    upper = parse_instant(to_date) if has_to else None
    if (has_from and lower is None) or (has_to and upper is None):
        return []

    out: List[Snapshot] = []
    for s in history:
        ts = parse_instant(s.timestamp)
        if ts is None:
            continue
        if lower is not None and ts < lower:
            continue
        if upper is not None and ts > upper:
            continue
        out.append(s)
    return out


class StatsService:
    """Read-only statistics over an injected data provider.

    Example usage:
        repo = MockDataRepo()
        stats = StatsService(repo)
        stats.get_history(from_date="2024-01-01")
    """

    def __init__(self, provider: DataProvider):
        self.provider = provider

    def get_current_stats(self) -> Counters:
        """Counters over the whole data set, ignoring timestamps."""

        data = self.provider.load()
        statuses = [c.get("status") for c in data.consents]
        return Counters(
            total_patients=len(data.patients),
            total_records=len(data.records),
            total_consents=len(data.consents),
            active_consents=statuses.count("active"),
            pending_consents=statuses.count("pending"),
            total_transactions=len(data.transactions),
        )

    def get_history(self, from_date: Bound = None, to_date: Bound = None) -> StatsHistory:
        """Deduplicated cumulative history, then filtered by date range."""

        data = self.provider.load()
        events = order_events(extract_events(data))
        history = dedupe_plateaus(build_history(events))
        filtered = filter_by_date_range(history, from_date, to_date)
        logger.debug(
            "Stats history: %d events, %d after dedupe, %d in range",
            len(events), len(history), len(filtered),
        )
        return StatsHistory(history=filtered)
