from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List

import pandas as pd

from eventlog.layout import AnalysisWindow, get_granularity


@dataclass(frozen=True)
class BucketCount:
    key: str
    count: int


def truncate(ts: datetime, granularity: str) -> pd.Timestamp:
    """Bucket boundary of ``ts``: midnight for day, the top of the hour for hour."""
    return pd.Timestamp(ts).floor(get_granularity(granularity).freq)


def bucket_boundaries(window: AnalysisWindow) -> pd.DatetimeIndex:
    """Every bucket start from the window's first to its last bucket, inclusive.

    An inverted window yields an empty index.
    """
    gran = get_granularity(window.granularity)
    if window.is_inverted:
        return pd.DatetimeIndex([])
    first = truncate(window.start, window.granularity)
    last = truncate(window.end, window.granularity)
    return pd.date_range(first, last, freq=gran.freq)


def bucket_key(ts: datetime, granularity: str) -> str:
    gran = get_granularity(granularity)
    return truncate(ts, granularity).strftime(gran.key_format)


def bucketize(timestamps: Iterable[datetime], window: AnalysisWindow) -> List[BucketCount]:
    """Count events per bucket and back-fill empty buckets with zero, in chronological order."""
    gran = get_granularity(window.granularity)
    boundaries = bucket_boundaries(window)
    if boundaries.empty:
        return []

    ts = pd.to_datetime(pd.Series(list(timestamps), dtype=object))
    counts = ts.dt.floor(gran.freq).value_counts()
    counts.index = pd.DatetimeIndex(counts.index).as_unit(boundaries.unit)
    filled = counts.reindex(boundaries, fill_value=0).astype(int)
    return [BucketCount(key=boundary.strftime(gran.key_format), count=int(n)) for boundary, n in filled.items()]
