# timeline.py
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from models import BUCKET_STEP, HISTORY_WINDOW, AxisRange, HistorySample, TimelinePoint

RANGE_PADDING = 0.2


def floor_to_step(ts: datetime, step: timedelta = BUCKET_STEP) -> datetime:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return pd.Timestamp(ts).tz_convert("UTC").floor(step).to_pydatetime()


def _optional(value: float) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def reconcile(
    samples: Sequence[HistorySample],
    now: datetime,
    window: timedelta = HISTORY_WINDOW,
    step: timedelta = BUCKET_STEP,
) -> List[TimelinePoint]:
    """
    Coloca las muestras irregulares sobre una rejilla fija de `step`.

    La rejilla va de floor(now - window) a floor(now), ambos incluidos.
    Si dos muestras caen en el mismo hueco gana la última en orden de
    entrada. Los huecos sin muestra salen con pm25 y co2 a None.
    """
    start = floor_to_step(now - window, step)
    end = floor_to_step(now, step)
    grid = pd.date_range(start=start, end=end, freq=step, unit="ns")

    buckets = pd.to_datetime([s.timestamp for s in samples], utc=True).as_unit("ns").floor(step)
    frame = pd.DataFrame(
        {
            "pm25": [s.pm25 for s in samples],
            "co2": [s.co2 for s in samples],
        },
        index=buckets,
        dtype=float,
    )
    frame = frame[~frame.index.duplicated(keep="last")].reindex(grid)

    return [
        TimelinePoint(
            timestamp=ts.to_pydatetime(),
            pm25=_optional(pm25),
            co2=_optional(co2),
        )
        for ts, pm25, co2 in frame.itertuples(name=None)
    ]


def axis_range(values: Iterable[Optional[float]]) -> AxisRange:
    present = [v for v in values if v is not None and not math.isnan(v)]
    lo = min(present) if present else 0.0
    hi = max(present) if present else 1.0

    span = hi - lo
    if span == 0:
        span = 1.0
    padding = max(span, 1.0) * RANGE_PADDING
    return AxisRange(lower=lo - padding, upper=hi + padding)


def metric_series(
    points: Sequence[TimelinePoint], field: str
) -> Tuple[List[datetime], List[float]]:
    times: List[datetime] = []
    values: List[float] = []
    for p in points:
        value = getattr(p, field)
        if value is not None:
            times.append(p.timestamp)
            values.append(value)
    return times, values
