# activity.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

import pandas as pd

import config
from models import ActivityReport, HeatmapCell
from timestamps import now_utc

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24


def activity_window(days: Optional[int] = None, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    days = config.ACTIVITY_DEFAULT_DAYS if days is None else days
    end = now or now_utc()
    return end - timedelta(days=days), end


def build_activity_heatmap(
    timestamps: Iterable[datetime],
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ActivityReport:
    """
    Cuenta mensajes por (día de la semana, hora) en UTC dentro de la ventana
    [now - days, now]. Día 0 = domingo. Siempre devuelve las 168 celdas.
    """
    start, end = activity_window(days, now)

    ts = pd.to_datetime(pd.Series(list(timestamps), dtype="object"), utc=True, errors="coerce")
    ts = ts.dropna()
    ts = ts[(ts >= pd.Timestamp(start)) & (ts <= pd.Timestamp(end))]

    counts = {}
    if not ts.empty:
        # pandas: lunes = 0 -> domingo = 0
        day = (ts.dt.dayofweek + 1) % DAYS_PER_WEEK
        hour = ts.dt.hour
        counts = pd.DataFrame({"day": day, "hour": hour}).value_counts().to_dict()

    heatmap: List[HeatmapCell] = [
        HeatmapCell(day=d, hour=h, count=int(counts.get((d, h), 0)))
        for d in range(DAYS_PER_WEEK)
        for h in range(HOURS_PER_DAY)
    ]

    max_count = max([c.count for c in heatmap] + [1])

    logger.info(
        "[ACTIVITY] %d mensajes en ventana %s - %s (max_count=%d)",
        len(ts), start.isoformat(), end.isoformat(), max_count,
    )

    return ActivityReport(
        heatmap=heatmap,
        max_count=max_count,
        total_messages=int(len(ts)),
        date_start=start,
        date_end=end,
    )
