"""Time helpers shared by storage and prompt rendering."""

from __future__ import annotations

from datetime import datetime

import pendulum


def now() -> datetime:
    return pendulum.now("UTC")


def epoch_millis(moment: datetime | None = None) -> int:
    moment = moment or now()
    return int(moment.timestamp() * 1000)


def format_date_ja(moment: datetime | None) -> str:
    """Render a date the way ja-JP locale short dates read (``2024/4/1``)."""
    if moment is None:
        return "日付不明"
    return pendulum.instance(moment).format("YYYY/M/D")
