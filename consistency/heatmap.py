from __future__ import annotations

from datetime import timedelta

import pandas as pd

from consistency.constants import DAY_LABELS
from consistency.intensity import DayIntensity

FRAME_COLUMNS = [
    "date",
    "weekday",
    "week_start",
    "completed_count",
    "total_possible",
    "ratio",
    "bucket",
]


def heatmap_frame(days: list[DayIntensity]) -> pd.DataFrame:
    if not days:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    records = []
    for item in days:
        records.append(
            {
                "date": item.date,
                "weekday": item.date.weekday(),
                "week_start": item.date - timedelta(days=item.date.weekday()),
                "completed_count": item.completed_count,
                "total_possible": item.total_possible,
                "ratio": item.ratio,
                "bucket": item.intensity_bucket,
            }
        )
    frame = pd.DataFrame.from_records(records, columns=FRAME_COLUMNS)
    # one cell per day; the latest entry for a date wins
    frame = frame.drop_duplicates("date", keep="last")
    return frame.sort_values("date").reset_index(drop=True)


def heatmap_grid(days: list[DayIntensity]) -> dict:
    frame = heatmap_frame(days)
    if frame.empty:
        return {"x_labels": list(DAY_LABELS), "y_labels": [], "z": [], "hover_text": []}

    buckets = frame.pivot(index="week_start", columns="weekday", values="bucket")
    buckets = buckets.reindex(columns=range(7))
    by_date = {row.date: row for row in frame.itertuples(index=False)}

    z = []
    hover_text = []
    for week_start in buckets.index:
        z_row = []
        text_row = []
        for weekday in range(7):
            value = buckets.at[week_start, weekday]
            current = week_start + timedelta(days=weekday)
            row = by_date.get(current)
            if row is None or pd.isna(value):
                z_row.append(None)
                text_row.append("")
                continue
            z_row.append(int(value))
            text_row.append(f"{current.isoformat()} • {row.completed_count}/{row.total_possible}")
        z.append(z_row)
        hover_text.append(text_row)

    return {
        "x_labels": list(DAY_LABELS),
        "y_labels": [week_start.isoformat() for week_start in buckets.index],
        "z": z,
        "hover_text": hover_text,
    }
