"""Weekly bed occupancy, as the share of a bed's segments in use."""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Hashable, Iterable, Sequence

from app.services.fit import bed_segments, has_date_range, intervals_overlap, seg_start, seg_used


@dataclass(frozen=True)
class BedOccupancyWeek:
    garden_bed_id: Hashable
    week_start: date
    occupancy_pct: float


def week_start(d: date) -> date:
    return d - timedelta(days=d.weekday())


def bed_occupancy_by_week(
    beds: Sequence[Any], plantings: Iterable[Any], start: date, weeks: int = 8
) -> list[BedOccupancyWeek]:
    """
    One row per bed per week (Monday-started) from the week containing
    `start`. Segments claimed by overlapping plantings are counted once.
    """
    plantings = [p for p in plantings if has_date_range(p)]
    first = week_start(start)
    rows: list[BedOccupancyWeek] = []
    for bed in beds:
        total = bed_segments(bed)
        in_bed = [p for p in plantings if p.garden_bed_id == bed.id]
        for w in range(weeks):
            ws = first + timedelta(weeks=w)
            we = ws + timedelta(days=6)
            taken: set[int] = set()
            for p in in_bed:
                if intervals_overlap(p.planned_date, p.planned_harvest_end, ws, we):
                    taken.update(range(seg_start(p), seg_start(p) + seg_used(p)))
            used = len({s for s in taken if s < total})
            rows.append(BedOccupancyWeek(bed.id, ws, round(100.0 * used / total, 1)))
    return rows
