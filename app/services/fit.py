"""
Bed fit and conflict detection.

A planting occupies a closed segment range [start_segment, start_segment +
segments_used - 1] of its bed for the closed day range [planned_date,
planned_harvest_end]. Two plantings conflict when they share a bed and both
ranges overlap. Plantings without a complete date range never conflict and
can't be fit-checked.

Works on plain records (ORM rows, schemas, SimpleNamespace ...) exposing id,
garden_bed_id, start_segment, segments_used, planned_date and
planned_harvest_end; beds expose id and segments. Nothing here raises for a
"no fit" outcome; callers branch on the returned value.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Hashable, Iterable, Optional, Sequence

DEFAULT_SEARCH_HORIZON_DAYS = 365


@dataclass(frozen=True)
class EarliestFit:
    bed_id: Hashable
    start_segment: int
    date: date
    end: date


# ── Normalisation ─────────────────────────────────────────────────────────────


def seg_start(p: Any) -> int:
    return max(0, p.start_segment or 0)


def seg_used(p: Any) -> int:
    return max(1, p.segments_used or 1)


def bed_segments(bed: Any) -> int:
    return max(1, bed.segments or 1)


def has_date_range(p: Any) -> bool:
    return p is not None and p.planned_date is not None and p.planned_harvest_end is not None


# ── Pairwise tests ────────────────────────────────────────────────────────────


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive day-range overlap: a range ending on the day another starts overlaps it."""
    return a_start <= b_end and b_start <= a_end


def segments_overlap(a_start: int, a_used: int, b_start: int, b_used: int) -> bool:
    a_end = a_start + a_used - 1
    b_end = b_start + b_used - 1
    return a_start <= b_end and b_start <= a_end


def plantings_conflict(a: Any, b: Any) -> bool:
    if a.id == b.id or a.garden_bed_id != b.garden_bed_id:
        return False
    if not (has_date_range(a) and has_date_range(b)):
        return False
    return intervals_overlap(
        a.planned_date, a.planned_harvest_end, b.planned_date, b.planned_harvest_end
    ) and segments_overlap(seg_start(a), seg_used(a), seg_start(b), seg_used(b))


# ── Fit ───────────────────────────────────────────────────────────────────────


def overlapping_plantings_in_bed(
    plantings: Iterable[Any], bed_id: Hashable, start: date, end: date
) -> list[Any]:
    """Plantings in `bed_id` whose date range overlaps [start, end]."""
    return [
        p for p in plantings or ()
        if p.garden_bed_id == bed_id
        and has_date_range(p)
        and intervals_overlap(p.planned_date, p.planned_harvest_end, start, end)
    ]


def _fits(
    bed: Any,
    plantings: Iterable[Any],
    candidate_id: Hashable,
    used: int,
    start: date,
    end: date,
    start_segment: int,
) -> bool:
    if start_segment < 0 or start_segment + used > bed_segments(bed):
        return False
    for p in overlapping_plantings_in_bed(plantings, bed.id, start, end):
        if p.id == candidate_id:
            continue
        if segments_overlap(start_segment, used, seg_start(p), seg_used(p)):
            return False
    return True


def _fitting_segments(
    bed: Any, plantings: Sequence[Any], candidate_id: Hashable, used: int, start: date, end: date
) -> list[int]:
    return [
        s for s in range(0, bed_segments(bed) - used + 1)
        if _fits(bed, plantings, candidate_id, used, start, end, s)
    ]


def fits_in_bed_at_segment(bed: Any, plantings: Iterable[Any], candidate: Any, start_segment: int) -> bool:
    """Would `candidate`, with its own dates, fit in `bed` starting at `start_segment`?"""
    if not has_date_range(candidate):
        return False
    return _fits(
        bed, plantings, candidate.id, seg_used(candidate),
        candidate.planned_date, candidate.planned_harvest_end, start_segment,
    )


def all_fitting_segments_in_bed(bed: Any, plantings: Sequence[Any], candidate: Any) -> list[int]:
    """Every start segment in `bed` where `candidate` fits, ascending."""
    if not has_date_range(candidate):
        return []
    return _fitting_segments(
        bed, plantings, candidate.id, seg_used(candidate),
        candidate.planned_date, candidate.planned_harvest_end,
    )


def find_earliest_fit_across_beds(
    beds: Sequence[Any],
    plantings: Sequence[Any],
    candidate: Any,
    start_date: date,
    horizon_days: int = DEFAULT_SEARCH_HORIZON_DAYS,
) -> Optional[EarliestFit]:
    """
    Slide `candidate` forward day by day from `start_date` (offsets
    0..horizon_days) keeping its length in days, and return the first
    (bed, segment) that fits. Beds are tried in the order given, segments
    ascending. Returns None when the horizon is exhausted.
    """
    if not has_date_range(candidate):
        return None
    length = max(0, (candidate.planned_harvest_end - candidate.planned_date).days)
    used = seg_used(candidate)

    for offset in range(horizon_days + 1):
        start = start_date + timedelta(days=offset)
        end = start + timedelta(days=length)
        for bed in beds:
            segments = _fitting_segments(bed, plantings, candidate.id, used, start, end)
            if segments:
                return EarliestFit(bed_id=bed.id, start_segment=segments[0], date=start, end=end)
    return None


# ── Conflicts ─────────────────────────────────────────────────────────────────


def build_conflicts_map(plantings: Iterable[Any]) -> dict[Hashable, list[Any]]:
    """
    planting id → plantings it conflicts with. Symmetric; plantings without
    conflicts are absent from the map.
    """
    by_bed: dict[Hashable, list[Any]] = {}
    for p in plantings or ():
        if p.garden_bed_id is None or not has_date_range(p):
            continue
        by_bed.setdefault(p.garden_bed_id, []).append(p)

    conflicts: dict[Hashable, list[Any]] = {}
    for in_bed in by_bed.values():
        in_bed.sort(key=lambda p: p.planned_date)
        for i, a in enumerate(in_bed):
            for b in in_bed[i + 1:]:
                if plantings_conflict(a, b):
                    conflicts.setdefault(a.id, []).append(b)
                    conflicts.setdefault(b.id, []).append(a)
    return conflicts


def count_unique_conflicts(conflicts: dict[Hashable, list[Any]]) -> int:
    """Number of distinct plantings involved in at least one conflict."""
    return sum(1 for v in conflicts.values() if v)


def bed_has_conflict(bed: Any, plantings: Iterable[Any]) -> bool:
    in_bed = [p for p in plantings or () if p.garden_bed_id == bed.id and has_date_range(p)]
    for i, a in enumerate(in_bed):
        for b in in_bed[i + 1:]:
            if plantings_conflict(a, b):
                return True
    return False
