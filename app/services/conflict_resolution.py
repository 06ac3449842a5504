"""
Suggestions for resolving a bed conflict.

For a planting that overlaps another one, propose (in this order):
  1. another segment in the same bed, same dates
  2. another bed, same dates
  3. the earliest later slot in any bed

Greenhouse beds are only offered for greenhouse-compatible seeds.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional, Sequence

from app.services.fit import (
    DEFAULT_SEARCH_HORIZON_DAYS,
    all_fitting_segments_in_bed,
    find_earliest_fit_across_beds,
    has_date_range,
)


@dataclass
class Recommendation:
    type: str  # "same_bed_different_segment" | "different_bed_same_time" | "different_time"
    description: str
    feasible: bool
    target_bed_id: Optional[Any] = None
    target_segment: Optional[int] = None
    target_date: Optional[Any] = None


@dataclass
class ConflictDetail:
    planting: Any
    conflicts_with: list[Any]
    likely_to_fix: bool
    recommendations: list[Recommendation] = field(default_factory=list)


def has_actual(p: Any) -> bool:
    return any(
        getattr(p, f, None) is not None
        for f in ("actual_presow_date", "actual_ground_date", "actual_harvest_start", "actual_harvest_end")
    )


def is_likely_newer_to_fix(planting: Any, conflicts: Sequence[Any]) -> bool:
    """
    Advisory only: does `planting` look like the one that should move?

    True when it has no actual dates while one of its conflicts does, or when
    it starts no earlier than every conflicting planting.
    """
    if not has_actual(planting) and any(has_actual(c) for c in conflicts):
        return True
    if planting.planned_date is not None:
        return all(c.planned_date is None or c.planned_date <= planting.planned_date for c in conflicts)
    return False


def _bed_allowed(bed: Any, seed: Any) -> bool:
    return not bed.is_greenhouse or bool(getattr(seed, "greenhouse_compatible", False))


def recommend_resolutions(
    planting: Any,
    seed: Any,
    beds: Sequence[Any],
    plantings: Sequence[Any],
    horizon_days: int = DEFAULT_SEARCH_HORIZON_DAYS,
) -> list[Recommendation]:
    if not has_date_range(planting):
        return []
    current = next((b for b in beds if b.id == planting.garden_bed_id), None)
    if current is None:
        return []

    recs: list[Recommendation] = []

    segments = all_fitting_segments_in_bed(current, plantings, planting)
    if segments:
        recs.append(Recommendation(
            type="same_bed_different_segment",
            description=f"Move to segment {segments[0]} in {current.name} (same dates)",
            feasible=True,
            target_bed_id=current.id,
            target_segment=segments[0],
        ))
    else:
        recs.append(Recommendation(
            type="same_bed_different_segment",
            description=f"No free segments in {current.name}",
            feasible=False,
        ))

    other_beds = [b for b in beds if b.id != current.id and _bed_allowed(b, seed)]
    alternative = None
    for bed in other_beds:
        segments = all_fitting_segments_in_bed(bed, plantings, planting)
        if segments:
            alternative = (bed, segments[0])
            break
    if alternative:
        bed, seg = alternative
        recs.append(Recommendation(
            type="different_bed_same_time",
            description=f"Move to {bed.name}, segment {seg} (same dates)",
            feasible=True,
            target_bed_id=bed.id,
            target_segment=seg,
        ))
    else:
        recs.append(Recommendation(
            type="different_bed_same_time",
            description="No other bed is free on the same dates",
            feasible=False,
        ))

    allowed = [b for b in beds if _bed_allowed(b, seed)]
    later = find_earliest_fit_across_beds(
        allowed, plantings, planting, planting.planned_date + timedelta(days=1), horizon_days
    )
    if later:
        bed_name = next(b.name for b in allowed if b.id == later.bed_id)
        shift = (later.date - planting.planned_date).days
        recs.append(Recommendation(
            type="different_time",
            description=f"Move to {bed_name}, segment {later.start_segment} on {later.date.isoformat()} (+{shift} days)",
            feasible=True,
            target_bed_id=later.bed_id,
            target_segment=later.start_segment,
            target_date=later.date,
        ))
    else:
        recs.append(Recommendation(
            type="different_time",
            description=f"No free slot within {horizon_days} days",
            feasible=False,
        ))

    return recs


def conflict_details(
    planting: Any,
    seed: Any,
    beds: Sequence[Any],
    plantings: Sequence[Any],
    conflicts: dict,
    horizon_days: int = DEFAULT_SEARCH_HORIZON_DAYS,
) -> ConflictDetail:
    others = conflicts.get(planting.id, [])
    if not others:
        return ConflictDetail(planting=planting, conflicts_with=[], likely_to_fix=False)
    return ConflictDetail(
        planting=planting,
        conflicts_with=others,
        likely_to_fix=is_likely_newer_to_fix(planting, others),
        recommendations=recommend_resolutions(planting, seed, beds, plantings, horizon_days),
    )
