"""
Anchor-based planting schedule derivation.

A planting moves through four milestones, each separated from the next by one
seed duration (in weeks):

    presow --presow_duration_weeks--> ground --grow_duration_weeks-->
    harvest_start --harvest_duration_weeks--> harvest_end

Given one fixed milestone (the anchor) the chain is walked outward in both
directions. A link whose duration is unknown breaks the chain: everything
beyond it stays None. presow_duration_weeks counts as 0 when absent.
Pure functions with no I/O.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional, Union

MILESTONES = ("presow", "ground", "harvest_start", "harvest_end")

# Duration that links each milestone to the next one in MILESTONES
_LINKS = ("presow_duration_weeks", "grow_duration_weeks", "harvest_duration_weeks")

METHODS = ("direct", "presow")


@dataclass(frozen=True)
class PlannedDates:
    presow_date: Optional[date]
    ground_date: Optional[date]
    harvest_start: Optional[date]
    harvest_end: Optional[date]

    def as_planting_fields(self) -> dict[str, Optional[date]]:
        return {
            "planned_presow_date": self.presow_date,
            "planned_date": self.ground_date,
            "planned_harvest_start": self.harvest_start,
            "planned_harvest_end": self.harvest_end,
        }


def add_weeks(d: Optional[date], weeks: Optional[int]) -> Optional[date]:
    if d is None or weeks is None:
        return None
    return d + timedelta(days=weeks * 7)


def parse_date(value: Union[date, str, None]) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def _link_weeks(seed: Any) -> list[Optional[int]]:
    weeks = [getattr(seed, attr, None) for attr in _LINKS]
    if weeks[0] is None:
        weeks[0] = 0
    return weeks


def derive_schedule(
    method: str,
    seed: Any,
    anchor_type: str,
    anchor_date: Union[date, str],
) -> PlannedDates:
    """
    Recompute all four planned milestone dates from a single anchor.

    `seed` is any record exposing presow/grow/harvest_duration_weeks.
    For method="direct" the presow date is always None.
    """
    if anchor_type not in MILESTONES:
        raise ValueError(f"unknown anchor type: {anchor_type!r}")

    weeks = _link_weeks(seed)
    idx = MILESTONES.index(anchor_type)
    dates: list[Optional[date]] = [None] * len(MILESTONES)
    dates[idx] = parse_date(anchor_date)

    # forward: milestone i+1 = milestone i + link i
    for i in range(idx, len(MILESTONES) - 1):
        dates[i + 1] = add_weeks(dates[i], weeks[i])

    # backward: milestone i-1 = milestone i - link i-1
    for i in range(idx, 0, -1):
        w = weeks[i - 1]
        dates[i - 1] = add_weeks(dates[i], -w if w is not None else None)

    if method != "presow":
        dates[0] = None

    return PlannedDates(*dates)


def default_anchor(method: str) -> str:
    """The milestone a new placement is anchored on when none is given."""
    return "presow" if method == "presow" else "ground"


def method_for_seed(seed: Any) -> str:
    return "presow" if getattr(seed, "sowing_type", None) == "presow" else "direct"
