from datetime import date
from types import SimpleNamespace

from app.services.occupancy import bed_occupancy_by_week, week_start


def _planting(bed, start, used, planned, end):
    return SimpleNamespace(
        garden_bed_id=bed,
        start_segment=start,
        segments_used=used,
        planned_date=planned,
        planned_harvest_end=end,
    )


def test_week_start_is_monday():
    assert week_start(date(2024, 4, 3)) == date(2024, 4, 1)
    assert week_start(date(2024, 4, 1)) == date(2024, 4, 1)


def test_occupancy_per_week():
    bed = SimpleNamespace(id="north", segments=4)
    plantings = [
        _planting("north", 0, 2, date(2024, 4, 1), date(2024, 4, 10)),
        _planting("north", 1, 1, date(2024, 4, 8), date(2024, 4, 20)),
        _planting("north", 3, 1, date(2024, 4, 1), None),
        _planting("south", 0, 4, date(2024, 4, 1), date(2024, 4, 30)),
    ]
    rows = bed_occupancy_by_week([bed], plantings, date(2024, 4, 3), weeks=3)

    assert [r.week_start for r in rows] == [date(2024, 4, 1), date(2024, 4, 8), date(2024, 4, 15)]
    assert [r.occupancy_pct for r in rows] == [50.0, 50.0, 25.0]
