from datetime import date, timedelta
from types import SimpleNamespace

from app.services.fit import (
    EarliestFit,
    all_fitting_segments_in_bed,
    bed_has_conflict,
    build_conflicts_map,
    count_unique_conflicts,
    find_earliest_fit_across_beds,
    fits_in_bed_at_segment,
    intervals_overlap,
    overlapping_plantings_in_bed,
    segments_overlap,
)


def _bed(id="bed-1", segments=4):
    return SimpleNamespace(id=id, segments=segments)


def _planting(id, bed="bed-1", start=0, used=1, planned=date(2024, 4, 1), end=date(2024, 4, 30)):
    return SimpleNamespace(
        id=id,
        garden_bed_id=bed,
        start_segment=start,
        segments_used=used,
        planned_date=planned,
        planned_harvest_end=end,
    )


# ── Pairwise ──────────────────────────────────────────────────────────────────


def test_intervals_touching_on_one_day_overlap():
    assert intervals_overlap(date(2024, 4, 1), date(2024, 4, 30), date(2024, 4, 30), date(2024, 5, 5))
    assert not intervals_overlap(date(2024, 4, 1), date(2024, 4, 29), date(2024, 4, 30), date(2024, 5, 5))


def test_intervals_overlap_is_symmetric():
    a = (date(2024, 4, 1), date(2024, 4, 10))
    b = (date(2024, 4, 5), date(2024, 4, 20))
    assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)


def test_segments_overlap():
    assert segments_overlap(0, 2, 1, 2)
    assert not segments_overlap(0, 2, 2, 2)
    assert segments_overlap(3, 1, 3, 1)


# ── Fit ───────────────────────────────────────────────────────────────────────


def test_all_fitting_segments_skips_taken_range():
    bed = _bed(segments=4)
    x = _planting("x", start=0, used=2)
    y = _planting("y", start=0, used=2)
    assert all_fitting_segments_in_bed(bed, [x], y) == [2]


def test_all_fitting_segments_in_empty_window():
    bed = _bed(segments=3)
    other = _planting("x", planned=date(2024, 1, 1), end=date(2024, 1, 31))
    candidate = _planting("y")
    assert all_fitting_segments_in_bed(bed, [other], candidate) == [0, 1, 2]


def test_candidate_ignores_itself():
    bed = _bed(segments=2)
    candidate = _planting("y", start=0, used=2)
    assert fits_in_bed_at_segment(bed, [candidate], candidate, 0)


def test_fit_respects_bed_bounds():
    bed = _bed(segments=3)
    candidate = _planting("y", used=2)
    assert fits_in_bed_at_segment(bed, [], candidate, 1)
    assert not fits_in_bed_at_segment(bed, [], candidate, 2)
    assert not fits_in_bed_at_segment(bed, [], candidate, -1)


def test_candidate_without_dates_never_fits():
    bed = _bed()
    candidate = _planting("y", end=None)
    assert not fits_in_bed_at_segment(bed, [], candidate, 0)
    assert all_fitting_segments_in_bed(bed, [], candidate) == []
    assert find_earliest_fit_across_beds([bed], [], candidate, date(2024, 4, 1)) is None


def test_other_beds_do_not_block():
    bed = _bed(segments=1)
    other = _planting("x", bed="bed-2")
    assert fits_in_bed_at_segment(bed, [other], _planting("y"), 0)


def test_overlapping_plantings_in_bed():
    a = _planting("a")
    b = _planting("b", planned=date(2024, 6, 1), end=date(2024, 6, 30))
    c = _planting("c", bed="bed-2")
    found = overlapping_plantings_in_bed([a, b, c], "bed-1", date(2024, 4, 15), date(2024, 5, 15))
    assert found == [a]


def test_earliest_fit_waits_for_first_free_day():
    bed = _bed(segments=1)
    today = date(2024, 4, 1)
    blocker = _planting("x", planned=today - timedelta(days=5), end=today + timedelta(days=9))
    candidate = _planting("y", planned=date(2024, 3, 1), end=date(2024, 3, 21))

    fit = find_earliest_fit_across_beds([bed], [blocker], candidate, today)
    assert fit == EarliestFit(
        bed_id="bed-1",
        start_segment=0,
        date=today + timedelta(days=10),
        end=today + timedelta(days=30),
    )


def test_earliest_fit_prefers_bed_order_on_the_same_day():
    first = _bed("bed-1", segments=1)
    second = _bed("bed-2", segments=2)
    blocker = _planting("x", bed="bed-1")
    fit = find_earliest_fit_across_beds([first, second], [blocker], _planting("y"), date(2024, 4, 1))
    assert fit.bed_id == "bed-2"
    assert fit.start_segment == 0
    assert fit.date == date(2024, 4, 1)


def test_earliest_fit_gives_up_after_horizon():
    bed = _bed(segments=1)
    blocker = _planting("x", planned=date(2024, 1, 1), end=date(2024, 12, 31))
    assert find_earliest_fit_across_beds([bed], [blocker], _planting("y"), date(2024, 4, 1), horizon_days=30) is None


def test_earliest_fit_result_is_placeable():
    bed = _bed(segments=2)
    blockers = [_planting("x", used=2, end=date(2024, 4, 20))]
    candidate = _planting("y", used=2)
    fit = find_earliest_fit_across_beds([bed], blockers, candidate, date(2024, 4, 1))
    moved = _planting("y", start=fit.start_segment, used=2, planned=fit.date, end=fit.end)
    assert fits_in_bed_at_segment(bed, blockers, moved, fit.start_segment)
    assert (fit.end - fit.date) == (candidate.planned_harvest_end - candidate.planned_date)


# ── Conflicts ─────────────────────────────────────────────────────────────────


def test_conflicts_map_is_symmetric():
    a = _planting("a", start=0, used=2)
    b = _planting("b", start=1, used=1, planned=date(2024, 4, 20), end=date(2024, 5, 20))
    c = _planting("c", start=3)
    conflicts = build_conflicts_map([a, b, c])
    assert conflicts == {"a": [b], "b": [a]}
    assert count_unique_conflicts(conflicts) == 2


def test_conflicts_ignore_incomplete_dates_and_other_beds():
    a = _planting("a")
    b = _planting("b", end=None)
    c = _planting("c", bed="bed-2")
    assert build_conflicts_map([a, b, c]) == {}


def test_conflicts_one_planting_against_many():
    a = _planting("a", used=3)
    b = _planting("b", start=0)
    c = _planting("c", start=2)
    conflicts = build_conflicts_map([a, b, c])
    assert {p.id for p in conflicts["a"]} == {"b", "c"}
    assert conflicts["b"] == [a]
    assert conflicts["c"] == [a]
    assert count_unique_conflicts(conflicts) == 3


def test_bed_has_conflict():
    bed = _bed()
    assert bed_has_conflict(bed, [_planting("a"), _planting("b")])
    assert not bed_has_conflict(bed, [_planting("a"), _planting("b", start=1)])
