from __future__ import annotations

import pytest

from evhub.domain.stations import recompute_available_slots


def test_shrinking_below_used_slots_clamps_to_zero():
    assert recompute_available_slots(3, 10, 5) == 0


def test_growing_capacity_frees_the_new_slots():
    assert recompute_available_slots(8, 10, 20) == 18


@pytest.mark.parametrize("available,total", [(0, 1), (4, 10), (10, 10), (0, 100)])
def test_same_total_keeps_availability(available, total):
    assert recompute_available_slots(available, total, total) == available


def test_result_always_within_new_capacity():
    for total in range(1, 13):
        for available in range(0, total + 1):
            for new_total in range(1, 16):
                result = recompute_available_slots(available, total, new_total)
                assert 0 <= result <= new_total


def test_used_slots_are_preserved_when_they_fit():
    # 6 in use before and after
    assert recompute_available_slots(4, 10, 8) == 2
