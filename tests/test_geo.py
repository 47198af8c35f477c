from __future__ import annotations

import pytest

from evhub.domain.geo import EARTH_RADIUS_KM, haversine_km


def test_same_point_is_zero():
    assert haversine_km(6.9271, 79.8612, 6.9271, 79.8612) == pytest.approx(0.0)


def test_one_degree_of_latitude():
    expected = EARTH_RADIUS_KM * 3.141592653589793 / 180
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)


def test_distance_is_symmetric():
    a = haversine_km(6.9271, 79.8612, 7.2906, 80.6337)
    b = haversine_km(7.2906, 80.6337, 6.9271, 79.8612)
    assert a == pytest.approx(b)
    # Colombo to Kandy is roughly 94 km in a straight line
    assert 90 < a < 100
