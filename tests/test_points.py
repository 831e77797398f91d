import math

import pytest

from pitext_trek.api.errors import RoutingUnreachable, ValidationError
from pitext_trek.api.models import Point
from pitext_trek.api.points import PointValidator

PARIS = Point(lat=48.8566, lng=2.3522, name="Paris")
LONDON = Point(lat=51.5074, lng=-0.1278, name="London")


@pytest.mark.parametrize("lat,lng", [
    (91.0, 2.0),
    (-90.5, 2.0),
    (45.0, 180.1),
    (45.0, -181.0),
    (math.nan, 2.0),
    (45.0, math.inf),
    (0.0, 0.0),
])
def test_check_bounds_rejects_unusable_coordinates(lat, lng):
    with pytest.raises(ValidationError):
        PointValidator.check_bounds(Point(lat=lat, lng=lng, name="bad"))


def test_check_bounds_accepts_edges():
    edge = Point(lat=-90.0, lng=180.0, name="edge")
    assert PointValidator.check_bounds(edge) is edge


def test_land_heuristic_rejects_known_open_water():
    assert not PointValidator.is_likely_on_land(0.5, -0.5)
    assert not PointValidator.is_likely_on_land(35.0, -150.0)
    assert not PointValidator.is_likely_on_land(-45.0, -120.0)


def test_land_heuristic_is_permissive_for_coastal_cities():
    # Tel Aviv, Sydney, Auckland, Honolulu, Vancouver, Lima
    for lat, lng in [(32.08, 34.78), (-33.87, 151.21), (-36.85, 174.76),
                     (21.31, -157.86), (49.28, -123.12), (-12.05, -77.04)]:
        assert PointValidator.is_likely_on_land(lat, lng)


def test_validate_raises_unreachable_for_water():
    with pytest.raises(RoutingUnreachable):
        PointValidator.validate(Point(lat=40.0, lng=-150.0, name="mid-Pacific"))


def test_validate_is_idempotent():
    first = PointValidator.validate(PARIS)
    second = PointValidator.validate(first)
    assert first == second == PARIS
    assert PointValidator.is_valid(PARIS) and PointValidator.is_valid(PARIS)


def test_same_point_uses_tolerance():
    near = Point(lat=PARIS.lat + 0.0009, lng=PARIS.lng - 0.0009, name="near")
    far = Point(lat=PARIS.lat + 0.0011, lng=PARIS.lng, name="far")
    assert PointValidator.same_point(PARIS, near)
    assert not PointValidator.same_point(PARIS, far)
    assert not PointValidator.same_point(PARIS, None)


def test_haversine_paris_london():
    assert PointValidator.haversine_km(PARIS, LONDON) == pytest.approx(343.5, abs=1.0)
    assert PointValidator.haversine_km(PARIS, PARIS) == 0
