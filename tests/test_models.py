import pytest

from errors import FlightSearchErrorCode, InvalidInputError, MalformedLegError
from layover_risk import classify
from models import (
    DirectItinerary,
    FlightLeg,
    Layover,
    LegStatus,
    OneStopItinerary,
    SearchResults,
    TwoStopItinerary,
    normalize_airport_code,
    route_text,
    stops,
    total_duration,
    total_flight_minutes,
    total_layover_minutes,
)

from helpers import make_leg


def _layover(code, minutes):
    return Layover(code, minutes, False, True, classify(minutes))


def test_normalize_airport_code():
    assert normalize_airport_code(' lax ') == 'LAX'
    with pytest.raises(InvalidInputError) as exc:
        normalize_airport_code('', 'origin')
    assert exc.value.code is FlightSearchErrorCode.INVALID_INPUT
    assert exc.value.details == {'field': 'origin'}


def test_from_record_accepts_seed_file_names():
    leg = FlightLeg.from_record({
        'flight_number': 'px10', 'airline_code': 'px', 'airline_name': 'Air Niugini',
        'origin': 'pom', 'destination': 'mnl', 'departure': '00:40', 'arrival': '05:20',
        'duration': '340', 'aircraft': 'Boeing 767', 'days': '0101010',
    })

    assert leg.flight_number == 'PX10'
    assert leg.origin_code == 'POM'
    assert leg.destination_code == 'MNL'
    assert leg.duration_minutes == 340
    assert leg.aircraft_type == 'Boeing 767'
    assert leg.status is LegStatus.ACTIVE
    assert leg.is_active


def test_from_record_accepts_column_names():
    leg = FlightLeg.from_record({
        'flight_number': 'PR101', 'airline_code': 'PR', 'airline_name': 'Philippine Airlines',
        'origin_code': 'MNL', 'destination_code': 'NRT', 'departure_time': '22:05',
        'arrival_time': '02:35', 'duration_minutes': 210, 'aircraft_type': None,
        'days_of_week': '1111111', 'status': 'cancelled',
    })

    assert leg.status is LegStatus.CANCELLED
    assert not leg.is_active
    assert leg.aircraft_type is None


@pytest.mark.parametrize("overrides", [
    {'flight_number': ''},
    {'origin': 'MN'},
    {'destination': 'POM'},
    {'duration': 0},
    {'duration': -30},
    {'duration': 'long'},
    {'departure': '25:00'},
    {'arrival': ''},
    {'days': '11111'},
    {'days': '11x1111'},
    {'status': 'delayed'},
])
def test_from_record_rejects_malformed(overrides):
    record = {
        'flight_number': 'PX10', 'airline_code': 'PX', 'airline_name': 'Air Niugini',
        'origin': 'POM', 'destination': 'MNL', 'departure': '00:40', 'arrival': '05:20',
        'duration': 340,
    }
    record.update(overrides)

    with pytest.raises(MalformedLegError):
        FlightLeg.from_record(record)


@pytest.mark.parametrize("origin, destination, duration", [
    ('MNL', 'MNL', 120),
    ('MNL', 'NRT', 0),
    ('MNL', 'NRT', -5),
])
def test_constructor_rejects_legs_the_composer_cannot_use(origin, destination, duration):
    with pytest.raises(MalformedLegError):
        make_leg('X1', origin, destination, '06:00', '08:00', duration=duration)


def test_operates_on_maps_python_weekday_to_sunday_first_days():
    # Sunday-first: only Monday and Saturday
    leg = make_leg('PX10', 'POM', 'MNL', '00:40', '05:20', days_of_week='0100001')

    assert leg.operates_on(0)       # Monday
    assert leg.operates_on(5)       # Saturday
    assert not leg.operates_on(6)   # Sunday
    assert not leg.operates_on(2)


def test_itinerary_totals():
    first = make_leg('PX10', 'POM', 'MNL', '00:40', '05:20', duration=340)
    second = make_leg('PR126', 'MNL', 'LAX', '23:35', '19:05', duration=690)
    third = make_leg('AA1', 'LAX', 'JFK', '22:00', '06:30', duration=330)

    direct = DirectItinerary(first)
    one_stop = OneStopItinerary(first, second, _layover('MNL', 1095))
    two_stop = TwoStopItinerary(first, second, third, (_layover('MNL', 1095), _layover('LAX', 175)))

    assert [stops(it) for it in (direct, one_stop, two_stop)] == [0, 1, 2]
    assert total_duration(direct) == 340
    assert total_flight_minutes(one_stop) == 1030
    assert total_duration(one_stop) == 1030 + 1095
    assert total_layover_minutes(two_stop) == 1270
    assert route_text(two_stop) == 'POM → MNL → LAX → JFK'
    assert one_stop.kind == 'one_stop'


def test_search_results_summary():
    results = SearchResults('POM', 'LAX')
    assert results.is_empty
    assert results.route == 'POM → LAX'

    results.direct.append(DirectItinerary(make_leg('PX1', 'POM', 'LAX', '01:00', '09:00')))
    assert results.total_options == 1
    assert 'direct=1' in repr(results)
