import sqlite3
from pathlib import Path

import pytest

from composer import ItineraryComposer
from database_setup import seed_database
from errors import StorageUnavailableError
from flight_store import FlightStore
from models import Airport, LegStatus

from helpers import make_leg

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def store(tmp_path):
    return FlightStore(str(tmp_path / 'flights.db'))


def test_find_legs_filters_and_orders(store):
    store.add_legs([
        make_leg('PR3', 'MNL', 'NRT', '22:05', '02:35'),
        make_leg('PR1', 'MNL', 'NRT', '06:00', '11:00'),
        make_leg('PR9', 'MNL', 'NRT', '06:00', '11:00'),
        make_leg('PR2', 'MNL', 'CEB', '14:40', '16:05'),
        make_leg('PR5', 'CEB', 'NRT', '07:00', '12:00'),
        make_leg('PR4', 'MNL', 'NRT', '09:00', '14:00', status=LegStatus.CANCELLED),
    ])

    route = store.find_legs(origin='mnl', destination='NRT')
    assert [leg.flight_number for leg in route] == ['PR1', 'PR9', 'PR3']

    assert {leg.flight_number for leg in store.find_legs(origin='MNL')} == {'PR1', 'PR9', 'PR3', 'PR2'}
    assert {leg.flight_number for leg in store.find_legs(destination='NRT')} == {'PR1', 'PR9', 'PR3', 'PR5'}
    assert len(store.find_legs(status=None)) == 6
    assert [leg.flight_number for leg in store.find_legs(status='cancelled')] == ['PR4']


def test_legs_round_trip_all_fields(store):
    leg = make_leg('PX10', 'POM', 'MNL', '00:40', '05:20', duration=340,
                   aircraft_type='Boeing 767', days_of_week='0101010', effective_from='2025-01-01')
    store.add_legs([leg])

    assert store.find_legs(origin='POM') == [leg]


def test_malformed_rows_are_skipped(store, caplog):
    store.add_legs([make_leg('PR1', 'MNL', 'NRT', '06:00', '11:00')])
    with sqlite3.connect(store.db_path) as conn:
        conn.execute(
            "INSERT INTO flights (flight_number, origin_code, destination_code, departure_time, "
            "arrival_time, duration_minutes, updated_at) VALUES ('BAD1', 'MNL', 'NRT', '07:00', '12:00', 0, 'x')"
        )
        conn.execute(
            "INSERT INTO flights (flight_number, origin_code, destination_code, departure_time, "
            "arrival_time, duration_minutes, updated_at) VALUES ('BAD2', 'MNL', 'MNL', '08:00', '09:00', 60, 'x')"
        )

    legs = store.find_legs(origin='MNL')

    assert [leg.flight_number for leg in legs] == ['PR1']
    assert 'BAD1' in caplog.text
    assert 'BAD2' in caplog.text


def test_clear_legs(store):
    store.add_legs([make_leg('PR1', 'MNL', 'NRT', '06:00', '11:00')])

    assert store.clear_legs() == 1
    assert store.find_legs() == []


def test_replace_legs_swaps_schedule(store):
    store.add_legs([
        make_leg('PR1', 'MNL', 'NRT', '06:00', '11:00'),
        make_leg('PR2', 'MNL', 'NRT', '09:00', '14:00'),
    ])

    removed, inserted = store.replace_legs([make_leg('PR3', 'MNL', 'CEB', '07:00', '08:30')])

    assert (removed, inserted) == (2, 1)
    assert [leg.flight_number for leg in store.find_legs(status=None)] == ['PR3']


def test_airports_lookup_and_search(store):
    store.add_airports([
        Airport('MNL', 'Ninoy Aquino International Airport', 'Manila', 'Philippines', 'Asia/Manila'),
        Airport('CEB', 'Mactan-Cebu International Airport', 'Cebu', 'Philippines', 'Asia/Manila'),
        Airport('NRT', 'Narita International Airport', 'Tokyo', 'Japan', 'Asia/Tokyo', 35.77, 140.39),
    ])

    nrt = store.get_airport('nrt')
    assert nrt.city == 'Tokyo'
    assert nrt.latitude == pytest.approx(35.77)
    assert store.get_airport('XXX') is None

    assert [a.code for a in store.list_airports()] == ['NRT', 'CEB', 'MNL']
    assert [a.code for a in store.search_airports('international', limit=2)] == ['CEB', 'MNL']
    assert store.search_airports('  ') == []
    # exact code first
    assert store.search_airports('ceb')[0].code == 'CEB'


def test_add_airports_replaces_existing(store):
    store.add_airports([Airport('MNL', city='Old')])
    store.add_airports([Airport('MNL', city='Manila')])

    assert [a.city for a in store.list_airports()] == ['Manila']


def test_stats(store):
    store.add_airports([Airport('MNL'), Airport('NRT')])
    store.add_legs([
        make_leg('PR1', 'MNL', 'NRT', '06:00', '11:00'),
        make_leg('PR2', 'MNL', 'NRT', '09:00', '14:00', status=LegStatus.CANCELLED),
    ])

    assert store.get_stats() == {
        'airports': 2,
        'total_legs': 2,
        'active_legs': 1,
        'inactive_legs': 1,
    }


def test_unreachable_database_raises_storage_unavailable(tmp_path):
    with pytest.raises(StorageUnavailableError):
        FlightStore(str(tmp_path / 'missing' / 'flights.db'))


def test_seeded_network_end_to_end(store):
    report = seed_database(store, str(ROOT / 'airports.json'), str(ROOT / 'flights.json'))
    assert report.legs_skipped == 0
    assert report.airports_loaded == 17

    composer = ItineraryComposer(store, airport_lookup=store.get_airport)

    direct = composer.search('MNL', 'NRT')
    assert direct.direct
    assert all(it.leg.origin_code == 'MNL' and it.leg.destination_code == 'NRT' for it in direct.direct)
    assert direct.two_stop == []

    pom_lax = composer.search('pom', 'lax', 5)
    assert pom_lax.direct == []
    assert pom_lax.one_stop
    for itinerary in pom_lax.one_stop:
        assert 120 <= itinerary.layover.minutes <= 1440
        assert itinerary.layover.is_international is True
    mnl_leg = [it for it in pom_lax.one_stop if it.layover.airport_code == 'MNL']
    assert mnl_leg and mnl_leg[0].layover.minutes == 1095
