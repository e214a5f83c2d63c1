"""Shared builders for tests."""

from typing import Dict, Iterable, List, Optional

from errors import StorageUnavailableError
from models import Airport, FlightLeg, LegStatus


def make_leg(flight_number: str, origin: str, destination: str, departure: str, arrival: str,
             duration: int = 120, **kwargs) -> FlightLeg:
    return FlightLeg(
        flight_number=flight_number,
        airline_code=flight_number[:2],
        airline_name=kwargs.pop('airline_name', 'Test Air'),
        origin_code=origin,
        destination_code=destination,
        departure_time=departure,
        arrival_time=arrival,
        duration_minutes=duration,
        **kwargs,
    )


class ListStore:
    """In-memory stand-in for FlightStore."""

    def __init__(self, legs: Iterable[FlightLeg], airports: Iterable[Airport] = ()):
        self.legs: List[FlightLeg] = list(legs)
        self.airports: Dict[str, Airport] = {a.code: a for a in airports}
        self.calls = 0

    def find_legs(self, origin: Optional[str] = None, destination: Optional[str] = None,
                  status: Optional[str] = LegStatus.ACTIVE.value) -> List[FlightLeg]:
        self.calls += 1
        return [
            leg for leg in self.legs
            if (origin is None or leg.origin_code == origin)
            and (destination is None or leg.destination_code == destination)
            and (status is None or leg.status.value == status)
        ]

    def get_airport(self, code: str) -> Optional[Airport]:
        return self.airports.get(code)

    def list_airports(self) -> List[Airport]:
        return list(self.airports.values())

    def search_airports(self, term: str, limit: int = 10) -> List[Airport]:
        term = term.lower()
        return [a for a in self.airports.values() if term in a.code.lower() or term in a.city.lower()][:limit]

    def get_stats(self) -> dict:
        total = len(self.legs)
        active = sum(1 for leg in self.legs if leg.is_active)
        return {
            'airports': len(self.airports),
            'total_legs': total,
            'active_legs': active,
            'inactive_legs': total - active,
        }


class BrokenStore(ListStore):
    """Store whose every query fails."""

    def __init__(self):
        super().__init__([])

    def find_legs(self, origin=None, destination=None, status=LegStatus.ACTIVE.value):
        self.calls += 1
        raise StorageUnavailableError("database is locked")

    def search_airports(self, term, limit=10):
        raise StorageUnavailableError("database is locked")

    def get_airport(self, code):
        raise StorageUnavailableError("database is locked")

    def get_stats(self):
        raise StorageUnavailableError("database is locked")
