"""
Data models for the flight connection finder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple, Union

from errors import InvalidInputError, MalformedLegError
from layover_risk import LayoverAssessment, RiskTier
from timeutils import clock_minutes


def normalize_airport_code(code: Optional[str], field_name: str = 'airport code') -> str:
    """Uppercase and validate a 3-character airport code."""
    value = (code or '').strip().upper()
    if not value:
        raise InvalidInputError(f"Missing {field_name}", {'field': field_name})
    if len(value) != 3 or not value.isalnum():
        raise InvalidInputError(
            f"Invalid {field_name} {code!r}: expected a 3-character code",
            {'field': field_name, 'value': code},
        )
    return value


class LegStatus(Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FlightLeg:
    """One scheduled, possibly repeating, flight segment."""
    flight_number: str
    airline_code: str
    airline_name: str
    origin_code: str
    destination_code: str
    departure_time: str
    arrival_time: str
    duration_minutes: int
    aircraft_type: Optional[str] = None
    days_of_week: str = '1111111'
    status: LegStatus = LegStatus.ACTIVE
    effective_from: Optional[str] = None
    effective_to: Optional[str] = None

    def __post_init__(self):
        if not self.flight_number:
            raise MalformedLegError("Flight leg without a flight number")
        details = {'flight_number': self.flight_number}

        for code in (self.origin_code, self.destination_code):
            if len(code or '') != 3:
                raise MalformedLegError(f"{self.flight_number}: invalid airport code {code!r}", details)
        if self.origin_code == self.destination_code:
            raise MalformedLegError(
                f"{self.flight_number}: origin and destination are both {self.origin_code}", details
            )
        if not isinstance(self.duration_minutes, int) or self.duration_minutes <= 0:
            raise MalformedLegError(
                f"{self.flight_number}: non-positive duration {self.duration_minutes!r}", details
            )
        try:
            clock_minutes(self.departure_time)
            clock_minutes(self.arrival_time)
        except ValueError as e:
            raise MalformedLegError(f"{self.flight_number}: {e}", details) from e
        if len(self.days_of_week) != 7 or set(self.days_of_week) - {'0', '1'}:
            raise MalformedLegError(
                f"{self.flight_number}: invalid days_of_week {self.days_of_week!r}", details
            )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'FlightLeg':
        """Build a leg from a store row or a seed file record.

        Accepts both the column names (origin_code, departure_time, ...) and the
        short seed-file names (origin, departure, ...).
        """
        def pick(*keys, default=None):
            for key in keys:
                value = record.get(key)
                if value is not None and value != '':
                    return value
            return default

        flight_number = str(pick('flight_number', 'flightNumber', default='')).strip().upper()
        status_raw = str(pick('status', default='active')).strip().lower()
        try:
            status = LegStatus(status_raw)
        except ValueError:
            raise MalformedLegError(
                f"{flight_number or '?'}: unknown status {status_raw!r}", {'flight_number': flight_number}
            )

        duration_raw = pick('duration_minutes', 'duration', default=0)
        try:
            duration = int(duration_raw)
        except (TypeError, ValueError):
            raise MalformedLegError(
                f"{flight_number or '?'}: invalid duration {duration_raw!r}", {'flight_number': flight_number}
            )

        aircraft = pick('aircraft_type', 'aircraft')
        return cls(
            flight_number=flight_number,
            airline_code=str(pick('airline_code', default='')).strip().upper(),
            airline_name=str(pick('airline_name', 'airline', default='')).strip(),
            origin_code=str(pick('origin_code', 'origin', default='')).strip().upper(),
            destination_code=str(pick('destination_code', 'destination', default='')).strip().upper(),
            departure_time=str(pick('departure_time', 'departure', default='')).strip(),
            arrival_time=str(pick('arrival_time', 'arrival', default='')).strip(),
            duration_minutes=duration,
            aircraft_type=str(aircraft).strip() if aircraft else None,
            days_of_week=str(pick('days_of_week', 'days', default='1111111')).strip(),
            status=status,
            effective_from=pick('effective_from'),
            effective_to=pick('effective_to'),
        )

    @property
    def is_active(self) -> bool:
        return self.status is LegStatus.ACTIVE

    @property
    def departure_minutes(self) -> int:
        return clock_minutes(self.departure_time)

    @property
    def arrival_minutes(self) -> int:
        return clock_minutes(self.arrival_time)

    def operates_on(self, weekday: int) -> bool:
        """True if the leg flies on the given Python weekday (Mon=0 .. Sun=6)."""
        # days_of_week is Sunday-first
        return self.days_of_week[(weekday + 1) % 7] == '1'

    def __repr__(self) -> str:
        return (
            f"FlightLeg({self.flight_number} {self.origin_code}→{self.destination_code}, "
            f"{self.departure_time}-{self.arrival_time})"
        )


@dataclass(frozen=True)
class Airport:
    """Static airport reference data."""
    code: str
    name: str = ""
    city: str = ""
    country: str = ""
    timezone: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def display_name(self) -> str:
        """Format airport for display: MNL (Manila)"""
        return f"{self.code} ({self.city})" if self.city else self.code


@dataclass(frozen=True)
class Layover:
    """Gap between two legs at a shared airport."""
    airport_code: str
    minutes: int
    is_hub: bool
    is_international: bool
    assessment: LayoverAssessment

    @property
    def risk_tier(self) -> RiskTier:
        return self.assessment.tier


@dataclass(frozen=True)
class DirectItinerary:
    leg: FlightLeg

    kind = 'direct'

    @property
    def legs(self) -> Tuple[FlightLeg, ...]:
        return (self.leg,)

    @property
    def layovers(self) -> Tuple[Layover, ...]:
        return ()


@dataclass(frozen=True)
class OneStopItinerary:
    first: FlightLeg
    second: FlightLeg
    layover: Layover

    kind = 'one_stop'

    @property
    def legs(self) -> Tuple[FlightLeg, ...]:
        return (self.first, self.second)

    @property
    def layovers(self) -> Tuple[Layover, ...]:
        return (self.layover,)


@dataclass(frozen=True)
class TwoStopItinerary:
    first: FlightLeg
    second: FlightLeg
    third: FlightLeg
    layovers: Tuple[Layover, Layover]

    kind = 'two_stop'

    @property
    def legs(self) -> Tuple[FlightLeg, ...]:
        return (self.first, self.second, self.third)


Itinerary = Union[DirectItinerary, OneStopItinerary, TwoStopItinerary]


def stops(itinerary: Itinerary) -> int:
    return len(itinerary.legs) - 1


def total_flight_minutes(itinerary: Itinerary) -> int:
    return sum(leg.duration_minutes for leg in itinerary.legs)


def total_layover_minutes(itinerary: Itinerary) -> int:
    return sum(layover.minutes for layover in itinerary.layovers)


def total_duration(itinerary: Itinerary) -> int:
    """Flight time plus time spent on the ground between legs."""
    return total_flight_minutes(itinerary) + total_layover_minutes(itinerary)


def route_codes(itinerary: Itinerary) -> List[str]:
    legs = itinerary.legs
    return [legs[0].origin_code] + [leg.destination_code for leg in legs]


def route_text(itinerary: Itinerary) -> str:
    return ' → '.join(route_codes(itinerary))


@dataclass
class SearchResults:
    """Outcome of one search. All three lists empty is a valid result."""
    origin: str
    destination: str
    direct: List[DirectItinerary] = field(default_factory=list)
    one_stop: List[OneStopItinerary] = field(default_factory=list)
    two_stop: List[TwoStopItinerary] = field(default_factory=list)
    searched_at: datetime = field(default_factory=datetime.now)

    @property
    def route(self) -> str:
        return f"{self.origin} → {self.destination}"

    @property
    def total_options(self) -> int:
        return len(self.direct) + len(self.one_stop) + len(self.two_stop)

    @property
    def is_empty(self) -> bool:
        return self.total_options == 0

    def __repr__(self) -> str:
        return (
            f"SearchResults({self.route}, direct={len(self.direct)}, "
            f"one_stop={len(self.one_stop)}, two_stop={len(self.two_stop)})"
        )
