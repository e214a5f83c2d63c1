"""
Itinerary composition.

Builds direct, 1-stop and 2-stop itineraries by joining active flight legs on
shared airports, keeps only connections whose layover falls inside the
admissibility window, classifies every layover and ranks the results.

The 2-stop search is a fallback: it only runs when neither a direct flight nor
an admissible 1-stop connection exists for the route.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from errors import InvalidInputError
from layover_risk import DEFAULT_HUB_AIRPORTS, classify
from models import (
    Airport,
    DirectItinerary,
    FlightLeg,
    Layover,
    OneStopItinerary,
    SearchResults,
    TwoStopItinerary,
    normalize_airport_code,
    total_duration,
    total_flight_minutes,
)
from timeutils import MINUTES_PER_DAY, layover_minutes

logger = logging.getLogger(__name__)

AirportLookup = Callable[[str], Optional[Airport]]


class LegSource(Protocol):
    def find_legs(self, origin: Optional[str] = None, destination: Optional[str] = None,
                  status: Optional[str] = "active") -> List[FlightLeg]:
        ...


def validate_route(origin: Optional[str], destination: Optional[str]) -> Tuple[str, str]:
    """Normalise both codes; InvalidInputError if either is bad or they are equal."""
    origin = normalize_airport_code(origin, 'origin')
    destination = normalize_airport_code(destination, 'destination')
    if origin == destination:
        raise InvalidInputError(f"Origin and destination are both {origin}")
    return origin, destination


@dataclass(frozen=True)
class ConnectionWindow:
    """Inclusive bounds (minutes) a layover must fall within."""
    min_minutes: int = 120
    max_minutes: int = MINUTES_PER_DAY

    def __post_init__(self):
        if self.min_minutes <= 0 or self.max_minutes < self.min_minutes:
            raise ValueError(f"Invalid connection window {self.min_minutes}-{self.max_minutes}")

    def admits(self, minutes: int) -> bool:
        return self.min_minutes <= minutes <= self.max_minutes


class ItineraryComposer:
    """Composes itineraries from a flight leg store."""

    def __init__(
        self,
        store: LegSource,
        hubs: Iterable[str] = DEFAULT_HUB_AIRPORTS,
        window: ConnectionWindow = ConnectionWindow(),
        two_stop_limit: int = 5,
        airport_lookup: Optional[AirportLookup] = None,
    ):
        self.store = store
        self.hubs = frozenset(code.strip().upper() for code in hubs)
        self.window = window
        self.two_stop_limit = two_stop_limit
        self.airport_lookup = airport_lookup

    @classmethod
    def from_config(cls, config, store) -> 'ItineraryComposer':
        """Build a composer from an AppConfig and a FlightStore."""
        return cls(
            store,
            hubs=config.hub_airports,
            window=ConnectionWindow(config.min_layover_minutes, config.max_layover_minutes),
            two_stop_limit=config.two_stop_limit,
            airport_lookup=store.get_airport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def search(self, origin: str, destination: str, max_results: int = 10) -> SearchResults:
        """
        Search direct, 1-stop and (fallback) 2-stop itineraries.

        Args:
            origin: Origin airport code (any case)
            destination: Destination airport code (any case)
            max_results: Cap on 1-stop itineraries returned (direct flights are not capped)

        Returns:
            SearchResults; all lists empty when nothing connects the airports.

        Raises:
            InvalidInputError: bad codes or max_results, before any store access
            StorageUnavailableError: the store query failed
        """
        origin, destination = validate_route(origin, destination)
        if max_results < 1:
            raise InvalidInputError(f"max_results must be positive, got {max_results}")

        results = SearchResults(origin=origin, destination=destination)
        results.direct = self.find_direct(origin, destination)

        outbound = self._usable(self.store.find_legs(origin=origin))
        inbound = self._usable(self.store.find_legs(destination=destination))
        one_stop = self._one_stop_candidates(
            origin, destination, outbound, inbound, self.window.min_minutes,
            self._is_international(origin, destination),
        )
        one_stop.sort(key=lambda it: (total_flight_minutes(it), it.layover.minutes))
        results.one_stop = one_stop[:max_results]

        if not results.direct and not one_stop:
            logger.info(f"No direct or 1-stop options for {origin}->{destination}, searching 2-stop")
            results.two_stop = self.find_two_stop(origin, destination)
        else:
            logger.debug(
                f"Skipping 2-stop search: {len(results.direct)} direct, {len(one_stop)} 1-stop"
            )

        logger.info(
            f"Search {origin}->{destination}: {len(results.direct)} direct, "
            f"{len(results.one_stop)} 1-stop, {len(results.two_stop)} 2-stop"
        )
        return results

    def find_direct(self, origin: str, destination: str) -> List[DirectItinerary]:
        origin, destination = validate_route(origin, destination)
        legs = self._usable(self.store.find_legs(origin=origin, destination=destination))
        legs = [leg for leg in legs if leg.origin_code == origin and leg.destination_code == destination]
        legs.sort(key=lambda leg: (leg.departure_minutes, leg.flight_number))
        return [DirectItinerary(leg) for leg in legs]

    def find_two_stop(self, origin: str, destination: str) -> List[TwoStopItinerary]:
        """2-stop itineraries, ranked by total journey time then first layover."""
        origin, destination = validate_route(origin, destination)
        all_legs = self._usable(self.store.find_legs())
        international = self._is_international(origin, destination)

        by_origin: Dict[str, List[FlightLeg]] = defaultdict(list)
        for leg in all_legs:
            by_origin[leg.origin_code].append(leg)

        candidates = []
        for first in by_origin.get(origin, []):
            stop1 = first.destination_code
            if stop1 in (origin, destination):
                continue
            for second in by_origin.get(stop1, []):
                stop2 = second.destination_code
                if stop2 in (origin, destination, stop1):
                    continue
                gap1 = self._admissible_gap(first, second, self.window.min_minutes)
                if gap1 is None:
                    continue
                for third in by_origin.get(stop2, []):
                    if third.destination_code != destination:
                        continue
                    gap2 = self._admissible_gap(second, third, self.window.min_minutes)
                    if gap2 is None:
                        continue
                    candidates.append(TwoStopItinerary(
                        first=first,
                        second=second,
                        third=third,
                        layovers=(
                            self._layover(stop1, gap1, international),
                            self._layover(stop2, gap2, international),
                        ),
                    ))

        candidates.sort(key=lambda it: (total_duration(it), it.layovers[0].minutes))
        return candidates[:self.two_stop_limit]

    def analyze_connections(
        self,
        origin: str,
        destination: str,
        max_results: int = 5,
        min_layover_minutes: Optional[int] = None,
    ) -> List[OneStopItinerary]:
        """
        1-stop connections ranked by layover length (shortest first).

        `min_layover_minutes` lets a caller relax the floor of the window (for
        example to surface tight 60-minute connections with a high-risk tier);
        the ceiling is always the composer's window maximum.
        """
        origin, destination = validate_route(origin, destination)
        floor = self.window.min_minutes if min_layover_minutes is None else min_layover_minutes
        if floor <= 0:
            raise InvalidInputError(f"min_layover_minutes must be positive, got {floor}")

        outbound = self._usable(self.store.find_legs(origin=origin))
        inbound = self._usable(self.store.find_legs(destination=destination))
        connections = self._one_stop_candidates(
            origin, destination, outbound, inbound, floor, self._is_international(origin, destination)
        )
        connections.sort(key=lambda it: (it.layover.minutes, total_flight_minutes(it)))
        return connections[:max_results]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _usable(legs: Iterable[FlightLeg]) -> List[FlightLeg]:
        # FlightLeg itself rejects self-loops and non-positive durations
        return [leg for leg in legs if leg.is_active]

    def _one_stop_candidates(
        self,
        origin: str,
        destination: str,
        outbound: List[FlightLeg],
        inbound: List[FlightLeg],
        min_layover: int,
        international: bool,
    ) -> List[OneStopItinerary]:
        inbound_by_origin: Dict[str, List[FlightLeg]] = defaultdict(list)
        for leg in inbound:
            if leg.destination_code == destination:
                inbound_by_origin[leg.origin_code].append(leg)

        candidates = []
        for first in outbound:
            if first.origin_code != origin:
                continue
            connection = first.destination_code
            if connection in (origin, destination):
                continue
            for second in inbound_by_origin.get(connection, []):
                gap = self._admissible_gap(first, second, min_layover)
                if gap is None:
                    continue
                candidates.append(OneStopItinerary(
                    first=first,
                    second=second,
                    layover=self._layover(connection, gap, international),
                ))
        return candidates

    def _admissible_gap(self, arriving: FlightLeg, departing: FlightLeg, min_layover: int) -> Optional[int]:
        gap = layover_minutes(arriving.arrival_time, departing.departure_time)
        if gap <= 0:
            logger.warning(f"Non-positive layover between {arriving!r} and {departing!r}")
            return None
        if not (min_layover <= gap <= self.window.max_minutes):
            return None
        return gap

    def _layover(self, airport_code: str, minutes: int, international: bool) -> Layover:
        is_hub = airport_code in self.hubs
        return Layover(
            airport_code=airport_code,
            minutes=minutes,
            is_hub=is_hub,
            is_international=international,
            assessment=classify(minutes, is_hub, international),
        )

    def _is_international(self, origin: str, destination: str) -> bool:
        """Best-effort: compare countries when both are known, else the codes."""
        if self.airport_lookup is not None:
            origin_airport = self.airport_lookup(origin)
            destination_airport = self.airport_lookup(destination)
            if origin_airport and destination_airport and origin_airport.country and destination_airport.country:
                return origin_airport.country != destination_airport.country
        return origin != destination
