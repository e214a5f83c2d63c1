"""
Request handling for the HTTP surface.

Framework-free so it can be exercised directly in tests; `app.py` only maps
routes onto these functions. Every handler returns (status_code, payload).
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import List, Mapping, Optional, Tuple

from composer import ItineraryComposer
from errors import FlightSearchError, FlightSearchErrorCode, InvalidInputError
from formatter import format_connection, format_leg
from models import OneStopItinerary, normalize_airport_code, total_duration

logger = logging.getLogger(__name__)

Response = Tuple[int, dict]

CONNECTION_ANALYSIS_LIMIT = 20


def _error(status: int, message: str, details: Optional[str] = None) -> Response:
    payload = {'error': message}
    if details:
        payload['details'] = details
    return status, payload


def _status_for(error: FlightSearchError) -> int:
    if error.code is FlightSearchErrorCode.INVALID_INPUT:
        return 400
    if error.code is FlightSearchErrorCode.STORAGE_UNAVAILABLE:
        return 503
    return 500


def _parse_route(params: Mapping[str, str]) -> Tuple[str, str]:
    return (
        normalize_airport_code(params.get('from'), 'from'),
        normalize_airport_code(params.get('to'), 'to'),
    )


def _parse_date(value: Optional[str]):
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), '%Y-%m-%d').date()
    except ValueError:
        raise InvalidInputError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def _flag(value: Optional[str], default: bool = True) -> bool:
    if value is None or value == '':
        return default
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}


def enhanced_search(
    composer: ItineraryComposer,
    params: Mapping[str, str],
    relaxed_min_layover: Optional[int] = None,
) -> Response:
    """
    Direct flights, plus analyzed connections when no direct flight exists.

    Query params: from, to, optional date (YYYY-MM-DD), optional includeConnections.
    """
    if not params.get('from') or not params.get('to'):
        return _error(400, 'Missing required parameters: from and to airport codes')

    try:
        travel_date = _parse_date(params.get('date'))
        origin, destination = _parse_route(params)
        direct = [it.leg for it in composer.find_direct(origin, destination)]
        if travel_date is not None:
            direct = [leg for leg in direct if leg.operates_on(travel_date.weekday())]

        connections: List[OneStopItinerary] = []
        if not direct and _flag(params.get('includeConnections')):
            connections = composer.analyze_connections(
                origin, destination,
                max_results=CONNECTION_ANALYSIS_LIMIT,
                min_layover_minutes=relaxed_min_layover,
            )
            if travel_date is not None:
                connections = [c for c in connections if c.first.operates_on(travel_date.weekday())]
    except FlightSearchError as e:
        logger.warning(f"Enhanced search failed: {e}")
        return _error(_status_for(e), 'Flight search failed', e.message)

    lookup = composer.airport_lookup
    return 200, {
        'route': {
            'from': origin,
            'to': destination,
            'date': travel_date.isoformat() if travel_date else 'any',
        },
        'direct_flights': [format_leg(leg, lookup) for leg in direct],
        'connecting_flights': [format_connection(c) for c in connections],
        'total_options': len(direct) + len(connections),
        'has_direct': bool(direct),
        'has_connections': bool(connections),
    }


def connection_stats(connections: List[OneStopItinerary], origin: str, destination: str) -> dict:
    """Summary statistics over analyzed 1-stop connections."""
    risks = Counter(c.layover.assessment.risk for c in connections)
    stats = {
        'route': f"{origin} → {destination}",
        'total_connections': len(connections),
        'risk_breakdown': {
            'high_risk': risks.get('high', 0),
            'medium_risk': risks.get('medium', 0),
            'low_risk': risks.get('low', 0),
        },
        'popular_hubs': dict(Counter(c.layover.airport_code for c in connections)),
        'shortest_layover': None,
        'longest_layover': None,
        'fastest_journey': None,
    }
    if not connections:
        return stats

    by_layover = sorted(connections, key=lambda c: c.layover.minutes)
    for key, conn in (('shortest_layover', by_layover[0]), ('longest_layover', by_layover[-1])):
        stats[key] = {
            'minutes': conn.layover.minutes,
            'airport': conn.layover.airport_code,
            'risk': conn.layover.assessment.risk,
        }

    fastest = min(connections, key=total_duration)
    stats['fastest_journey'] = {
        'total_minutes': total_duration(fastest),
        'route': f"{origin} → {fastest.layover.airport_code} → {destination}",
        'layover_minutes': fastest.layover.minutes,
        'hub': fastest.layover.airport_code,
    }
    return stats


def connection_stats_response(
    composer: ItineraryComposer,
    params: Mapping[str, str],
    relaxed_min_layover: Optional[int] = None,
) -> Response:
    if not params.get('from') or not params.get('to'):
        return _error(400, 'Missing required parameters: from and to airport codes')
    try:
        origin, destination = _parse_route(params)
        connections = composer.analyze_connections(
            origin, destination,
            max_results=CONNECTION_ANALYSIS_LIMIT,
            min_layover_minutes=relaxed_min_layover,
        )
    except FlightSearchError as e:
        logger.warning(f"Connection stats failed: {e}")
        return _error(_status_for(e), 'Connection stats failed', e.message)
    return 200, connection_stats(connections, origin, destination)


def airport_lookup_response(store, params: Mapping[str, str]) -> Response:
    term = (params.get('q') or '').strip()
    if not term:
        return _error(400, 'Missing required parameter: q')
    try:
        limit = int(params.get('limit') or 10)
    except ValueError:
        return _error(400, 'limit must be an integer')
    try:
        airports = store.search_airports(term, limit=max(1, min(limit, 50)))
    except FlightSearchError as e:
        return _error(_status_for(e), 'Airport lookup failed', e.message)
    return 200, {
        'query': term,
        'airports': [
            {'code': a.code, 'name': a.name, 'city': a.city, 'country': a.country, 'timezone': a.timezone}
            for a in airports
        ],
    }


def _airport_payload(airport) -> dict:
    return {
        'code': airport.code,
        'name': airport.name,
        'city': airport.city,
        'country': airport.country,
        'timezone': airport.timezone,
        'latitude': airport.latitude,
        'longitude': airport.longitude,
    }


def airport_detail_response(store, code: Optional[str]) -> Response:
    """One airport by IATA code; 404 when the store does not know it."""
    try:
        airport = store.get_airport(normalize_airport_code(code))
    except FlightSearchError as e:
        return _error(_status_for(e), 'Airport lookup failed', e.message)
    if airport is None:
        return _error(404, 'Airport not found')
    return 200, _airport_payload(airport)


def store_stats_response(store) -> Response:
    try:
        return 200, store.get_stats()
    except FlightSearchError as e:
        logger.warning(f"Store stats failed: {e}")
        return _error(_status_for(e), 'Stats unavailable', e.message)
