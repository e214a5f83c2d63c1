"""
Presentation helpers: flatten composed itineraries into the API/UI shape and
render the plain-text report printed by the CLI.

Airport metadata only enriches names and cities here; an unknown airport
renders with empty fields.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from layover_risk import RiskTier
from models import (
    Airport,
    DirectItinerary,
    FlightLeg,
    Itinerary,
    Layover,
    OneStopItinerary,
    SearchResults,
    route_text,
    total_duration,
    total_flight_minutes,
)
from timeutils import format_duration

AirportLookup = Callable[[str], Optional[Airport]]

_KIND_LABELS = {
    'direct': 'direct',
    'one_stop': 'connecting',
    'two_stop': 'two-stop',
}

_RISK_MARKERS = {
    RiskTier.HIGH: '[RED]',
    RiskTier.MEDIUM: '[ORANGE]',
    RiskTier.LOW: '[GREEN]',
}


def _airport_ref(code: str, airport_lookup: Optional[AirportLookup]) -> Dict[str, str]:
    airport = airport_lookup(code) if airport_lookup else None
    return {
        'code': code,
        'name': airport.name if airport else '',
        'city': airport.city if airport else '',
    }


def format_leg(leg: FlightLeg, airport_lookup: Optional[AirportLookup] = None) -> dict:
    return {
        'flightNumber': leg.flight_number,
        'airline': leg.airline_name,
        'airlineCode': leg.airline_code,
        'origin': _airport_ref(leg.origin_code, airport_lookup),
        'destination': _airport_ref(leg.destination_code, airport_lookup),
        'departure': leg.departure_time,
        'arrival': leg.arrival_time,
        'duration': leg.duration_minutes,
        'aircraft': leg.aircraft_type,
        'daysOfWeek': leg.days_of_week,
    }


def format_layover(layover: Layover) -> dict:
    assessment = layover.assessment
    return {
        'airport': layover.airport_code,
        'minutes': layover.minutes,
        'duration': assessment.duration_text,
        'isHub': layover.is_hub,
        'isInternational': layover.is_international,
        'risk': assessment.risk,
        'status': assessment.label,
        'color': assessment.color,
        'message': assessment.message,
        'recommendation': assessment.recommendation,
        'minRequired': assessment.min_required,
    }


def format_itinerary(itinerary: Itinerary, airport_lookup: Optional[AirportLookup] = None) -> dict:
    if isinstance(itinerary, DirectItinerary):
        formatted = format_leg(itinerary.leg, airport_lookup)
        formatted['type'] = _KIND_LABELS[itinerary.kind]
        return formatted

    minutes = [layover.minutes for layover in itinerary.layovers]
    return {
        'type': _KIND_LABELS[itinerary.kind],
        'route': route_text(itinerary),
        'legs': [format_leg(leg, airport_lookup) for leg in itinerary.legs],
        'layoverMinutes': minutes[0] if isinstance(itinerary, OneStopItinerary) else minutes,
        'layovers': [format_layover(layover) for layover in itinerary.layovers],
        'totalFlightMinutes': total_flight_minutes(itinerary),
        'totalDuration': total_duration(itinerary),
    }


def format_connection(connection: OneStopItinerary) -> dict:
    """Analyzer-style view of a 1-stop connection (outbound / connecting / layover)."""
    first, second, layover = connection.first, connection.second, connection.layover
    return {
        'outbound': {
            'flight': first.flight_number,
            'airline': first.airline_name,
            'route': f"{first.origin_code} → {first.destination_code}",
            'departure': first.departure_time,
            'arrival': first.arrival_time,
            'aircraft': first.aircraft_type,
        },
        'connecting': {
            'flight': second.flight_number,
            'airline': second.airline_name,
            'route': f"{second.origin_code} → {second.destination_code}",
            'departure': second.departure_time,
            'arrival': second.arrival_time,
            'aircraft': second.aircraft_type,
        },
        'layover': format_layover(layover),
        'totalJourney': {
            'departure': first.departure_time,
            'arrival': second.arrival_time,
            'route': route_text(connection),
            'minutes': total_duration(connection),
        },
    }


def format_search_results(results: SearchResults, airport_lookup: Optional[AirportLookup] = None) -> dict:
    """Flatten SearchResults into the API response shape."""
    itineraries: List[Itinerary] = [*results.direct, *results.one_stop, *results.two_stop]
    return {
        'success': True,
        'route': results.route,
        'searchTime': results.searched_at.isoformat(),
        'totalFlights': results.total_options,
        'counts': {
            'direct': len(results.direct),
            'oneStop': len(results.one_stop),
            'twoStop': len(results.two_stop),
        },
        'flights': [format_itinerary(it, airport_lookup) for it in itineraries],
    }


# ----------------------------------------------------------------------------
# Text report
# ----------------------------------------------------------------------------

def _leg_line(leg: FlightLeg, airport_lookup: Optional[AirportLookup]) -> str:
    aircraft = leg.aircraft_type or 'N/A'
    line = (
        f"{leg.flight_number} ({leg.airline_name or leg.airline_code}) "
        f"{leg.origin_code} {leg.departure_time} → {leg.destination_code} {leg.arrival_time} "
        f"· {format_duration(leg.duration_minutes)} · {aircraft}"
    )
    if airport_lookup:
        cities = [_airport_ref(code, airport_lookup)['city'] for code in (leg.origin_code, leg.destination_code)]
        if all(cities):
            line += f" · {cities[0]} → {cities[1]}"
    return line


def _layover_lines(layover: Layover) -> List[str]:
    assessment = layover.assessment
    lines = [
        f"   Layover at {layover.airport_code}: {_RISK_MARKERS[assessment.tier]} "
        f"{assessment.label} ({assessment.risk} risk)",
        f"      {assessment.message}",
    ]
    if layover.is_hub:
        lines.append("      Major hub airport - allow extra time")
    lines.append(f"      Tip: {assessment.recommendation}")
    return lines


def _itinerary_lines(index: int, itinerary: Itinerary, airport_lookup: Optional[AirportLookup]) -> List[str]:
    lines = [f"{index}. {route_text(itinerary)} · total {format_duration(total_duration(itinerary))}"]
    legs = itinerary.legs
    layovers = itinerary.layovers
    for pos, leg in enumerate(legs):
        lines.append(f"   {_leg_line(leg, airport_lookup)}")
        if pos < len(layovers):
            lines.extend(_layover_lines(layovers[pos]))
    return lines


def render_report(results: SearchResults, airport_lookup: Optional[AirportLookup] = None) -> str:
    """Human-readable report of one search."""
    rule = '=' * 64
    lines = [rule, f"  FLIGHTS: {results.route}", rule]

    if results.is_empty:
        lines.append(f"No connections found for {results.route}")
        return "\n".join(lines)

    sections = (
        ('Direct flights', results.direct),
        ('Connecting flights (1 stop)', results.one_stop),
        ('Connecting flights (2 stops)', results.two_stop),
    )
    for title, itineraries in sections:
        if not itineraries:
            continue
        lines.append('')
        lines.append(f"{title}: {len(itineraries)}")
        lines.append('-' * 64)
        for index, itinerary in enumerate(itineraries, start=1):
            lines.extend(_itinerary_lines(index, itinerary, airport_lookup))

    layovers = [layover for it in [*results.one_stop, *results.two_stop] for layover in it.layovers]
    if layovers:
        counts = {tier: 0 for tier in RiskTier}
        for layover in layovers:
            counts[layover.risk_tier] += 1
        lines.append('')
        lines.append('Layover summary:')
        lines.append(f"   High risk (< 2h): {counts[RiskTier.HIGH]}")
        lines.append(f"   Medium risk (2-3h): {counts[RiskTier.MEDIUM]}")
        lines.append(f"   Low risk (3h+): {counts[RiskTier.LOW]}")

    lines.append('')
    lines.append(f"Total options: {results.total_options}")
    return "\n".join(lines)


def render_connections(connections: List[OneStopItinerary], origin: str, destination: str) -> str:
    """Report for the connection analyzer flow."""
    results = SearchResults(origin=origin, destination=destination, one_stop=list(connections))
    return render_report(results)
