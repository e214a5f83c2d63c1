'''
Seed the flight store with airports and scheduled flight legs.

Sources are JSON files or http(s) URLs returning JSON lists. Records are
validated on the way in: malformed flight legs are skipped (and counted),
airport datasets with structural errors are rejected as a whole.
'''
import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import requests

from airports import parse_airports
from airports_validator import validate_airports
from config import load_config
from errors import FlightSearchError, MalformedLegError, StorageUnavailableError
from flight_store import FlightStore
from models import FlightLeg

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15


@dataclass
class SeedReport:
    '''Outcome of one seeding run.'''
    airports_loaded: int = 0
    legs_loaded: int = 0
    legs_skipped: int = 0
    legs_removed: int = 0
    skipped_reasons: List[str] = field(default_factory=list)


def _is_url(source: str) -> bool:
    return source.lower().startswith(('http://', 'https://'))


def read_json_source(source: str, session: Optional[requests.Session] = None) -> Any:
    '''
    Read JSON from a local path or an http(s) URL.

    Args:
        source: File path or URL
        session: Optional requests session (a new one is used otherwise)

    Returns:
        Parsed JSON content

    Raises:
        StorageUnavailableError: the source could not be read or parsed
    '''
    if _is_url(source):
        http = session or requests.Session()
        try:
            response = http.get(source, timeout=REQUEST_TIMEOUT, headers={'Accept': 'application/json'})
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            raise StorageUnavailableError(f"Timed out fetching {source}", {'source': source}) from e
        except requests.exceptions.RequestException as e:
            raise StorageUnavailableError(f"Failed to fetch {source}: {e}", {'source': source}) from e
        except ValueError as e:
            raise StorageUnavailableError(f"Invalid JSON from {source}: {e}", {'source': source}) from e

    path = Path(source)
    if not path.exists():
        raise StorageUnavailableError(f"{source} not found", {'source': source})
    try:
        return json.loads(path.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        raise StorageUnavailableError(f"Failed to read {source}: {e}", {'source': source}) from e


def parse_legs(raw: Any, report: SeedReport) -> List[FlightLeg]:
    '''Validate raw leg records, skipping (and recording) malformed ones.'''
    if not isinstance(raw, list):
        raise StorageUnavailableError("Flight data must be a JSON list")

    legs = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            report.legs_skipped += 1
            report.skipped_reasons.append(f"Record {idx}: not an object")
            continue
        try:
            legs.append(FlightLeg.from_record(item))
        except MalformedLegError as e:
            report.legs_skipped += 1
            report.skipped_reasons.append(f"Record {idx}: {e.message}")
            logger.warning(f"Skipping flight record {idx}: {e.message}")
    return legs


def seed_database(
    store: FlightStore,
    airports_source: Optional[str] = None,
    flights_source: Optional[str] = None,
    replace: bool = False,
    session: Optional[requests.Session] = None,
) -> SeedReport:
    '''
    Load airports and/or flight legs into the store.

    Args:
        store: Target store
        airports_source: Path/URL of an airports JSON list (optional)
        flights_source: Path/URL of a flight legs JSON list (optional)
        replace: Delete existing legs before inserting the new ones
        session: Optional requests session for URL sources

    Returns:
        SeedReport with counts
    '''
    report = SeedReport()

    if airports_source:
        raw_airports = read_json_source(airports_source, session)
        errors, _warnings = validate_airports(raw_airports)
        if errors:
            for message in errors:
                logger.error(message)
            raise StorageUnavailableError(
                f"Airport data in {airports_source} has {len(errors)} error(s)",
                {'errors': errors},
            )
        report.airports_loaded = store.add_airports(parse_airports(raw_airports))
        logger.info(f"Loaded {report.airports_loaded} airports from {airports_source}")

    if flights_source:
        legs = parse_legs(read_json_source(flights_source, session), report)
        if replace:
            report.legs_removed, report.legs_loaded = store.replace_legs(legs)
        else:
            report.legs_loaded = store.add_legs(legs)
        logger.info(
            f"Loaded {report.legs_loaded} flight legs from {flights_source} "
            f"({report.legs_skipped} skipped)"
        )

    return report


def main(argv: Optional[List[str]] = None) -> int:
    config = load_config()
    parser = argparse.ArgumentParser(description='Seed the flight database with airports and flight legs.')
    parser.add_argument('--db', default=str(config.db_path), help='SQLite database path')
    parser.add_argument('--airports', default=config.airports_file, help='Airports JSON file or URL')
    parser.add_argument('--flights', default=config.flights_file, help='Flight legs JSON file or URL')
    parser.add_argument('--replace', action='store_true', help='Replace existing flight legs')
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.log_level_value)

    try:
        store = FlightStore(args.db)
        report = seed_database(store, args.airports, args.flights, replace=args.replace)
        stats = store.get_stats()
    except FlightSearchError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(f"Airports loaded: {report.airports_loaded}")
    print(f"Flight legs loaded: {report.legs_loaded} (skipped {report.legs_skipped})")
    print(f"Database now holds {stats['airports']} airports, {stats['active_legs']} active legs")
    return 0


if __name__ == '__main__':
    sys.exit(main())
