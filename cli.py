#!/usr/bin/env python3
'''
Command-line flight search.

    flight-search MNL LAX
    flight-search pom lax --max-results 5 --json
    flight-search MNL LAX --analyze --min-layover 60

Exit status: 0 on success (including "no connections found"), 1 on usage
errors, invalid airport codes or storage failures.
'''
import argparse
import json
import logging
import sys
from typing import List, Optional

from airports import AirportDB
from composer import ItineraryComposer, validate_route
from config import load_config
from errors import FlightSearchError, InvalidInputError
from flight_store import FlightStore
from formatter import format_connection, format_search_results, render_connections, render_report

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        # argparse exits with 2 by default; usage errors exit 1 here
        self.print_usage(sys.stderr)
        print(f"{self.prog}: error: {message}", file=sys.stderr)
        sys.exit(1)


def build_parser(default_db: str, default_max_results: int) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='flight-search',
        description='Find direct and connecting flights between two airports.',
    )
    parser.add_argument('origin', help='Origin airport code (e.g. MNL)')
    parser.add_argument('destination', help='Destination airport code (e.g. LAX)')
    parser.add_argument('--max-results', type=int, default=default_max_results,
                        help='Maximum number of connecting itineraries (default: %(default)s)')
    parser.add_argument('--db', default=default_db, help='SQLite database path (default: %(default)s)')
    parser.add_argument('--json', action='store_true', help='Print JSON instead of a text report')
    parser.add_argument('--analyze', action='store_true',
                        help='Run the connection analyzer (1-stop, shortest layover first)')
    parser.add_argument('--min-layover', type=int, default=None,
                        help='Relaxed minimum layover in minutes for --analyze')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    config = load_config()
    args = build_parser(str(config.db_path), config.max_results).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level_value,
        format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        # Bad input is reported before the database is opened
        origin, destination = validate_route(args.origin, args.destination)
        if args.max_results < 1:
            raise InvalidInputError(f"--max-results must be positive, got {args.max_results}")
        if args.min_layover is not None and args.min_layover <= 0:
            raise InvalidInputError(f"--min-layover must be positive, got {args.min_layover}")

        store = FlightStore(args.db)
        composer = ItineraryComposer.from_config(config, store)
        airport_db = AirportDB.from_store(store)

        if args.analyze:
            connections = composer.analyze_connections(
                origin, destination,
                max_results=args.max_results,
                min_layover_minutes=args.min_layover,
            )
            if args.json:
                output = json.dumps([format_connection(c) for c in connections], indent=2, ensure_ascii=False)
            else:
                output = render_connections(connections, origin, destination)
        else:
            results = composer.search(origin, destination, max_results=args.max_results)
            if args.json:
                output = json.dumps(format_search_results(results, airport_db.get_airport),
                                    indent=2, ensure_ascii=False)
            else:
                output = render_report(results, airport_db.get_airport)
    except FlightSearchError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected failure: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
