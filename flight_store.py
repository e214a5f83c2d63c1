'''
Flight leg store.
Uses SQLite for the scheduled legs and airport reference data.
'''

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from errors import MalformedLegError, StorageUnavailableError
from models import Airport, FlightLeg, LegStatus

logger = logging.getLogger(__name__)


_LEG_COLUMNS = (
    'flight_number', 'airline_code', 'airline_name', 'origin_code', 'destination_code',
    'departure_time', 'arrival_time', 'duration_minutes', 'aircraft_type', 'days_of_week',
    'status', 'effective_from', 'effective_to',
)


class FlightStore:
    '''SQLite-backed store of flight legs and airports.'''

    def __init__(self, db_path: str = "flights.db", timeout: float = 5.0):
        '''
        Initialize the store.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait on a locked database before failing
        '''
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._lock = threading.Lock()
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        '''Open a connection, translating sqlite failures into StorageUnavailableError.'''
        try:
            with self._lock, sqlite3.connect(self.db_path, timeout=self.timeout) as conn:
                conn.row_factory = sqlite3.Row
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Flight store error ({self.db_path}): {e}")
            raise StorageUnavailableError(
                f"Flight store unavailable: {e}", {'db_path': str(self.db_path)}
            ) from e

    def _init_db(self):
        '''Initialize the database schema.'''
        with self._connect() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS airports (
                    code TEXT PRIMARY KEY,
                    name TEXT NOT NULL DEFAULT '',
                    city TEXT NOT NULL DEFAULT '',
                    country TEXT NOT NULL DEFAULT '',
                    timezone TEXT NOT NULL DEFAULT '',
                    latitude REAL,
                    longitude REAL
                )
            ''')
            conn.execute('''
                CREATE TABLE IF NOT EXISTS flights (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    flight_number TEXT NOT NULL,
                    airline_code TEXT NOT NULL DEFAULT '',
                    airline_name TEXT NOT NULL DEFAULT '',
                    origin_code TEXT NOT NULL,
                    destination_code TEXT NOT NULL,
                    departure_time TEXT NOT NULL,
                    arrival_time TEXT NOT NULL,
                    duration_minutes INTEGER NOT NULL,
                    aircraft_type TEXT,
                    days_of_week TEXT NOT NULL DEFAULT '1111111',
                    status TEXT NOT NULL DEFAULT 'active',
                    effective_from TEXT,
                    effective_to TEXT,
                    updated_at TEXT NOT NULL
                )
            ''')
            conn.execute('''
                CREATE INDEX IF NOT EXISTS idx_flights_route
                ON flights(origin_code, destination_code)
            ''')
            conn.execute('''
                CREATE INDEX IF NOT EXISTS idx_flights_destination
                ON flights(destination_code)
            ''')
            conn.commit()

    def find_legs(
        self,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        status: Optional[str] = LegStatus.ACTIVE.value
    ) -> List[FlightLeg]:
        '''
        Fetch flight legs matching the given predicates.

        Args:
            origin: Restrict to legs departing this airport
            destination: Restrict to legs arriving at this airport
            status: Restrict to this status (None for any)

        Returns:
            Valid legs ordered by departure time. Rows that fail validation
            are skipped with a warning.
        '''
        clauses = []
        params = []
        if origin:
            clauses.append('origin_code = ?')
            params.append(origin.upper())
        if destination:
            clauses.append('destination_code = ?')
            params.append(destination.upper())
        if status:
            clauses.append('status = ?')
            params.append(status)

        query = f"SELECT {', '.join(_LEG_COLUMNS)} FROM flights"
        if clauses:
            query += ' WHERE ' + ' AND '.join(clauses)
        query += ' ORDER BY departure_time, flight_number, id'

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        legs = []
        for row in rows:
            try:
                legs.append(FlightLeg.from_record(dict(row)))
            except MalformedLegError as e:
                logger.warning(f"Skipping malformed flight row: {e.message}")
        logger.debug(f"find_legs(origin={origin}, destination={destination}) -> {len(legs)} legs")
        return legs

    def add_legs(self, legs: Iterable[FlightLeg]) -> int:
        '''Insert validated legs. Returns the number inserted.'''
        rows = _leg_rows(legs)
        with self._connect() as conn:
            _insert_legs(conn, rows)
            conn.commit()
        return len(rows)

    def replace_legs(self, legs: Iterable[FlightLeg]) -> Tuple[int, int]:
        '''
        Swap the whole schedule for `legs` in a single transaction.

        If the insert fails nothing is deleted.

        Returns:
            (legs removed, legs inserted)
        '''
        rows = _leg_rows(legs)
        with self._connect() as conn:
            removed = conn.execute('DELETE FROM flights').rowcount
            _insert_legs(conn, rows)
            conn.commit()
        logger.info(f"Replaced {removed} flight legs with {len(rows)}")
        return removed, len(rows)

    def clear_legs(self) -> int:
        '''Delete every flight leg. Returns the number removed.'''
        with self._connect() as conn:
            cursor = conn.execute('DELETE FROM flights')
            deleted = cursor.rowcount
            conn.commit()
        return deleted

    def add_airports(self, airports: Iterable[Airport]) -> int:
        '''Insert or replace airport records.'''
        rows = [
            (a.code, a.name, a.city, a.country, a.timezone, a.latitude, a.longitude)
            for a in airports
        ]
        with self._connect() as conn:
            conn.executemany('''
                INSERT OR REPLACE INTO airports (code, name, city, country, timezone, latitude, longitude)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            ''', rows)
            conn.commit()
        return len(rows)

    def get_airport(self, code: str) -> Optional[Airport]:
        '''Look up one airport; None when the code is unknown.'''
        with self._connect() as conn:
            row = conn.execute(
                'SELECT * FROM airports WHERE code = ?',
                ((code or '').strip().upper(),)
            ).fetchone()
        return _airport_from_row(row) if row else None

    def list_airports(self) -> List[Airport]:
        with self._connect() as conn:
            rows = conn.execute('SELECT * FROM airports ORDER BY country, city, code').fetchall()
        return [_airport_from_row(row) for row in rows]

    def search_airports(self, term: str, limit: int = 10) -> List[Airport]:
        '''Match airports by code, name or city (case-insensitive).'''
        term = (term or '').strip()
        if not term:
            return []
        pattern = f"%{term}%"
        with self._connect() as conn:
            rows = conn.execute('''
                SELECT * FROM airports
                WHERE code LIKE ? OR name LIKE ? OR city LIKE ?
                ORDER BY CASE WHEN code = ? THEN 0 ELSE 1 END, city, code
                LIMIT ?
            ''', (pattern, pattern, pattern, term.upper(), limit)).fetchall()
        return [_airport_from_row(row) for row in rows]

    def get_stats(self) -> dict:
        '''Get store statistics.'''
        with self._connect() as conn:
            airports = conn.execute('SELECT COUNT(*) FROM airports').fetchone()[0]
            total = conn.execute('SELECT COUNT(*) FROM flights').fetchone()[0]
            active = conn.execute(
                'SELECT COUNT(*) FROM flights WHERE status = ?',
                (LegStatus.ACTIVE.value,)
            ).fetchone()[0]

        return {
            'airports': airports,
            'total_legs': total,
            'active_legs': active,
            'inactive_legs': total - active
        }


def _leg_rows(legs: Iterable[FlightLeg]) -> List[tuple]:
    now = datetime.now().isoformat()
    return [
        (
            leg.flight_number, leg.airline_code, leg.airline_name, leg.origin_code,
            leg.destination_code, leg.departure_time, leg.arrival_time, leg.duration_minutes,
            leg.aircraft_type, leg.days_of_week, leg.status.value, leg.effective_from,
            leg.effective_to, now,
        )
        for leg in legs
    ]


def _insert_legs(conn: sqlite3.Connection, rows: List[tuple]) -> None:
    conn.executemany(f'''
        INSERT INTO flights ({', '.join(_LEG_COLUMNS)}, updated_at)
        VALUES ({', '.join('?' * (len(_LEG_COLUMNS) + 1))})
    ''', rows)


def _airport_from_row(row: sqlite3.Row) -> Airport:
    return Airport(
        code=row['code'],
        name=row['name'] or '',
        city=row['city'] or '',
        country=row['country'] or '',
        timezone=row['timezone'] or '',
        latitude=row['latitude'],
        longitude=row['longitude'],
    )
