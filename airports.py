"""Airport reference data helpers.

This module provides:
- `parse_airports()` to turn raw JSON records into `Airport` models
- `AirportDB`, an in-memory index used by the web UI and the CLI to
  look up airports and populate dropdowns without hitting SQLite per lookup.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models import Airport

logger = logging.getLogger(__name__)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_airports(raw: Any) -> List[Airport]:
    """Convert a JSON list of airport dicts into Airport models.

    Entries that are not dicts or lack a 3-letter code are skipped.
    """
    if not isinstance(raw, list):
        raise ValueError("airports data must be a JSON list")

    airports: List[Airport] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        code = str(item.get("code") or item.get("iata") or "").strip().upper()
        if len(code) != 3:
            logger.warning(f"Skipping airport record without a valid code: {item!r}")
            continue
        airports.append(
            Airport(
                code=code,
                name=str(item.get("name") or item.get("airport_name") or "").strip(),
                city=str(item.get("city") or "").strip(),
                country=str(item.get("country") or "").strip(),
                timezone=str(item.get("timezone") or "").strip(),
                latitude=_optional_float(item.get("latitude")),
                longitude=_optional_float(item.get("longitude")),
            )
        )
    return airports


class AirportDB:
    """In-memory airport index."""

    def __init__(self, airports: Iterable[Airport]):
        self._by_code: Dict[str, Airport] = {}
        for a in airports:
            code = (a.code or "").strip().upper()
            if len(code) != 3:
                continue
            # keep first occurrence
            self._by_code.setdefault(code, a)

    @classmethod
    def from_store(cls, store) -> 'AirportDB':
        return cls(store.list_airports())

    def __len__(self) -> int:
        return len(self._by_code)

    def get_airport(self, code: str) -> Optional[Airport]:
        return self._by_code.get((code or "").strip().upper())

    def get_all_airports(self) -> List[Airport]:
        return list(self._by_code.values())

    def get_airports_for_dropdown(self) -> List[Tuple[str, str]]:
        """Return (display_name, code) pairs for UI dropdowns."""
        airports = sorted(self._by_code.values(), key=lambda a: (a.country, a.city, a.code))
        return [(f"{a.display_name} · {a.country}" if a.country else a.display_name, a.code)
                for a in airports]

    def get_airports_by_country(self, country: str) -> List[Airport]:
        country = (country or "").strip()
        out = [a for a in self._by_code.values() if a.country == country]
        out.sort(key=lambda a: (a.city, a.code))
        return out
