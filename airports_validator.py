'''
Airport dataset validator.
Checks the integrity of airport seed data before it is written to the store.
'''
import logging
from typing import Any, List, Tuple

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


REQUIRED_FIELDS = ['code', 'name', 'city', 'country']


def is_known_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def validate_airports(airports: Any) -> Tuple[List[str], List[str]]:
    '''
    Validate raw airport records.

    Args:
        airports: Parsed JSON content of an airports file

    Returns:
        (errors, warnings). Any error means the dataset must not be loaded.
    '''
    if not isinstance(airports, list):
        return ["Root element must be a list"], []

    errors = []
    warnings = []
    codes = set()

    for idx, airport in enumerate(airports):
        if not isinstance(airport, dict):
            errors.append(f"Airport {idx}: Not a dictionary")
            continue

        for field in REQUIRED_FIELDS:
            if field not in airport:
                errors.append(f"Airport {idx}: Missing required field '{field}'")

        code = str(airport.get('code') or '')
        if code:
            if len(code) != 3:
                errors.append(f"Airport {idx} ({code}): Airport code must be 3 characters")
            elif not code.isupper():
                warnings.append(f"Airport {idx} ({code}): Airport code should be uppercase")

            if code.upper() in codes:
                errors.append(f"Airport {idx} ({code}): Duplicate airport code")
            else:
                codes.add(code.upper())

        timezone = str(airport.get('timezone') or '')
        if not timezone:
            warnings.append(f"Airport {idx} ({code}): No timezone")
        elif not is_known_timezone(timezone):
            warnings.append(f"Airport {idx} ({code}): Unknown timezone '{timezone}'")

        for field, bound in (('latitude', 90), ('longitude', 180)):
            value = airport.get(field)
            if value is None:
                continue
            if not isinstance(value, (int, float)) or abs(value) > bound:
                errors.append(f"Airport {idx} ({code}): {field} out of range: {value!r}")

    for message in warnings:
        logger.warning(message)
    return errors, warnings
