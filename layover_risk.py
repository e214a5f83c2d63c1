"""
Layover risk classification.

Tiers are derived from the layover length alone:
- High   (RISKY):       under 2 hours
- Medium (TIGHT):       2 to 3 hours
- Low    (COMFORTABLE): 3 hours or more

Hub and international flags only feed `min_required`, which is shown to the
user as guidance and never moves the tier thresholds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet

from timeutils import format_duration


DEFAULT_HUB_AIRPORTS: FrozenSet[str] = frozenset({
    'JFK', 'LAX', 'ORD', 'DFW', 'ATL', 'DEN', 'LAS', 'PHX', 'IAH', 'MIA',
    'LHR', 'CDG', 'FRA', 'AMS', 'DXB', 'DOH', 'SIN', 'NRT', 'ICN', 'HKG',
    'SYD', 'MEL', 'YYZ', 'YVR',
})

HIGH_RISK_BELOW_MINUTES = 120
MEDIUM_RISK_BELOW_MINUTES = 180

# Minimum connection times (minutes)
INTERNATIONAL_MIN_CONNECTION = 120
DOMESTIC_MIN_CONNECTION = 60
HUB_EXTRA_MINUTES = 30


class RiskTier(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class LayoverAssessment:
    """Result of classifying a single layover."""
    tier: RiskTier
    label: str
    message: str
    recommendation: str
    duration_text: str
    min_required: int
    color: str

    @property
    def risk(self) -> str:
        return self.tier.value


def minimum_connection_time(is_hub: bool, is_international: bool) -> int:
    minutes = INTERNATIONAL_MIN_CONNECTION if is_international else DOMESTIC_MIN_CONNECTION
    if is_hub:
        minutes += HUB_EXTRA_MINUTES
    return minutes


def classify(minutes: int, is_hub: bool = False, is_international: bool = False) -> LayoverAssessment:
    """Classify a layover by its length in minutes."""
    duration_text = format_duration(minutes)
    min_required = minimum_connection_time(is_hub, is_international)

    if minutes < HIGH_RISK_BELOW_MINUTES:
        return LayoverAssessment(
            tier=RiskTier.HIGH,
            label='RISKY',
            message=f'Very tight connection ({duration_text}) - High risk of missing connection',
            recommendation='Consider booking a later flight or allow more time',
            duration_text=duration_text,
            min_required=min_required,
            color='red',
        )
    if minutes < MEDIUM_RISK_BELOW_MINUTES:
        return LayoverAssessment(
            tier=RiskTier.MEDIUM,
            label='TIGHT',
            message=f'Tight connection ({duration_text}) - Manageable but rush required',
            recommendation='Move quickly between gates, check terminal maps',
            duration_text=duration_text,
            min_required=min_required,
            color='orange',
        )
    return LayoverAssessment(
        tier=RiskTier.LOW,
        label='COMFORTABLE',
        message=f'Comfortable connection ({duration_text}) - Plenty of time',
        recommendation='Relax, explore airport amenities, grab a meal',
        duration_text=duration_text,
        min_required=min_required,
        color='green',
    )
