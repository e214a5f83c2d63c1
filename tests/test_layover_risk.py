import pytest

from layover_risk import DEFAULT_HUB_AIRPORTS, RiskTier, classify, minimum_connection_time


@pytest.mark.parametrize("minutes,tier,label", [
    (20, RiskTier.HIGH, 'RISKY'),
    (119, RiskTier.HIGH, 'RISKY'),
    (120, RiskTier.MEDIUM, 'TIGHT'),
    (179, RiskTier.MEDIUM, 'TIGHT'),
    (180, RiskTier.LOW, 'COMFORTABLE'),
    (1440, RiskTier.LOW, 'COMFORTABLE'),
])
def test_tier_boundaries(minutes, tier, label):
    assessment = classify(minutes)
    assert assessment.tier is tier
    assert assessment.label == label
    assert assessment.risk == tier.value


@pytest.mark.parametrize("minutes", [90, 150, 600])
def test_hub_and_international_never_move_the_tier(minutes):
    baseline = classify(minutes).tier
    for is_hub in (False, True):
        for is_international in (False, True):
            assert classify(minutes, is_hub, is_international).tier is baseline


@pytest.mark.parametrize("is_hub,is_international,expected", [
    (False, False, 60),
    (True, False, 90),
    (False, True, 120),
    (True, True, 150),
])
def test_minimum_connection_time(is_hub, is_international, expected):
    assert minimum_connection_time(is_hub, is_international) == expected
    assert classify(200, is_hub, is_international).min_required == expected


def test_assessment_text_and_color():
    high = classify(95)
    assert high.color == 'red'
    assert high.duration_text == '1h 35m'
    assert '1h 35m' in high.message

    assert classify(150).color == 'orange'
    low = classify(1095)
    assert low.color == 'green'
    assert low.recommendation


def test_default_hubs_are_codes():
    assert 'LAX' in DEFAULT_HUB_AIRPORTS
    assert 'MNL' not in DEFAULT_HUB_AIRPORTS
    assert all(len(code) == 3 and code.isupper() for code in DEFAULT_HUB_AIRPORTS)
