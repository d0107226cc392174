import math

from conftest import make_product

from psm.services.margin_service import GainMarginResolver, resolve_gain_percent
from psm.services.pricing_config import PricingConfig


def test_authoritative_gain_is_preferred_and_clamped():
    assert resolve_gain_percent(make_product(1, 100, gain=35.5), {1: "80"}) == 35.5
    assert resolve_gain_percent(make_product(1, 100, gain=250), {}) == 100


def test_falls_back_to_cached_value_when_field_missing_or_not_finite():
    assert resolve_gain_percent(make_product(2, 100, gain=None), {2: "42.5"}) == 42.5
    assert resolve_gain_percent(make_product(2, 100, gain=math.nan), {2: 12}) == 12


def test_negative_authoritative_value_uses_cache():
    assert resolve_gain_percent(make_product(3, 100, gain=-5), {3: "7"}) == 7


def test_cached_value_is_clamped_into_range():
    assert resolve_gain_percent(make_product(4, 100), {4: "-3"}) == 0
    assert resolve_gain_percent(make_product(4, 100), {4: "140"}) == 100


def test_missing_everything_resolves_to_zero():
    assert resolve_gain_percent(make_product(5, 100), {}) == 0
    assert resolve_gain_percent(make_product(5, 100), {5: "not a number"}) == 0
    assert resolve_gain_percent(None, {}, product_id=99) == 0


def test_resolver_reads_from_injected_config():
    config = PricingConfig(gain_percents={6: "18"})

    assert GainMarginResolver(config).resolve(make_product(6, 100)) == 18
    assert GainMarginResolver(config).resolve(None, product_id=6) == 18
