from datetime import datetime, timezone
from typing import AbstractSet
from zoneinfo import ZoneInfo

from app.core.config import Settings, settings
from app.core.enums import PricingTier
from app.schemas.fare import DistanceMeasurement


def tier_rates(config: Settings = settings) -> dict:
    return {
        PricingTier.LOCAL: config.LOCAL_RATE,
        PricingTier.NATIONAL: config.NATIONAL_RATE,
        PricingTier.STANDARD: config.STANDARD_RATE,
    }


def is_daytime(now: datetime, config: Settings = settings) -> bool:
    """True when ``now`` falls inside the daytime window in UK civil time.

    Naive datetimes are taken to be UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(ZoneInfo(config.FARE_TIMEZONE))
    return config.DAYTIME_START_HOUR <= local.hour < config.DAYTIME_END_HOUR


def select_tier(
    start_tags: AbstractSet[str],
    destination_tags: AbstractSet[str],
    now: datetime,
    config: Settings = settings,
) -> PricingTier:
    local = config.LOCAL_REGION_TAG.lower()
    national = config.NATIONAL_REGION_TAG.lower()

    if local in start_tags and local in destination_tags and is_daytime(now, config):
        return PricingTier.LOCAL
    if national in start_tags or national in destination_tags:
        return PricingTier.NATIONAL
    return PricingTier.STANDARD


def meters_to_miles(meters: float, config: Settings = settings) -> float:
    return meters / config.METERS_PER_MILE


def calculate_fare(measurement: DistanceMeasurement, rate: float, config: Settings = settings) -> float:
    return meters_to_miles(measurement.distance_meters, config) * rate


def format_money(amount: float, config: Settings = settings) -> str:
    return f"{config.CURRENCY_SYMBOL}{amount:.2f}"


def format_rate(rate: float, config: Settings = settings) -> str:
    return f"{format_money(rate, config)}/mile"


def format_distance(miles: float) -> str:
    return f"{miles:.2f} miles"


def format_duration(minutes: float) -> str:
    return f"{minutes:.2f} mins"
