from datetime import datetime

from app.core.config import Settings, settings
from app.core.enums import PricingTier
from app.schemas.fare import DistanceMeasurement, FareQuote
from app.services.pricing import (
    calculate_fare,
    format_distance,
    format_duration,
    format_money,
    format_rate,
    meters_to_miles,
    tier_rates,
)


def build_fare_quote(
    start: str,
    destination: str,
    tier: PricingTier,
    measurement: DistanceMeasurement,
    requested_at: datetime,
    config: Settings = settings,
) -> FareQuote:
    rate = tier_rates(config)[tier]
    fare = calculate_fare(measurement, rate, config)
    return FareQuote(
        start=start,
        destination=destination,
        tier=tier.number,
        rate=format_rate(rate, config),
        distance=format_distance(meters_to_miles(measurement.distance_meters, config)),
        duration=format_duration(measurement.minutes),
        estimated_fare=format_money(fare, config),
        time_of_request=requested_at.isoformat(),
    )
