"""
Parking Pricing Calculator

Zone-based rate schedule and fee computation for short-term parking.

Two rule sets exist, keyed by Central Area membership:

    central:      $1.20 / 0.5h, day cap $20, night cap $5, whole-day cap $20
    non-central:  $0.60 / 0.5h, day cap $12, night cap $5, whole-day cap $12

Both have a 15 minute grace period. Fees are charged per minute after the
grace period and capped by the day or night cap.
"""

from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")


class PricingRule(BaseModel):
    """Rate schedule for one zone."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    price_per_half_hour: float = Field(..., ge=0)
    day_parking_cap: float = Field(..., ge=0, description="Cap for day parking (7am-10:30pm)")
    night_parking_cap: float = Field(..., ge=0, description="Cap for night parking (10:30pm-7am)")
    whole_day_parking_cap: float = Field(..., ge=0)
    grace_period_minutes: int = Field(..., ge=0)
    per_minute_rate: float = Field(..., ge=0, description="price_per_half_hour / 30")


CENTRAL_PRICING = PricingRule(
    price_per_half_hour=1.20,
    day_parking_cap=20.00,
    night_parking_cap=5.00,
    whole_day_parking_cap=20.00,
    grace_period_minutes=15,
    per_minute_rate=0.04,
)

NON_CENTRAL_PRICING = PricingRule(
    price_per_half_hour=0.60,
    day_parking_cap=12.00,
    night_parking_cap=5.00,
    whole_day_parking_cap=12.00,
    grace_period_minutes=15,
    per_minute_rate=0.02,
)


def pricing_for_zone(is_central: bool) -> PricingRule:
    """
    Get the rate schedule for a zone.

    Args:
        is_central: Whether the carpark lies in the Central Area

    Returns:
        A copy of the zone's PricingRule
    """
    rule = CENTRAL_PRICING if is_central else NON_CENTRAL_PRICING
    return rule.model_copy()


def calculate_fee(
    duration_minutes: int,
    is_central: bool,
    is_night_parking: bool = False,
    grace_minutes: int = 15,
) -> Decimal:
    """
    Calculate the parking fee for a stay.

    Args:
        duration_minutes: Length of stay in minutes (negative counts as 0)
        is_central: Whether the carpark lies in the Central Area
        is_night_parking: Apply the night cap instead of the day cap
        grace_minutes: Free minutes at the start of the stay

    Returns:
        Fee in dollars, rounded half-up to the cent
    """
    duration_minutes = max(0, duration_minutes)
    if duration_minutes <= grace_minutes:
        return Decimal("0.00")

    rule = pricing_for_zone(is_central)
    chargeable = duration_minutes - grace_minutes
    fee = Decimal(chargeable) * Decimal(str(rule.per_minute_rate))

    cap = rule.night_parking_cap if is_night_parking else rule.day_parking_cap
    fee = min(fee, Decimal(str(cap)))

    return fee.quantize(CENT, rounding=ROUND_HALF_UP)


def charges_description(is_central: bool) -> str:
    """Human-readable summary of a zone's parking charges."""
    rule = pricing_for_zone(is_central)
    area = "Central Area" if is_central else "Non-Central Area"
    grace = rule.grace_period_minutes

    return "\n".join([
        f"{area} Parking Charges:",
        f"- Rate: ${rule.price_per_half_hour:.2f} per 0.5 hour (${rule.per_minute_rate:.4f} per minute)",
        f"- Day parking cap (7am-10:30pm): ${rule.day_parking_cap:.2f}",
        f"- Night parking cap (10:30pm-7am): ${rule.night_parking_cap:.2f}",
        f"- Whole day parking cap: ${rule.whole_day_parking_cap:.2f}",
        f"- Grace period: {grace} minutes (no charge if exiting within {grace} minutes)",
    ])
