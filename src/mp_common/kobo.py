"""Integer arithmetic utilities for kobo-based money.

All prices, amounts, and balances use int (kobo, 1/100 naira).
All rates use int basis points (10000 = 100%).
Decimal appears only at the naira boundary (client input), never in the ledger.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

BPS_DENOMINATOR = 10000


def validate_rate_bps(rate_bps: int) -> None:
    """Validate that a rate is in the range [0, 10000] basis points."""
    if not (0 <= rate_bps <= BPS_DENOMINATOR):
        raise ValueError(f"Rate must be between 0 and 10000 bps, got {rate_bps}")


def apply_rate(amount: int, rate_bps: int) -> int:
    """Share of amount at rate_bps, floor division (platform never overpays).

    share = floor(amount * rate_bps / 10000)
    """
    if amount == 0 or rate_bps == 0:
        return 0
    return (amount * rate_bps) // BPS_DENOMINATOR


def naira_to_kobo(naira: Decimal | int | str) -> int:
    """Convert a naira amount to integer kobo, rounding half up.

    Raises ValueError for non-numeric, non-finite, or non-positive input.
    """
    try:
        value = Decimal(str(naira))
    except InvalidOperation as e:
        raise ValueError(f"Amount is not a number: {naira!r}") from e
    if not value.is_finite():
        raise ValueError(f"Amount must be finite, got {naira!r}")
    kobo = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if kobo <= 0:
        raise ValueError(f"Amount must be greater than zero, got {naira!r}")
    return kobo


def kobo_to_display(kobo: int) -> str:
    """Convert kobo to display string: 250000 -> '₦2,500.00', -5000 -> '-₦50.00'."""
    if kobo < 0:
        abs_kobo = -kobo
        return f"-₦{abs_kobo // 100:,}.{abs_kobo % 100:02d}"
    return f"₦{kobo // 100:,}.{kobo % 100:02d}"


def bps_to_display(rate_bps: int) -> str:
    """Convert basis points to a percentage string: 2000 -> '20.00%'."""
    return f"{rate_bps // 100}.{rate_bps % 100:02d}%"
