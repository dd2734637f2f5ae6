"""Product sale split calculation — pure integer arithmetic.

  gross_commission = floor(sale_amount * rate_bps / 10000)
  admin_amount     = sale_amount - gross_commission
  referral_amount  = carved out of gross_commission by the referral resolver
  buyer_commission = gross_commission - referral_amount

Flooring the commission keeps every rounding remainder with the platform,
so buyer_commission + referral_amount + admin_amount == sale_amount exactly.
"""

from src.mp_common.kobo import apply_rate, validate_rate_bps
from src.mp_settlement.domain.models import ProductSplit


def compute_product_split(
    sale_amount: int, commission_rate_bps: int, referral_amount: int = 0
) -> ProductSplit:
    if sale_amount <= 0:
        raise ValueError(f"sale_amount must be > 0, got {sale_amount}")
    validate_rate_bps(commission_rate_bps)
    gross = apply_rate(sale_amount, commission_rate_bps)
    if not (0 <= referral_amount <= gross):
        raise ValueError(
            f"referral_amount {referral_amount} outside [0, gross commission {gross}]"
        )
    return ProductSplit(
        sale_amount=sale_amount,
        commission_rate_bps=commission_rate_bps,
        gross_commission=gross,
        referral_amount=referral_amount,
        admin_amount=sale_amount - gross,
    )


def gross_commission(sale_amount: int, commission_rate_bps: int) -> int:
    """Commission before any referral carve-out."""
    validate_rate_bps(commission_rate_bps)
    return apply_rate(sale_amount, commission_rate_bps)
