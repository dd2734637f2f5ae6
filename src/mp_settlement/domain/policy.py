"""Settlement policy — every commission percentage in one place.

Rates are basis points (10000 = 100%).

  default_commission_rate_bps     buyer rate with no active subscription (20%)
  product_referral_rate_bps       referrer's cut OF THE COMMISSION on a product sale (10%)
  subscription_referral_rate_bps  referrer's cut OF THE SUBSCRIPTION AMOUNT (25%)
"""

from dataclasses import dataclass

from config.settings import Settings
from src.mp_common.kobo import validate_rate_bps


@dataclass(frozen=True)
class SettlementPolicy:
    default_commission_rate_bps: int = 2000
    product_referral_rate_bps: int = 1000
    subscription_referral_rate_bps: int = 2500
    allow_self_referral: bool = False
    download_ttl_days: int = 365

    def __post_init__(self) -> None:
        validate_rate_bps(self.default_commission_rate_bps)
        validate_rate_bps(self.product_referral_rate_bps)
        validate_rate_bps(self.subscription_referral_rate_bps)
        if self.download_ttl_days < 1:
            raise ValueError(f"download_ttl_days must be >= 1, got {self.download_ttl_days}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "SettlementPolicy":
        return cls(
            default_commission_rate_bps=settings.DEFAULT_COMMISSION_RATE_BPS,
            product_referral_rate_bps=settings.PRODUCT_REFERRAL_RATE_BPS,
            subscription_referral_rate_bps=settings.SUBSCRIPTION_REFERRAL_RATE_BPS,
            allow_self_referral=settings.ALLOW_SELF_REFERRAL,
            download_ttl_days=settings.DOWNLOAD_TTL_DAYS,
        )
