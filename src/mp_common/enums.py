"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class PurchaseType(str, Enum):
    PRODUCT = "product"
    SUBSCRIPTION = "subscription"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class SaleStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class ReferralCommissionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class WalletEntryType(str, Enum):
    # Credits from settlement
    SALE_COMMISSION = "SALE_COMMISSION"
    REFERRAL_COMMISSION = "REFERRAL_COMMISSION"
    SUBSCRIPTION_REFERRAL = "SUBSCRIPTION_REFERRAL"
    # Withdrawal lifecycle
    WITHDRAWAL_HOLD = "WITHDRAWAL_HOLD"
    WITHDRAWAL_REFUND = "WITHDRAWAL_REFUND"


class WebhookEvent(str, Enum):
    CHARGE_SUCCESS = "charge.success"


class SettlementOutcome(str, Enum):
    SETTLED = "settled"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
