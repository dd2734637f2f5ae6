"""Domain models for mp_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Wallet:
    id: str
    user_id: str
    balance: int            # kobo, withdrawable now
    total_earned: int       # kobo, monotonic
    total_withdrawn: int    # kobo, monotonic, bumped on payout approval
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class WalletEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # WalletEntryType value
    amount: int                      # kobo, positive=credit negative=debit
    balance_after: int               # kobo, balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class WithdrawalRequest:
    id: str
    user_id: str
    amount: int             # kobo, debited from balance at request time
    processing_fee: int     # kobo
    net_amount: int         # kobo, amount - processing_fee
    account_name: str
    account_number: str
    bank_name: str
    bank_code: str | None
    status: str             # WithdrawalStatus value
    admin_notes: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
