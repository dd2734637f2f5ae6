"""Pydantic schemas and cursor utilities for mp_wallet API."""

import base64
import json

from pydantic import BaseModel, Field

from src.mp_common.kobo import kobo_to_display
from src.mp_wallet.domain.models import Wallet, WithdrawalRequest

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class WithdrawalCreateRequest(BaseModel):
    amount_kobo: int = Field(..., gt=0, description="Amount to withdraw in kobo")
    account_name: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., pattern=r"^\d{10}$", description="10-digit NUBAN")
    bank_name: str = Field(..., min_length=1, max_length=255)
    bank_code: str | None = Field(None, max_length=16)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    user_id: str
    balance_kobo: int
    balance_display: str
    total_earned_kobo: int
    total_earned_display: str
    total_withdrawn_kobo: int
    total_withdrawn_display: str

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "WalletResponse":
        return cls(
            user_id=wallet.user_id,
            balance_kobo=wallet.balance,
            balance_display=kobo_to_display(wallet.balance),
            total_earned_kobo=wallet.total_earned,
            total_earned_display=kobo_to_display(wallet.total_earned),
            total_withdrawn_kobo=wallet.total_withdrawn,
            total_withdrawn_display=kobo_to_display(wallet.total_withdrawn),
        )


class WithdrawalResponse(BaseModel):
    id: str
    status: str
    amount_kobo: int
    amount_display: str
    processing_fee_kobo: int
    net_amount_kobo: int
    net_amount_display: str
    account_name: str
    account_number: str
    bank_name: str
    admin_notes: str | None
    processed_at: str | None
    created_at: str

    @classmethod
    def from_request(cls, w: WithdrawalRequest) -> "WithdrawalResponse":
        return cls(
            id=w.id,
            status=w.status,
            amount_kobo=w.amount,
            amount_display=kobo_to_display(w.amount),
            processing_fee_kobo=w.processing_fee,
            net_amount_kobo=w.net_amount,
            net_amount_display=kobo_to_display(w.net_amount),
            account_name=w.account_name,
            account_number=w.account_number,
            bank_name=w.bank_name,
            admin_notes=w.admin_notes,
            processed_at=w.processed_at.isoformat() if w.processed_at else None,
            created_at=w.created_at.isoformat() if w.created_at else "",
        )


class WithdrawalCreatedResponse(BaseModel):
    withdrawal: WithdrawalResponse
    balance_kobo: int
    balance_display: str


class WalletEntryItem(BaseModel):
    id: int
    entry_type: str
    amount_kobo: int
    amount_display: str
    balance_after_kobo: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class WalletLedgerResponse(BaseModel):
    items: list[WalletEntryItem]
    next_cursor: str | None
    has_more: bool
