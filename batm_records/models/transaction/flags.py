"""Derived transaction flags.

None of these are stored: they are recomputed from type, status, detail and,
for cash-out flags, the withdrawals that reference a sell.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from batm_records.models.transaction.enums import (
    BuyStatus,
    SellStatus,
    TransactionType,
    WithdrawStatus,
)

if TYPE_CHECKING:
    from batm_records.models.transaction.record import TransactionRecord

SOLD_STATUSES = frozenset({SellStatus.PAYMENT_ARRIVING, SellStatus.PAYMENT_ARRIVED})


def is_purchased(record: TransactionRecord) -> bool:
    """Coins were bought for a completed buy."""
    return record.transaction_type == TransactionType.BUY and record.status == BuyStatus.COMPLETED


def is_sold(record: TransactionRecord) -> bool:
    """Coins were sold on the exchange and the trade reference is recorded."""
    return (
        record.transaction_type == TransactionType.SELL
        and record.status in SOLD_STATUSES
        and bool(record.detail)
    )


def completed_withdrawals(
    sell: TransactionRecord, withdrawals: Iterable[TransactionRecord]
) -> list[TransactionRecord]:
    """Completed withdrawals among ``withdrawals`` that reference ``sell``."""
    if sell.transaction_type != TransactionType.SELL or not sell.remote_transaction_id:
        return []
    return [
        w
        for w in withdrawals
        if w.transaction_type == TransactionType.WITHDRAW_CASH
        and w.status == WithdrawStatus.COMPLETED
        and w.related_remote_transaction_id == sell.remote_transaction_id
    ]


def is_withdrawn(sell: TransactionRecord, withdrawals: Iterable[TransactionRecord]) -> bool:
    """Cash for the sell was already handed out by a completed withdrawal."""
    return bool(completed_withdrawals(sell, withdrawals))


def can_be_cashed_out(sell: TransactionRecord, withdrawals: Iterable[TransactionRecord]) -> bool:
    """Payment for the sell arrived and no completed withdrawal paid it out yet."""
    return (
        sell.transaction_type == TransactionType.SELL
        and sell.status == SellStatus.PAYMENT_ARRIVED
        and not is_withdrawn(sell, withdrawals)
    )
