"""Crypto-ATM transaction record models."""

from batm_records.models.transaction.banknotes import BanknoteCount
from batm_records.models.transaction.details import TransactionDetails
from batm_records.models.transaction.enums import (
    BuyErrorCode,
    BuyStatus,
    CashbackStatus,
    ErrorCode,
    SellErrorCode,
    SellStatus,
    TransactionStatus,
    TransactionType,
    WithdrawErrorCode,
    WithdrawStatus,
)
from batm_records.models.transaction.lifecycle import (
    LifecycleRules,
    decode_error_code,
    decode_status,
    rules_for,
)
from batm_records.models.transaction.record import TransactionRecord

__all__ = [
    "BanknoteCount",
    "BuyErrorCode",
    "BuyStatus",
    "CashbackStatus",
    "ErrorCode",
    "LifecycleRules",
    "SellErrorCode",
    "SellStatus",
    "TransactionDetails",
    "TransactionRecord",
    "TransactionStatus",
    "TransactionType",
    "WithdrawErrorCode",
    "WithdrawStatus",
    "decode_error_code",
    "decode_status",
    "rules_for",
]
