"""Enumeration types for crypto-ATM transaction records.

Statuses and error codes are scoped per transaction type. Each type gets its
own ``Enum`` class whose values are the legacy integer codes used between
terminals and the server; numeric values overlap across types, but members of
different classes never compare equal.
"""

from enum import Enum

from batm_records.exceptions import RecordValidationError, Violation


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    WITHDRAW_CASH = "WITHDRAW_CASH"
    CASHBACK = "CASHBACK"

    @property
    def code(self) -> int:
        """Legacy integer code of the type."""
        return _TYPE_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "TransactionType":
        """Decode a legacy integer type code."""
        for tx_type, tx_code in _TYPE_CODES.items():
            if tx_code == code:
                return tx_type
        raise RecordValidationError(Violation.UNKNOWN_CODE, f"Unknown transaction type code {code}")


_TYPE_CODES = {
    TransactionType.BUY: 0,
    TransactionType.SELL: 1,
    TransactionType.WITHDRAW_CASH: 2,
    TransactionType.CASHBACK: 3,
}


class BuyStatus(Enum):
    IN_PROGRESS = 0
    COMPLETED = 1
    ERROR = 2


class SellStatus(Enum):
    PAYMENT_REQUESTED = 0
    PAYMENT_ARRIVING = 1
    ERROR = 2
    PAYMENT_ARRIVED = 3


class WithdrawStatus(Enum):
    IN_PROGRESS = 0
    COMPLETED = 1
    ERROR = 2


class CashbackStatus(Enum):
    COMPLETED = 0
    ERROR = 1


class BuyErrorCode(Enum):
    NO_ERROR = 0
    INVALID_PARAMETERS = 1
    INVALID_CURRENCY = 2
    INVALID_BALANCE = 3
    INVALID_UNKNOWN_ERROR = 4
    PROBLEM_SENDING_FROM_HOT_WALLET = 5
    PROBLEM_GETTING_BALANCE_FROM_HOT_WALLET = 6
    PROBLEM_GETTING_BALANCE_FROM_EXCHANGE = 7
    EXCHANGE_WITHDRAWAL = 8
    EXCHANGE_PURCHASE = 9
    UNKNOWN_EXCHANGE_STRATEGY = 10
    CONFIGURATION_PROBLEM = 11
    FINGERPRINT_UNKNOWN = 12
    FEE_GREATER_THAN_AMOUNT = 13
    PUBLIC_ID_UNKNOWN = 19
    NOT_APPROVED = 20


class SellErrorCode(Enum):
    NO_ERROR = 0
    INVALID_PARAMETERS = 1
    INVALID_CURRENCY = 2
    INVALID_BALANCE = 3
    INVALID_UNKNOWN_ERROR = 4
    CONFIGURATION_PROBLEM = 11
    FINGERPRINT_UNKNOWN = 12
    GETTING_DEPOSIT_ADDRESS = 13
    PAYMENT_WAIT_TIMED_OUT = 14
    NOT_ENOUGH_COINS_ON_EXCHANGE = 15
    EXCHANGE_SELL = 16
    PAYMENT_INVALID = 17
    DISABLED_SELL = 20
    NOT_APPROVED = 21
    WITHDRAWAL_PROBLEM = 22
    WITHDRAWAL_NOT_ALLOWED = 23


class WithdrawErrorCode(Enum):
    """Error codes for cash dispensing (withdrawals and cashback)."""

    NO_ERROR = 0
    INVALID_PARAMETERS = 1
    INVALID_CURRENCY = 2
    INVALID_UNKNOWN_ERROR = 4
    FINGERPRINT_UNKNOWN = 12
    NOT_ENOUGH_CASH = 13
    PHONE_NUMBER_UNKNOWN = 18
    NOT_APPROVED = 19
    CASH_DISPENSING_FAILED = 22


TransactionStatus = BuyStatus | SellStatus | WithdrawStatus | CashbackStatus
ErrorCode = BuyErrorCode | SellErrorCode | WithdrawErrorCode
