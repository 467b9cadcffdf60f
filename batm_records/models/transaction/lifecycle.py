"""Per-type lifecycle rules: status domains, error domains and transitions."""

from dataclasses import dataclass
from enum import Enum

from batm_records.exceptions import (
    IllegalTransitionError,
    InvalidErrorCodeError,
    InvalidStatusError,
    RecordFrozenError,
    RecordValidationError,
    Violation,
)
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


@dataclass(frozen=True)
class LifecycleRules:
    """State machine of a single transaction type.

    - status_enum / error_enum: closed domains accepted for the type
    - initial: statuses a new record may start in
    - error_status: the only status that carries a non-NO_ERROR code
    - success_status: terminal status reached when the operation succeeded
    - transitions: allowed forward moves; statuses without an entry are terminal
    """

    transaction_type: TransactionType
    status_enum: type[Enum]
    error_enum: type[Enum]
    initial: frozenset
    error_status: Enum
    success_status: Enum
    transitions: dict

    @property
    def no_error(self) -> ErrorCode:
        return self.error_enum.NO_ERROR

    def is_terminal(self, status: TransactionStatus) -> bool:
        return not self.transitions.get(status)

    def check_status(self, status: object) -> None:
        """Reject a status that is not part of this type's domain."""
        if not isinstance(status, self.status_enum):
            raise InvalidStatusError(
                Violation.STATUS_NOT_IN_TYPE,
                f"Status {status!r} is not valid for {self.transaction_type.value} transactions",
            )

    def check_error_code(self, status: TransactionStatus, error_code: object) -> None:
        """Reject an error code outside the domain or unpaired with the status."""
        if not isinstance(error_code, self.error_enum):
            raise InvalidErrorCodeError(
                Violation.ERROR_CODE_NOT_IN_TYPE,
                f"Error code {error_code!r} is not valid for {self.transaction_type.value} transactions",
            )
        if status == self.error_status and error_code == self.no_error:
            raise InvalidErrorCodeError(
                Violation.ERROR_STATUS_WITHOUT_ERROR_CODE,
                f"Status {status.name} requires an error code",
            )
        if status != self.error_status and error_code != self.no_error:
            raise InvalidErrorCodeError(
                Violation.ERROR_CODE_WITHOUT_ERROR_STATUS,
                f"Error code {error_code.name} requires status {self.error_status.name}, got {status.name}",
            )

    def check_transition(self, current: TransactionStatus, target: object) -> None:
        """Reject anything but an allowed forward move from ``current``."""
        self.check_status(target)
        if self.is_terminal(current):
            raise RecordFrozenError(
                Violation.TERMINAL_STATUS_FROZEN,
                f"{self.transaction_type.value} transaction in terminal status {current.name} cannot change",
            )
        if target not in self.transitions[current]:
            raise IllegalTransitionError(
                Violation.TRANSITION_NOT_ALLOWED,
                f"{self.transaction_type.value} transaction cannot move from {current.name} to {target.name}",
            )


RULES: dict[TransactionType, LifecycleRules] = {
    TransactionType.BUY: LifecycleRules(
        transaction_type=TransactionType.BUY,
        status_enum=BuyStatus,
        error_enum=BuyErrorCode,
        initial=frozenset({BuyStatus.IN_PROGRESS}),
        error_status=BuyStatus.ERROR,
        success_status=BuyStatus.COMPLETED,
        transitions={
            BuyStatus.IN_PROGRESS: frozenset({BuyStatus.COMPLETED, BuyStatus.ERROR}),
        },
    ),
    TransactionType.SELL: LifecycleRules(
        transaction_type=TransactionType.SELL,
        status_enum=SellStatus,
        error_enum=SellErrorCode,
        initial=frozenset({SellStatus.PAYMENT_REQUESTED}),
        error_status=SellStatus.ERROR,
        success_status=SellStatus.PAYMENT_ARRIVED,
        transitions={
            SellStatus.PAYMENT_REQUESTED: frozenset({SellStatus.PAYMENT_ARRIVING, SellStatus.ERROR}),
            SellStatus.PAYMENT_ARRIVING: frozenset({SellStatus.PAYMENT_ARRIVED, SellStatus.ERROR}),
        },
    ),
    TransactionType.WITHDRAW_CASH: LifecycleRules(
        transaction_type=TransactionType.WITHDRAW_CASH,
        status_enum=WithdrawStatus,
        error_enum=WithdrawErrorCode,
        initial=frozenset({WithdrawStatus.IN_PROGRESS}),
        error_status=WithdrawStatus.ERROR,
        success_status=WithdrawStatus.COMPLETED,
        transitions={
            WithdrawStatus.IN_PROGRESS: frozenset({WithdrawStatus.COMPLETED, WithdrawStatus.ERROR}),
        },
    ),
    TransactionType.CASHBACK: LifecycleRules(
        transaction_type=TransactionType.CASHBACK,
        status_enum=CashbackStatus,
        error_enum=WithdrawErrorCode,
        initial=frozenset({CashbackStatus.COMPLETED, CashbackStatus.ERROR}),
        error_status=CashbackStatus.ERROR,
        success_status=CashbackStatus.COMPLETED,
        transitions={},
    ),
}


def rules_for(transaction_type: TransactionType) -> LifecycleRules:
    """Return the lifecycle rules of a transaction type."""
    if not isinstance(transaction_type, TransactionType):
        raise RecordValidationError(
            Violation.INVALID_TYPE, f"Unknown transaction type {transaction_type!r}"
        )
    return RULES[transaction_type]


def decode_status(transaction_type: TransactionType, code: int) -> TransactionStatus:
    """Decode a legacy integer status code in the context of its type."""
    status_enum = rules_for(transaction_type).status_enum
    try:
        return status_enum(code)
    except ValueError:
        raise InvalidStatusError(
            Violation.UNKNOWN_CODE,
            f"Unknown status code {code} for {transaction_type.value} transactions",
        ) from None


def decode_error_code(transaction_type: TransactionType, code: int) -> ErrorCode:
    """Decode a legacy integer error code in the context of its type."""
    error_enum = rules_for(transaction_type).error_enum
    try:
        return error_enum(code)
    except ValueError:
        raise InvalidErrorCodeError(
            Violation.UNKNOWN_CODE,
            f"Unknown error code {code} for {transaction_type.value} transactions",
        ) from None
