"""Transaction record for the crypto-ATM domain."""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from decimal import Decimal

from batm_records.exceptions import (
    ImmutableFieldError,
    RecordFrozenError,
    RecordValidationError,
    Violation,
)
from batm_records.models.transaction import flags
from batm_records.models.transaction.banknotes import BanknoteCount, banknotes_total
from batm_records.models.transaction.enums import ErrorCode, TransactionStatus, TransactionType
from batm_records.models.transaction.lifecycle import LifecycleRules, rules_for

CASH_DISPENSING_TYPES = frozenset(
    {TransactionType.SELL, TransactionType.WITHDRAW_CASH, TransactionType.CASHBACK}
)
RISK_TYPES = frozenset({TransactionType.SELL, TransactionType.WITHDRAW_CASH})
EXCHANGE_TYPES = frozenset({TransactionType.BUY, TransactionType.SELL})

# Set when the record is created and never changed afterwards
FIXED_FIELDS = frozenset(
    {
        "transaction_type",
        "local_transaction_id",
        "remote_transaction_id",
        "terminal_serial_number",
        "terminal_time",
        "related_remote_transaction_id",
    }
)


@dataclass(frozen=True)
class TransactionRecord:
    """A single buy, sell, cash withdrawal or cashback handled by a terminal.

    Records are immutable values. ``transition``, ``update`` and
    ``assign_remote_id`` return a new validated record, so status and error
    code always change together.

    Identity:
    - local_transaction_id: generated by the terminal before the server accepts it
    - remote_transaction_id: assigned by the server, authoritative once present

    Stored facts ``risk`` and ``autoexecuted`` are recorded once and never
    cleared; every other flag is derived.
    """

    transaction_type: TransactionType
    status: TransactionStatus
    terminal_serial_number: str
    server_time: datetime
    terminal_time: datetime  # terminal local timezone
    cash_amount: Decimal
    cash_currency: str  # USD, EUR, ...
    crypto_amount: Decimal = Decimal("0")
    crypto_currency: str = ""  # BTC, ETH, ...
    error_code: ErrorCode | None = None  # None means the type's NO_ERROR

    local_transaction_id: str | None = None
    remote_transaction_id: str | None = None
    identity_public_id: str | None = None
    cell_phone_used: str | None = None
    crypto_address: str = ""

    # Fees and discounts, independent of each other
    fixed_transaction_fee: Decimal = Decimal("0")
    discount_code: str | None = None
    fee_discount: Decimal | None = None  # percent of the fee
    crypto_discount_amount: Decimal | None = None
    discount_quotient: Decimal | None = None

    # Filled in by the execution engine
    exchange_strategy_used: int | None = None
    rate_source_price: Decimal | None = None
    expected_profit: Decimal | None = None  # percent
    detail: str = ""  # wallet tx hash or exchange trade id

    related_remote_transaction_id: str | None = None  # sell paid out by a withdrawal
    note: str = ""
    banknotes: tuple[BanknoteCount, ...] = ()
    risk: bool = False
    autoexecuted: bool = False

    def __post_init__(self) -> None:
        rules = rules_for(self.transaction_type)
        if not self.local_transaction_id and not self.remote_transaction_id:
            raise RecordValidationError(
                Violation.MISSING_IDENTIFIER, "A local or remote transaction id is required"
            )
        self._check_required()

        rules.check_status(self.status)
        if self.error_code is None:
            object.__setattr__(self, "error_code", rules.no_error)
        rules.check_error_code(self.status, self.error_code)

        object.__setattr__(self, "banknotes", tuple(self.banknotes))
        self._check_amounts()
        self._check_references(rules)
        self._check_facts(rules)

    def _check_required(self) -> None:
        required = ["terminal_serial_number", "server_time", "terminal_time", "cash_amount"]
        if self.transaction_type in EXCHANGE_TYPES:
            required.append("crypto_amount")
        for name in required:
            value = getattr(self, name)
            if value is None or value == "":
                raise RecordValidationError(Violation.MISSING_FIELD, f"{name} is required")

    def _check_amounts(self) -> None:
        for name in ("cash_amount", "crypto_amount", "fixed_transaction_fee", "crypto_discount_amount"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise RecordValidationError(
                    Violation.NEGATIVE_AMOUNT, f"{name} must not be negative, got {value}"
                )

        if not self.cash_currency:
            raise RecordValidationError(Violation.MISSING_CURRENCY, "cash_currency is required")
        if self.transaction_type in EXCHANGE_TYPES and not self.crypto_currency:
            raise RecordValidationError(
                Violation.MISSING_CURRENCY,
                f"crypto_currency is required for {self.transaction_type.value} transactions",
            )

        if self.fee_discount is not None and not Decimal("0") <= self.fee_discount <= Decimal("100"):
            raise RecordValidationError(
                Violation.INVALID_FEE_DISCOUNT,
                f"fee_discount is a percentage between 0 and 100, got {self.fee_discount}",
            )

    def _check_references(self, rules: LifecycleRules) -> None:
        tx_type = self.transaction_type

        if tx_type not in EXCHANGE_TYPES and (
            self.exchange_strategy_used is not None
            or self.rate_source_price is not None
            or self.expected_profit is not None
        ):
            raise RecordValidationError(
                Violation.EXECUTION_FIELDS_NOT_ALLOWED,
                f"{tx_type.value} transactions are not executed on an exchange",
            )

        if tx_type == TransactionType.WITHDRAW_CASH:
            if not self.related_remote_transaction_id and self.status != rules.error_status:
                raise RecordValidationError(
                    Violation.RELATED_ID_REQUIRED,
                    "A withdrawal must reference the sell it pays out",
                )
        elif self.related_remote_transaction_id:
            raise RecordValidationError(
                Violation.RELATED_ID_NOT_ALLOWED,
                f"{tx_type.value} transactions cannot reference another transaction",
            )

        if self.banknotes and tx_type not in CASH_DISPENSING_TYPES:
            raise RecordValidationError(
                Violation.BANKNOTES_NOT_ALLOWED,
                f"{tx_type.value} transactions do not dispense banknotes",
            )
        for note in self.banknotes:
            if not isinstance(note, BanknoteCount):
                raise RecordValidationError(
                    Violation.INVALID_BANKNOTE, f"Expected BanknoteCount, got {note!r}"
                )

    def _check_facts(self, rules: LifecycleRules) -> None:
        if self.risk and self.transaction_type not in RISK_TYPES:
            raise RecordValidationError(
                Violation.RISK_NOT_APPLICABLE,
                f"{self.transaction_type.value} transactions do not release cash",
            )
        if self.autoexecuted and self.status != rules.success_status:
            raise RecordValidationError(
                Violation.AUTOEXECUTED_REQUIRES_COMPLETION,
                f"Only a {rules.success_status.name} transaction can be auto-executed",
            )

    @property
    def rules(self) -> LifecycleRules:
        return rules_for(self.transaction_type)

    @property
    def transaction_id(self) -> str:
        """Remote id when assigned, otherwise the terminal's local id."""
        return self.remote_transaction_id or self.local_transaction_id

    @property
    def is_terminal(self) -> bool:
        return self.rules.is_terminal(self.status)

    @property
    def is_error(self) -> bool:
        return self.status == self.rules.error_status

    @property
    def is_purchased(self) -> bool:
        return flags.is_purchased(self)

    @property
    def is_sold(self) -> bool:
        return flags.is_sold(self)

    @property
    def is_risk(self) -> bool:
        return self.risk

    @property
    def is_autoexecuted(self) -> bool:
        return self.autoexecuted

    @property
    def banknotes_total(self) -> Decimal:
        return banknotes_total(self.banknotes)

    def transition(
        self,
        status: TransactionStatus,
        error_code: ErrorCode | None = None,
        **changes,
    ) -> "TransactionRecord":
        """Move to ``status``, optionally updating attributes in the same step.

        ``error_code`` defaults to NO_ERROR; entering the error status without
        an explicit code is rejected.
        """
        self.rules.check_transition(self.status, status)
        self._check_changes(changes)
        return self._replace(status=status, error_code=error_code, **changes)

    def update(self, **changes) -> "TransactionRecord":
        """Change attributes without changing status."""
        if "status" in changes:
            raise ImmutableFieldError(Violation.FIELD_IMMUTABLE, "Use transition() to change status")
        if "error_code" in changes:
            self.rules.check_error_code(self.status, changes["error_code"])
        if self.is_terminal:
            raise RecordFrozenError(
                Violation.TERMINAL_STATUS_FROZEN,
                f"Transaction {self.transaction_id} is in terminal status {self.status.name}",
            )
        self._check_changes(changes)
        return self._replace(**changes)

    def assign_remote_id(self, remote_transaction_id: str) -> "TransactionRecord":
        """Attach the server-assigned id. Reassigning a different id is rejected."""
        if not remote_transaction_id:
            raise RecordValidationError(Violation.MISSING_IDENTIFIER, "Remote transaction id is empty")
        if self.remote_transaction_id == remote_transaction_id:
            return self
        if self.remote_transaction_id:
            raise RecordValidationError(
                Violation.REMOTE_ID_REASSIGNED,
                f"Transaction already has remote id {self.remote_transaction_id}",
            )
        return replace(self, remote_transaction_id=remote_transaction_id)

    def _check_changes(self, changes: dict) -> None:
        for name in changes:
            if name not in _FIELD_NAMES:
                raise RecordValidationError(Violation.UNKNOWN_FIELD, f"Unknown field {name}")
            if name in FIXED_FIELDS:
                raise ImmutableFieldError(Violation.FIELD_IMMUTABLE, f"{name} cannot change after creation")

    def _replace(self, **changes) -> "TransactionRecord":
        updated = replace(self, **changes)
        if (self.risk and not updated.risk) or (self.autoexecuted and not updated.autoexecuted):
            raise RecordValidationError(Violation.FLAG_CLEARED, "Recorded risk/autoexecuted flags cannot be cleared")
        return updated


_FIELD_NAMES = frozenset(f.name for f in fields(TransactionRecord))
