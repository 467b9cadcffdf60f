"""Tests for TransactionRecord construction and transitions."""

import dataclasses
from datetime import datetime
from decimal import Decimal

import pytest

from batm_records.exceptions import (
    IllegalTransitionError,
    ImmutableFieldError,
    InvalidErrorCodeError,
    InvalidStatusError,
    RecordFrozenError,
    RecordValidationError,
    Violation,
)
from batm_records.models.transaction import (
    BanknoteCount,
    BuyErrorCode,
    BuyStatus,
    CashbackStatus,
    SellErrorCode,
    SellStatus,
    TransactionRecord,
    TransactionType,
    WithdrawErrorCode,
    WithdrawStatus,
)


def _make(record: TransactionRecord, **changes) -> TransactionRecord:
    """Construct a fresh record from a fixture with some fields replaced."""
    return dataclasses.replace(record, **changes)


class TestConstruction:
    """Tests for record construction contract."""

    def test_valid_buy(self, buy_record: TransactionRecord) -> None:
        assert buy_record.transaction_type == TransactionType.BUY
        assert buy_record.status == BuyStatus.IN_PROGRESS
        assert buy_record.error_code == BuyErrorCode.NO_ERROR
        assert buy_record.transaction_id == "L-buy-001"
        assert buy_record.detail == ""
        assert buy_record.banknotes == ()

    def test_error_code_defaults_per_type(self, sell_record: TransactionRecord) -> None:
        assert sell_record.error_code is SellErrorCode.NO_ERROR

    def test_remote_id_is_authoritative(self, sell_record: TransactionRecord) -> None:
        assert sell_record.local_transaction_id == "L-sell-001"
        assert sell_record.transaction_id == "RSELL01"

    def test_missing_identifier(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, local_transaction_id=None)
        assert exc_info.value.reason == Violation.MISSING_IDENTIFIER

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("server_time", None),
            ("terminal_time", None),
            ("terminal_serial_number", None),
            ("terminal_serial_number", ""),
            ("cash_amount", None),
            ("crypto_amount", None),
        ],
    )
    def test_missing_required_field(self, buy_record: TransactionRecord, field: str, value) -> None:
        """Test timestamps, terminal and monetary pair must be present on a buy."""
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, **{field: value})
        assert exc_info.value.reason == Violation.MISSING_FIELD
        assert field in str(exc_info.value)

    def test_crypto_amount_optional_for_withdrawal(self, withdraw_record: TransactionRecord) -> None:
        withdraw = _make(withdraw_record, crypto_amount=None)
        assert withdraw.crypto_amount is None

    def test_withdrawal_requires_cash_amount(self, withdraw_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(withdraw_record, cash_amount=None)
        assert exc_info.value.reason == Violation.MISSING_FIELD

    def test_cross_type_status_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidStatusError) as exc_info:
            _make(buy_record, status=SellStatus.PAYMENT_ARRIVING)
        assert exc_info.value.reason == Violation.STATUS_NOT_IN_TYPE

    def test_cross_type_status_with_equal_code_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidStatusError):
            _make(buy_record, status=WithdrawStatus.IN_PROGRESS)

    def test_cross_type_error_code_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidErrorCodeError) as exc_info:
            _make(buy_record, status=BuyStatus.ERROR, error_code=SellErrorCode.INVALID_BALANCE)
        assert exc_info.value.reason == Violation.ERROR_CODE_NOT_IN_TYPE

    def test_error_status_requires_code(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidErrorCodeError) as exc_info:
            _make(buy_record, status=BuyStatus.ERROR)
        assert exc_info.value.reason == Violation.ERROR_STATUS_WITHOUT_ERROR_CODE

    def test_error_code_requires_error_status(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidErrorCodeError) as exc_info:
            _make(buy_record, error_code=BuyErrorCode.INVALID_BALANCE)
        assert exc_info.value.reason == Violation.ERROR_CODE_WITHOUT_ERROR_STATUS

    def test_error_record(self, buy_record: TransactionRecord) -> None:
        record = _make(buy_record, status=BuyStatus.ERROR, error_code=BuyErrorCode.FINGERPRINT_UNKNOWN)
        assert record.is_error
        assert record.is_terminal

    def test_negative_amount(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, cash_amount=Decimal("-1"))
        assert exc_info.value.reason == Violation.NEGATIVE_AMOUNT

    def test_buy_requires_crypto_currency(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, crypto_currency="")
        assert exc_info.value.reason == Violation.MISSING_CURRENCY

    def test_withdraw_needs_no_crypto(self, withdraw_record: TransactionRecord) -> None:
        assert withdraw_record.crypto_amount == Decimal("0")
        assert withdraw_record.crypto_currency == ""

    def test_fee_discount_is_percentage(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, fee_discount=Decimal("120"))
        assert exc_info.value.reason == Violation.INVALID_FEE_DISCOUNT

    def test_discount_fields_independent(self, buy_record: TransactionRecord) -> None:
        record = _make(
            buy_record,
            discount_code="PROMO-1",
            fee_discount=Decimal("50"),
            crypto_discount_amount=Decimal("0.0001"),
            discount_quotient=Decimal("7"),
        )
        assert record.discount_quotient == Decimal("7")

    def test_execution_fields_only_for_exchange_types(self, withdraw_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(withdraw_record, rate_source_price=Decimal("65000"))
        assert exc_info.value.reason == Violation.EXECUTION_FIELDS_NOT_ALLOWED

    def test_related_id_only_for_withdrawals(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, related_remote_transaction_id="RSELL01")
        assert exc_info.value.reason == Violation.RELATED_ID_NOT_ALLOWED

    def test_withdrawal_requires_related_id(self, withdraw_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(withdraw_record, related_remote_transaction_id=None)
        assert exc_info.value.reason == Violation.RELATED_ID_REQUIRED

    def test_failed_withdrawal_may_lack_related_id(self, withdraw_record: TransactionRecord) -> None:
        record = _make(
            withdraw_record,
            related_remote_transaction_id=None,
            status=WithdrawStatus.ERROR,
            error_code=WithdrawErrorCode.PHONE_NUMBER_UNKNOWN,
        )
        assert record.related_remote_transaction_id is None

    def test_banknotes_not_allowed_on_buy(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, banknotes=(BanknoteCount(Decimal("20"), 5),))
        assert exc_info.value.reason == Violation.BANKNOTES_NOT_ALLOWED

    def test_banknotes_list_becomes_tuple(self, withdraw_record: TransactionRecord) -> None:
        record = _make(withdraw_record, banknotes=[BanknoteCount(Decimal("100"), 2)])
        assert record.banknotes == (BanknoteCount(Decimal("100"), 2),)
        assert record.banknotes_total == Decimal("200")

    def test_invalid_banknote_entry(self, withdraw_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(withdraw_record, banknotes=[(Decimal("100"), 2)])
        assert exc_info.value.reason == Violation.INVALID_BANKNOTE

    @pytest.mark.parametrize(
        ("denomination", "count"),
        [
            (None, 1),
            ("100", 1),
            (Decimal("100"), None),
            (Decimal("100"), 1.5),
            (Decimal("100"), True),
            (Decimal("0"), 1),
            (Decimal("100"), -1),
        ],
    )
    def test_malformed_banknote_count(self, denomination, count) -> None:
        """Test bad counter readings are contract violations, not TypeErrors."""
        with pytest.raises(RecordValidationError) as exc_info:
            BanknoteCount(denomination, count)
        assert exc_info.value.reason == Violation.INVALID_BANKNOTE

    def test_risk_only_for_cash_release(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, risk=True)
        assert exc_info.value.reason == Violation.RISK_NOT_APPLICABLE

    def test_autoexecuted_requires_completion(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _make(buy_record, autoexecuted=True)
        assert exc_info.value.reason == Violation.AUTOEXECUTED_REQUIRES_COMPLETION

    def test_terminal_and_server_time_independent(
        self, buy_record: TransactionRecord, server_time: datetime
    ) -> None:
        assert buy_record.server_time == server_time
        assert buy_record.terminal_time != server_time
        assert buy_record.terminal_time.utcoffset() != server_time.utcoffset()

    def test_records_are_frozen(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            buy_record.status = BuyStatus.COMPLETED


class TestTransition:
    """Tests for validated status transitions."""

    def test_buy_completes(self, buy_record: TransactionRecord) -> None:
        completed = buy_record.transition(BuyStatus.COMPLETED, detail="ab" * 32)

        assert completed.status == BuyStatus.COMPLETED
        assert completed.error_code == BuyErrorCode.NO_ERROR
        assert completed.detail == "ab" * 32
        assert buy_record.status == BuyStatus.IN_PROGRESS  # source record untouched

    def test_buy_fails_with_code(self, buy_record: TransactionRecord) -> None:
        failed = buy_record.transition(BuyStatus.ERROR, BuyErrorCode.INVALID_BALANCE)
        assert failed.error_code == BuyErrorCode.INVALID_BALANCE

    def test_error_without_code_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidErrorCodeError) as exc_info:
            buy_record.transition(BuyStatus.ERROR)
        assert exc_info.value.reason == Violation.ERROR_STATUS_WITHOUT_ERROR_CODE

    def test_code_without_error_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidErrorCodeError):
            buy_record.transition(BuyStatus.COMPLETED, BuyErrorCode.EXCHANGE_PURCHASE)

    def test_completed_buy_cannot_go_back(self, buy_record: TransactionRecord) -> None:
        completed = buy_record.transition(BuyStatus.COMPLETED)
        with pytest.raises(RecordFrozenError) as exc_info:
            completed.transition(BuyStatus.IN_PROGRESS)
        assert exc_info.value.reason == Violation.TERMINAL_STATUS_FROZEN

    def test_cross_type_transition_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(InvalidStatusError):
            buy_record.transition(SellStatus.PAYMENT_ARRIVING)

    def test_sell_walkthrough(self, sell_record: TransactionRecord) -> None:
        arriving = sell_record.transition(SellStatus.PAYMENT_ARRIVING, detail="trade-1")
        arrived = arriving.transition(SellStatus.PAYMENT_ARRIVED)

        assert arrived.status == SellStatus.PAYMENT_ARRIVED
        assert arrived.is_terminal
        assert arrived.error_code == SellErrorCode.NO_ERROR

    def test_sell_skip_rejected(self, sell_record: TransactionRecord) -> None:
        with pytest.raises(IllegalTransitionError):
            sell_record.transition(SellStatus.PAYMENT_ARRIVED)

    def test_fixed_fields_cannot_change(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(ImmutableFieldError) as exc_info:
            buy_record.transition(BuyStatus.COMPLETED, terminal_serial_number="BT999999")
        assert exc_info.value.reason == Violation.FIELD_IMMUTABLE

    def test_unknown_field_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            buy_record.transition(BuyStatus.COMPLETED, colour="red")
        assert exc_info.value.reason == Violation.UNKNOWN_FIELD

    def test_autoexecuted_completion(self, buy_record: TransactionRecord) -> None:
        completed = buy_record.transition(BuyStatus.COMPLETED, autoexecuted=True)
        assert completed.is_autoexecuted

    def test_risk_cannot_be_cleared(self, withdraw_record: TransactionRecord) -> None:
        risky = withdraw_record.update(risk=True)
        with pytest.raises(RecordValidationError) as exc_info:
            risky.transition(WithdrawStatus.COMPLETED, risk=False)
        assert exc_info.value.reason == Violation.FLAG_CLEARED


class TestUpdate:
    """Tests for attribute updates without status change."""

    def test_update_in_progress(self, buy_record: TransactionRecord) -> None:
        updated = buy_record.update(note="customer asked for receipt", crypto_address="bc1qnew")
        assert updated.note == "customer asked for receipt"
        assert updated.status == BuyStatus.IN_PROGRESS

    def test_update_terminal_rejected(self, buy_record: TransactionRecord) -> None:
        completed = buy_record.transition(BuyStatus.COMPLETED)
        with pytest.raises(RecordFrozenError):
            completed.update(note="late note")

    def test_update_status_rejected(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(ImmutableFieldError):
            buy_record.update(status=BuyStatus.COMPLETED)

    def test_error_code_on_arrived_sell_rejected(self, sell_record: TransactionRecord) -> None:
        arrived = sell_record.transition(SellStatus.PAYMENT_ARRIVING).transition(SellStatus.PAYMENT_ARRIVED)
        with pytest.raises(InvalidErrorCodeError) as exc_info:
            arrived.update(error_code=SellErrorCode.EXCHANGE_SELL)
        assert exc_info.value.reason == Violation.ERROR_CODE_WITHOUT_ERROR_STATUS


class TestAssignRemoteId:
    """Tests for server promotion of terminal records."""

    def test_assign(self, buy_record: TransactionRecord) -> None:
        accepted = buy_record.assign_remote_id("RBUY001")

        assert accepted.remote_transaction_id == "RBUY001"
        assert accepted.local_transaction_id == "L-buy-001"
        assert accepted.transaction_id == "RBUY001"

    def test_assign_same_id_is_noop(self, sell_record: TransactionRecord) -> None:
        assert sell_record.assign_remote_id("RSELL01") is sell_record

    def test_reassign_rejected(self, sell_record: TransactionRecord) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            sell_record.assign_remote_id("ROTHER1")
        assert exc_info.value.reason == Violation.REMOTE_ID_REASSIGNED

    def test_remote_id_not_settable_via_update(self, buy_record: TransactionRecord) -> None:
        with pytest.raises(ImmutableFieldError):
            buy_record.update(remote_transaction_id="RBUY001")


class TestCashback:
    """Cashback records enter their final status directly."""

    def test_completed_cashback(self, withdraw_record: TransactionRecord) -> None:
        cashback = _make(
            withdraw_record,
            transaction_type=TransactionType.CASHBACK,
            status=CashbackStatus.COMPLETED,
            related_remote_transaction_id=None,
            banknotes=(BanknoteCount(Decimal("5"), 1),),
        )
        assert cashback.is_terminal
        assert cashback.error_code == WithdrawErrorCode.NO_ERROR

    def test_failed_cashback(self, withdraw_record: TransactionRecord) -> None:
        cashback = _make(
            withdraw_record,
            transaction_type=TransactionType.CASHBACK,
            status=CashbackStatus.ERROR,
            error_code=WithdrawErrorCode.NOT_ENOUGH_CASH,
            related_remote_transaction_id=None,
        )
        assert cashback.is_error
