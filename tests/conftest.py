"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from batm_records.models.transaction import (
    BuyStatus,
    SellStatus,
    TransactionRecord,
    TransactionType,
    WithdrawStatus,
)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def server_time() -> datetime:
    """Sample server timestamp."""
    return datetime(2024, 5, 10, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def terminal_time(server_time: datetime) -> datetime:
    """Terminal clock two hours behind the server, with a few seconds of skew."""
    return (server_time + timedelta(seconds=4)).astimezone(timezone(timedelta(hours=-2)))


@pytest.fixture
def buy_record(server_time: datetime, terminal_time: datetime) -> TransactionRecord:
    """Buy as submitted by a terminal."""
    return TransactionRecord(
        transaction_type=TransactionType.BUY,
        status=BuyStatus.IN_PROGRESS,
        terminal_serial_number="BT100001",
        server_time=server_time,
        terminal_time=terminal_time,
        cash_amount=Decimal("100.00"),
        cash_currency="USD",
        crypto_amount=Decimal("0.00153846"),
        crypto_currency="BTC",
        local_transaction_id="L-buy-001",
        identity_public_id="IABC123",
        crypto_address="bc1qexampleaddress",
    )


@pytest.fixture
def sell_record(server_time: datetime, terminal_time: datetime) -> TransactionRecord:
    """Sell waiting for payment, already accepted by the server."""
    return TransactionRecord(
        transaction_type=TransactionType.SELL,
        status=SellStatus.PAYMENT_REQUESTED,
        terminal_serial_number="BT100001",
        server_time=server_time,
        terminal_time=terminal_time,
        cash_amount=Decimal("200"),
        cash_currency="USD",
        crypto_amount=Decimal("0.00307692"),
        crypto_currency="BTC",
        local_transaction_id="L-sell-001",
        remote_transaction_id="RSELL01",
        identity_public_id="IABC123",
        crypto_address="bc1qdepositaddress",
    )


@pytest.fixture
def withdraw_record(server_time: datetime, terminal_time: datetime) -> TransactionRecord:
    """Withdrawal of the sample sell, submitted by a terminal."""
    return TransactionRecord(
        transaction_type=TransactionType.WITHDRAW_CASH,
        status=WithdrawStatus.IN_PROGRESS,
        terminal_serial_number="BT100001",
        server_time=server_time,
        terminal_time=terminal_time,
        cash_amount=Decimal("200"),
        cash_currency="USD",
        local_transaction_id="L-wd-001",
        related_remote_transaction_id="RSELL01",
    )
