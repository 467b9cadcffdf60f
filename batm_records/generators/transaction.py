"""Transaction record generator for crypto-ATM terminals."""

import random
from datetime import datetime, timedelta, timezone
from decimal import ROUND_DOWN, Decimal

from batm_records.generators.base import BaseGenerator
from batm_records.models.transaction import (
    BanknoteCount,
    BuyStatus,
    CashbackStatus,
    ErrorCode,
    SellStatus,
    TransactionRecord,
    TransactionType,
    WithdrawErrorCode,
    WithdrawStatus,
    rules_for,
)

# Reference prices for sample data only
REFERENCE_PRICES = {
    "BTC": Decimal("65000.00"),
    "ETH": Decimal("3200.00"),
    "LTC": Decimal("85.00"),
    "BCH": Decimal("450.00"),
    "DASH": Decimal("30.00"),
}
CRYPTO_WEIGHTS = [0.60, 0.20, 0.10, 0.05, 0.05]

DENOMINATIONS = [Decimal(d) for d in ("100", "50", "20", "10", "5", "1")]
BECH32_CHARS = "023456789acdefghjklmnpqrstuvwxyz"
REMOTE_ID_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

SATOSHI = Decimal("0.00000001")
CENT = Decimal("0.01")


class TransactionRecordGenerator(BaseGenerator):
    """Generate contract-valid crypto-ATM transaction records.

    New buy, sell and withdrawal records start in their initial status with a
    local id only, as a terminal would send them. Cashback records are created
    already accepted and completed.
    """

    CRYPTO_CURRENCIES = list(REFERENCE_PRICES)

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "en_US",
        cash_currency: str = "USD",
    ) -> None:
        super().__init__(seed, locale=locale)
        self.cash_currency = cash_currency

    def terminal_serial_number(self) -> str:
        return self.fake.bothify("BT######")

    def remote_transaction_id(self) -> str:
        return self.fake.unique.bothify("R??????", letters=REMOTE_ID_CHARS)

    def local_transaction_id(self) -> str:
        return self.fake.uuid4()

    def identity_public_id(self) -> str:
        return self.fake.bothify("I??????", letters=REMOTE_ID_CHARS)

    def crypto_address(self, crypto_currency: str) -> str:
        if crypto_currency == "BTC":
            return "bc1q" + "".join(random.choices(BECH32_CHARS, k=38))
        if crypto_currency == "ETH":
            return "0x" + self.fake.hexify("^" * 40)
        return self.fake.bothify("?" * 34, letters=REMOTE_ID_CHARS + "abcdefghijkmnopqrstuvwxyz")

    def generate_buy(self, terminal_serial_number: str | None = None) -> TransactionRecord:
        """Generate a buy as a terminal submits it: in progress, local id only."""
        crypto_currency = self._pick_crypto()
        cash_amount = self._cash_amount()
        return TransactionRecord(
            transaction_type=TransactionType.BUY,
            status=BuyStatus.IN_PROGRESS,
            crypto_amount=self.convert(cash_amount, crypto_currency),
            crypto_currency=crypto_currency,
            crypto_address=self.crypto_address(crypto_currency),
            fixed_transaction_fee=Decimal(random.choice(["0", "1.00", "2.50"])),
            **self._origin(terminal_serial_number, cash_amount),
            **self._discount(),
        )

    def generate_sell(self, terminal_serial_number: str | None = None) -> TransactionRecord:
        """Generate a sell waiting for the customer's payment."""
        crypto_currency = self._pick_crypto()
        cash_amount = self._cash_amount(whole=True)
        return TransactionRecord(
            transaction_type=TransactionType.SELL,
            status=SellStatus.PAYMENT_REQUESTED,
            crypto_amount=self.convert(cash_amount, crypto_currency),
            crypto_currency=crypto_currency,
            crypto_address=self.crypto_address(crypto_currency),
            **self._origin(terminal_serial_number, cash_amount),
        )

    def generate_withdraw(
        self,
        sell: TransactionRecord,
        terminal_serial_number: str | None = None,
    ) -> TransactionRecord:
        """Generate a withdrawal paying out the cash of an arrived sell."""
        origin = self._origin(terminal_serial_number or sell.terminal_serial_number, sell.cash_amount)
        origin["identity_public_id"] = sell.identity_public_id
        origin["cash_currency"] = sell.cash_currency
        return TransactionRecord(
            transaction_type=TransactionType.WITHDRAW_CASH,
            status=WithdrawStatus.IN_PROGRESS,
            related_remote_transaction_id=sell.remote_transaction_id,
            **origin,
        )

    def generate_cashback(
        self,
        terminal_serial_number: str | None = None,
        failed: bool = False,
    ) -> TransactionRecord:
        """Generate an accepted cashback, dispensed or failed."""
        cash_amount = Decimal(random.randint(1, 20))
        origin = self._origin(terminal_serial_number, cash_amount)
        origin["remote_transaction_id"] = self.remote_transaction_id()
        if failed:
            return TransactionRecord(
                transaction_type=TransactionType.CASHBACK,
                status=CashbackStatus.ERROR,
                error_code=WithdrawErrorCode.NOT_ENOUGH_CASH,
                **origin,
            )
        return TransactionRecord(
            transaction_type=TransactionType.CASHBACK,
            status=CashbackStatus.COMPLETED,
            banknotes=self.banknotes_for(cash_amount),
            **origin,
        )

    def banknotes_for(self, amount: Decimal) -> tuple[BanknoteCount, ...]:
        """Split a whole amount into the fewest notes."""
        remaining = amount.to_integral_value(rounding=ROUND_DOWN)
        notes = []
        for denomination in DENOMINATIONS:
            count = int(remaining // denomination)
            if count:
                notes.append(BanknoteCount(denomination=denomination, count=count))
                remaining -= denomination * count
        return tuple(notes)

    def execution_details(self, record: TransactionRecord) -> dict:
        """Values the execution engine reports once a buy or sell executed."""
        price = REFERENCE_PRICES[record.crypto_currency]
        if record.transaction_type == TransactionType.BUY:
            detail = self.fake.sha256()
        else:
            detail = self.fake.bothify("trade-########")
        return {
            "detail": detail,
            "exchange_strategy_used": random.choice([0, 1, 2]),
            "rate_source_price": price,
            "expected_profit": Decimal(random.choice(["3.5", "5.0", "7.5", "10.0"])),
        }

    def error_code(self, transaction_type: TransactionType) -> ErrorCode:
        """Pick a realistic business error code for the type."""
        codes = [code for code in rules_for(transaction_type).error_enum if code.value != 0]
        return random.choice(codes)

    def convert(self, cash_amount: Decimal, crypto_currency: str) -> Decimal:
        return (cash_amount / REFERENCE_PRICES[crypto_currency]).quantize(SATOSHI, rounding=ROUND_DOWN)

    def _pick_crypto(self) -> str:
        return random.choices(self.CRYPTO_CURRENCIES, weights=CRYPTO_WEIGHTS, k=1)[0]

    def _cash_amount(self, whole: bool = False) -> Decimal:
        # Many small, few large
        amount = min(random.paretovariate(1.5) * 20, 3000)
        if whole:
            return Decimal(max(1, int(amount)))
        return Decimal(str(amount)).quantize(CENT)

    def _origin(self, terminal_serial_number: str | None, cash_amount: Decimal) -> dict:
        server_time = datetime.now(timezone.utc) - timedelta(
            days=random.randint(0, 30),
            minutes=random.randint(0, 1439),
        )
        # Terminal clock: its own timezone plus a little skew
        offset = timezone(timedelta(hours=random.randint(-8, 3)))
        terminal_time = (server_time + timedelta(seconds=random.randint(-90, 90))).astimezone(offset)
        return {
            "terminal_serial_number": terminal_serial_number or self.terminal_serial_number(),
            "server_time": server_time,
            "terminal_time": terminal_time,
            "cash_amount": cash_amount,
            "cash_currency": self.cash_currency,
            "local_transaction_id": self.local_transaction_id(),
            "identity_public_id": self.identity_public_id() if random.random() < 0.7 else None,
            "cell_phone_used": self.fake.phone_number() if random.random() < 0.5 else None,
        }

    def _discount(self) -> dict:
        if random.random() >= 0.1:
            return {}
        return {
            "discount_code": self.fake.bothify("PROMO-####"),
            "fee_discount": Decimal(random.choice(["10", "25", "50"])),
        }
