"""Terminal activity scenario: full transaction lifecycles across a fleet."""

import logging
import random

from batm_records.generators.transaction import TransactionRecordGenerator
from batm_records.models.transaction import (
    BuyStatus,
    SellErrorCode,
    SellStatus,
    TransactionRecord,
    TransactionType,
    WithdrawErrorCode,
    WithdrawStatus,
)
from batm_records.store.ledger import TransactionLedger

logger = logging.getLogger(__name__)


class TerminalActivityScenario:
    """Drive realistic buy, sell, withdrawal and cashback flows through a ledger.

    Each session on a terminal is one customer operation:
    - buys: accepted, then completed (sometimes auto-executed) or failed
    - sells: payment requested, arriving, arrived; failures at either wait
    - arrived sells are usually cashed out by a withdrawal, occasionally
      released before confirmation (risk) or retried after a dispenser error
    - cashbacks: dispensed directly or failed for lack of cash
    """

    SESSION_TYPES = [TransactionType.BUY, TransactionType.SELL, TransactionType.CASHBACK]
    SESSION_WEIGHTS = [0.60, 0.32, 0.08]

    def __init__(
        self,
        num_terminals: int = 3,
        sessions_per_terminal: int = 20,
        error_rate: float = 0.1,
        risk_rate: float = 0.05,
        autoexecute_rate: float = 0.02,
        cash_currency: str = "USD",
        seed: int | None = None,
    ) -> None:
        """Initialize terminal activity scenario.

        Parameters
        ----------
        num_terminals : int
            Number of terminals in the fleet.
        sessions_per_terminal : int
            Customer operations started on each terminal.
        error_rate : float
            Probability that any single step fails (0.0 to 1.0).
        risk_rate : float
            Probability that a cash-out happens before confirmation.
        autoexecute_rate : float
            Probability that the server finishes a buy on its own.
        cash_currency : str
            Fiat currency of the fleet.
        seed : int | None
            Random seed for reproducibility.
        """
        self.num_terminals = num_terminals
        self.sessions_per_terminal = sessions_per_terminal
        self.error_rate = error_rate
        self.risk_rate = risk_rate
        self.autoexecute_rate = autoexecute_rate
        self.seed = seed

        if seed is not None:
            random.seed(seed)

        self.ledger = TransactionLedger()
        self._gen = TransactionRecordGenerator(seed=seed, cash_currency=cash_currency)

    def generate(self) -> TransactionLedger:
        """Run every session and return the populated ledger."""
        logger.info(
            "Starting terminal activity scenario: %d terminals x %d sessions, %.1f%% error rate",
            self.num_terminals,
            self.sessions_per_terminal,
            self.error_rate * 100,
        )

        terminals = [self._gen.terminal_serial_number() for _ in range(self.num_terminals)]
        for terminal in terminals:
            for _ in range(self.sessions_per_terminal):
                tx_type = random.choices(self.SESSION_TYPES, weights=self.SESSION_WEIGHTS, k=1)[0]
                if tx_type == TransactionType.BUY:
                    self._run_buy(terminal)
                elif tx_type == TransactionType.SELL:
                    self._run_sell(terminal)
                else:
                    self._run_cashback(terminal)

        logger.info("Scenario complete: %s", self.summary())
        return self.ledger

    def summary(self) -> dict[str, int]:
        """Counts per type plus cash-out statistics."""
        result = self.ledger.summary()
        sells = [r for r in self.ledger.records.values() if r.transaction_type == TransactionType.SELL]
        result["cashable_sells"] = sum(
            1 for s in sells if self.ledger.can_be_cashed_out(s.remote_transaction_id)
        )
        result["withdrawn_sells"] = sum(
            1 for s in sells if self.ledger.is_withdrawn(s.remote_transaction_id)
        )
        return result

    def _fails(self) -> bool:
        return random.random() < self.error_rate

    def _submit(self, record: TransactionRecord) -> TransactionRecord:
        """Terminal submits the record, server accepts it."""
        self.ledger.create(record)
        return self.ledger.accept(record.local_transaction_id, self._gen.remote_transaction_id())

    def _run_buy(self, terminal: str) -> TransactionRecord:
        buy = self._submit(self._gen.generate_buy(terminal))
        tx_id = buy.remote_transaction_id

        if self._fails():
            return self.ledger.transition(
                tx_id, BuyStatus.ERROR, self._gen.error_code(TransactionType.BUY)
            )
        return self.ledger.transition(
            tx_id,
            BuyStatus.COMPLETED,
            autoexecuted=random.random() < self.autoexecute_rate,
            **self._gen.execution_details(buy),
        )

    def _run_sell(self, terminal: str) -> TransactionRecord:
        sell = self._submit(self._gen.generate_sell(terminal))
        tx_id = sell.remote_transaction_id

        if self._fails():
            return self.ledger.transition(tx_id, SellStatus.ERROR, SellErrorCode.PAYMENT_WAIT_TIMED_OUT)
        self.ledger.transition(tx_id, SellStatus.PAYMENT_ARRIVING, **self._gen.execution_details(sell))

        if self._fails():
            return self.ledger.transition(tx_id, SellStatus.ERROR, SellErrorCode.PAYMENT_INVALID)
        sell = self.ledger.transition(tx_id, SellStatus.PAYMENT_ARRIVED)

        # Some customers never come back for their cash
        if random.random() < 0.85:
            self._run_withdraw(sell, terminal)
        return sell

    def _run_withdraw(self, sell: TransactionRecord, terminal: str) -> None:
        for _attempt in range(2):
            withdraw = self._submit(self._gen.generate_withdraw(sell, terminal))
            tx_id = withdraw.remote_transaction_id

            if self._fails():
                self.ledger.transition(
                    tx_id, WithdrawStatus.ERROR, WithdrawErrorCode.CASH_DISPENSING_FAILED
                )
                continue

            self.ledger.transition(
                tx_id,
                WithdrawStatus.COMPLETED,
                banknotes=self._gen.banknotes_for(withdraw.cash_amount),
                risk=random.random() < self.risk_rate,
            )
            return

    def _run_cashback(self, terminal: str) -> TransactionRecord:
        return self.ledger.create(self._gen.generate_cashback(terminal, failed=self._fails()))
