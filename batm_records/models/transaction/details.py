"""Read-only transaction snapshot for reporting and reconciliation."""

from dataclasses import dataclass
from typing import Iterable

from batm_records.models.transaction import flags
from batm_records.models.transaction.record import TransactionRecord


@dataclass(frozen=True)
class TransactionDetails:
    """A record together with the flags that depend on related records.

    Attribute access falls through to the wrapped record, so reporting code
    reads ``details.cash_amount`` the same way as ``details.is_withdrawn``.
    """

    record: TransactionRecord
    is_withdrawn: bool = False
    can_be_cashed_out: bool = False

    @classmethod
    def of(
        cls,
        record: TransactionRecord,
        withdrawals: Iterable[TransactionRecord] = (),
    ) -> "TransactionDetails":
        """Build a snapshot from a record and the withdrawals referencing it."""
        withdrawals = list(withdrawals)
        return cls(
            record=record,
            is_withdrawn=flags.is_withdrawn(record, withdrawals),
            can_be_cashed_out=flags.can_be_cashed_out(record, withdrawals),
        )

    def __getattr__(self, name: str):
        # Only called for names not found on the snapshot itself
        if name.startswith("__") or name == "record":
            raise AttributeError(name)
        return getattr(self.record, name)
