"""In-memory record stores."""

from batm_records.store.ledger import TransactionLedger

__all__ = ["TransactionLedger"]
