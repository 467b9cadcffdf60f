"""In-memory transaction ledger with referential integrity and an audit trail."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator

from batm_records.exceptions import (
    DuplicateTransactionError,
    IllegalTransitionError,
    NoCashableSourceError,
    RecordValidationError,
    ReferentialIntegrityError,
    TransactionNotFoundError,
    Violation,
)
from batm_records.models.base import Event
from batm_records.models.transaction import (
    ErrorCode,
    TransactionDetails,
    TransactionRecord,
    TransactionStatus,
    TransactionType,
    WithdrawStatus,
)
from batm_records.models.transaction import flags
from batm_records.sinks.serialization import record_to_dict

logger = logging.getLogger(__name__)

EVENT_SOURCE = "batm-records"


def _log_context(record: TransactionRecord, **fields) -> dict[str, str]:
    """Log record extras identifying the transaction a message is about."""
    context = {
        "transaction_id": record.transaction_id,
        "transaction_type": record.transaction_type.value,
        "terminal_serial_number": record.terminal_serial_number,
    }
    context.update(fields)
    return context


@dataclass
class TransactionLedger:
    """Owning store for transaction records.

    Records are never removed. Records created by a terminal wait in
    ``pending`` (keyed by local id) until the server accepts them and assigns
    a remote id; from then on they live in ``records``. All writes run under a
    single lock so a record only has one writer at a time.
    """

    records: dict[str, TransactionRecord] = field(default_factory=dict)
    pending: dict[str, TransactionRecord] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)

    # Relationship indexes
    _local_index: dict[str, str] = field(default_factory=dict)
    _sell_withdrawals: dict[str, list[str]] = field(default_factory=dict)
    _terminal_records: dict[str, list[str]] = field(default_factory=dict)
    _identity_records: dict[str, list[str]] = field(default_factory=dict)

    _listeners: list[Callable[[Event], None]] = field(default_factory=list)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def subscribe(self, listener: Callable[[Event], None]) -> None:
        """Forward every lifecycle event to ``listener``."""
        self._listeners.append(listener)

    # Write operations
    def create(self, record: TransactionRecord) -> TransactionRecord:
        """Register a new record coming from a terminal or the server."""
        with self._lock:
            if record.remote_transaction_id and record.remote_transaction_id in self.records:
                raise DuplicateTransactionError(f"Transaction {record.remote_transaction_id} already exists")
            if record.local_transaction_id and (
                record.local_transaction_id in self.pending
                or record.local_transaction_id in self._local_index
            ):
                raise DuplicateTransactionError(
                    f"Local transaction {record.local_transaction_id} already exists"
                )

            if record.status not in record.rules.initial:
                self._reject(
                    record,
                    IllegalTransitionError(
                        Violation.NOT_INITIAL_STATUS,
                        f"{record.transaction_type.value} transactions cannot start in {record.status.name}",
                    ),
                )
            if record.transaction_type == TransactionType.WITHDRAW_CASH:
                self._rejecting(record, self._check_withdrawal_source, record)

            if record.remote_transaction_id:
                self._store(record)
            else:
                self.pending[record.local_transaction_id] = record

            logger.debug(
                "Created %s transaction %s (%s)",
                record.transaction_type.value,
                record.transaction_id,
                record.status.name,
                extra=_log_context(record),
            )
            self._emit("transaction.created", record)
            return record

    def accept(self, local_transaction_id: str, remote_transaction_id: str) -> TransactionRecord:
        """Promote a pending record to its server-assigned remote id."""
        with self._lock:
            record = self.pending.get(local_transaction_id)
            if record is None:
                raise TransactionNotFoundError(f"Pending transaction {local_transaction_id} not found")
            if remote_transaction_id in self.records:
                raise DuplicateTransactionError(f"Transaction {remote_transaction_id} already exists")

            accepted = self._rejecting(record, record.assign_remote_id, remote_transaction_id)
            del self.pending[local_transaction_id]
            self._store(accepted)

            logger.debug(
                "Accepted %s as %s", local_transaction_id, remote_transaction_id, extra=_log_context(accepted)
            )
            self._emit("transaction.accepted", accepted, previous=record)
            return accepted

    def transition(
        self,
        transaction_id: str,
        status: TransactionStatus,
        error_code: ErrorCode | None = None,
        **changes,
    ) -> TransactionRecord:
        """Apply a status transition to a stored record."""
        with self._lock:
            record = self.get(transaction_id)
            if not record.remote_transaction_id:
                self._reject(
                    record,
                    RecordValidationError(
                        Violation.NOT_ACCEPTED,
                        f"Transaction {transaction_id} must be accepted by the server before it changes status",
                    ),
                )
            updated = self._rejecting(record, record.transition, status, error_code, **changes)

            if (
                updated.transaction_type == TransactionType.WITHDRAW_CASH
                and updated.status == WithdrawStatus.COMPLETED
            ):
                sell = self.records[updated.related_remote_transaction_id]
                if self.is_withdrawn(sell.remote_transaction_id):
                    self._reject(
                        record,
                        NoCashableSourceError(
                            Violation.RELATED_NOT_CASHABLE,
                            f"Sell {sell.remote_transaction_id} was already cashed out",
                        ),
                    )

            self._put(updated)
            logger.info(
                "Transaction %s: %s -> %s",
                updated.transaction_id,
                record.status.name,
                updated.status.name,
                extra=_log_context(updated),
            )
            self._emit("transaction.status_changed", updated, previous=record)
            return updated

    def update(self, transaction_id: str, **changes) -> TransactionRecord:
        """Change attributes of a stored, non-terminal record."""
        with self._lock:
            record = self.get(transaction_id)
            updated = self._rejecting(record, record.update, **changes)
            self._put(updated)
            self._emit("transaction.updated", updated, previous=record)
            return updated

    # Query methods
    def find(self, transaction_id: str) -> TransactionRecord | None:
        """Look up a record by remote id, then by local id."""
        record = self.records.get(transaction_id)
        if record is not None:
            return record
        remote_id = self._local_index.get(transaction_id)
        if remote_id is not None:
            return self.records[remote_id]
        return self.pending.get(transaction_id)

    def get(self, transaction_id: str) -> TransactionRecord:
        """Like ``find`` but raises when nothing matches."""
        record = self.find(transaction_id)
        if record is None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        return record

    def withdrawals_for(self, sell_id: str) -> list[TransactionRecord]:
        """All withdrawals referencing a sell, in creation order."""
        return [self.records[rid] for rid in self._sell_withdrawals.get(sell_id, [])]

    def is_withdrawn(self, sell_id: str) -> bool:
        return flags.is_withdrawn(self.get(sell_id), self.withdrawals_for(sell_id))

    def can_be_cashed_out(self, sell_id: str) -> bool:
        return flags.can_be_cashed_out(self.get(sell_id), self.withdrawals_for(sell_id))

    def details(self, transaction_id: str) -> TransactionDetails:
        """Snapshot of a record with its relationship-derived flags."""
        record = self.get(transaction_id)
        withdrawals = self.withdrawals_for(record.remote_transaction_id) if record.remote_transaction_id else []
        return TransactionDetails.of(record, withdrawals)

    def all_details(self) -> Iterator[TransactionDetails]:
        """Snapshots of every accepted record."""
        for remote_id in list(self.records):
            yield self.details(remote_id)

    def records_for_terminal(self, terminal_serial_number: str) -> list[TransactionRecord]:
        return [self.records[rid] for rid in self._terminal_records.get(terminal_serial_number, [])]

    def records_for_identity(self, identity_public_id: str) -> list[TransactionRecord]:
        return [self.records[rid] for rid in self._identity_records.get(identity_public_id, [])]

    def summary(self) -> dict[str, int]:
        """Return counts of accepted records per type plus pending records."""
        counts = {tx_type.value.lower(): 0 for tx_type in TransactionType}
        for record in self.records.values():
            counts[record.transaction_type.value.lower()] += 1
        counts["pending"] = len(self.pending)
        counts["events"] = len(self.events)
        return counts

    # Internals
    def _check_withdrawal_source(self, withdrawal: TransactionRecord) -> None:
        sell_id = withdrawal.related_remote_transaction_id
        sell = self.records.get(sell_id)
        if sell is None:
            raise ReferentialIntegrityError(f"Sell transaction {sell_id} not found")
        if sell.transaction_type != TransactionType.SELL:
            raise RecordValidationError(
                Violation.RELATED_NOT_SELL,
                f"Transaction {sell_id} is a {sell.transaction_type.value}, not a sell",
            )

        related = self.withdrawals_for(sell_id)
        if not flags.can_be_cashed_out(sell, related):
            raise NoCashableSourceError(
                Violation.RELATED_NOT_CASHABLE, f"Sell {sell_id} cannot be cashed out"
            )
        waiting = [p for p in self.pending.values() if p.related_remote_transaction_id == sell_id]
        if any(w.status == WithdrawStatus.IN_PROGRESS for w in related + waiting):
            raise NoCashableSourceError(
                Violation.CASHOUT_IN_PROGRESS, f"Sell {sell_id} already has a withdrawal in progress"
            )

    def _rejecting(self, record: TransactionRecord, operation: Callable, *args, **kwargs):
        """Run ``operation`` on behalf of ``record``, logging contract violations before re-raising."""
        try:
            return operation(*args, **kwargs)
        except RecordValidationError as e:
            logger.warning(
                "Rejected %s: %s (%s)",
                operation.__name__,
                e,
                e.reason.value,
                extra=_log_context(record, reason=e.reason.value),
            )
            raise
        except ReferentialIntegrityError as e:
            logger.warning("Rejected %s: %s", operation.__name__, e, extra=_log_context(record))
            raise

    def _reject(self, record: TransactionRecord, error: RecordValidationError) -> None:
        logger.warning(
            "Rejected transition: %s (%s)",
            error,
            error.reason.value,
            extra=_log_context(record, reason=error.reason.value),
        )
        raise error

    def _store(self, record: TransactionRecord) -> None:
        remote_id = record.remote_transaction_id
        self.records[remote_id] = record
        if record.local_transaction_id:
            self._local_index[record.local_transaction_id] = remote_id
        self._terminal_records.setdefault(record.terminal_serial_number, []).append(remote_id)
        if record.identity_public_id:
            self._identity_records.setdefault(record.identity_public_id, []).append(remote_id)
        if record.related_remote_transaction_id:
            self._sell_withdrawals.setdefault(record.related_remote_transaction_id, []).append(remote_id)

    def _put(self, record: TransactionRecord) -> None:
        if record.remote_transaction_id:
            self.records[record.remote_transaction_id] = record
        else:
            self.pending[record.local_transaction_id] = record

    def _emit(
        self,
        event_type: str,
        record: TransactionRecord,
        previous: TransactionRecord | None = None,
    ) -> None:
        metadata = {"sequence": len(self.events)}
        if previous is not None:
            metadata["previous_status"] = previous.status.name
        event = Event(
            event_id=uuid.uuid4().hex,
            event_type=event_type,
            event_time=datetime.now(timezone.utc),
            source=EVENT_SOURCE,
            subject=record.transaction_id,
            data=record_to_dict(record),
            metadata=metadata,
        )
        self.events.append(event)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                # Record is already stored
                logger.exception(
                    "Listener failed on %s for %s", event_type, record.transaction_id, extra=_log_context(record)
                )
