"""Custom exception hierarchy for batm-records."""

from enum import Enum


class Violation(str, Enum):
    """Invariant broken by a rejected construction or transition."""

    MISSING_IDENTIFIER = "MISSING_IDENTIFIER"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_TYPE = "INVALID_TYPE"
    STATUS_NOT_IN_TYPE = "STATUS_NOT_IN_TYPE"
    ERROR_CODE_NOT_IN_TYPE = "ERROR_CODE_NOT_IN_TYPE"
    ERROR_CODE_WITHOUT_ERROR_STATUS = "ERROR_CODE_WITHOUT_ERROR_STATUS"
    ERROR_STATUS_WITHOUT_ERROR_CODE = "ERROR_STATUS_WITHOUT_ERROR_CODE"
    TRANSITION_NOT_ALLOWED = "TRANSITION_NOT_ALLOWED"
    TERMINAL_STATUS_FROZEN = "TERMINAL_STATUS_FROZEN"
    FIELD_IMMUTABLE = "FIELD_IMMUTABLE"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    REMOTE_ID_REASSIGNED = "REMOTE_ID_REASSIGNED"
    NEGATIVE_AMOUNT = "NEGATIVE_AMOUNT"
    MISSING_CURRENCY = "MISSING_CURRENCY"
    INVALID_FEE_DISCOUNT = "INVALID_FEE_DISCOUNT"
    EXECUTION_FIELDS_NOT_ALLOWED = "EXECUTION_FIELDS_NOT_ALLOWED"
    RELATED_ID_NOT_ALLOWED = "RELATED_ID_NOT_ALLOWED"
    RELATED_ID_REQUIRED = "RELATED_ID_REQUIRED"
    RELATED_NOT_SELL = "RELATED_NOT_SELL"
    RELATED_NOT_CASHABLE = "RELATED_NOT_CASHABLE"
    CASHOUT_IN_PROGRESS = "CASHOUT_IN_PROGRESS"
    BANKNOTES_NOT_ALLOWED = "BANKNOTES_NOT_ALLOWED"
    INVALID_BANKNOTE = "INVALID_BANKNOTE"
    RISK_NOT_APPLICABLE = "RISK_NOT_APPLICABLE"
    AUTOEXECUTED_REQUIRES_COMPLETION = "AUTOEXECUTED_REQUIRES_COMPLETION"
    FLAG_CLEARED = "FLAG_CLEARED"
    NOT_INITIAL_STATUS = "NOT_INITIAL_STATUS"
    NOT_ACCEPTED = "NOT_ACCEPTED"
    UNKNOWN_CODE = "UNKNOWN_CODE"


class BatmRecordsError(Exception):
    """Base exception for all batm-records errors."""


class EntityNotFoundError(BatmRecordsError):
    """Raised when a referenced entity does not exist."""


class TransactionNotFoundError(EntityNotFoundError):
    """Raised when no record matches a remote or local transaction id."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a related transaction reference is violated."""


class DuplicateTransactionError(BatmRecordsError):
    """Raised when a transaction id is registered twice."""


class RecordValidationError(BatmRecordsError):
    """Raised when a record or transition breaks the record contract.

    Parameters
    ----------
    reason : Violation
        The invariant that was violated.
    message : str
        Human readable explanation.
    """

    def __init__(self, reason: Violation, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class InvalidStatusError(RecordValidationError):
    """Raised when a status does not belong to the record's transaction type."""


class InvalidErrorCodeError(RecordValidationError):
    """Raised when an error code does not match the type or the status."""


class IllegalTransitionError(RecordValidationError):
    """Raised when a status change is not an allowed forward transition."""


class RecordFrozenError(RecordValidationError):
    """Raised when a record in a terminal status is modified."""


class ImmutableFieldError(RecordValidationError):
    """Raised when a field fixed at creation is changed."""


class NoCashableSourceError(RecordValidationError):
    """Raised when a withdrawal references a sell that cannot be cashed out."""


class ConfigurationError(BatmRecordsError):
    """Raised when configuration is invalid or missing."""


class SinkError(BatmRecordsError):
    """Raised when a sink operation fails."""
