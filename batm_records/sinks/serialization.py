"""Shared serialization utilities for sinks."""

from dataclasses import asdict, fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from batm_records.models.transaction import TransactionDetails, TransactionRecord


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if isinstance(obj, TransactionDetails):
        return details_to_dict(obj)
    elif isinstance(obj, TransactionRecord):
        return record_to_dict(obj)
    elif is_dataclass(obj):
        return dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        return obj
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any) -> dict:
    """Convert dataclass to dict with proper serialization."""
    result = {}
    for key, value in asdict(obj).items():
        result[key] = serialize_value(value)
    return result


def to_dict_fast(obj: Any) -> dict:
    """Convert dataclass without deep copy.

    Uses ``dataclasses.fields()`` + ``getattr`` instead of ``asdict()``,
    so nested dataclasses are kept as-is rather than converted.
    """
    return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}


def record_to_dict(record: TransactionRecord) -> dict:
    """Serialize a transaction record for reporting.

    Status and error code are emitted both by name and by legacy integer
    code; record-local derived flags are included.
    """
    result = to_dict_fast(record)
    result.update(
        {
            "transaction_type_code": record.transaction_type.code,
            "status": record.status.name,
            "status_code": record.status.value,
            "error_code": record.error_code.value,
            "error_name": record.error_code.name,
            "banknotes": [
                {"denomination": str(note.denomination), "count": note.count}
                for note in record.banknotes
            ],
            "is_purchased": record.is_purchased,
            "is_sold": record.is_sold,
            "is_risk": record.is_risk,
            "is_autoexecuted": record.is_autoexecuted,
        }
    )
    return result


def details_to_dict(details: TransactionDetails) -> dict:
    """Serialize a details snapshot: the record plus cash-out flags."""
    result = record_to_dict(details.record)
    result["is_withdrawn"] = details.is_withdrawn
    result["can_be_cashed_out"] = details.can_be_cashed_out
    return result


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        # str enums by value, legacy integer enums by name
        return value.value if isinstance(value, str) else value.name
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value
