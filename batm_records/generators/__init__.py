"""Record generators for crypto-ATM transactions."""

from batm_records.generators.transaction import TransactionRecordGenerator

__all__ = ["TransactionRecordGenerator"]
