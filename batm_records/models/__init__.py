"""Domain models for crypto-ATM transaction records."""

from batm_records.models.base import Event

__all__ = ["Event"]
