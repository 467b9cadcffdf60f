"""Banknote denomination counts attached to cash-dispensing transactions."""

from dataclasses import dataclass
from decimal import Decimal

from batm_records.exceptions import RecordValidationError, Violation


@dataclass(frozen=True)
class BanknoteCount:
    """Number of notes of a single denomination.

    The counting hardware reports these opaquely; only basic sanity is checked.
    """

    denomination: Decimal
    count: int

    def __post_init__(self) -> None:
        if isinstance(self.denomination, bool) or not isinstance(self.denomination, (Decimal, int)):
            raise RecordValidationError(
                Violation.INVALID_BANKNOTE, f"Denomination must be a number, got {self.denomination!r}"
            )
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise RecordValidationError(
                Violation.INVALID_BANKNOTE, f"Banknote count must be an integer, got {self.count!r}"
            )
        if self.denomination <= 0:
            raise RecordValidationError(
                Violation.INVALID_BANKNOTE, f"Denomination must be positive, got {self.denomination}"
            )
        if self.count < 0:
            raise RecordValidationError(
                Violation.INVALID_BANKNOTE, f"Banknote count must not be negative, got {self.count}"
            )

    @property
    def total(self) -> Decimal:
        return self.denomination * self.count


def banknotes_total(banknotes: tuple[BanknoteCount, ...]) -> Decimal:
    """Sum of all denominations times counts."""
    return sum((note.total for note in banknotes), Decimal("0"))
