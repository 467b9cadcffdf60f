"""Transaction record contract for crypto-ATM networks."""

__version__ = "0.1.0"
