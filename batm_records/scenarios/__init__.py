"""Scenarios for generating realistic crypto-ATM transaction sets."""

from batm_records.scenarios.terminal_activity import TerminalActivityScenario

__all__ = ["TerminalActivityScenario"]
