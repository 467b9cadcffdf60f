"""Output sinks for exporting transaction records and events."""

from batm_records.sinks.console import ConsoleSink
from batm_records.sinks.json_file import JsonFileSink
from batm_records.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]
