"""JSON file sink for exporting records to files."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Iterator

from batm_records.exceptions import SinkError
from batm_records.models.base import Event
from batm_records.sinks.serialization import to_dict

logger = logging.getLogger(__name__)

EVENTS_FILE = "transaction_events.jsonl"


class JsonFileSink:
    """Output transaction records and events to JSON files."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print JSON output.
        """
        self.output_dir = Path(output_dir)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SinkError(f"Cannot create output directory {self.output_dir}: {e}") from e
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to a JSON file."""
        file_path = self.output_dir / f"{entity_type}.json"

        data = [to_dict(record) for record in records]

        with open(file_path, "w", encoding="utf-8") as f:
            if self.pretty:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            else:
                json.dump(data, f, ensure_ascii=False, default=str)

        self._counts[entity_type] = len(records)
        logger.debug("Wrote %d %s records to %s", len(records), entity_type, file_path)

    def write_stream(
        self,
        topic: str,
        generator: Iterator[Any],
        rate_per_second: float,
        duration_seconds: float,
    ) -> None:
        """Stream records to a JSON Lines file."""
        # Use topic name as filename (replace dots with underscores)
        filename = topic.replace(".", "_") + ".jsonl"
        file_path = self.output_dir / filename

        interval = 1.0 / rate_per_second if rate_per_second > 0 else 0
        start_time = time.time()
        count = 0

        with open(file_path, "w", encoding="utf-8") as f:
            for record in generator:
                if time.time() - start_time >= duration_seconds:
                    break

                f.write(json.dumps(to_dict(record), ensure_ascii=False, default=str) + "\n")
                count += 1

                if interval > 0:
                    time.sleep(interval)

        self._counts[topic] = count

    def send_event(self, event: Event) -> None:
        """Append a ledger event to the events JSON Lines file.

        Usable as a ``TransactionLedger`` listener; the file grows for the
        lifetime of the output directory.
        """
        with open(self.output_dir / EVENTS_FILE, "a", encoding="utf-8") as f:
            f.write(json.dumps(to_dict(event), ensure_ascii=False, default=str) + "\n")
        self._counts[EVENTS_FILE] = self._counts.get(EVENTS_FILE, 0) + 1

    def close(self) -> None:
        """Print summary."""
        print(f"JSON files written to: {self.output_dir}")
        for entity_type, count in self._counts.items():
            print(f"  {entity_type}: {count} records")
