"""Kafka sink for publishing transaction records and lifecycle events."""

import json
import logging
import time
from dataclasses import dataclass, is_dataclass
from typing import Any, Iterator

from confluent_kafka import KafkaException, Producer

from batm_records.exceptions import SinkError
from batm_records.models.base import Event
from batm_records.models.transaction import TransactionDetails, TransactionRecord
from batm_records.sinks.serialization import to_dict

logger = logging.getLogger(__name__)

DEFAULT_TOPIC_PREFIX = "batm"


@dataclass
class ProducerConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str
    acks: str = "all"  # "0", "1", "all"
    batch_size: int = 16384  # bytes
    linger_ms: int = 5  # ms to wait for batching
    compression: str = "snappy"  # none, gzip, snappy, lz4
    retries: int = 3
    topic_prefix: str = DEFAULT_TOPIC_PREFIX


# Configuration presets
RELIABLE = ProducerConfig(
    bootstrap_servers="localhost:9092",
    acks="all",
    batch_size=16384,
    linger_ms=5,
)

FAST = ProducerConfig(
    bootstrap_servers="localhost:9092",
    acks="0",
    batch_size=65536,
    linger_ms=50,
)

EVENT_BY_EVENT = ProducerConfig(
    bootstrap_servers="localhost:9092",
    acks="all",
    batch_size=1,
    linger_ms=0,
)


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0

    @property
    def throughput(self) -> float:
        """Calculate events per second achieved."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        duration = self.end_time - self.start_time
        return self.sent / duration if duration > 0 else 0.0


class KafkaSink:
    """Output transaction records and ledger events to Kafka topics.

    Messages are keyed by transaction id so every change of a transaction
    lands on the same partition, in order.
    """

    def __init__(self, config: ProducerConfig | str) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : ProducerConfig | str
            Producer configuration or bootstrap servers string.
        """
        if isinstance(config, str):
            config = ProducerConfig(bootstrap_servers=config)

        self.config = config
        self.producer = self._create_producer()
        self.stats = ProducerStats()

    @property
    def transactions_topic(self) -> str:
        return f"{self.config.topic_prefix}.transactions"

    @property
    def events_topic(self) -> str:
        return f"{self.config.topic_prefix}.transaction-events"

    def _create_producer(self) -> Producer:
        """Create Kafka producer with configuration."""
        try:
            return Producer(
                {
                    "bootstrap.servers": self.config.bootstrap_servers,
                    "acks": self.config.acks,
                    "retries": self.config.retries,
                    "linger.ms": self.config.linger_ms,
                    "batch.size": self.config.batch_size,
                    "compression.type": self.config.compression,
                }
            )
        except KafkaException as e:
            raise SinkError(f"Cannot create Kafka producer: {e}") from e

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def _get_key(self, record: Any) -> str | None:
        """Extract the message key: transaction id for records, subject for events."""
        if isinstance(record, (TransactionRecord, TransactionDetails)):
            return record.transaction_id
        if isinstance(record, Event):
            return record.subject
        if isinstance(record, dict):
            return record.get("remote_transaction_id") or record.get("local_transaction_id")
        return None

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Send a single record to Kafka topic."""
        data = to_dict(record) if is_dataclass(record) or isinstance(record, dict) else {"value": str(record)}
        value = json.dumps(data, ensure_ascii=False, default=str).encode("utf-8")

        if key is None:
            key = self._get_key(record)

        try:
            self.producer.produce(
                topic=topic,
                key=key.encode("utf-8") if key else None,
                value=value,
                callback=self._delivery_callback,
            )
        except BufferError as e:
            raise SinkError(f"Kafka producer queue is full: {e}") from e
        self.stats.sent += 1
        self.producer.poll(0)

    def send_event(self, event: Event) -> None:
        """Publish a ledger event; usable as a ``TransactionLedger`` listener."""
        self.send(self.events_topic, event, key=event.subject)

    def write_batch(self, topic: str, records: list[Any]) -> None:
        """Write a batch of records to a Kafka topic."""
        logger.info("Writing batch to %s: %d records", topic, len(records))

        for record in records:
            self.send(topic, record)

        self.flush()
        logger.info(
            "Batch complete: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )

    def write_stream(
        self,
        topic: str,
        generator: Iterator[Any],
        rate_per_second: float,
        duration_seconds: float,
    ) -> ProducerStats:
        """Stream records at a fixed rate for a duration.

        Parameters
        ----------
        topic : str
            Kafka topic name.
        generator : Iterator[Any]
            Record or event source (infinite or finite).
        rate_per_second : float
            Target messages per second.
        duration_seconds : float
            How long to stream.

        Returns
        -------
        ProducerStats
            Delivery statistics.
        """
        logger.info(
            "Starting stream to %s: rate=%.1f/sec, duration=%.1fs",
            topic,
            rate_per_second,
            duration_seconds,
        )

        self.stats = ProducerStats()
        self.stats.start_time = time.time()

        interval = 1.0 / rate_per_second if rate_per_second > 0 else 0

        for i, record in enumerate(generator):
            if time.time() - self.stats.start_time >= duration_seconds:
                break

            self.send(topic, record)

            if (i + 1) % 1000 == 0:
                logger.debug("Progress: %d records", i + 1)

            if interval > 0:
                time.sleep(interval)

        self.flush()
        self.stats.end_time = time.time()

        logger.info(
            "Stream complete: sent=%d, delivered=%d, failed=%d, throughput=%.1f/sec",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
            self.stats.throughput,
        )

        return self.stats

    def flush(self, timeout: float = 30.0) -> None:
        """Flush pending messages."""
        self.producer.flush(timeout)

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
