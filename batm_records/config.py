"""Configuration management for batm-records."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from batm_records.exceptions import ConfigurationError

if TYPE_CHECKING:
    from batm_records.sinks.kafka import ProducerConfig

LOG_FORMATS = ("standard", "json")


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "batm"

    def to_producer_config(self) -> "ProducerConfig":
        """Build the producer settings used by KafkaSink."""
        from batm_records.sinks.kafka import ProducerConfig

        return ProducerConfig(
            bootstrap_servers=self.bootstrap_servers,
            acks=self.acks,
            batch_size=self.batch_size,
            linger_ms=self.linger_ms,
            compression=self.compression,
            retries=self.retries,
            topic_prefix=self.topic_prefix,
        )


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class ScenarioConfig:
    """Configuration for terminal activity scenarios."""

    num_terminals: int = 3
    sessions_per_terminal: int = 20
    error_rate: float = 0.1
    risk_rate: float = 0.05
    autoexecute_rate: float = 0.02
    cash_currency: str = "USD"

    def __post_init__(self) -> None:
        for name in ("error_rate", "risk_rate", "autoexecute_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0 and 1, got {value}")
        if self.num_terminals < 1 or self.sessions_per_terminal < 0:
            raise ConfigurationError("Scenario needs at least one terminal and a non-negative session count")


@dataclass
class BatmRecordsConfig:
    """Main configuration for batm-records."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    scenario: ScenarioConfig = field(default_factory=ScenarioConfig)
    seed: int | None = None
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "BatmRecordsConfig":
        """Create config from environment variables."""
        try:
            kafka = KafkaConfig(
                bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
                acks=os.getenv("KAFKA_ACKS", "all"),
                topic_prefix=os.getenv("TOPIC_PREFIX", "batm"),
            )

            output = OutputConfig(
                json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
                pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
            )

            scenario_str = os.getenv("SCENARIO_CONFIG")
            scenario = ScenarioConfig(**json.loads(scenario_str)) if scenario_str else ScenarioConfig()

            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid environment configuration: {e}") from e

        log_format = os.getenv("LOG_FORMAT", "standard")
        if log_format not in LOG_FORMATS:
            raise ConfigurationError(f"LOG_FORMAT must be one of {LOG_FORMATS}, got {log_format!r}")

        return cls(
            kafka=kafka,
            output=output,
            scenario=scenario,
            seed=seed,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=log_format,
        )
