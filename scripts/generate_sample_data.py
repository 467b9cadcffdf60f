#!/usr/bin/env python3
"""Generate sample transaction data for validation.

Runs the terminal activity scenario and writes the resulting records,
details snapshots and lifecycle events as JSON files. Optionally publishes
the events to Kafka.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from batm_records.config import BatmRecordsConfig
from batm_records.exceptions import BatmRecordsError
from batm_records.logging import setup_logging
from batm_records.scenarios import TerminalActivityScenario
from batm_records.sinks import ConsoleSink, JsonFileSink

logger = logging.getLogger("batm_records.scripts.generate_sample_data")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Generate sample crypto-ATM transactions")
    parser.add_argument("--terminals", type=int, help="Number of terminals")
    parser.add_argument("--sessions", type=int, help="Sessions per terminal")
    parser.add_argument("--error-rate", type=float, help="Failure probability per step")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--output-dir", type=Path, help="Directory for JSON files")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--console", action="store_true", help="Print details to stdout instead of files")
    parser.add_argument("--kafka", action="store_true", help="Publish lifecycle events to Kafka")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = BatmRecordsConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    scenario_config = config.scenario
    scenario = TerminalActivityScenario(
        num_terminals=args.terminals or scenario_config.num_terminals,
        sessions_per_terminal=args.sessions or scenario_config.sessions_per_terminal,
        error_rate=args.error_rate if args.error_rate is not None else scenario_config.error_rate,
        risk_rate=scenario_config.risk_rate,
        autoexecute_rate=scenario_config.autoexecute_rate,
        cash_currency=scenario_config.cash_currency,
        seed=args.seed if args.seed is not None else config.seed,
    )

    try:
        ledger = scenario.generate()
        details = list(ledger.all_details())

        if args.console:
            sink = ConsoleSink(pretty=True, max_records=10)
        else:
            output_dir = args.output_dir or config.output.json_output_dir
            sink = JsonFileSink(output_dir, pretty=args.pretty or config.output.pretty_json)

        sink.write_batch("transactions", details)
        sink.write_batch("transaction_events", ledger.events)
        sink.close()

        if args.kafka:
            from batm_records.sinks.kafka import KafkaSink

            kafka = KafkaSink(config.kafka.to_producer_config())
            kafka.write_batch(kafka.events_topic, ledger.events)
            kafka.close()
    except BatmRecordsError as e:
        logger.error("Sample generation failed: %s", e)
        return 1

    logger.info("Summary: %s", scenario.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
