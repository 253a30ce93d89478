"""CLI entry point: python main.py --data-dir data --date 2026-10-18"""

import argparse
import json
import sys
from datetime import datetime

from src.competitor_signals.errors import IntelError
from src.intel_pipeline import IntelPipeline, PipelineConfig
from src.logging_config import (
    LoggingConfig,
    LogLevel,
    configure_logging,
    get_logger,
    resolve_config,
)

import config

logger = get_logger("intel.main")

EXIT_OK = 0
EXIT_STORAGE_FAULT = 2


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Competitive momentum - daily scores, trend alerts and patterns"
    )
    parser.add_argument(
        "--data-dir", default=config.DATA_DIR,
        help=f"Directory with the day's source documents (default: {config.DATA_DIR})"
    )
    parser.add_argument(
        "--history-dir", default=config.HISTORY_DIR,
        help=f"Directory for history files and snapshots (default: {config.HISTORY_DIR})"
    )
    parser.add_argument(
        "--output-dir", default=config.OUTPUT_DIR,
        help=f"Directory for run outputs (default: {config.OUTPUT_DIR})"
    )
    parser.add_argument(
        "--date", default=None,
        help="Run date YYYY-MM-DD (default: today, UTC)"
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print the full run result as JSON instead of a summary"
    )
    parser.add_argument(
        "--log-level", default=None,
        choices=[level.value for level in LogLevel],
        help="Logging level (default: INFO, or INTEL_LOG_LEVEL)"
    )
    args = parser.parse_args(argv)
    if args.date:
        try:
            datetime.strptime(args.date, "%Y-%m-%d")
        except ValueError:
            parser.error(f"--date must be YYYY-MM-DD, got {args.date!r}")
    return args


def format_summary(result) -> str:
    lines = [
        "=" * 60,
        f"COMPETITIVE MOMENTUM - {result.date}",
        "=" * 60,
        "",
        "Top movers:",
    ]
    for row in result.ranked[:10]:
        lines.append(f"  {row['rank']:>2}. {row['name']:<20s} {row['score']:>5}")
        for reason in row["signals"][:3]:
            lines.append(f"        - {reason}")

    lines += ["", f"Alerts ({len(result.alerts)}):"]
    for alert in result.alerts:
        lines.append(f"  [{alert.severity.value.upper():6s}] {alert.message}")

    lines += ["", f"Patterns ({len(result.patterns)}):"]
    for pattern in result.patterns:
        lines.append(f"  {pattern.pattern_type.value:20s} {pattern.message}")

    skipped = len(result.scoring.skipped) + result.load_report.malformed_count
    if skipped or result.load_report.missing:
        lines += [
            "",
            f"Skipped records: {skipped}, missing documents: "
            f"{', '.join(result.load_report.missing) or 'none'}",
        ]
    return "\n".join(lines)


def main(argv=None) -> int:
    args = parse_args(argv)

    log_config = resolve_config(LoggingConfig())
    if args.log_level:
        log_config.level = LogLevel(args.log_level)
    configure_logging(log_config, apply_env=False)

    pipeline = IntelPipeline(PipelineConfig(
        data_dir=args.data_dir,
        history_dir=args.history_dir,
        output_dir=args.output_dir,
    ))
    try:
        result = pipeline.run(run_date=args.date)
    except IntelError as e:
        logger.error("Run aborted: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_STORAGE_FAULT

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print(format_summary(result))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
