"""CLI entry point for the Infinilog telemetry logger."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from .. import __version__, load_config
from ..hardware import DeviceError
from ..service import PipelineJobs, TelemetryService
from ..state import SnapshotStore
from ..storage import HistoryLog, HistoryLogError
from .common import apply_overrides, configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Run the Infinilog HVAC telemetry logger.',
        epilog='The logger polls the thermostat, appends a history record every few minutes '
        'and rotates, charts and prunes the daily archives on a fixed schedule.',
    )
    parser.add_argument('--config', type=str, help='Path to a JSON, TOML or YAML configuration file.')
    parser.add_argument('--port', type=str, help='Override the HVAC bus transport path (e.g. /dev/ttyUSB0).')
    parser.add_argument('--transport', choices=('sim', 'factory'), help='Override the device transport.')
    parser.add_argument('--data-dir', type=str, help='Override the directory holding logs, archives and charts.')
    parser.add_argument('--log-dir', type=str, help='Override the diagnostic log directory.')
    parser.add_argument(
        '--stale-after',
        type=float,
        help='Warn when the thermostat snapshot is older than this many seconds (0 to disable).',
    )
    parser.add_argument('--log-level', type=str, help='Logging level (DEBUG, INFO, WARNING, ...).')
    parser.add_argument(
        '--rotate-now', action='store_true', help='Archive and chart the active log once, then exit.'
    )
    parser.add_argument(
        '--rebuild-index', action='store_true', help='Regenerate the chart index page once, then exit.'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def _run_once(args: argparse.Namespace, jobs: PipelineJobs, history: HistoryLog) -> int:
    try:
        if args.rotate_now:
            history.open()
            try:
                chart = jobs.rotate()
            finally:
                history.close()
            print(f'Rotation complete; chart: {chart or "(none)"}')
        if args.rebuild_index:
            index = jobs.rebuild_index()
            print(f'Index written to {index}')
    except (HistoryLogError, OSError, ValueError) as exc:
        logger.error("one-shot run failed: %s", exc)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config) if args.config else None
    if config_path is not None and not config_path.exists():
        print(f'Config file not found: {config_path}', file=sys.stderr)
        return 1

    try:
        config = apply_overrides(load_config(config_path), args)
    except (ValueError, TypeError) as exc:
        print(f'Invalid configuration: {exc}', file=sys.stderr)
        return 1

    configure_logging(config)

    if args.rotate_now or args.rebuild_index:
        config.storage.data_dir.mkdir(parents=True, exist_ok=True)
        history = HistoryLog(config.storage.active_log_path)
        jobs = PipelineJobs(config, SnapshotStore.seeded(), history)
        return _run_once(args, jobs, history)

    try:
        service = TelemetryService(config)
    except (ValueError, ImportError, AttributeError) as exc:
        logger.error("unable to create HVAC transport: %s", exc)
        return 1

    shutdown_requested = False

    def signal_handler(signum, frame):
        nonlocal shutdown_requested
        if not shutdown_requested:
            shutdown_requested = True
            logger.info("received shutdown signal %s, stopping logger", signum)
            service.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        service.run()
    except (DeviceError, HistoryLogError) as exc:
        logger.error("startup failed: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted by user, stopping logger")
        service.request_stop()
    return 0


if __name__ == '__main__':
    raise SystemExit(main(sys.argv[1:]))
