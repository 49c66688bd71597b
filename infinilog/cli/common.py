"""Shared CLI helpers for the logger entry points."""
from __future__ import annotations

import logging
import logging.handlers
from argparse import Namespace
from pathlib import Path
from typing import List, Optional

from ..config import AppConfig, DeviceConfig


def apply_overrides(config: AppConfig, args: Namespace) -> AppConfig:
    """Apply command-line overrides stored in *args* to *config*."""

    if getattr(args, "transport", None) or getattr(args, "port", None):
        config.device = DeviceConfig(
            transport=args.transport or config.device.transport,
            factory=config.device.factory,
            port=args.port or config.device.port,
        )
    if getattr(args, "data_dir", None):
        config.storage.data_dir = Path(args.data_dir).expanduser()
    if getattr(args, "log_dir", None):
        config.storage.log_dir = Path(args.log_dir).expanduser()
    if getattr(args, "stale_after", None) is not None:
        config.monitoring.stale_after_s = max(float(args.stale_after), 0.0)
    if getattr(args, "log_level", None):
        config.monitoring.log_level = args.log_level.upper()
    return config


def configure_logging(config: AppConfig, *, file_logging: bool = True) -> Optional[Path]:
    """Log to stderr and, when configured, to a file in the diagnostic log directory.

    The file handler reopens its path once the log purge has removed it.
    """

    monitoring = config.monitoring
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_path: Optional[Path] = None
    if file_logging and monitoring.log_file:
        log_dir = config.storage.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / monitoring.log_file
        handlers.append(logging.handlers.WatchedFileHandler(log_path, encoding='utf-8'))
    logging.basicConfig(
        level=getattr(logging, monitoring.log_level, logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=handlers,
        force=True,
    )
    return log_path
