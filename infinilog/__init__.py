"""Top-level package for the Infinilog HVAC telemetry logger."""
from __future__ import annotations

__version__ = "1.0.0"

from .config import AppConfig, load_config  # noqa: E402

__all__ = ["AppConfig", "__version__", "load_config"]
