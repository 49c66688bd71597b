"""Thermostat acquisition."""
from __future__ import annotations

from .poller import StatePoller, read_settings, read_thermostat

__all__ = ["StatePoller", "read_settings", "read_thermostat"]
