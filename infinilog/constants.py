"""Shared constants used across the Infinilog suite."""
from __future__ import annotations

# Bus addresses of the devices the core talks to.
DEV_TSTAT = 0x2001
DEV_AIR_HANDLER = 0x4001
DEV_HEAT_PUMP = 0x5001

# Address ranges snooped for asynchronous responses.
HEAT_PUMP_RANGE = (0x5000, 0x51FF)
AIR_HANDLER_RANGE = (0x4000, 0x42FF)

# Three-byte table signatures prefixing snooped payloads.
SIG_HEAT_PUMP_TEMPS = bytes((0x00, 0x3E, 0x01))
SIG_HEAT_PUMP_STAGE = bytes((0x00, 0x3E, 0x02))
SIG_AIR_HANDLER_BLOWER = bytes((0x00, 0x03, 0x06))
SIG_AIR_HANDLER_AIRFLOW = bytes((0x00, 0x03, 0x16))

# Store keys, one per telemetry domain.
KEY_TSTAT = "tstat"
KEY_AIR_HANDLER = "blower"
KEY_HEAT_PUMP = "heatpump"

LOG_HEADER = "Date,Time,FracTime,HeatSet,CoolSet,OutdoorTemp,CurrentTemp,BlowerRPM"
DEFAULT_ACTIVE_LOG_NAME = "Infinilog.csv"
DEFAULT_CHART_SUFFIX = "_Temperature.html"
DEFAULT_INDEX_NAME = "htmlLinks.html"
DEFAULT_DIAGNOSTIC_LOG_NAME = "infinilog.log"
