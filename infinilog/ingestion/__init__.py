"""Frame ingestion: snooped responses into snapshot merges."""
from __future__ import annotations

from .decoders import AirHandlerDecoder, HeatPumpDecoder, attach_decoders

__all__ = ["AirHandlerDecoder", "HeatPumpDecoder", "attach_decoders"]
