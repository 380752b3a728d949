"""
Robot status indicators.
"""

from .led_indicator import LedIndicator, SimulatedLedStrip

__all__ = [
    "LedIndicator",
    "SimulatedLedStrip",
]
