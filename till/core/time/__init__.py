"""
Till Core Time — Public API
=============================
Doctrine: NO datetime.now() in engine logic.
"""

from till.core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
]
