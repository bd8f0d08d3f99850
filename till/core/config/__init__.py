"""
Till Core Config — Public API
===============================
Checkout-wide settings (currency, default loyalty program).
Doctrine: No hardcoded currency in engine logic.
"""

from till.core.config.settings import (
    TenderSettings,
    load_settings,
)

__all__ = [
    "TenderSettings",
    "load_settings",
]
