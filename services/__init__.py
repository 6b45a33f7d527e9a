"""
RetailSafe Services
===================

Services for the RetailSafe retail compliance platform.

Services:
- compliance_forecast: FRA lifecycle and compliance risk forecasting
"""

__all__ = [
    "compliance_forecast",
]
