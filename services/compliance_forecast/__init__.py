"""
Compliance Forecast Service
===========================

FRA lifecycle resolution and estate compliance risk forecasting.

Features:
- Lifecycle state of the 12-monthly fire risk assessment
- Per-store risk score, band and drivers
- Estate summary (band counts, average risk)
- Weekly forecast digest

Port: 8010
"""

__version__ = "0.1.0"
