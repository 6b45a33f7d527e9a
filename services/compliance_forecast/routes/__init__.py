"""
Compliance Forecast Routes
==========================

API route handlers for the Compliance Forecast Service.
"""

from services.compliance_forecast.routes import forecast, lifecycle


__all__ = ["forecast", "lifecycle"]
