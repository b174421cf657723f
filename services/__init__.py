"""Finance tool services for MCP."""

from .forecast_service import register_forecast_service
from .iban_service import register_iban_service
from .ledger_service import register_ledger_service

__all__ = ["register_iban_service", "register_forecast_service", "register_ledger_service"]
