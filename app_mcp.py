"""Finance tool server: Romanian IBAN checks and income/expense forecasts."""
from __future__ import annotations

import uvicorn

from mcp_framework import (
    HOST,
    LOG_LEVEL,
    PORT,
    ServiceDefinition,
    attach_request_logger,
    create_mcp_server,
    log_interaction,
)
from services import (
    register_forecast_service,
    register_iban_service,
    register_ledger_service,
)

services = [
    ServiceDefinition(
        name="iban",
        description="Validate, format and compute check digits for Romanian IBANs.",
        register=register_iban_service,
    ),
    ServiceDefinition(
        name="forecast",
        description="Statistics and linear forecasts over supplied transactions.",
        register=register_forecast_service,
    ),
    ServiceDefinition(
        name="ledger",
        description="Per-user forecasts read from the finance ledger database.",
        register=register_ledger_service,
    ),
]

mcp, http_app = create_mcp_server(services)
attach_request_logger(http_app)

log_interaction("startup", {"services": [service.name for service in services]}, {"app": mcp.name})


if __name__ == "__main__":
    # Streamable HTTP transport served on http://<host>:<port>/mcp
    uvicorn.run(
        http_app,
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL,
    )
