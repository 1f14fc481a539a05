"""
Relay canonical entrypoint.

Starts the HTTP relay with the process settings:
- PORT / HOST: listen address (default 0.0.0.0:3001)
- RESERIALIZE=1: decode and re-encode payloads instead of passing bytes through
"""

from __future__ import annotations

import uvicorn

from api_server import app
from app.core.settings import settings
from observability import build_log_context, configure_logging, log_event

SERVER_CTX = build_log_context(tool="server")

ENDPOINTS = [
    "POST /transaction - store a serialized transaction",
    "POST /signature - store the secondary signer's authenticator",
    "GET /transaction/{transaction_id} - fetch transaction and signature",
    "GET /health - health check",
]


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    log_event(
        "relay_server_started",
        ctx=SERVER_CTX,
        data={
            "host": settings.HOST,
            "port": settings.PORT,
            "mode": settings.mode,
            "duplicate_policy": settings.DUPLICATE_POLICY.value,
            "audit": bool(settings.AUDIT_DB_PATH),
            "endpoints": ENDPOINTS,
        },
    )
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
