# API - FastAPI Backend
#
# Local-only REST API over the VaultContext. Bind to 127.0.0.1; the session
# token guards every vault endpoint.

import logging

import uvicorn
from fastapi import FastAPI, HTTPException, status

from .. import __version__
from ..core import EventSeverity, EventType, log_security_event
from . import vault_routes
from .security import current_session_token, mint_session_token, revoke_session_token

logger = logging.getLogger(__name__)

app = FastAPI(
    title="credvault API",
    description="Local master-password authentication and credential vault",
    version=__version__
)

app.include_router(vault_routes.router)


@app.on_event("startup")
async def startup_event():
    """Create the vault context before the first request, then mint the token."""
    vault_routes.get_vault_context()
    mint_session_token(app)
    log_security_event(
        event_type=EventType.SYSTEM_START,
        severity=EventSeverity.INFO,
        message="credvault API server starting (session token initialized)",
        details={"version": __version__}
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Lock the vault and revoke the token so neither outlives the server."""
    ctx = vault_routes._context
    if ctx is not None:
        ctx.lock()
    revoke_session_token(app)
    log_security_event(
        event_type=EventType.SYSTEM_STOP,
        severity=EventSeverity.INFO,
        message="credvault API server stopped"
    )


@app.get("/api/session")
async def get_session():
    """
    Hand the session token to the local frontend.

    The API only listens on localhost; the token keeps other local
    processes that do not call this endpoint out of the vault routes.
    """
    token = current_session_token(app)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session token not issued yet"
        )
    return {"session_token": token}


def start_api_server(host: str = "127.0.0.1", port: int = 8000):
    """
    Start FastAPI server.

    Args:
        host: Host to bind to (default: localhost only for security)
        port: Port to listen on
    """
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    start_api_server()
