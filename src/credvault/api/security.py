# API Security - Session token bound to the running app
#
# The token is minted in the app's startup hook and stored on `app.state`
# beside the VaultContext; shutdown revokes it together with locking the
# vault. Vault routes require it in the X-Session-Token header, which keeps
# other local processes out even though the API listens on localhost.

import secrets
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request, status

TOKEN_HEADER = "X-Session-Token"
TOKEN_BYTES = 32


def mint_session_token(app: FastAPI) -> str:
    """Issue a fresh token for this app instance, replacing any previous one."""
    token = secrets.token_urlsafe(TOKEN_BYTES)
    app.state.session_token = token
    return token


def revoke_session_token(app: FastAPI) -> None:
    app.state.session_token = None


def current_session_token(app: FastAPI) -> Optional[str]:
    return getattr(app.state, "session_token", None)


def require_session_token(
    request: Request,
    x_session_token: Optional[str] = Header(None),
) -> str:
    """FastAPI dependency for vault routes.

    A missing header, a wrong token, or an app that has not been started
    (no token minted yet) all answer 401.
    """
    expected = current_session_token(request.app)
    if x_session_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {TOKEN_HEADER} header"
        )
    if expected is None or not secrets.compare_digest(x_session_token, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token"
        )
    return x_session_token
