# Vault API - REST endpoints for the credential vault
#
# - Status / setup / unlock / lock
# - CRUD + search for stored credentials
# - Credential endpoints return 403 while the vault is locked
#
# Endpoints are plain `def` so FastAPI runs them in its threadpool:
# Argon2id and SQLite calls block, and must stay off the event loop.
# The VaultContext lock serializes them.

import threading
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..context import VaultContext
from ..core.errors import CryptoFailure, NotAuthenticated, StorageFailure, VaultError
from ..vault.models import CredentialEntry
from .security import require_session_token

router = APIRouter(prefix="/api/vault", tags=["vault"])

_context: Optional[VaultContext] = None
_context_lock = threading.Lock()


def get_vault_context() -> VaultContext:
    """Process-wide context, created once even under concurrent first calls."""
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = VaultContext()
    return _context


def set_vault_context(ctx: Optional[VaultContext]):
    """Replace the context (tests inject an isolated one)."""
    global _context
    with _context_lock:
        _context = ctx


# Request/Response Models
class MasterPasswordRequest(BaseModel):
    master_password: str = Field(..., min_length=1)


class CredentialRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)
    username: str = ""
    password: str = ""


class VaultStatusResponse(BaseModel):
    state: str
    is_setup: bool
    is_unlocked: bool


def _raise_for(exc: VaultError):
    """Map engine failures to HTTP errors."""
    if isinstance(exc, NotAuthenticated):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    if isinstance(exc, (StorageFailure, CryptoFailure)):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


# Endpoints

@router.get("/status", response_model=VaultStatusResponse)
def get_vault_status(token: str = Depends(require_session_token)):
    """Whether a master password exists and whether the session is unlocked."""
    ctx = get_vault_context()
    return VaultStatusResponse(
        state=ctx.state.value,
        is_setup=ctx.is_setup(),
        is_unlocked=ctx.is_unlocked(),
    )


@router.post("/setup")
def setup_master_password(
    request: MasterPasswordRequest,
    token: str = Depends(require_session_token)
):
    """Create or replace the master password. Leaves the vault locked."""
    try:
        get_vault_context().setup(request.master_password)
    except VaultError as exc:
        _raise_for(exc)
    return {"success": True, "message": "Master password set"}


@router.post("/unlock")
def unlock_vault(
    request: MasterPasswordRequest,
    token: str = Depends(require_session_token)
):
    """Verify the master password and unlock the session."""
    ctx = get_vault_context()
    if not ctx.is_setup():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Master password not set up"
        )

    try:
        unlocked = ctx.unlock(request.master_password)
    except VaultError as exc:
        _raise_for(exc)

    if not unlocked:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect master password"
        )
    return {"success": True, "message": "Vault unlocked"}


@router.post("/lock")
def lock_vault(token: str = Depends(require_session_token)):
    """Sign out and discard the session key."""
    get_vault_context().lock()
    return {"success": True, "message": "Vault locked"}


@router.get("/passwords")
def list_passwords(
    q: Optional[str] = None,
    token: str = Depends(require_session_token)
):
    """All credentials (decrypted), or those matching ?q= in url/username."""
    ctx = get_vault_context()
    try:
        entries = ctx.search(q) if q else ctx.list_entries()
    except VaultError as exc:
        _raise_for(exc)
    return {"passwords": [e.to_dict() for e in entries]}


@router.post("/passwords")
def add_password(
    request: CredentialRequest,
    token: str = Depends(require_session_token)
):
    entry = CredentialEntry(
        url=request.url, username=request.username, password=request.password
    )
    try:
        get_vault_context().add(entry)
    except VaultError as exc:
        _raise_for(exc)
    return {"success": True, "password_id": entry.id}


@router.get("/passwords/{password_id}")
def get_password(
    password_id: int,
    token: str = Depends(require_session_token)
):
    try:
        entry = get_vault_context().get(password_id)
    except VaultError as exc:
        _raise_for(exc)

    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Password not found"
        )
    return entry.to_dict()


@router.put("/passwords/{password_id}")
def update_password(
    password_id: int,
    request: CredentialRequest,
    token: str = Depends(require_session_token)
):
    entry = CredentialEntry(
        id=password_id,
        url=request.url,
        username=request.username,
        password=request.password,
    )
    try:
        updated = get_vault_context().update(entry)
    except VaultError as exc:
        _raise_for(exc)

    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Password not found"
        )
    return {"success": True, "last_modified": entry.last_modified}


@router.delete("/passwords/{password_id}")
def delete_password(
    password_id: int,
    token: str = Depends(require_session_token)
):
    """Delete a credential. Deleting an unknown id succeeds."""
    try:
        get_vault_context().delete(password_id)
    except VaultError as exc:
        _raise_for(exc)
    return {"success": True, "message": "Password deleted"}
