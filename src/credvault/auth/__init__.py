# Auth Module - Master Password & Session
#
# Argon2id master-password record, in-memory vault session key,
# and the external identity-service collaborators.

from .authenticator import Authenticator, AuthState
from .identity_client import AuthResponse, AuthSession, IdentityClient
from .record_store import AuthRecord, AuthRecordStore, LoadOutcome

__all__ = [
    "Authenticator",
    "AuthState",
    "AuthRecord",
    "AuthRecordStore",
    "LoadOutcome",
    "IdentityClient",
    "AuthResponse",
    "AuthSession",
]
