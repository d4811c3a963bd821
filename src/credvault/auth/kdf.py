"""Master password key derivation (Argon2id).

Fixed cost parameters, never attacker-influenced:
- Argon2id, version 0x13
- 1 lane, 64 MiB memory, 3 passes
- 32-byte output

`purpose` is passed as Argon2 associated data, giving domain separation
between the stored authentication hash (empty purpose) and the vault session
key (b"vault") even though both come from the same password and salt.
"""

from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from ..core.errors import CryptoFailure

SALT_LENGTH = 16       # 128-bit salt, generated once at setup
KEY_LENGTH = 32        # 256 bits for AES-256
ARGON2_LANES = 1
ARGON2_MEMORY_COST = 65536  # KiB (64 MiB)
ARGON2_ITERATIONS = 3

AUTH_PURPOSE = b""
VAULT_PURPOSE = b"vault"


def _as_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def derive(
    password: Union[str, bytes],
    salt: bytes,
    purpose: Union[str, bytes] = AUTH_PURPOSE,
) -> bytes:
    """Derive 32 bytes of key material from password + salt + purpose.

    Deterministic: identical inputs always produce identical output.

    Raises:
        CryptoFailure: invalid parameters (e.g. salt length) or the backend
            could not run Argon2id.
    """
    if len(salt) != SALT_LENGTH:
        raise CryptoFailure(f"Salt must be {SALT_LENGTH} bytes")

    ad = _as_bytes(purpose) or None
    try:
        kdf = Argon2id(
            salt=bytes(salt),
            length=KEY_LENGTH,
            iterations=ARGON2_ITERATIONS,
            lanes=ARGON2_LANES,
            memory_cost=ARGON2_MEMORY_COST,
            ad=ad,
        )
        return kdf.derive(_as_bytes(password))
    except (UnsupportedAlgorithm, ValueError, MemoryError) as exc:
        raise CryptoFailure(f"Key derivation failed: {exc}") from exc
