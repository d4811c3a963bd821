# Core - Vault Database Transactions
#
# The vault opens one short-lived connection per operation:
#
#     with transaction(db_path) as conn:
#         conn.execute(...)
#
# The block commits on success, rolls back on any exception and always
# closes the connection, so no handle outlives a single vault call and no
# connection is ever shared between threads.

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

# Seconds a writer waits on a locked database before SQLITE_BUSY.
BUSY_TIMEOUT_SEC = 5.0


@contextmanager
def transaction(db_path: Union[str, Path]) -> Iterator[sqlite3.Connection]:
    """Yield a WAL-mode connection with name-addressable rows."""
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT_SEC)
    try:
        # WAL lets list/search read while another thread commits.
        conn.execute("PRAGMA journal_mode=WAL")
        conn.row_factory = sqlite3.Row
        with conn:
            yield conn
    finally:
        conn.close()
