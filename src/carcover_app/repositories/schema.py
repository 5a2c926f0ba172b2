"""Database schema management."""

from __future__ import annotations

from carcover_app.repositories.db_pool import ThreadLocalConnection


def initialize_schema(pool: ThreadLocalConnection) -> None:
    """Create required tables and indexes if they do not exist."""
    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS customers (
            identity TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            national_id_encrypted BLOB NOT NULL,
            nationality TEXT NOT NULL,
            phone TEXT NOT NULL,
            birth_year INTEGER NOT NULL,
            married INTEGER NOT NULL,
            banned INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    # AUTOINCREMENT keeps policy ids monotonic and never reused.
    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS policies (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner TEXT NOT NULL,
            plate TEXT NOT NULL UNIQUE,
            brand TEXT NOT NULL,
            engine_capacity INTEGER NOT NULL,
            registration_year INTEGER NOT NULL,
            start_year INTEGER NOT NULL,
            period_years INTEGER NOT NULL,
            last_paid INTEGER NOT NULL DEFAULT 0,
            opened_at INTEGER NOT NULL,
            plan TEXT NOT NULL,
            electric INTEGER NOT NULL,
            claimed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (owner) REFERENCES customers(identity) ON DELETE RESTRICT
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS insured_plates (
            plate TEXT PRIMARY KEY,
            policy_id INTEGER NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (policy_id) REFERENCES policies(id) ON DELETE RESTRICT
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS custody (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            balance TEXT NOT NULL
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS custody_movements (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            direction TEXT NOT NULL CHECK (direction IN ('IN', 'OUT')),
            counterparty TEXT NOT NULL,
            amount TEXT NOT NULL,
            reason TEXT NOT NULL,
            policy_id INTEGER,
            occurred_at INTEGER NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS wallets (
            identity TEXT PRIMARY KEY,
            balance TEXT NOT NULL
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS system_state (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )

    pool.execute(
        """
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            action TEXT NOT NULL,
            entity TEXT NOT NULL,
            entity_id TEXT,
            actor TEXT,
            detail TEXT,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    pool.execute("INSERT OR IGNORE INTO custody (id, balance) VALUES (1, '0')")
    pool.execute("CREATE INDEX IF NOT EXISTS idx_policies_owner ON policies(owner, id)")
    pool.execute(
        "CREATE INDEX IF NOT EXISTS idx_custody_movements_policy ON custody_movements(policy_id)"
    )
    pool.execute("CREATE INDEX IF NOT EXISTS idx_audit_logs_created_at ON audit_logs(created_at)")


def bind_owner_identity(pool: ThreadLocalConnection, identity: str) -> str:
    """Persist the owner on first start and reject a different owner afterwards."""
    with pool.transaction():
        pool.execute(
            "INSERT OR IGNORE INTO system_state (key, value) VALUES ('owner', ?)",
            (identity,),
        )
        row = pool.fetchone("SELECT value FROM system_state WHERE key = 'owner'")
    stored = str(row["value"])
    if stored != identity:
        raise RuntimeError(
            "Configured owner identity does not match the owner this database was created with."
        )
    return stored
