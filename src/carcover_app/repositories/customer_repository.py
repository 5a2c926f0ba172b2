"""Customer repository with encrypted sensitive fields."""

from __future__ import annotations

from typing import Any

from carcover_app.core.crypto import CryptoService
from carcover_app.models.customer import CustomerRegistration
from carcover_app.repositories.db_pool import ThreadLocalConnection


class CustomerRepository:
    """Handles customer persistence and retrieval."""

    def __init__(self, pool: ThreadLocalConnection, crypto_service: CryptoService):
        self._pool = pool
        self._crypto = crypto_service

    def create_customer(self, identity: str, payload: CustomerRegistration) -> None:
        """Insert a customer keyed by caller identity."""
        self._pool.execute(
            """
            INSERT INTO customers (
                identity,
                name,
                national_id_encrypted,
                nationality,
                phone,
                birth_year,
                married,
                banned
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 0)
            """,
            (
                identity,
                payload.name,
                self._crypto.encrypt_text(payload.national_id),
                payload.nationality,
                payload.phone,
                payload.birth_year,
                int(payload.married),
            ),
        )

    def exists(self, identity: str) -> bool:
        """Return True when the identity has registered."""
        row = self._pool.fetchone(
            "SELECT 1 FROM customers WHERE identity = ? LIMIT 1",
            (identity,),
        )
        return row is not None

    def get_customer(self, identity: str) -> dict[str, Any] | None:
        """Fetch one customer record."""
        row = self._pool.fetchone(
            """
            SELECT
                identity,
                name,
                national_id_encrypted,
                nationality,
                phone,
                birth_year,
                married,
                banned
            FROM customers
            WHERE identity = ?
            """,
            (identity,),
        )
        return dict(row) if row else None

    def is_banned(self, identity: str) -> bool:
        """Return the ban flag; unknown identities are not banned."""
        row = self._pool.fetchone(
            "SELECT banned FROM customers WHERE identity = ?",
            (identity,),
        )
        return bool(row["banned"]) if row else False

    def set_banned(self, identity: str, banned: bool) -> int:
        """Set the ban flag and return affected row count."""
        cursor = self._pool.execute(
            """
            UPDATE customers
            SET banned = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE identity = ?
            """,
            (int(banned), identity),
        )
        return cursor.rowcount

    def decrypt_national_id(self, encrypted: bytes | None) -> str:
        """Decrypt national id value."""
        if not encrypted:
            return ""
        return self._crypto.decrypt_text(encrypted)
